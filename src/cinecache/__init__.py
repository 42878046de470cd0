"""cinecache -- Local response cache and typed result layer for movie-metadata APIs.

This package sits between application code and a remote JSON HTTP API (a
TMDb-style movie metadata service). It offers two building blocks:

* a key based, time expiring disk cache for any JSON serialisable value
  (:mod:`cinecache.cache`), and
* a transport agnostic request/result abstraction that turns every HTTP
  call into either typed data or a typed error (:mod:`cinecache.client`
  and :mod:`cinecache.api`).

Typical use::

    from cinecache.api import TmdbApi
    from cinecache.client import HttpxApiClient
    from cinecache.models import GenreList

    async with HttpxApiClient(settings.request) as client:
        api = TmdbApi(client, settings)
        result = await api.get_genres()
        if result.ok:
            print(result.result.genres)

Modules:
    app: Typer application factory and CLI entry point.
    models: Pydantic models shared across the entire package.
    config: XDG-aware configuration management.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    events: In-process publish/subscribe bus.
    roulette: Single-shot search request with broadcast notification.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"
