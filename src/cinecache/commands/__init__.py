"""Built-in CLI sub-commands for cinecache.

* :mod:`~cinecache.commands.cache` -- inspect and clear the typed cache.
* :mod:`~cinecache.commands.api` -- ``genres``, ``search`` and ``roulette``.
* :mod:`~cinecache.commands.config` -- view and modify settings.

Multi-command groups export a :class:`typer.Typer` sub-application; single
commands are plain callbacks registered on the root app.
"""
