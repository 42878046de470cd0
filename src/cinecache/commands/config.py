"""Config commands -- view and modify the stored settings.

Settings live in ``config.json`` under the cinecache config directory
(:class:`~cinecache.models.Settings`). Environment variables such as
``CINECACHE_API_KEY`` override them at runtime but are never written back.
"""

from __future__ import annotations

from typing import Any

import typer

from cinecache.exit_codes import EXIT_INVALID_USAGE
from cinecache.output import error, format_response, info, success

config_app = typer.Typer(no_args_is_help=True)

_MASKED_KEYS = {"api_key"}


def _mask(data: dict[str, Any]) -> dict[str, Any]:
    masked: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, dict):
            masked[key] = _mask(value)
        elif key in _MASKED_KEYS and value:
            masked[key] = "****"
        else:
            masked[key] = value
    return masked


@config_app.command("show")
def config_show() -> None:
    """Show the effective settings (stored values plus environment overrides).

    Example::

        cinecache config show --json
    """
    from cinecache.config import get_config_dir, get_typed_cache_dir, resolve_settings

    settings = resolve_settings()
    info(f"Config directory: {get_config_dir()}")
    info(f"Cache directory: {get_typed_cache_dir(settings)}")
    format_response(_mask(settings.model_dump(mode="json")))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(help="Setting key (dot notation, e.g. 'request.timeout')."),
    value: str = typer.Argument(help="Value to set."),
) -> None:
    """Set a stored setting.

    The value is coerced to the type of the current value (bool, int,
    float, or str); ``none`` clears optional settings.

    Example::

        cinecache config set api.api_key abc123
        cinecache config set request.cache_level 3
        cinecache config set cache.default_freshness_minutes 120
    """
    from pydantic import ValidationError

    from cinecache.config import load_settings, save_settings
    from cinecache.exceptions import ConfigError
    from cinecache.models import Settings

    try:
        data = load_settings().model_dump(mode="json")
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    parts = key.split(".")
    target = data
    for part in parts[:-1]:
        if part not in target or not isinstance(target[part], dict):
            error(f"Invalid config key: {key}")
            raise typer.Exit(code=EXIT_INVALID_USAGE)
        target = target[part]

    final_key = parts[-1]
    if final_key not in target:
        error(f"Unknown config key: {key}")
        raise typer.Exit(code=EXIT_INVALID_USAGE)

    current = target[final_key]
    try:
        coerced = _coerce(current, value)
    except ValueError:
        error(f"Expected {type(current).__name__} for {key}, got: {value}")
        raise typer.Exit(code=EXIT_INVALID_USAGE) from None
    target[final_key] = coerced

    try:
        settings = Settings.model_validate(data)
    except ValidationError as exc:
        error(f"Validation error: {exc}")
        raise typer.Exit(code=EXIT_INVALID_USAGE) from None

    save_settings(settings)
    shown = "****" if final_key in _MASKED_KEYS else coerced
    success(f"Set {key} = {shown}")


def _coerce(current: Any, value: str) -> Any:
    if current is None:
        return None if value.lower() == "none" else value
    if isinstance(current, bool):
        return value.lower() in ("true", "1", "yes")
    if isinstance(current, int):
        return int(value)
    if isinstance(current, float):
        return float(value)
    return value
