"""Typer application and CLI entry point for cinecache.

Registers the ``cache``, ``config``, ``genres``, ``moods``, ``suggest``,
``search`` and ``roulette`` commands on the root app. The root callback installs the
:class:`~cinecache.output.OutputManager` from the global flags and routes
the ``cinecache`` loggers to stderr through Rich when ``--verbose`` is
given.

:func:`main` is the console-script entry point declared in
``pyproject.toml``. :class:`~cinecache.exceptions.CinecacheError` exits with
the error's ``exit_code``; anything else writes a crash log under the data
directory.
"""

from __future__ import annotations

import logging
import signal
import sys
import traceback
from datetime import datetime
from typing import Any

import typer
from rich.console import Console
from rich.logging import RichHandler

from cinecache import __version__
from cinecache.commands.api import (
    genres_command,
    moods_command,
    roulette_command,
    search_command,
    suggest_command,
)
from cinecache.commands.cache import cache_app
from cinecache.commands.config import config_app
from cinecache.exit_codes import EXIT_GENERIC_FAILURE

app = typer.Typer(
    name="cinecache",
    help="Cached access to a movie-metadata API.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.add_typer(cache_app, name="cache", help="Inspect and clear the local response cache.")
app.add_typer(config_app, name="config", help="Configuration management.")
app.command("genres")(genres_command)
app.command("moods")(moods_command)
app.command("suggest")(suggest_command)
app.command("search")(search_command)
app.command("roulette")(roulette_command)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"cinecache {__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool, no_color: bool) -> None:
    """Send ``cinecache`` log records to stderr; DEBUG with ``--verbose``, else WARNING."""
    root = logging.getLogger("cinecache")
    for handler in list(root.handlers):
        root.removeHandler(handler)

    level = logging.DEBUG if verbose else logging.WARNING
    handler = RichHandler(
        console=Console(stderr=True, no_color=no_color),
        show_time=verbose,
        show_path=verbose,
        rich_tracebacks=verbose,
    )
    handler.setLevel(level)
    root.addHandler(handler)
    root.setLevel(level)
    root.propagate = False


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-essential output."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output."),
) -> None:
    """Root callback executed before every sub-command.

    Output format precedence: ``--json``, then ``--plain``, then the
    ``output.format`` setting.
    """
    from cinecache.config import load_settings
    from cinecache.exceptions import ConfigError
    from cinecache.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN
    else:
        try:
            fmt = OutputFormat(load_settings().output.format)
        except (ConfigError, ValueError):
            fmt = OutputFormat.AUTO

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))
    _configure_logging(verbose, no_color)

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write the current traceback under ``<data_dir>/logs`` and return its path."""
    from cinecache.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``cinecache`` console script.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from cinecache.exceptions import CinecacheError
        from cinecache.output import error

        if isinstance(exc, CinecacheError):
            error(str(exc))
            sys.exit(exc.exit_code)
        log_path = _write_crash_log(exc)
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
