"""Typer application and CLI entry point for dartcache.

The root app carries the global flags (database path, output format,
verbosity) and the built-in sub-commands:

* ``cache`` -- inspect and maintain the TTL response cache,
* ``corp`` -- import and search the corp-code dictionary,
* ``optimize`` -- normalize a JSON payload,
* ``config`` -- view and modify global settings.

:func:`main` is the console-script entry point declared in
``pyproject.toml``. :class:`~dartcache.exceptions.DartcacheError` exits
with the error's code; any other exception is written to a crash log.
"""

from __future__ import annotations

import logging
import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer

from dartcache import __version__
from dartcache.exit_codes import EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="dartcache",
    help="Local cache, corp-code dictionary and response normalizer for OpenDART.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

from dartcache.commands.cache import cache_app  # noqa: E402
from dartcache.commands.config import config_app  # noqa: E402
from dartcache.commands.corp import corp_app  # noqa: E402
from dartcache.commands.optimize import optimize_command  # noqa: E402

app.add_typer(cache_app, name="cache", help="Inspect and maintain the response cache.")
app.add_typer(corp_app, name="corp", help="Import and search the corp-code dictionary.")
app.add_typer(config_app, name="config", help="Configuration management.")
app.command("optimize")(optimize_command)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"dartcache {__version__}")
        raise typer.Exit()


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
    db: Optional[str] = typer.Option(
        None, "--db", help="Cache database file (overrides env and config)."
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output and logging."
    ),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmations."),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~dartcache.output.OutputManager`,
    configures logging, and stores ``db`` and ``force`` in ``ctx.obj``
    for the sub-commands.
    """
    from dartcache.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))
    _configure_logging(verbose)

    ctx.ensure_object(dict)
    ctx.obj["db"] = db
    ctx.obj["force"] = force


def _configure_logging(verbose: bool) -> None:
    """Send library log records to stderr: DEBUG with ``--verbose``, else WARNING."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    logging.getLogger("dartcache").setLevel(logging.DEBUG if verbose else logging.WARNING)


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write the current traceback under the data directory and return its path."""
    from dartcache.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``dartcache`` console script.

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
        from dartcache.exceptions import DartcacheError
        from dartcache.output import error

        if isinstance(exc, DartcacheError):
            error(str(exc))
            sys.exit(exc.exit_code)
        log_path = _write_crash_log(exc)
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
