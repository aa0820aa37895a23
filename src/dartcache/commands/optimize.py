"""Optimize command -- normalize a JSON payload the way cached responses are.

Reads JSON from a file or stdin, runs it through
:func:`~dartcache.optimize.optimize_response` and writes the result to
stdout. Handy for checking what a consumer will actually receive for a
given raw API response.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Optional

import typer

from dartcache.commands.common import exit_on_error
from dartcache.exceptions import InvalidUsageError
from dartcache.output import OutputFormat, get_output


def optimize_command(
    file: Optional[Path] = typer.Argument(
        None, help="JSON file to read. Reads stdin when omitted or '-'."
    ),
    factor: Optional[bool] = typer.Option(
        None, "--factor/--no-factor", help="Factor fields shared by all list rows."
    ),
    sanitize: Optional[bool] = typer.Option(
        None, "--sanitize/--no-sanitize", help="Prune empty values and expand XML."
    ),
    compact: bool = typer.Option(False, "--compact", help="Emit single-line JSON."),
) -> None:
    """Normalize a raw API response.

    Stages not chosen on the command line follow the ``optimize`` section
    of the global config.

    Example::

        dartcache optimize response.json
        curl -s "$URL" | dartcache optimize --compact
    """
    from dartcache.config import load_global_config
    from dartcache.optimize import optimize_response

    with exit_on_error():
        config = load_global_config().optimize
        if file is None or str(file) == "-":
            text = sys.stdin.read()
        else:
            try:
                text = file.read_text(encoding="utf-8")
            except OSError as exc:
                raise InvalidUsageError(f"Cannot read {file}: {exc}") from exc
        try:
            payload = json.loads(text)
        except ValueError as exc:
            raise InvalidUsageError(f"Input is not valid JSON: {exc}") from exc

    result = optimize_response(
        payload,
        factor=config.factor_common if factor is None else factor,
        sanitize=config.sanitize if sanitize is None else sanitize,
    )

    output = get_output()
    if output.format == OutputFormat.RICH and not compact:
        output.format_response(result)
    elif compact:
        output.print_data(json.dumps(result, ensure_ascii=False, separators=(",", ":")))
    else:
        output.print_data(json.dumps(result, ensure_ascii=False, indent=2))
