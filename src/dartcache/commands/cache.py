"""Cache commands -- inspect and maintain the TTL response cache.

Provides the ``dartcache cache`` sub-command group. Every command opens the
database resolved from ``--db``, ``DARTCACHE_DB``, ``DARTCACHE_CACHE_DIR``
or the global config, and closes it before returning.
"""

from __future__ import annotations

import json
from typing import Optional

import typer

from dartcache.commands.common import exit_on_error, open_store
from dartcache.exceptions import InvalidUsageError
from dartcache.exit_codes import EXIT_NOT_FOUND
from dartcache.output import format_response, info, print_data, success


cache_app = typer.Typer(no_args_is_help=True)


@cache_app.command("get")
def cache_get(
    ctx: typer.Context,
    key: str = typer.Argument(help="Cache key."),
) -> None:
    """Print the live value stored under KEY.

    JSON values are pretty-printed; anything else is printed verbatim.
    Exits with :data:`~dartcache.exit_codes.EXIT_NOT_FOUND` when the key
    is missing or expired.

    Example::

        dartcache cache get "/company.json?corp_code=00126380"
    """
    with open_store(ctx) as store:
        value = store.get(key)

    if value is None:
        info(f"No live entry for {key}")
        raise typer.Exit(code=EXIT_NOT_FOUND)

    text = value.decode("utf-8", errors="replace") if isinstance(value, bytes) else value
    try:
        format_response(json.loads(text))
    except ValueError:
        print_data(text)


@cache_app.command("set")
def cache_set(
    ctx: typer.Context,
    key: str = typer.Argument(help="Cache key."),
    value: str = typer.Argument(help="Value to store."),
    ttl: Optional[float] = typer.Option(
        None, "--ttl", min=0, help="Lifetime in seconds (default: cache.ttl_seconds)."
    ),
) -> None:
    """Store VALUE under KEY, replacing any previous entry."""
    with open_store(ctx) as store:
        try:
            store.set(key, value, ttl)
        except ValueError as exc:
            raise InvalidUsageError(str(exc)) from exc
        effective = store.default_ttl if ttl is None else ttl
    success(f"Stored {key} for {effective:g}s")


@cache_app.command("delete")
def cache_delete(
    ctx: typer.Context,
    key: str = typer.Argument(help="Cache key."),
) -> None:
    """Remove KEY from the cache. Missing keys are ignored."""
    with open_store(ctx) as store:
        store.delete(key)
    success(f"Deleted {key}")


@cache_app.command("clear-expired")
def cache_clear_expired(ctx: typer.Context) -> None:
    """Delete every expired entry."""
    with open_store(ctx) as store:
        removed = store.clear_expired()
    success(f"Removed {removed} expired entries.")


@cache_app.command("clear")
def cache_clear(ctx: typer.Context) -> None:
    """Delete every cached response. The corp-code dictionary is kept.

    Asks for confirmation unless ``--force`` is active.
    """
    force = ctx.obj.get("force", False) if ctx.obj else False
    if not force and not typer.confirm("Delete all cached responses?"):
        info("Cancelled.")
        raise typer.Exit()

    with open_store(ctx) as store:
        removed = store.clear()
    success(f"Removed {removed} entries.")


@cache_app.command("stats")
def cache_stats(ctx: typer.Context) -> None:
    """Show entry counts and the database location."""
    with open_store(ctx) as store:
        stats = store.stats()
    format_response(stats)


def _parse_params(pairs: list[str]) -> dict[str, str]:
    params: dict[str, str] = {}
    for pair in pairs:
        name, sep, value = pair.partition("=")
        if not sep or not name:
            raise InvalidUsageError(f"Expected NAME=VALUE, got: {pair}")
        params[name] = value
    return params


@cache_app.command("key")
def cache_key(
    endpoint: str = typer.Argument(help="API endpoint, e.g. /list.json."),
    params: Optional[list[str]] = typer.Argument(None, help="Request parameters as NAME=VALUE."),
) -> None:
    """Print the cache key a request would be stored under.

    Example::

        dartcache cache key /list.json corp_code=00126380 page_no=1
    """
    from dartcache.store import make_cache_key

    with exit_on_error():
        parsed = _parse_params(params or [])
    print_data(make_cache_key(endpoint, parsed))
