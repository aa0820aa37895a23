"""Helpers shared by the sub-command modules."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

import typer

from dartcache.exceptions import DartcacheError
from dartcache.output import debug, error
from dartcache.store import CacheStore


@contextmanager
def exit_on_error() -> Iterator[None]:
    """Report a :class:`~dartcache.exceptions.DartcacheError` and exit with its code."""
    try:
        yield
    except DartcacheError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


@contextmanager
def open_store(ctx: typer.Context) -> Iterator[CacheStore]:
    """Open the store selected by ``--db``, the environment or the config.

    The store is closed when the block exits.
    """
    from dartcache.config import load_global_config, resolve_db_path

    obj = ctx.obj or {}
    with exit_on_error():
        config = load_global_config()
        path = resolve_db_path(obj.get("db"), config)
        debug(f"Using cache database {path}")
        with CacheStore(
            path,
            default_ttl=config.cache.ttl_seconds,
            busy_timeout=config.cache.busy_timeout,
        ) as store:
            yield store
