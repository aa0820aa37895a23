"""Corp commands -- import and search the local corp-code dictionary.

Provides the ``dartcache corp`` sub-command group. ``import`` loads an
OpenDART ``CORPCODE.xml`` file (or the zip archive it ships in) into the
cache database; ``search`` looks companies up by name, ticker or code.
"""

from __future__ import annotations

from pathlib import Path

import typer

from dartcache.commands.common import open_store
from dartcache.output import format_response, info, print_table, success
from dartcache.store.store import SEARCH_LIMIT


corp_app = typer.Typer(no_args_is_help=True)


@corp_app.command("import")
def corp_import(
    ctx: typer.Context,
    path: Path = typer.Argument(help="CORPCODE.xml or the corpCode zip archive."),
    force: bool = typer.Option(
        False, "--force", help="Import even if the dictionary is already populated."
    ),
) -> None:
    """Import the corp-code dictionary from PATH.

    Skipped when the dictionary already holds records, unless ``--force``
    is given. The import is all-or-nothing.

    Example::

        dartcache corp import ~/Downloads/corpCode.zip
    """
    from dartcache.corpcode import load_corp_codes

    with open_store(ctx) as store:
        if not force and store.has_dictionary_entries():
            info("Corp-code dictionary is already populated. Use --force to re-import.")
            return
        records = load_corp_codes(path)
        count = store.bulk_upsert_dictionary(records)
    success(f"Imported {count} corp codes.")


@corp_app.command("search")
def corp_search(
    ctx: typer.Context,
    query: str = typer.Argument(help="Name substring, 6-digit ticker or 8-digit code."),
    limit: int = typer.Option(
        SEARCH_LIMIT, "--limit", "-l", min=1, max=SEARCH_LIMIT, help="Maximum results."
    ),
) -> None:
    """Search the corp-code dictionary.

    Names match by case-sensitive substring; tickers and codes must match
    exactly. Results are sorted by name.

    Example::

        dartcache corp search 삼성
        dartcache corp search 005930
    """
    with open_store(ctx) as store:
        if not store.has_dictionary_entries():
            info("Corp-code dictionary is empty. Run: dartcache corp import <file>")
        results = store.search_dictionary(query, limit=limit)

    if not results:
        info(f"No corp codes match {query!r}.")
        return
    print_table(
        ["code", "name", "ticker", "modified"],
        [[r.code, r.name, r.ticker, r.modified] for r in results],
        title=f"Corp codes matching {query!r}",
    )


@corp_app.command("status")
def corp_status(ctx: typer.Context) -> None:
    """Show how many corp codes are stored."""
    with open_store(ctx) as store:
        count = store.dictionary_count()
        path = str(store.path)
    format_response({"path": path, "corp_codes": count, "populated": count > 0})
