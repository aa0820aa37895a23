"""Import of the OpenDART corp-code dictionary.

OpenDART publishes its company dictionary as a zip archive holding a single
``CORPCODE.xml`` document::

    <result>
        <list>
            <corp_code>00126380</corp_code>
            <corp_name>삼성전자</corp_name>
            <stock_code>005930</stock_code>
            <modify_date>20230101</modify_date>
        </list>
        ...
    </result>

This module turns that archive (or the bare XML) into
:class:`~dartcache.models.CorpCode` records and loads them into a
:class:`~dartcache.store.CacheStore`. Downloading the archive is left to
the caller: :func:`sync_corp_codes` takes a callable that returns the zip
bytes and only invokes it when the dictionary is still empty.
"""

from __future__ import annotations

import io
import logging
import xml.etree.ElementTree as ET
import zipfile
from collections.abc import Callable
from pathlib import Path
from typing import Union

from pydantic import ValidationError

from dartcache.exceptions import CorpCodeParseError
from dartcache.models import CorpCode
from dartcache.store import CacheStore

logger = logging.getLogger(__name__)

CORP_CODE_MEMBER = "CORPCODE.xml"


def parse_corp_code_xml(xml: Union[str, bytes]) -> list[CorpCode]:
    """Parse a ``CORPCODE.xml`` document into records.

    Element text is kept verbatim apart from surrounding whitespace; zero
    padding is applied later by the store.

    Raises:
        CorpCodeParseError: If the document is malformed or has no
            ``<list>`` entries under ``<result>``.
    """
    if isinstance(xml, str):
        xml = xml.strip().encode("utf-8")
    else:
        xml = xml.strip()
    try:
        root = ET.fromstring(xml)
    except ET.ParseError as exc:
        raise CorpCodeParseError(f"Malformed corp-code XML: {exc}") from exc

    if root.tag != "result":
        raise CorpCodeParseError(
            f"Unexpected corp-code XML root <{root.tag}>, expected <result>"
        )
    entries = root.findall("list")
    if not entries:
        raise CorpCodeParseError("Corp-code XML contains no <list> entries")

    records = []
    for entry in entries:
        fields = {child.tag: (child.text or "").strip() for child in entry}
        try:
            records.append(CorpCode.model_validate(fields))
        except ValidationError as exc:
            raise CorpCodeParseError(f"Invalid corp-code entry {fields}: {exc}") from exc
    return records


def extract_corp_code_archive(data: bytes) -> list[CorpCode]:
    """Read the ``CORPCODE.xml`` member of a zip archive and parse it.

    Raises:
        CorpCodeParseError: If *data* is not a zip archive or lacks the
            ``CORPCODE.xml`` member.
    """
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as archive:
            if CORP_CODE_MEMBER not in archive.namelist():
                raise CorpCodeParseError(
                    f"{CORP_CODE_MEMBER} not found in the corp-code archive"
                )
            xml = archive.read(CORP_CODE_MEMBER)
    except zipfile.BadZipFile as exc:
        raise CorpCodeParseError(f"Corp-code archive is not a zip file: {exc}") from exc
    return parse_corp_code_xml(xml)


def load_corp_codes(path: str | Path) -> list[CorpCode]:
    """Load records from a ``.zip`` archive or a bare ``.xml`` file on disk."""
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise CorpCodeParseError(f"Cannot read corp-code file {path}: {exc}") from exc
    if zipfile.is_zipfile(io.BytesIO(data)):
        return extract_corp_code_archive(data)
    return parse_corp_code_xml(data)


def sync_corp_codes(
    store: CacheStore,
    fetch_archive: Callable[[], bytes],
    force: bool = False,
) -> int:
    """Populate the store's dictionary from a freshly fetched archive.

    The store decides whether a sync is needed: once it holds any corp
    codes, *fetch_archive* is not called unless *force* is set.

    Args:
        store: Target store.
        fetch_archive: Returns the zip archive bytes, typically by calling
            the ``corpCode.xml`` endpoint.
        force: Re-import even when the dictionary is already populated.

    Returns:
        Number of records imported, ``0`` when the sync was skipped.

    Raises:
        CorpCodeParseError: If the archive cannot be parsed.
        DictionaryImportError: If the bulk import fails.
    """
    if not force and store.has_dictionary_entries():
        logger.debug("Corp-code dictionary already populated, skipping sync")
        return 0
    logger.info("Fetching corp-code archive")
    records = extract_corp_code_archive(fetch_archive())
    return store.bulk_upsert_dictionary(records)
