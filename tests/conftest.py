"""Shared test fixtures for dartcache.

Provides isolated config environments, temporary cache stores, corp-code
fixtures and a CLI runner. Fixtures are discovered by pytest automatically.
"""

from __future__ import annotations

import io
import zipfile
from collections.abc import Iterator
from pathlib import Path

import pytest

from dartcache.output import OutputFormat, OutputManager, reset_output, set_output
from dartcache.store import CacheStore


CORPCODE_XML = """\
<?xml version="1.0" encoding="UTF-8"?>
<result>
    <status>000</status>
    <message>정상</message>
    <list>
        <corp_code>00126380</corp_code>
        <corp_name>삼성전자</corp_name>
        <stock_code>005930</stock_code>
        <modify_date>20230101</modify_date>
    </list>
    <list>
        <corp_code>00164742</corp_code>
        <corp_name>현대자동차</corp_name>
        <stock_code>005380</stock_code>
        <modify_date>20230101</modify_date>
    </list>
    <list>
        <corp_code>00434003</corp_code>
        <corp_name>다코</corp_name>
        <stock_code> </stock_code>
        <modify_date>20170630</modify_date>
    </list>
</result>
"""


def make_corp_code_zip(xml: str = CORPCODE_XML, member: str = "CORPCODE.xml") -> bytes:
    """Build an in-memory zip archive shaped like the corpCode.xml download."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        archive.writestr(member, xml.encode("utf-8"))
    return buffer.getvalue()


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> Iterator[None]:
    """Reset the global OutputManager after every test.

    The OutputManager keeps references to sys.stdout/sys.stderr from when
    it was created; CliRunner swaps those streams per invocation.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Store fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "dart" / "cache.db"


@pytest.fixture
def store(db_path: Path) -> Iterator[CacheStore]:
    """An open CacheStore on a fresh database file, closed after the test."""
    s = CacheStore(db_path)
    yield s
    s.close()


@pytest.fixture
def corp_code_xml() -> str:
    return CORPCODE_XML


@pytest.fixture
def corp_code_zip() -> bytes:
    return make_corp_code_zip()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point XDG directories at tmp_path and clear DARTCACHE_* variables.

    Returns:
        The tmp_path root directory.
    """
    monkeypatch.setattr("dartcache.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    for var in ["DARTCACHE_DB", "DARTCACHE_CACHE_DIR"]:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output / CLI fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> Iterator[OutputManager]:
    """Install a PLAIN-format, quiet OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
