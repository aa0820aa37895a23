"""Tests for the CacheStore TTL cache and corp-code dictionary."""

from __future__ import annotations

import sqlite3
import threading
import time
from pathlib import Path

import pytest

from dartcache.exceptions import DictionaryImportError, StoreClosedError, StoreInitError
from dartcache.models import CorpCode
from dartcache.store import CacheStore


def _samsung(**overrides) -> dict:
    record = {"code": "126380", "name": "삼성전자", "ticker": "5930", "modified": "20230101"}
    record.update(overrides)
    return record


# ------------------------------------------------------------------ #
# Lifecycle
# ------------------------------------------------------------------ #


class TestLifecycle:
    def test_creates_parent_directories(self, tmp_path: Path) -> None:
        path = tmp_path / "a" / "b" / "cache.db"
        with CacheStore(path) as s:
            assert s.path == path
        assert path.is_file()

    def test_reopen_keeps_data(self, db_path: Path) -> None:
        """Schema creation is idempotent across restarts."""
        with CacheStore(db_path) as s:
            s.set("k", "v")
            s.bulk_upsert_dictionary([_samsung()])
        with CacheStore(db_path) as s:
            assert s.get("k") == "v"
            assert s.has_dictionary_entries()

    def test_directory_path_raises_init_error(self, tmp_path: Path) -> None:
        with pytest.raises(StoreInitError):
            CacheStore(tmp_path)

    def test_non_database_file_raises_init_error(self, tmp_path: Path) -> None:
        path = tmp_path / "garbage.db"
        path.write_bytes(b"this is not a sqlite database" * 100)
        with pytest.raises(StoreInitError):
            CacheStore(path)

    def test_init_error_carries_exit_code(self, tmp_path: Path) -> None:
        with pytest.raises(StoreInitError) as exc_info:
            CacheStore(tmp_path)
        assert exc_info.value.exit_code == 3

    def test_operations_after_close_raise(self, store: CacheStore) -> None:
        store.close()
        assert store.closed
        with pytest.raises(StoreClosedError):
            store.get("k")
        with pytest.raises(StoreClosedError):
            store.search_dictionary("x")

    def test_close_is_idempotent(self, store: CacheStore) -> None:
        store.close()
        store.close()

    def test_context_manager_closes(self, db_path: Path) -> None:
        with CacheStore(db_path) as s:
            assert not s.closed
        assert s.closed

    def test_repr(self, store: CacheStore) -> None:
        assert "open" in repr(store)


# ------------------------------------------------------------------ #
# Get / set / delete
# ------------------------------------------------------------------ #


class TestGetSet:
    def test_set_then_get(self, store: CacheStore) -> None:
        store.set("/company.json?corp_code=00126380", '{"status":"000"}', ttl=60)
        assert store.get("/company.json?corp_code=00126380") == '{"status":"000"}'

    def test_missing_key_returns_none(self, store: CacheStore) -> None:
        assert store.get("never-set") is None

    def test_last_write_wins(self, store: CacheStore) -> None:
        store.set("k", "v1")
        store.set("k", "v2")
        assert store.get("k") == "v2"

    def test_bytes_round_trip_unchanged(self, store: CacheStore) -> None:
        payload = b"\x00\x01binary\xff"
        store.set("blob", payload)
        assert store.get("blob") == payload

    def test_non_ascii_value(self, store: CacheStore) -> None:
        store.set("k", "삼성전자")
        assert store.get("k") == "삼성전자"

    def test_delete(self, store: CacheStore) -> None:
        store.set("k", "v")
        store.delete("k")
        assert store.get("k") is None

    def test_delete_missing_key_is_noop(self, store: CacheStore) -> None:
        store.delete("nope")
        store.delete("nope")

    def test_negative_ttl_rejected(self, store: CacheStore) -> None:
        with pytest.raises(ValueError):
            store.set("k", "v", ttl=-1)

    def test_non_finite_ttl_rejected(self, store: CacheStore) -> None:
        for ttl in (float("inf"), float("nan")):
            with pytest.raises(ValueError):
                store.set("k", "v", ttl=ttl)
        assert store.get("k") is None

    def test_huge_ttl_clamped_to_int64(self, store: CacheStore) -> None:
        store.set("k", "v", ttl=1e20)
        assert store.get("k") == "v"
        (expires_at,) = store._connection().execute(
            "SELECT expires_at FROM cache WHERE key = 'k'"
        ).fetchone()
        assert expires_at == 2**63 - 1

    def test_default_ttl_used(self, db_path: Path) -> None:
        with CacheStore(db_path, default_ttl=120) as s:
            s.set("k", "v")
            (expires_at,) = s._connection().execute(
                "SELECT expires_at FROM cache WHERE key = 'k'"
            ).fetchone()
        remaining = expires_at / 1000 - time.time()
        assert 110 < remaining <= 120


# ------------------------------------------------------------------ #
# Expiry
# ------------------------------------------------------------------ #


class TestExpiry:
    def test_entry_expires(self, store: CacheStore) -> None:
        store.set("short", "v", ttl=0.1)
        assert store.get("short") == "v"
        time.sleep(0.3)
        assert store.get("short") is None

    def test_expired_entry_is_deleted_on_get(self, store: CacheStore) -> None:
        store.set("short", "v", ttl=0.05)
        time.sleep(0.2)
        assert store.stats()["entries"] == 1
        assert store.get("short") is None
        assert store.stats()["entries"] == 0

    def test_replacing_resets_ttl(self, store: CacheStore) -> None:
        store.set("k", "old", ttl=0.05)
        store.set("k", "new", ttl=60)
        time.sleep(0.2)
        assert store.get("k") == "new"

    def test_clear_expired_removes_only_stale(self, store: CacheStore) -> None:
        store.set("stale-1", "v", ttl=0.05)
        store.set("stale-2", "v", ttl=0.05)
        store.set("fresh", "v", ttl=60)
        time.sleep(0.2)
        assert store.clear_expired() == 2
        assert store.get("fresh") == "v"
        assert store.stats()["entries"] == 1

    def test_clear_expired_on_empty_store(self, store: CacheStore) -> None:
        assert store.clear_expired() == 0

    def test_clear_keeps_dictionary(self, store: CacheStore) -> None:
        store.set("a", "1")
        store.set("b", "2")
        store.bulk_upsert_dictionary([_samsung()])
        assert store.clear() == 2
        assert store.get("a") is None
        assert store.has_dictionary_entries()


# ------------------------------------------------------------------ #
# Corp-code dictionary
# ------------------------------------------------------------------ #


class TestDictionaryImport:
    def test_empty_dictionary(self, store: CacheStore) -> None:
        assert store.has_dictionary_entries() is False
        assert store.dictionary_count() == 0

    def test_padding_applied(self, store: CacheStore) -> None:
        store.bulk_upsert_dictionary(
            [{"code": "126380", "name": "A", "ticker": "5930", "modified": "20230101"}]
        )
        results = store.search_dictionary("A")
        assert len(results) == 1
        assert results[0].code == "00126380"
        assert results[0].ticker == "005930"
        assert results[0].modified == "20230101"

    def test_codes_are_trimmed_before_padding(self, store: CacheStore) -> None:
        store.bulk_upsert_dictionary([_samsung(code=" 126380 ", ticker=" 5930 ")])
        (record,) = store.search_dictionary("삼성")
        assert record.code == "00126380"
        assert record.ticker == "005930"

    def test_empty_ticker_stays_empty(self, store: CacheStore) -> None:
        store.bulk_upsert_dictionary([_samsung(ticker=" ")])
        (record,) = store.search_dictionary("삼성")
        assert record.ticker == ""

    def test_empty_code_is_not_padded(self, store: CacheStore) -> None:
        store.bulk_upsert_dictionary([_samsung(code="")])
        (record,) = store.search_dictionary("삼성")
        assert record.code == ""

    def test_missing_name_and_modified_become_empty(self, store: CacheStore) -> None:
        store.bulk_upsert_dictionary([{"code": "1", "ticker": "2"}])
        (record,) = store.search_dictionary("00000001")
        assert record.name == ""
        assert record.modified == ""
        assert record.ticker == "000002"

    def test_none_values_become_empty(self, store: CacheStore) -> None:
        store.bulk_upsert_dictionary([{"code": "1", "name": None, "ticker": None}])
        (record,) = store.search_dictionary("00000001")
        assert record.name == ""
        assert record.ticker == ""

    def test_numeric_fields_accepted(self, store: CacheStore) -> None:
        store.bulk_upsert_dictionary([{"code": 126380, "name": "A", "ticker": 5930}])
        (record,) = store.search_dictionary("A")
        assert record.code == "00126380"
        assert record.ticker == "005930"

    def test_xml_field_names_accepted(self, store: CacheStore) -> None:
        store.bulk_upsert_dictionary(
            [{"corp_code": "126380", "corp_name": "삼성전자", "stock_code": "5930", "modify_date": "20230101"}]
        )
        (record,) = store.search_dictionary("삼성전자")
        assert record == CorpCode(code="00126380", name="삼성전자", ticker="005930", modified="20230101")

    def test_model_instances_accepted(self, store: CacheStore) -> None:
        count = store.bulk_upsert_dictionary([CorpCode(code="126380", name="삼성전자")])
        assert count == 1
        assert store.has_dictionary_entries()

    def test_reimport_replaces_by_code(self, store: CacheStore) -> None:
        store.bulk_upsert_dictionary([_samsung(name="삼성전자")])
        store.bulk_upsert_dictionary([_samsung(name="삼성전자(주)")])
        assert store.dictionary_count() == 1
        (record,) = store.search_dictionary("00126380")
        assert record.name == "삼성전자(주)"

    def test_returns_record_count(self, store: CacheStore) -> None:
        assert store.bulk_upsert_dictionary([_samsung(), _samsung(code="164742")]) == 2

    def test_empty_batch(self, store: CacheStore) -> None:
        assert store.bulk_upsert_dictionary([]) == 0
        assert not store.has_dictionary_entries()

    def test_invalid_record_writes_nothing(self, store: CacheStore) -> None:
        with pytest.raises(DictionaryImportError):
            store.bulk_upsert_dictionary([_samsung(), "not a record"])
        assert not store.has_dictionary_entries()

    def test_failed_transaction_leaves_prior_state(self, store: CacheStore) -> None:
        store.bulk_upsert_dictionary([_samsung()])
        conn = store._connection()
        with conn:
            conn.execute(
                """
                CREATE TRIGGER reject_hyundai BEFORE INSERT ON corp_codes
                WHEN NEW.name = '현대자동차'
                BEGIN SELECT RAISE(ABORT, 'rejected'); END
                """
            )

        with pytest.raises(DictionaryImportError):
            store.bulk_upsert_dictionary(
                [_samsung(code="111", name="기아"), _samsung(code="164742", name="현대자동차")]
            )

        assert store.dictionary_count() == 1
        assert store.search_dictionary("기아") == []


class TestDictionarySearch:
    @pytest.fixture(autouse=True)
    def _load(self, store: CacheStore) -> None:
        store.bulk_upsert_dictionary(
            [
                {"code": "126380", "name": "삼성전자", "ticker": "5930", "modified": "20230101"},
                {"code": "164742", "name": "현대자동차", "ticker": "5380", "modified": "20230101"},
                {"code": "126371", "name": "삼성SDI", "ticker": "6400", "modified": "20230101"},
                {"code": "434003", "name": "다코", "ticker": "", "modified": "20170630"},
                {"code": "1", "name": "Alpha Corp", "ticker": "", "modified": ""},
            ]
        )

    def test_name_substring(self, store: CacheStore) -> None:
        names = [r.name for r in store.search_dictionary("삼성")]
        assert names == ["삼성SDI", "삼성전자"]

    def test_same_record_by_name_ticker_and_code(self, store: CacheStore) -> None:
        by_name = store.search_dictionary("전자")
        by_ticker = store.search_dictionary("005930")
        by_code = store.search_dictionary("00126380")
        assert by_name == by_ticker == by_code
        assert by_code[0].code == "00126380"

    def test_ticker_requires_exact_match(self, store: CacheStore) -> None:
        assert store.search_dictionary("5930") == []

    def test_name_match_is_case_sensitive(self, store: CacheStore) -> None:
        assert [r.name for r in store.search_dictionary("Alpha")] == ["Alpha Corp"]
        assert store.search_dictionary("alpha") == []

    def test_like_wildcards_are_literal(self, store: CacheStore) -> None:
        assert store.search_dictionary("%") == []
        assert store.search_dictionary("_") == []

    def test_no_match_returns_empty_list(self, store: CacheStore) -> None:
        assert store.search_dictionary("존재하지않는회사") == []

    def test_limit(self, store: CacheStore) -> None:
        assert len(store.search_dictionary("삼성", limit=1)) == 1
        assert store.search_dictionary("삼성", limit=0) == []

    def test_results_capped_at_fifty(self, store: CacheStore) -> None:
        store.bulk_upsert_dictionary(
            [{"code": str(1000 + i), "name": f"테스트{i:03d}"} for i in range(80)]
        )
        results = store.search_dictionary("테스트")
        assert len(results) == 50
        assert results[0].name == "테스트000"
        assert [r.name for r in results] == sorted(r.name for r in results)

    def test_larger_limit_still_capped_at_fifty(self, store: CacheStore) -> None:
        store.bulk_upsert_dictionary(
            [{"code": str(2000 + i), "name": f"Bulk{i:03d}"} for i in range(80)]
        )
        results = store.search_dictionary("Bulk", limit=200)
        assert len(results) == 50
        assert results[-1].name == "Bulk049"

    def test_results_are_models(self, store: CacheStore) -> None:
        (record,) = store.search_dictionary("다코")
        assert isinstance(record, CorpCode)
        assert record.model_dump() == {
            "code": "00434003",
            "name": "다코",
            "ticker": "",
            "modified": "20170630",
        }


# ------------------------------------------------------------------ #
# Stats
# ------------------------------------------------------------------ #


class TestStats:
    def test_empty(self, store: CacheStore, db_path: Path) -> None:
        stats = store.stats()
        assert stats == {
            "path": str(db_path),
            "entries": 0,
            "expired": 0,
            "corp_codes": 0,
            "default_ttl": 3600,
        }

    def test_counts(self, store: CacheStore) -> None:
        store.set("stale", "v", ttl=0.05)
        store.set("fresh", "v", ttl=60)
        store.bulk_upsert_dictionary([_samsung()])
        time.sleep(0.2)
        stats = store.stats()
        assert stats["entries"] == 2
        assert stats["expired"] == 1
        assert stats["corp_codes"] == 1


# ------------------------------------------------------------------ #
# Concurrency
# ------------------------------------------------------------------ #


class TestConcurrency:
    def test_threads_share_one_store(self, store: CacheStore) -> None:
        errors: list[BaseException] = []

        def worker(n: int) -> None:
            try:
                for i in range(50):
                    key = f"t{n}-{i}"
                    store.set(key, f"value-{n}-{i}")
                    assert store.get(key) == f"value-{n}-{i}"
            except BaseException as exc:  # noqa: BLE001
                errors.append(exc)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert store.stats()["entries"] == 200

    def test_second_connection_sees_committed_import(self, store: CacheStore, db_path: Path) -> None:
        store.bulk_upsert_dictionary([_samsung(), _samsung(code="164742", name="현대자동차")])
        with CacheStore(db_path) as other:
            assert other.dictionary_count() == 2

    def test_raw_reader_sees_padded_values(self, store: CacheStore, db_path: Path) -> None:
        store.bulk_upsert_dictionary([_samsung()])
        conn = sqlite3.connect(str(db_path))
        try:
            row = conn.execute("SELECT code, ticker FROM corp_codes").fetchone()
        finally:
            conn.close()
        assert row == ("00126380", "005930")
