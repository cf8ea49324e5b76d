"""Tests for the EntryStore merge, validation and namespacing rules.

This module tests:
- Manual entry upserts and business-rule validation
- CSV re-imports that must never clobber manual data
- Date-range queries and stats
- Recovery from corrupt stored JSON
- Per-user key namespacing

Run with: pytest tests/test_entry_store.py -v
"""

import json
import logging
import tempfile
from pathlib import Path

import pytest

from ingest import CsvProcessor
from storage import (
    DailyRecord,
    EntryStore,
    NamespaceStrategy,
    SQLiteKeyValueStore,
    StaticIdentity,
    ValidationError,
)


def imported(store, sample_csv):
    """Import the sample export into a store."""
    result = CsvProcessor().process(sample_csv)
    return store.bulk_import(result.data.daily_records)


def by_date(records):
    return {r.date: r for r in records}


class TestUpsertManual:
    """Tests for setting manual funnel fields."""

    def test_creates_record_for_new_date(self, store):
        """Test a manual entry on an unknown date creates a zeroed record."""
        records = store.upsert_manual("2025-06-22", {"meetings": 3, "closes": 1})

        record = by_date(records)["2025-06-22"]
        assert record.meetings == 3
        assert record.closes == 1
        assert record.all_spend == 0
        assert record.last_updated == "2025-06-25T12:00:00"

    def test_keeps_imported_ad_metrics(self, store, sample_csv):
        """Test manual fields merge into an imported record."""
        imported(store, sample_csv)

        records = store.upsert_manual("2025-06-20", {"meetings": 2})

        record = by_date(records)["2025-06-20"]
        assert record.meetings == 2
        assert record.all_spend == 130.0
        assert record.active_dms == 5

    def test_accepts_snake_and_camel_keys(self, store):
        """Test both json keys and attribute names are accepted."""
        store.upsert_manual("2025-06-20", {"offersMade": 2, "cash_collected": 50})

        record = store.get_daily_data()[0]
        assert record.offers_made == 2
        assert record.cash_collected == 50.0

    def test_cash_exceeding_revenue_rejected(self, store):
        """Test cash collected above revenue fails and writes nothing."""
        with pytest.raises(ValidationError) as exc_info:
            store.upsert_manual("2025-06-20", {"cashCollected": 500, "revenue": 400})

        assert exc_info.value.field == "cashCollected"
        assert store.get_daily_data() == []
        assert store.get_manual_entries() == {}

    def test_cash_checked_against_stored_revenue(self, store):
        """Test the cash rule applies to the merged record."""
        store.upsert_manual("2025-06-20", {"revenue": 400})

        with pytest.raises(ValidationError):
            store.upsert_manual("2025-06-20", {"cashCollected": 500})

        assert store.get_daily_data()[0].cash_collected == 0

    def test_cash_without_revenue_allowed(self, store):
        """Test cash can be recorded before any revenue is entered."""
        store.upsert_manual("2025-06-20", {"cashCollected": 100})
        assert store.get_daily_data()[0].cash_collected == 100.0

    def test_close_split_must_add_up(self, store):
        """Test new and recurring closes must sum to closes."""
        with pytest.raises(ValidationError):
            store.upsert_manual(
                "2025-06-20", {"closes": 3, "newCloses": 1, "recurringCloses": 1}
            )

        store.upsert_manual("2025-06-20", {"closes": 3, "newCloses": 2, "recurringCloses": 1})
        assert store.get_daily_data()[0].recurring_closes == 1

    @pytest.mark.parametrize("fields", [
        {"meetings": -1},
        {"allSpend": 10},
        {"notAField": 1},
        {"meetings": "lots"},
        {"meetings": "1e400"},
        {"revenue": "inf"},
        {"cashCollected": float("nan")},
    ])
    def test_invalid_fields_rejected(self, store, fields):
        """Test negative, non-manual, unknown and non-finite fields fail."""
        with pytest.raises(ValidationError):
            store.upsert_manual("2025-06-20", fields)

    def test_invalid_date_rejected(self, store):
        """Test dates must be YYYY-MM-DD."""
        with pytest.raises(ValidationError):
            store.upsert_manual("06/20/2025", {"meetings": 1})

    def test_manual_entries_map_updated(self, store):
        """Test manual values are also kept in the standalone map."""
        store.upsert_manual("2025-06-20", {"meetings": 2, "revenue": 300})

        entry = store.get_manual_entries()["2025-06-20"]
        assert entry["meetings"] == 2
        assert entry["revenue"] == 300.0
        assert entry["lastUpdated"] == "2025-06-25T12:00:00"


class TestAddManual:
    """Tests for additive manual entries."""

    def test_values_accumulate(self, store):
        """Test repeated entries add to the stored totals."""
        store.add_manual("2025-06-20", {"meetings": 2, "revenue": 100})
        store.add_manual("2025-06-20", {"meetings": 1, "revenue": 50})

        record = store.get_daily_data()[0]
        assert record.meetings == 3
        assert record.revenue == 150.0


class TestBulkImport:
    """Tests for merging CSV imports into stored data."""

    def test_reimport_preserves_manual_data(self, store, sample_csv):
        """Test re-importing the same file keeps manual fields and ad totals."""
        imported(store, sample_csv)
        store.upsert_manual("2025-06-20", {"meetings": 2, "closes": 1})
        before = by_date(store.get_daily_data())

        after = by_date(imported(store, sample_csv))

        assert after["2025-06-20"].meetings == 2
        assert after["2025-06-20"].closes == 1
        for day in before:
            assert after[day].ad_values() == before[day].ad_values()
            assert after[day].manual_values() == before[day].manual_values()

    def test_import_overwrites_ad_metrics(self, store):
        """Test imported ad metrics replace stored ones."""
        store.bulk_import([DailyRecord(date="2025-06-20", all_spend=10.0)])
        store.bulk_import([DailyRecord(date="2025-06-20", all_spend=25.0)])

        assert store.get_daily_data()[0].all_spend == 25.0

    def test_manual_recovered_from_entries_map(self, store, kv):
        """Test manual values come back from the standalone map on import."""
        store.upsert_manual("2025-06-20", {"meetings": 4})
        kv.delete(store.keys.daily_data)

        records = store.bulk_import([DailyRecord(date="2025-06-20", all_spend=5.0)])

        assert records[0].meetings == 4
        assert records[0].all_spend == 5.0

    def test_without_preserve_manual(self, store):
        """Test manual fields are reset when preservation is disabled."""
        store.upsert_manual("2025-06-20", {"meetings": 4})

        records = store.bulk_import(
            [DailyRecord(date="2025-06-20", all_spend=5.0)], preserve_manual=False
        )

        assert records[0].meetings == 0

    def test_records_sorted_by_date(self, store):
        """Test stored records stay in date order."""
        store.bulk_import([DailyRecord(date="2025-06-22")])
        store.bulk_import([DailyRecord(date="2025-06-20"), DailyRecord(date="2025-06-21")])

        assert [r.date for r in store.get_daily_data()] == [
            "2025-06-20", "2025-06-21", "2025-06-22",
        ]

    def test_save_daily_entry(self, store):
        """Test a single day's ad metrics keep that day's manual fields."""
        store.upsert_manual("2025-06-20", {"shows": 2})

        store.save_daily_entry("2025-06-20", {"allSpend": 40, "allDMs": 4})

        record = store.get_daily_data()[0]
        assert record.all_spend == 40.0
        assert record.all_dms == 4
        assert record.shows == 2


class TestDelete:
    """Tests for clearing a day's manual data."""

    def test_delete_zeroes_manual_fields(self, store, sample_csv):
        """Test deletion zeroes manual fields but keeps ad metrics."""
        imported(store, sample_csv)
        store.upsert_manual("2025-06-20", {"meetings": 2, "revenue": 100})

        records = store.delete("2025-06-20")

        record = by_date(records)["2025-06-20"]
        assert all(value == 0 for value in record.manual_values().values())
        assert record.all_spend == 130.0

    def test_deleted_values_not_resurrected(self, store, sample_csv):
        """Test a later import does not restore deleted manual values."""
        imported(store, sample_csv)
        store.upsert_manual("2025-06-20", {"meetings": 2})
        store.delete("2025-06-20")

        records = imported(store, sample_csv)

        assert by_date(records)["2025-06-20"].meetings == 0


class TestQueries:
    """Tests for reads, ranges and stats."""

    def test_get_by_date_range_inclusive(self, store):
        """Test range queries include both endpoints."""
        store.bulk_import([DailyRecord(date=d) for d in (
            "2025-06-19", "2025-06-20", "2025-06-21", "2025-06-22",
        )])

        records = store.get_by_date_range("2025-06-20", "2025-06-21")

        assert [r.date for r in records] == ["2025-06-20", "2025-06-21"]

    def test_get_stats(self, store, sample_csv):
        """Test stats report day counts and backup time."""
        imported(store, sample_csv)
        store.upsert_manual("2025-06-21", {"meetings": 1})

        stats = store.get_stats()

        assert stats["totalDays"] == 2
        assert stats["daysWithManualData"] == 1
        assert stats["oldestEntry"] == "2025-06-20"
        assert stats["newestEntry"] == "2025-06-21"
        assert stats["lastBackup"] == "2025-06-25T12:00:00"

    def test_empty_store(self, store):
        """Test an empty namespace reads as empty collections."""
        assert store.get_daily_data() == []
        assert store.get_manual_entries() == {}
        assert store.get_stats()["oldestEntry"] is None

    def test_load_data(self, store):
        """Test load_data bundles every collection."""
        store.save_settings({"currency": "USD"})
        data = store.load_data()

        assert data["daily_data"] == []
        assert data["settings"] == {"currency": "USD"}
        assert data["last_update"] == "2025-06-25T12:00:00"

    def test_save_settings_merges(self, store):
        """Test settings updates merge with stored settings."""
        store.save_settings({"currency": "USD"})
        store.save_settings({"goal": 10})

        assert store.get_settings() == {"currency": "USD", "goal": 10}


class TestCorruption:
    """Tests for recovering from corrupt stored values."""

    def test_corrupt_daily_data(self, store, kv, caplog):
        """Test unparsable JSON reads as empty and logs a warning."""
        kv.set(store.keys.daily_data, "{not json")

        with caplog.at_level(logging.WARNING):
            assert store.get_daily_data() == []

        assert "Corrupt value" in caplog.text

    def test_wrong_type(self, store, kv):
        """Test a JSON value of the wrong shape reads as empty."""
        kv.set(store.keys.manual_entries, json.dumps([1, 2, 3]))
        assert store.get_manual_entries() == {}

    def test_write_after_corruption(self, store, kv):
        """Test saving over a corrupt value works."""
        kv.set(store.keys.daily_data, "garbage")

        store.upsert_manual("2025-06-20", {"meetings": 1})

        assert store.get_daily_data()[0].meetings == 1

    def test_non_finite_numbers_read_as_zero(self, store, kv):
        """Test stored infinities and overflowing numbers load as 0."""
        kv.set(
            store.keys.daily_data,
            '[{"date": "2025-06-20", "meetings": 1e400, "allSpend": Infinity, "shows": 2}]',
        )

        record = store.get_daily_data()[0]

        assert record.meetings == 0
        assert record.all_spend == 0.0
        assert record.shows == 2

    def test_malformed_manual_entries_skipped(self, store, kv, sample_csv, caplog):
        """Test non-dict manual entries are ignored by reads and later writes."""
        kv.set(
            store.keys.manual_entries,
            json.dumps({"2025-06-20": 5, "2025-06-21": {"meetings": 1}}),
        )

        with caplog.at_level(logging.WARNING):
            assert store.get_manual_entries() == {"2025-06-21": {"meetings": 1}}
        assert "malformed manual entries" in caplog.text

        records = by_date(imported(store, sample_csv))
        assert records["2025-06-21"].meetings == 1

        store.upsert_manual("2025-06-20", {"shows": 1})
        assert store.get_manual_entries()["2025-06-20"]["shows"] == 1


class TestNamespacing:
    """Tests for per-user key isolation."""

    def test_users_isolated(self, kv, clock):
        """Test two users sharing a backing store do not see each other's data."""
        alice = EntryStore(kv, identity=StaticIdentity("alice"), clock=clock)
        bob = EntryStore(kv, identity=StaticIdentity("bob"), clock=clock)

        alice.upsert_manual("2025-06-20", {"meetings": 5})

        assert bob.get_daily_data() == []
        assert alice.keys.daily_data == "dmads_daily_data_alice"

    def test_no_user_uses_shared_keys(self, kv, clock):
        """Test a missing identity falls back to un-suffixed keys."""
        store = EntryStore(kv, identity=StaticIdentity(None), clock=clock)
        assert store.keys.daily_data == "dmads_daily_data"

    def test_namespace_none_ignores_user(self, kv, clock):
        """Test the 'none' strategy shares keys across users."""
        store = EntryStore(
            kv,
            identity=StaticIdentity("alice"),
            namespace_strategy=NamespaceStrategy.NONE,
            clock=clock,
        )
        assert store.keys.manual_entries == "dmads_manual_entries"

    def test_custom_prefix(self, kv, clock):
        """Test keys use the configured prefix."""
        store = EntryStore(kv, identity=StaticIdentity("u1"), key_prefix="test_", clock=clock)
        assert store.keys.settings == "test_settings_u1"

    def test_clear_all_data(self, kv, clock, sample_csv):
        """Test clearing one namespace leaves others alone."""
        alice = EntryStore(kv, identity=StaticIdentity("alice"), clock=clock)
        bob = EntryStore(kv, identity=StaticIdentity("bob"), clock=clock)
        imported(alice, sample_csv)
        imported(bob, sample_csv)

        removed = alice.clear_all_data()

        assert removed > 0
        assert alice.get_daily_data() == []
        assert alice.backups.snapshot_keys() == []
        assert len(bob.get_daily_data()) == 2


class TestSQLiteBackend:
    """Tests for the SQLite key-value store."""

    def test_data_persists_across_instances(self, clock, sample_csv):
        """Test a new store over the same database sees earlier writes."""
        with tempfile.TemporaryDirectory() as tmpdir:
            db_path = Path(tmpdir) / "test.db"
            first = EntryStore(SQLiteKeyValueStore(db_path), identity=StaticIdentity("u1"), clock=clock)
            imported(first, sample_csv)
            first.upsert_manual("2025-06-20", {"meetings": 2})

            second = EntryStore(SQLiteKeyValueStore(db_path), identity=StaticIdentity("u1"), clock=clock)

            records = by_date(second.get_daily_data())
            assert records["2025-06-20"].meetings == 2
            assert records["2025-06-20"].all_spend == 130.0

    def test_keys_prefix_filter(self):
        """Test key listing treats underscores literally."""
        with tempfile.TemporaryDirectory() as tmpdir:
            kv = SQLiteKeyValueStore(Path(tmpdir) / "kv.db")
            kv.set("dmads_backup_u1_2025-06-20", "{}")
            kv.set("dmadsXbackupXu1", "{}")
            kv.set("other", "{}")

            assert kv.keys("dmads_backup_") == ["dmads_backup_u1_2025-06-20"]

            kv.delete("other")
            assert kv.get("other") is None


class TestDailyRecordSerialization:
    """Tests for DailyRecord dict conversion."""

    def test_to_dict_keys(self):
        """Test records serialize with camelCase keys."""
        data = DailyRecord(date="2025-06-20", active_dms=3, offers_made=1).to_dict()

        assert data["activeDMs"] == 3
        assert data["offersMade"] == 1
        assert "lastUpdated" not in data

    def test_from_dict_legacy_keys(self):
        """Test records saved before active/all split still load."""
        record = DailyRecord.from_dict({"date": "2025-06-20", "spend": "12.5", "inboundDMs": 4})

        assert record.active_spend == 12.5
        assert record.all_spend == 12.5
        assert record.all_dms == 4

    def test_from_dict_bad_numbers(self):
        """Test unparsable stored numbers load as 0."""
        record = DailyRecord.from_dict({"date": "2025-06-20", "meetings": "x", "revenue": None})

        assert record.meetings == 0
        assert record.revenue == 0.0
