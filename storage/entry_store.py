"""Persistent per-user store of daily records and manual funnel entries.

Daily records are merged, never clobbered: CSV imports own the ad-metric
fields, the user owns the manual fields (meetings, closes, revenue...).
Manual entries are additionally kept in their own map so that a re-import
can always recover them.

All writes read the full collection and write it back; the store assumes
a single writer per user namespace.
"""

import json
import logging
import math
import re
from dataclasses import replace
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from storage.backup import BackupCodec
from storage.exceptions import StorageCorruptionError, ValidationError
from storage.identity import (
    IdentityProvider,
    NamespaceStrategy,
    StorageKeys,
    resolve_storage_keys,
)
from storage.kv_store import KeyValueStore
from storage.models import (
    MANUAL_ATTRS,
    MANUAL_FIELDS,
    DailyRecord,
    attr_for_key,
    to_number,
)

logger = logging.getLogger(__name__)

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
DEFAULT_KEY_PREFIX = "dmads_"

# Fields accepted in manual payloads but not stored as numbers
_IGNORED_MANUAL_KEYS = frozenset({"date", "lastUpdated", "last_updated"})


def _json_key(attr: str) -> str:
    return dict(MANUAL_FIELDS)[attr]


class EntryStore:
    """Reads and writes one user namespace's dashboard data.

    Attributes:
        kv: Backing key-value store.
        identity: Provides the current user id for key namespacing.
        namespace_strategy: Whether keys are suffixed with the user id.
    """

    def __init__(
        self,
        kv: KeyValueStore,
        identity: Optional[IdentityProvider] = None,
        namespace_strategy: NamespaceStrategy = NamespaceStrategy.BY_USER_ID,
        key_prefix: str = DEFAULT_KEY_PREFIX,
        backup_retention_days: int = 30,
        backup_version: str = "1.0",
        auto_backup: bool = True,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.kv = kv
        self.identity = identity
        self.namespace_strategy = NamespaceStrategy(namespace_strategy)
        self.key_prefix = key_prefix
        self.auto_backup = auto_backup
        self.clock = clock or datetime.now

        self.backups = BackupCodec(
            self,
            retention_days=backup_retention_days,
            version=backup_version,
        )

    @property
    def keys(self) -> StorageKeys:
        """Storage keys for whoever is the current user right now."""
        return resolve_storage_keys(self.key_prefix, self.namespace_strategy, self.identity)

    def now_iso(self) -> str:
        return self.clock().isoformat()

    # ------------------------------------------------------------------
    # Raw JSON access
    # ------------------------------------------------------------------

    def _decode(self, key: str, raw: str) -> Any:
        try:
            return json.loads(raw)
        except (ValueError, TypeError) as e:
            raise StorageCorruptionError(key, str(e)) from e

    def _read_json(self, key: str, default: Any) -> Any:
        """Load a JSON value, falling back to ``default`` when missing or corrupt."""
        raw = self.kv.get(key)
        if raw is None:
            return default
        try:
            value = self._decode(key, raw)
        except StorageCorruptionError as e:
            logger.warning(f"{e}; using empty data")
            return default
        if not isinstance(value, type(default)):
            logger.warning(f"Unexpected type for {key}: {type(value).__name__}; using empty data")
            return default
        return value

    def _write_json(self, key: str, value: Any) -> None:
        self.kv.set(key, json.dumps(value))

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_daily_data(self) -> List[DailyRecord]:
        """All daily records, sorted by date."""
        raw_records = self._read_json(self.keys.daily_data, [])
        records = [
            DailyRecord.from_dict(item)
            for item in raw_records
            if isinstance(item, dict) and item.get("date")
        ]
        return sorted(records, key=lambda r: r.date)

    def get_manual_entries(self) -> Dict[str, Dict[str, Any]]:
        """Manual funnel fields keyed by date; malformed entries are skipped."""
        entries = self._read_json(self.keys.manual_entries, {})
        valid = {day: entry for day, entry in entries.items() if isinstance(entry, dict)}
        if len(valid) != len(entries):
            logger.warning(
                f"Ignoring {len(entries) - len(valid)} malformed manual entries "
                f"in {self.keys.manual_entries}"
            )
        return valid

    def get_settings(self) -> Dict[str, Any]:
        return self._read_json(self.keys.settings, {})

    def save_settings(self, settings: Mapping[str, Any]) -> Dict[str, Any]:
        merged = {**self.get_settings(), **dict(settings)}
        self._write_json(self.keys.settings, merged)
        return merged

    def last_backup(self) -> Optional[str]:
        return self.kv.get(self.keys.last_backup)

    def load_data(self) -> Dict[str, Any]:
        """Everything the dashboard needs to render, in one call."""
        return {
            "daily_data": self.get_daily_data(),
            "manual_entries": self.get_manual_entries(),
            "settings": self.get_settings(),
            "last_update": self.now_iso(),
        }

    def get_by_date_range(self, start: str, end: str) -> List[DailyRecord]:
        """Records with start <= date <= end (inclusive)."""
        return [r for r in self.get_daily_data() if start <= r.date <= end]

    def get_stats(self) -> Dict[str, Any]:
        records = self.get_daily_data()
        return {
            "totalDays": len(records),
            "daysWithManualData": len(self.get_manual_entries()),
            "oldestEntry": records[0].date if records else None,
            "newestEntry": records[-1].date if records else None,
            "lastBackup": self.last_backup(),
        }

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _save_daily(self, records: Iterable[DailyRecord]) -> List[DailyRecord]:
        ordered = sorted(records, key=lambda r: r.date)
        self._write_json(self.keys.daily_data, [r.to_dict() for r in ordered])
        if self.auto_backup:
            self.backups.create_snapshot()
        return ordered

    def _normalize_manual(self, fields: Mapping[str, Any]) -> Dict[str, Any]:
        """Validate a manual payload and map it onto DailyRecord attributes."""
        updates: Dict[str, Any] = {}
        for key, value in fields.items():
            if key in _IGNORED_MANUAL_KEYS:
                continue
            attr = attr_for_key(key)
            if attr is None or attr not in MANUAL_ATTRS:
                raise ValidationError(f"Unknown manual field: {key}", field=key)
            if value is None or value == "":
                value = 0
            try:
                number = float(value)
            except (TypeError, ValueError, OverflowError):
                raise ValidationError(f"{key} must be a number", field=key)
            if not math.isfinite(number):
                raise ValidationError(f"{key} must be a finite number", field=key)
            if number < 0:
                raise ValidationError(f"{key} cannot be negative", field=key)
            updates[attr] = to_number(number, attr)
        return updates

    def _check_cash(self, record: DailyRecord) -> None:
        if record.revenue > 0 and record.cash_collected > record.revenue:
            raise ValidationError(
                "Cash collected cannot exceed total revenue", field="cashCollected"
            )

    def _check_close_split(self, values: Mapping[str, Any]) -> None:
        """New and recurring closes must add up to closes when both are given."""
        if "new_closes" in values and "recurring_closes" in values:
            closes = values.get("closes", 0)
            if values["new_closes"] + values["recurring_closes"] != closes:
                raise ValidationError(
                    "New and recurring closes must add up to total closes",
                    field="closes",
                )

    def upsert_manual(self, date: str, fields: Mapping[str, Any]) -> List[DailyRecord]:
        """Set manual funnel fields for a date.

        Ad-metric fields already imported for the date are kept; a record
        with zeroed ad metrics is created if the date is new.

        Raises:
            ValidationError: On a bad date, an unknown/negative field, or
                cash collected above a positive revenue.
        """
        if not DATE_PATTERN.match(date or ""):
            raise ValidationError(f"Invalid date: {date}", field="date")

        updates = self._normalize_manual(fields)
        return self._apply_manual(date, updates, check_split=True)

    def _apply_manual(
        self,
        date: str,
        updates: Mapping[str, Any],
        check_split: bool = False,
    ) -> List[DailyRecord]:
        by_date = {r.date: r for r in self.get_daily_data()}
        current = by_date.get(date) or DailyRecord(date=date)
        merged = replace(current, **updates)
        self._check_cash(merged)
        if check_split and "new_closes" in updates and "recurring_closes" in updates:
            self._check_close_split({
                "closes": merged.closes,
                "new_closes": merged.new_closes,
                "recurring_closes": merged.recurring_closes,
            })

        now = self.now_iso()
        merged.last_updated = now

        manual_entries = self.get_manual_entries()
        entry = dict(manual_entries.get(date) or {})
        entry.update({_json_key(attr): value for attr, value in updates.items()})
        entry["lastUpdated"] = now
        manual_entries[date] = entry
        self._write_json(self.keys.manual_entries, manual_entries)

        by_date[date] = merged
        logger.info(f"Saved manual entry for {date}: {sorted(updates)}")
        return self._save_daily(by_date.values())

    def add_manual(self, date: str, fields: Mapping[str, Any]) -> List[DailyRecord]:
        """Add manual values on top of what is already stored for a date.

        The close split is checked on the values being added, so dates whose
        stored closes have no new/recurring breakdown still accept entries.
        """
        if not DATE_PATTERN.match(date or ""):
            raise ValidationError(f"Invalid date: {date}", field="date")

        increments = self._normalize_manual(fields)
        self._check_close_split(increments)
        current = next((r for r in self.get_daily_data() if r.date == date), None)
        totals = {
            attr: (getattr(current, attr) if current else 0) + value
            for attr, value in increments.items()
        }
        return self._apply_manual(date, totals)

    def save_daily_entry(self, date: str, ad_fields: Mapping[str, Any]) -> List[DailyRecord]:
        """Store ad metrics for one date, keeping its manual fields."""
        incoming = DailyRecord.from_dict({**dict(ad_fields), "date": date})
        return self.bulk_import([incoming], preserve_manual=True)

    def bulk_import(
        self,
        records: Iterable[DailyRecord],
        preserve_manual: bool = True,
    ) -> List[DailyRecord]:
        """Merge imported daily records into the stored collection.

        Ad-metric fields always take the imported value. With
        ``preserve_manual``, each manual field keeps the stored record's
        value, else the standalone manual entry's value, else 0, so manual
        data survives any number of re-imports.
        """
        existing = {r.date: r for r in self.get_daily_data()}
        manual_entries = self.get_manual_entries()
        now = self.now_iso()

        imported = 0
        for incoming in records:
            merged = replace(incoming, last_updated=now)
            previous = existing.get(incoming.date)
            manual = manual_entries.get(incoming.date)

            if preserve_manual and (previous is not None or manual):
                manual = manual or {}
                for attr, key in MANUAL_FIELDS:
                    value = getattr(previous, attr) if previous is not None else 0
                    if not value:
                        value = to_number(manual.get(key), attr)
                    setattr(merged, attr, value)

            existing[incoming.date] = merged
            imported += 1

        logger.info(f"Imported {imported} daily records (preserve_manual={preserve_manual})")
        return self._save_daily(existing.values())

    def delete(self, date: str) -> List[DailyRecord]:
        """Zero all manual fields for a date.

        The record itself stays so later CSV imports can still fill in its
        ad metrics; the zeroed manual values are not resurrected.
        """
        return self.upsert_manual(date, {attr: 0 for attr in MANUAL_ATTRS})

    def replace_all(
        self,
        daily_records: Iterable[DailyRecord],
        manual_entries: Optional[Mapping[str, Any]] = None,
        settings: Optional[Mapping[str, Any]] = None,
    ) -> List[DailyRecord]:
        """Overwrite the namespace's collections (used by backup restore)."""
        if manual_entries is not None:
            self._write_json(self.keys.manual_entries, dict(manual_entries))
        if settings is not None:
            self._write_json(self.keys.settings, dict(settings))
        return self._save_daily(daily_records)

    def clear_all_data(self) -> int:
        """Remove this namespace's data and snapshots. Returns keys removed."""
        keys = self.keys
        removed = 0
        for key in keys.data_keys() + self.backups.snapshot_keys():
            if self.kv.get(key) is not None:
                self.kv.delete(key)
                removed += 1
        logger.info(f"Cleared {removed} keys for namespace {keys.user_id or '(shared)'}")
        return removed
