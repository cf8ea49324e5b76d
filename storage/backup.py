"""Backup export/import and automatic daily snapshots.

A backup document is portable JSON:

    {
        "dailyData": [...],          # DailyRecord dicts
        "manualEntries": {date: {...}},
        "settings": {...},
        "exportDate": "2025-06-20T10:00:00",
        "version": "1.0"
    }

Snapshots use the same shape (with "timestamp" instead of "exportDate")
and are stored once per day under a namespaced key. Snapshots older than
the retention window are pruned by the date embedded in their key.
"""

import json
import logging
from datetime import timedelta
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Union

from storage.exceptions import BackupFormatError
from storage.models import DailyRecord

if TYPE_CHECKING:
    from storage.entry_store import EntryStore

logger = logging.getLogger(__name__)

DEFAULT_RETENTION_DAYS = 30
BACKUP_VERSION = "1.0"


class BackupCodec:
    """Serializes one EntryStore namespace to and from backup documents."""

    def __init__(
        self,
        store: "EntryStore",
        retention_days: int = DEFAULT_RETENTION_DAYS,
        version: str = BACKUP_VERSION,
    ) -> None:
        self.store = store
        self.retention_days = retention_days
        self.version = version

    def _document(self, timestamp_key: str) -> Dict[str, Any]:
        return {
            "dailyData": [r.to_dict() for r in self.store.get_daily_data()],
            "manualEntries": self.store.get_manual_entries(),
            "settings": self.store.get_settings(),
            timestamp_key: self.store.now_iso(),
            "version": self.version,
        }

    def export_document(self) -> Dict[str, Any]:
        """Full dataset of the current namespace as a backup document."""
        return self._document("exportDate")

    def export_filename(self, username: Optional[str] = None) -> str:
        day = self.store.clock().date().isoformat()
        suffix = f"-{username}" if username else ""
        return f"dm-ads-backup{suffix}-{day}.json"

    def import_document(self, document: Mapping[str, Any]) -> List[DailyRecord]:
        """Replace the namespace's data with a backup document's contents.

        Raises:
            BackupFormatError: If the document has no ``dailyData`` list.
        """
        if not isinstance(document, Mapping) or not isinstance(document.get("dailyData"), list):
            raise BackupFormatError("Backup document must contain a dailyData list")

        records = [
            DailyRecord.from_dict(item)
            for item in document["dailyData"]
            if isinstance(item, Mapping) and item.get("date")
        ]
        manual_entries = document.get("manualEntries")
        settings = document.get("settings")

        restored = self.store.replace_all(
            records,
            manual_entries=manual_entries if isinstance(manual_entries, Mapping) else None,
            settings=settings if isinstance(settings, Mapping) else None,
        )
        if not self.store.auto_backup:
            # replace_all only snapshots when auto backups are on
            self.create_snapshot()
        logger.info(
            f"Restored backup version {document.get('version', '?')} "
            f"with {len(restored)} daily records"
        )
        return restored

    def import_json(self, text: str) -> List[DailyRecord]:
        try:
            document = json.loads(text)
        except ValueError as e:
            raise BackupFormatError(f"Backup is not valid JSON: {e}") from e
        return self.import_document(document)

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def snapshot_keys(self) -> List[str]:
        """Snapshot keys belonging to the current namespace."""
        keys = self.store.keys
        return [k for k in self.store.kv.keys(keys.backup_prefix) if keys.backup_date(k)]

    def create_snapshot(self) -> str:
        """Store today's snapshot, record the backup time and prune old ones."""
        keys = self.store.keys
        now = self.store.clock()
        key = keys.backup_key(now.date().isoformat())

        self.store.kv.set(key, json.dumps(self._document("timestamp")))
        self.store.kv.set(keys.last_backup, now.isoformat())
        self.prune_snapshots()
        return key

    def prune_snapshots(self) -> int:
        """Delete snapshots older than the retention window."""
        keys = self.store.keys
        cutoff = (self.store.clock() - timedelta(days=self.retention_days)).date().isoformat()

        removed = 0
        for key in self.snapshot_keys():
            if keys.backup_date(key) < cutoff:
                self.store.kv.delete(key)
                removed += 1

        if removed:
            logger.info(f"Pruned {removed} snapshots older than {cutoff}")
        return removed


def write_export(path: Union[str, Path], document: Mapping[str, Any]) -> Path:
    """Write a backup document to disk as indented JSON."""
    out = Path(path).expanduser()
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(json.dumps(document, indent=2), encoding="utf-8")
    return out
