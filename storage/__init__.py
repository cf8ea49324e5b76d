"""DM Ads Dashboard - Storage Module.

This module persists per-user dashboard data as JSON blobs in a
key-value store.

The storage layer is organized as follows:
- models.py: DailyRecord, the canonical per-date record
- kv_store.py: Key-value substrate (SQLite or in-memory)
- identity.py: User identity and storage key namespacing
- entry_store.py: Merge/upsert/query of daily records and manual entries
- backup.py: Backup documents and automatic snapshots

Example:
    >>> from storage import EntryStore, SQLiteKeyValueStore, StaticIdentity
    >>>
    >>> store = EntryStore(SQLiteKeyValueStore(), identity=StaticIdentity("u1"))
    >>> store.bulk_import(result.data.daily_records)
    >>> store.upsert_manual("2025-06-20", {"meetings": 2, "closes": 1})
"""

from .backup import BackupCodec, write_export
from .entry_store import EntryStore
from .exceptions import (
    BackupFormatError,
    StorageCorruptionError,
    StorageError,
    ValidationError,
)
from .identity import (
    IdentityProvider,
    NamespaceStrategy,
    StaticIdentity,
    StorageKeys,
    resolve_storage_keys,
)
from .kv_store import KeyValueStore, MemoryKeyValueStore, SQLiteKeyValueStore
from .manual_entry import ManualEntryForm
from .models import AD_METRIC_FIELDS, MANUAL_FIELDS, DailyRecord

__all__ = [
    # Stores
    "EntryStore",
    "ManualEntryForm",
    "BackupCodec",
    "write_export",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "SQLiteKeyValueStore",
    # Identity
    "IdentityProvider",
    "NamespaceStrategy",
    "StaticIdentity",
    "StorageKeys",
    "resolve_storage_keys",
    # Models
    "DailyRecord",
    "AD_METRIC_FIELDS",
    "MANUAL_FIELDS",
    # Errors
    "StorageError",
    "ValidationError",
    "StorageCorruptionError",
    "BackupFormatError",
]
