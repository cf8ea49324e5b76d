"""Shared dependencies for API routers.

Services live on ``app.state`` (set by ``create_app``); an EntryStore is
built per request for the user named in the ``X-User-Id`` header.
"""

from datetime import date
from typing import Optional

from fastapi import Header, HTTPException, Request

from config import AppConfig
from ingest import CsvProcessor
from storage import EntryStore, KeyValueStore, StaticIdentity


def get_app_config(request: Request) -> AppConfig:
    """Dependency for getting the loaded configuration."""
    config = getattr(request.app.state, "config", None)
    if config is None:
        raise HTTPException(status_code=503, detail="Config not initialized")
    return config


def get_kv_store(request: Request) -> KeyValueStore:
    kv = getattr(request.app.state, "kv_store", None)
    if kv is None:
        raise HTTPException(status_code=503, detail="Store not initialized")
    return kv


def get_entry_store(
    request: Request,
    x_user_id: Optional[str] = Header(None),
) -> EntryStore:
    """Dependency for the current user's EntryStore."""
    config = get_app_config(request)
    return EntryStore(
        get_kv_store(request),
        identity=StaticIdentity(x_user_id),
        namespace_strategy=config.storage.namespace_strategy,
        key_prefix=config.storage.key_prefix,
        backup_retention_days=config.backup.retention_days,
        backup_version=config.backup.version,
        auto_backup=config.backup.auto_backup,
        clock=getattr(request.app.state, "clock", None),
    )


def get_processor(request: Request) -> CsvProcessor:
    config = get_app_config(request)
    return CsvProcessor(blank_delivery_is_active=config.imports.blank_delivery_is_active)


def get_today(request: Request) -> date:
    """Today's date per the app clock, used by date-range presets."""
    clock = getattr(request.app.state, "clock", None)
    if clock is not None:
        return clock().date()
    return date.today()
