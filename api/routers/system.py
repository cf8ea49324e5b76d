"""System router for the DM ads dashboard.

This module provides health and storage statistics endpoints.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from api.dependencies import get_app_config, get_entry_store
from config import AppConfig
from storage import EntryStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["System"])


class HealthResponse(BaseModel):
    """Response model for health check."""
    status: str
    version: str
    namespace_strategy: str


class StatsResponse(BaseModel):
    """Response model for stored data statistics."""
    total_days: int
    days_with_manual_data: int
    oldest_entry: Optional[str] = None
    newest_entry: Optional[str] = None
    last_backup: Optional[str] = None


@router.get("/health", response_model=HealthResponse)
async def health_check(config: AppConfig = Depends(get_app_config)):
    """Check API health."""
    return HealthResponse(
        status="healthy",
        version="0.1.0",
        namespace_strategy=config.storage.namespace_strategy.value,
    )


@router.get("/stats", response_model=StatsResponse)
async def get_stats(store: EntryStore = Depends(get_entry_store)):
    """Get statistics about the current user's stored data."""
    stats = store.get_stats()
    return StatsResponse(
        total_days=stats["totalDays"],
        days_with_manual_data=stats["daysWithManualData"],
        oldest_entry=stats["oldestEntry"],
        newest_entry=stats["newestEntry"],
        last_backup=stats["lastBackup"],
    )
