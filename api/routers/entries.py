"""Entries Router - daily records, manual funnel entries and metrics."""

import logging
from datetime import date
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field

from api.dependencies import get_entry_store, get_today
from ingest import MetricScope, metrics_for_range, resolve_preset
from storage import EntryStore, ManualEntryForm, ValidationError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Entries"])


# =============================================================================
# Pydantic Models
# =============================================================================

class ManualFieldsRequest(BaseModel):
    """Manual funnel values to set for a date (omitted fields are unchanged)."""
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    meetings: Optional[int] = Field(None, ge=0)
    shows: Optional[int] = Field(None, ge=0)
    offers_made: Optional[int] = Field(None, ge=0, alias="offersMade")
    closes: Optional[int] = Field(None, ge=0)
    new_closes: Optional[int] = Field(None, ge=0, alias="newCloses")
    recurring_closes: Optional[int] = Field(None, ge=0, alias="recurringCloses")
    cash_collected: Optional[float] = Field(None, ge=0, alias="cashCollected")
    revenue: Optional[float] = Field(None, ge=0)
    total_revenue: Optional[float] = Field(None, ge=0, alias="totalRevenue")
    new_revenue: Optional[float] = Field(None, ge=0, alias="newRevenue")
    recurring_revenue: Optional[float] = Field(None, ge=0, alias="recurringRevenue")


class ManualFormRequest(BaseModel):
    """Manual entry form submission, added to the date's existing values."""
    meetings: Optional[float] = None
    shows: Optional[float] = None
    offers_made: Optional[float] = None
    closes: Optional[float] = None
    cash_collected: Optional[float] = None
    revenue: Optional[float] = None
    is_new_client: bool = False
    is_recurring_client: bool = False


class EntriesResponse(BaseModel):
    """Response model for a list of daily records."""
    entries: list[dict[str, Any]]
    total: int


def _entries(records) -> EntriesResponse:
    return EntriesResponse(entries=[r.to_dict() for r in records], total=len(records))


# =============================================================================
# Endpoints
# =============================================================================

@router.get("/entries", response_model=EntriesResponse)
async def list_entries(
    start: Optional[str] = Query(None, description="First date (YYYY-MM-DD), inclusive"),
    end: Optional[str] = Query(None, description="Last date (YYYY-MM-DD), inclusive"),
    store: EntryStore = Depends(get_entry_store),
):
    """Get stored daily records, optionally limited to a date range."""
    if start or end:
        records = store.get_by_date_range(start or "0000-00-00", end or "9999-99-99")
    else:
        records = store.get_daily_data()
    return _entries(records)


@router.put("/entries/{entry_date}", response_model=EntriesResponse)
async def upsert_entry(
    entry_date: str,
    request: ManualFieldsRequest,
    store: EntryStore = Depends(get_entry_store),
):
    """Set manual funnel fields for a date, keeping imported ad metrics."""
    fields = request.model_dump(by_alias=True, exclude_none=True)
    try:
        records = store.upsert_manual(entry_date, fields)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return _entries(records)


@router.post("/entries/{entry_date}", response_model=EntriesResponse)
async def add_entry(
    entry_date: str,
    request: ManualFormRequest,
    store: EntryStore = Depends(get_entry_store),
):
    """Add a manual entry form's values to what is stored for a date."""
    form = ManualEntryForm(**request.model_dump())
    try:
        records = store.add_manual(entry_date, form.to_fields())
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return _entries(records)


@router.delete("/entries/{entry_date}", response_model=EntriesResponse)
async def delete_entry(
    entry_date: str,
    store: EntryStore = Depends(get_entry_store),
):
    """Zero the manual fields for a date."""
    try:
        records = store.delete(entry_date)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return _entries(records)


@router.get("/metrics")
async def get_metrics(
    preset: Optional[str] = Query(None, description="last24hours, last7days, last30days, monthToDate, last3months"),
    start: Optional[str] = Query(None),
    end: Optional[str] = Query(None),
    scope: MetricScope = Query(MetricScope.ACTIVE),
    store: EntryStore = Depends(get_entry_store),
    today: date = Depends(get_today),
):
    """Get aggregate KPIs for a date range.

    An explicit start/end wins over a preset; with neither, the last
    30 days are used.
    """
    if not (start or end):
        start, end = resolve_preset(preset, today)
    metrics = metrics_for_range(store.get_daily_data(), start, end, scope)
    return {"start": start, "end": end, "scope": scope.value, "metrics": metrics.to_dict()}
