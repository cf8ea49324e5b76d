"""Imports Router - Facebook Ads CSV upload endpoints.

Parses an uploaded export, merges its daily records into the user's
stored data and returns the import statistics, campaign breakdowns and
metrics for the imported date range.
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from pydantic import BaseModel

from api.dependencies import get_app_config, get_entry_store, get_processor
from config import AppConfig
from ingest import CsvProcessor, MetricScope, compute_metrics, parse_csv, resolve_columns
from ingest.constants import COLUMN_LABELS, REQUIRED_COLUMNS
from ingest.exceptions import CsvImportError
from storage import EntryStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/imports", tags=["Imports"])


# =============================================================================
# Pydantic Models
# =============================================================================

class CsvImportResponse(BaseModel):
    """Response model for a CSV import."""
    success: bool
    error: Optional[str] = None
    fix_instructions: Optional[str] = None
    stats: dict[str, int]
    warnings: list[str] = []
    date_range: Optional[dict[str, Optional[str]]] = None
    days_imported: int = 0
    campaigns: list[dict[str, Any]] = []
    all_campaigns: list[dict[str, Any]] = []
    active_metrics: Optional[dict[str, Any]] = None
    all_metrics: Optional[dict[str, Any]] = None


class CsvValidationResponse(BaseModel):
    """Response model for header validation."""
    is_valid: bool
    columns_found: list[str]
    columns_mapped: dict[str, str]
    required_missing: list[str]


async def _read_upload(file: UploadFile) -> str:
    if not file.filename or not file.filename.lower().endswith(".csv"):
        raise HTTPException(status_code=400, detail="File must be a CSV")
    content = await file.read()
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="CSV file must be UTF-8 encoded")


# =============================================================================
# Endpoints
# =============================================================================

@router.post("/csv", response_model=CsvImportResponse)
async def import_csv(
    file: UploadFile = File(..., description="Facebook Ads Manager CSV export"),
    store: EntryStore = Depends(get_entry_store),
    processor: CsvProcessor = Depends(get_processor),
    config: AppConfig = Depends(get_app_config),
):
    """Import a Facebook Ads CSV export.

    - Drops summary rows, boosted posts and rows without a valid date
    - Merges daily ad metrics without overwriting manual entries
    - Returns campaigns for this batch only; they are not persisted
    """
    text = await _read_upload(file)
    result = processor.process(text)

    if not result.success:
        return CsvImportResponse(
            success=False,
            error=result.error_message,
            fix_instructions=result.fix_instructions or None,
            stats=result.stats.to_dict(),
            warnings=result.warnings,
        )

    data = result.data
    stored = store.bulk_import(data.daily_records, preserve_manual=config.imports.preserve_manual)

    imported_dates = {r.date for r in data.daily_records}
    merged = [r for r in stored if r.date in imported_dates]

    logger.info(
        f"Imported {file.filename}: {len(imported_dates)} days, "
        f"{result.stats.valid_rows}/{result.stats.total_rows} rows"
    )

    return CsvImportResponse(
        success=True,
        stats=result.stats.to_dict(),
        warnings=result.warnings,
        date_range={
            "start": data.summary.date_range_start,
            "end": data.summary.date_range_end,
        },
        days_imported=len(imported_dates),
        campaigns=[c.to_dict() for c in data.active_campaigns],
        all_campaigns=[c.to_dict() for c in data.all_campaigns],
        active_metrics=compute_metrics(merged, MetricScope.ACTIVE).to_dict(),
        all_metrics=compute_metrics(merged, MetricScope.ALL).to_dict(),
    )


@router.post("/validate", response_model=CsvValidationResponse)
async def validate_csv(
    file: UploadFile = File(..., description="Facebook Ads Manager CSV export"),
):
    """Check that an export has every required column before importing."""
    text = await _read_upload(file)
    try:
        parsed = parse_csv(text)
    except CsvImportError as e:
        raise HTTPException(status_code=400, detail=str(e))

    columns = resolve_columns(parsed.headers)
    missing = [COLUMN_LABELS[k] for k in REQUIRED_COLUMNS if k not in columns.mapped]

    return CsvValidationResponse(
        is_valid=not missing,
        columns_found=parsed.headers,
        columns_mapped=columns.mapped,
        required_missing=missing,
    )
