"""Classify and clean raw CSV rows.

Ads Manager exports mix genuine per-campaign-per-day rows with rows that
must not be aggregated: report totals, boosted Instagram posts and rows
without a usable date. Dropped rows are only counted, never raised.
"""

import logging
import math
import re
from typing import Dict, List, Mapping, Optional

from ingest.columns import ColumnMap
from ingest.constants import (
    BOOSTED_POST_PREFIX,
    MULTIPLE_ATTRIBUTION,
    SUMMARY_DELIVERY_VALUE,
)
from ingest.models import AdRow, DropReason, ProcessingStats, RowDecision

logger = logging.getLogger(__name__)

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

# Max warnings kept per import
MAX_WARNINGS = 50


# ============================================================================
# PARSING HELPERS
# ============================================================================

def parse_int(value) -> int:
    """Parse an integer count, 0 for empty, unparsable or non-finite values."""
    if value is None or value == "":
        return 0
    if isinstance(value, int):
        return value
    try:
        number = float(str(value).replace(",", "").strip())
    except (ValueError, TypeError):
        return 0
    if not math.isfinite(number):
        return 0
    return int(number)


def parse_spend(value) -> Optional[float]:
    """Parse a spend amount, None if it is not a finite non-negative number."""
    if value is None or value == "":
        return None
    try:
        spend = float(str(value).replace(",", "").replace("$", "").strip())
    except (ValueError, TypeError):
        return None
    if not math.isfinite(spend) or spend < 0:
        return None
    return spend


# ============================================================================
# CLASSIFICATION
# ============================================================================

def classify(row: Mapping[str, str], columns: ColumnMap) -> RowDecision:
    """Decide whether a row is a genuine ad-delivery record.

    Checks run in order and a row is counted under the first match only:
    invalid date, then summary row, then boosted post.
    """
    date = columns.value(row, "date")
    if not DATE_PATTERN.match(date):
        return RowDecision(keep=False, reason=DropReason.INVALID_DATE)

    campaign_name = columns.value(row, "campaign_name")
    if (
        not campaign_name.strip()
        or columns.value(row, "delivery") == SUMMARY_DELIVERY_VALUE
        or columns.value(row, "attribution") == MULTIPLE_ATTRIBUTION
    ):
        return RowDecision(keep=False, reason=DropReason.SUMMARY)

    if campaign_name.startswith(BOOSTED_POST_PREFIX):
        return RowDecision(keep=False, reason=DropReason.BOOSTED_POST)

    return RowDecision(keep=True)


def clean_rows(
    rows: List[Dict[str, str]],
    columns: ColumnMap,
    stats: ProcessingStats,
    warnings: Optional[List[str]] = None,
) -> List[AdRow]:
    """Filter rows and convert the survivors into typed AdRows.

    Updates ``stats`` in place. Unparsable or negative spend is coerced
    to 0 rather than dropping the row.
    """
    cleaned: List[AdRow] = []

    for row in rows:
        decision = classify(row, columns)

        if not decision.keep:
            if decision.reason == DropReason.INVALID_DATE:
                stats.invalid_rows_removed += 1
                if warnings is not None and len(warnings) < MAX_WARNINGS:
                    date = columns.value(row, "date")
                    warnings.append(f"Skipped row with invalid date: {date}")
            elif decision.reason == DropReason.SUMMARY:
                stats.summary_rows_removed += 1
            elif decision.reason == DropReason.BOOSTED_POST:
                stats.boosted_posts_removed += 1
            continue

        spend = parse_spend(columns.value(row, "spend"))
        if spend is None:
            stats.spend_coerced += 1
            spend = 0.0

        cleaned.append(AdRow(
            date=columns.value(row, "date"),
            campaign_name=columns.value(row, "campaign_name"),
            delivery=columns.value(row, "delivery"),
            spend=spend,
            results=parse_int(columns.value(row, "results")),
            result_indicator=columns.value(row, "result_indicator"),
            impressions=parse_int(columns.value(row, "impressions")),
            clicks=parse_int(columns.value(row, "clicks")),
            reach=parse_int(columns.value(row, "reach")),
        ))

    stats.valid_rows = len(cleaned)
    logger.info(
        f"Cleaned rows: {stats.valid_rows} kept, "
        f"{stats.summary_rows_removed} summary, "
        f"{stats.boosted_posts_removed} boosted, "
        f"{stats.invalid_rows_removed} invalid"
    )
    return cleaned
