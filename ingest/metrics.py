"""Derived KPI calculations over daily and campaign records.

Totals are summed except reach, which is combined with max() because each
source value is already a deduplicated audience count.
"""

from datetime import date, timedelta
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from ingest.models import AggregateMetrics, CampaignRecord
from storage.models import DailyRecord


class MetricScope(str, Enum):
    """Which delivery-status subtotal of a DailyRecord to read."""

    ACTIVE = "active"
    ALL = "all"


def _ratio(numerator: float, denominator: float, percent: bool = False) -> float:
    if not denominator:
        return 0.0
    value = numerator / denominator
    return value * 100 if percent else value


def apply_ratios(metrics: AggregateMetrics) -> AggregateMetrics:
    """Fill in the derived ratio fields from the totals."""
    metrics.cost_per_dm = _ratio(metrics.total_spend, metrics.inbound_dms)
    # Legacy data has no new/recurring breakdown, fall back to all closes
    if metrics.new_closes > 0:
        metrics.cost_per_acquisition = _ratio(metrics.total_spend, metrics.new_closes)
    else:
        metrics.cost_per_acquisition = _ratio(metrics.total_spend, metrics.closes)
    metrics.cost_per_meeting = _ratio(metrics.total_spend, metrics.meetings)
    metrics.ctr = _ratio(metrics.clicks, metrics.impressions, percent=True)
    metrics.meeting_to_close_rate = _ratio(metrics.closes, metrics.meetings, percent=True)
    metrics.dm_to_meeting_rate = _ratio(metrics.meetings, metrics.inbound_dms, percent=True)
    metrics.roas = _ratio(metrics.revenue, metrics.total_spend)
    return metrics


def compute_metrics(
    records: Iterable[DailyRecord],
    scope: MetricScope = MetricScope.ACTIVE,
) -> AggregateMetrics:
    """Aggregate daily records for one scope and compute ratios."""
    prefix = "active" if MetricScope(scope) == MetricScope.ACTIVE else "all"
    metrics = AggregateMetrics()

    for record in records:
        metrics.total_spend += getattr(record, f"{prefix}_spend")
        metrics.inbound_dms += getattr(record, f"{prefix}_dms")
        metrics.impressions += getattr(record, f"{prefix}_impressions")
        metrics.clicks += getattr(record, f"{prefix}_clicks")
        metrics.reach = max(metrics.reach, getattr(record, f"{prefix}_reach"))

        metrics.meetings += record.meetings
        metrics.shows += record.shows
        metrics.offers_made += record.offers_made
        metrics.closes += record.closes
        metrics.new_closes += record.new_closes
        metrics.recurring_closes += record.recurring_closes
        metrics.cash_collected += record.cash_collected
        metrics.revenue += record.revenue or record.total_revenue
        metrics.total_revenue += record.total_revenue
        metrics.new_revenue += record.new_revenue
        metrics.recurring_revenue += record.recurring_revenue

    return apply_ratios(metrics)


def metrics_from_campaigns(campaigns: Iterable[CampaignRecord]) -> AggregateMetrics:
    """Aggregate ad metrics over campaign records.

    Campaign records carry no funnel data, so funnel-based ratios are 0.
    """
    metrics = AggregateMetrics()
    for campaign in campaigns:
        metrics.total_spend += campaign.spend
        metrics.inbound_dms += campaign.inbound_dms
        metrics.impressions += campaign.impressions
        metrics.clicks += campaign.clicks
        metrics.reach = max(metrics.reach, campaign.reach)
    return apply_ratios(metrics)


def filter_by_range(
    records: Iterable[DailyRecord],
    start: Optional[str] = None,
    end: Optional[str] = None,
) -> List[DailyRecord]:
    """Records whose date lies in [start, end]; ISO dates compare as strings."""
    return [
        r for r in records
        if (start is None or r.date >= start) and (end is None or r.date <= end)
    ]


# ============================================================================
# DATE RANGE PRESETS
# ============================================================================

DEFAULT_PRESET = "last30days"

PRESET_RANGES: Dict[str, Tuple[str, Callable[[date], Tuple[date, date]]]] = {
    "last24hours": ("Last 24 Hours", lambda today: (today - timedelta(days=1), today - timedelta(days=1))),
    "last7days": ("Last 7 Days", lambda today: (today - timedelta(days=6), today)),
    "last30days": ("Last 30 Days", lambda today: (today - timedelta(days=29), today)),
    "monthToDate": ("Month-to-Date", lambda today: (today.replace(day=1), today)),
    "last3months": ("Last 3 Months", lambda today: (today - timedelta(days=89), today)),
}


def resolve_preset(preset: Optional[str], today: date) -> Tuple[str, str]:
    """Return (start, end) ISO dates for a preset; unknown presets use 30 days."""
    _, compute = PRESET_RANGES.get(preset or DEFAULT_PRESET, PRESET_RANGES[DEFAULT_PRESET])
    start, end = compute(today)
    return start.isoformat(), end.isoformat()


def metrics_for_range(
    records: Sequence[DailyRecord],
    start: Optional[str] = None,
    end: Optional[str] = None,
    scope: MetricScope = MetricScope.ACTIVE,
) -> AggregateMetrics:
    """Compute metrics over the records within a date range."""
    return compute_metrics(filter_by_range(records, start, end), scope)
