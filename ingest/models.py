"""Data models for CSV ingestion and metric aggregation."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from storage.models import DailyRecord


@dataclass
class ParsedCsv:
    """Header row plus one header-keyed mapping per data line."""

    headers: List[str]
    rows: List[Dict[str, str]] = field(default_factory=list)


@dataclass
class ProcessingStats:
    """Row counts reported back to the user after an import."""

    total_rows: int = 0
    valid_rows: int = 0
    summary_rows_removed: int = 0
    boosted_posts_removed: int = 0
    invalid_rows_removed: int = 0
    spend_coerced: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "totalRows": self.total_rows,
            "validRows": self.valid_rows,
            "summaryRowsRemoved": self.summary_rows_removed,
            "boostedPostsRemoved": self.boosted_posts_removed,
            "invalidRowsRemoved": self.invalid_rows_removed,
            "spendCoerced": self.spend_coerced,
        }


class DropReason(str, Enum):
    """Why a CSV row was excluded from aggregation."""

    INVALID_DATE = "invalid_date"
    SUMMARY = "summary"
    BOOSTED_POST = "boosted_post"


@dataclass
class RowDecision:
    """Result of classifying a single CSV row."""

    keep: bool
    reason: Optional[DropReason] = None


@dataclass
class CampaignRecord:
    """Totals for one campaign name within a single import batch."""

    id: int
    name: str
    status: str
    spend: float = 0.0
    inbound_dms: int = 0
    impressions: int = 0
    clicks: int = 0
    reach: int = 0  # max across rows

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "status": self.status,
            "spend": self.spend,
            "inboundDMs": self.inbound_dms,
            "impressions": self.impressions,
            "clicks": self.clicks,
            "reach": self.reach,
        }


@dataclass
class AggregateMetrics:
    """Totals and derived ratios over a set of daily or campaign records.

    Every ratio with a zero denominator is 0.
    """

    total_spend: float = 0.0
    inbound_dms: int = 0
    impressions: int = 0
    clicks: int = 0
    reach: int = 0
    meetings: int = 0
    shows: int = 0
    offers_made: int = 0
    closes: int = 0
    new_closes: int = 0
    recurring_closes: int = 0
    cash_collected: float = 0.0
    revenue: float = 0.0
    total_revenue: float = 0.0
    new_revenue: float = 0.0
    recurring_revenue: float = 0.0

    cost_per_dm: float = 0.0
    cost_per_acquisition: float = 0.0
    cost_per_meeting: float = 0.0
    ctr: float = 0.0
    meeting_to_close_rate: float = 0.0
    dm_to_meeting_rate: float = 0.0
    roas: float = 0.0

    @property
    def sales_booked(self) -> int:
        return self.closes

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalSpend": self.total_spend,
            "inboundDMs": self.inbound_dms,
            "impressions": self.impressions,
            "clicks": self.clicks,
            "reach": self.reach,
            "meetings": self.meetings,
            "shows": self.shows,
            "offersMade": self.offers_made,
            "closes": self.closes,
            "newCloses": self.new_closes,
            "recurringCloses": self.recurring_closes,
            "cashCollected": self.cash_collected,
            "revenue": self.revenue,
            "totalRevenue": self.total_revenue,
            "newRevenue": self.new_revenue,
            "recurringRevenue": self.recurring_revenue,
            "salesBooked": self.sales_booked,
            "costPerDM": self.cost_per_dm,
            "costPerAcquisition": self.cost_per_acquisition,
            "costPerMeeting": self.cost_per_meeting,
            "ctr": self.ctr,
            "meetingToCloseRate": self.meeting_to_close_rate,
            "dmToMeetingRate": self.dm_to_meeting_rate,
            "roas": self.roas,
        }


@dataclass
class ImportSummary:
    """Date range and headline totals of one import batch."""

    date_range_start: Optional[str] = None
    date_range_end: Optional[str] = None
    total_spend_active: float = 0.0
    total_spend_all: float = 0.0
    total_dms_active: int = 0
    total_dms_all: int = 0


@dataclass
class AggregationResult:
    """Output of a single aggregation pass over cleaned rows."""

    daily_records: List[DailyRecord] = field(default_factory=list)
    active_campaigns: List[CampaignRecord] = field(default_factory=list)
    all_campaigns: List[CampaignRecord] = field(default_factory=list)
    active_metrics: AggregateMetrics = field(default_factory=AggregateMetrics)
    all_metrics: AggregateMetrics = field(default_factory=AggregateMetrics)
    summary: ImportSummary = field(default_factory=ImportSummary)


@dataclass
class ProcessingResult:
    """Result of processing one CSV export."""

    success: bool = False
    error_message: str = ""
    data: Optional[AggregationResult] = None
    stats: ProcessingStats = field(default_factory=ProcessingStats)
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    fix_instructions: str = ""


@dataclass
class AdRow:
    """A cleaned per-campaign-per-day delivery row with typed values."""

    date: str
    campaign_name: str
    delivery: str = ""
    spend: float = 0.0
    results: int = 0
    result_indicator: str = ""
    impressions: int = 0
    clicks: int = 0
    reach: int = 0
