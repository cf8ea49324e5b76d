"""Fold cleaned ad rows into per-date and per-campaign totals.

One pass over the rows fills three accumulators: daily records (with
"active" and "all" subtotals), all campaigns, and active campaigns only.
Campaign totals are scoped to the batch being imported; daily records
are what gets persisted.
"""

import logging
from typing import Dict, List, Tuple

from ingest.constants import (
    DM_EXCLUDED_TOKEN,
    DM_RESULT_TOKEN,
    STATUS_ACTIVE,
    STATUS_INACTIVE,
    STATUS_UNKNOWN,
)
from ingest.metrics import MetricScope, compute_metrics
from ingest.models import AdRow, AggregationResult, CampaignRecord, ImportSummary
from storage.models import DailyRecord

logger = logging.getLogger(__name__)


def count_inbound_dms(results: int, result_indicator: str) -> int:
    """DMs a row contributes: its results if they are messaging conversations.

    Link-click attributed conversions are excluded so they are not double
    counted as DMs.
    """
    if DM_RESULT_TOKEN in result_indicator and DM_EXCLUDED_TOKEN not in result_indicator:
        return results
    return 0


def delivery_status(delivery: str, blank_is_active: bool = True) -> Tuple[bool, str]:
    """Map a Campaign Delivery value to (is_active, status label)."""
    value = (delivery or "").strip()
    lowered = value.lower()
    if lowered == "active":
        return True, STATUS_ACTIVE
    if not value:
        return (True, STATUS_ACTIVE) if blank_is_active else (False, STATUS_UNKNOWN)
    if lowered == "inactive":
        return False, STATUS_INACTIVE
    return False, value


def _add_to_campaign(campaign: CampaignRecord, row: AdRow, dms: int) -> None:
    campaign.spend += row.spend
    campaign.inbound_dms += dms
    campaign.impressions += row.impressions
    campaign.clicks += row.clicks
    campaign.reach = max(campaign.reach, row.reach)


class MetricAggregator:
    """Aggregates cleaned rows into daily records and campaign records.

    Attributes:
        blank_delivery_is_active: Treat rows with an empty Campaign Delivery
            value as active. Ads Manager leaves it blank on some exports for
            campaigns that are still serving.
    """

    def __init__(self, blank_delivery_is_active: bool = True) -> None:
        self.blank_delivery_is_active = blank_delivery_is_active

    def aggregate(self, rows: List[AdRow]) -> AggregationResult:
        """Aggregate rows in a single pass and compute active/all metrics."""
        daily_map: Dict[str, DailyRecord] = {}
        all_campaigns: Dict[str, CampaignRecord] = {}
        active_campaigns: Dict[str, CampaignRecord] = {}

        for row in rows:
            dms = count_inbound_dms(row.results, row.result_indicator)
            is_active, status = delivery_status(row.delivery, self.blank_delivery_is_active)

            daily = daily_map.get(row.date)
            if daily is None:
                daily = DailyRecord(date=row.date)
                daily_map[row.date] = daily

            daily.all_spend += row.spend
            daily.all_dms += dms
            daily.all_impressions += row.impressions
            daily.all_clicks += row.clicks
            daily.all_reach = max(daily.all_reach, row.reach)

            if is_active:
                daily.active_spend += row.spend
                daily.active_dms += dms
                daily.active_impressions += row.impressions
                daily.active_clicks += row.clicks
                daily.active_reach = max(daily.active_reach, row.reach)

            campaign = all_campaigns.get(row.campaign_name)
            if campaign is None:
                campaign = CampaignRecord(
                    id=len(all_campaigns) + 1,
                    name=row.campaign_name,
                    status=status,
                )
                all_campaigns[row.campaign_name] = campaign
            _add_to_campaign(campaign, row, dms)

            if is_active:
                active = active_campaigns.get(row.campaign_name)
                if active is None:
                    active = CampaignRecord(
                        id=campaign.id,
                        name=campaign.name,
                        status=campaign.status,
                    )
                    active_campaigns[row.campaign_name] = active
                _add_to_campaign(active, row, dms)

        daily_records = sorted(daily_map.values(), key=lambda r: r.date)

        result = AggregationResult(
            daily_records=daily_records,
            active_campaigns=list(active_campaigns.values()),
            all_campaigns=list(all_campaigns.values()),
            active_metrics=compute_metrics(daily_records, MetricScope.ACTIVE),
            all_metrics=compute_metrics(daily_records, MetricScope.ALL),
        )
        result.summary = ImportSummary(
            date_range_start=daily_records[0].date if daily_records else None,
            date_range_end=daily_records[-1].date if daily_records else None,
            total_spend_active=result.active_metrics.total_spend,
            total_spend_all=result.all_metrics.total_spend,
            total_dms_active=result.active_metrics.inbound_dms,
            total_dms_all=result.all_metrics.inbound_dms,
        )

        logger.info(
            f"Aggregated {len(rows)} rows into {len(daily_records)} days, "
            f"{len(all_campaigns)} campaigns ({len(active_campaigns)} active)"
        )
        return result
