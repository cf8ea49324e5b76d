"""Data models for persisted dashboard data.

DailyRecord is the one canonical per-date record. It is produced by the CSV
aggregator, merged with manual funnel entries by the EntryStore and
serialized with the camelCase keys used by the persisted JSON documents.
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

# (attribute, json key) for fields filled from CSV imports
AD_METRIC_FIELDS = (
    ("active_spend", "activeSpend"),
    ("all_spend", "allSpend"),
    ("active_dms", "activeDMs"),
    ("all_dms", "allDMs"),
    ("active_impressions", "activeImpressions"),
    ("all_impressions", "allImpressions"),
    ("active_clicks", "activeClicks"),
    ("all_clicks", "allClicks"),
    ("active_reach", "activeReach"),
    ("all_reach", "allReach"),
)

# (attribute, json key) for fields entered by the user
MANUAL_FIELDS = (
    ("meetings", "meetings"),
    ("shows", "shows"),
    ("offers_made", "offersMade"),
    ("closes", "closes"),
    ("new_closes", "newCloses"),
    ("recurring_closes", "recurringCloses"),
    ("cash_collected", "cashCollected"),
    ("revenue", "revenue"),
    ("total_revenue", "totalRevenue"),
    ("new_revenue", "newRevenue"),
    ("recurring_revenue", "recurringRevenue"),
)

CURRENCY_FIELDS = frozenset({
    "active_spend", "all_spend", "cash_collected", "revenue",
    "total_revenue", "new_revenue", "recurring_revenue",
})

AD_METRIC_ATTRS = tuple(attr for attr, _ in AD_METRIC_FIELDS)
MANUAL_ATTRS = tuple(attr for attr, _ in MANUAL_FIELDS)

# Accepts both json keys and attribute names
_KEY_TO_ATTR: Dict[str, str] = {}
for _attr, _key in AD_METRIC_FIELDS + MANUAL_FIELDS:
    _KEY_TO_ATTR[_key] = _attr
    _KEY_TO_ATTR[_attr] = _attr

# Pre-aggregation exports stored a single unscoped value per metric
_LEGACY_AD_KEYS = {
    "spend": ("active_spend", "all_spend"),
    "inboundDMs": ("active_dms", "all_dms"),
    "impressions": ("active_impressions", "all_impressions"),
    "clicks": ("active_clicks", "all_clicks"),
    "reach": ("active_reach", "all_reach"),
}


def to_number(value: Any, attr: str) -> Any:
    """Coerce a stored value to the field's numeric type.

    Empty, unparsable and non-finite values become 0.
    """
    zero = 0.0 if attr in CURRENCY_FIELDS else 0
    if value is None or value == "":
        return zero
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return zero
    if not math.isfinite(number):
        return zero
    return number if attr in CURRENCY_FIELDS else int(number)


def attr_for_key(key: str) -> Optional[str]:
    """Map a json key or attribute name to a DailyRecord attribute."""
    return _KEY_TO_ATTR.get(key)


@dataclass
class DailyRecord:
    """Ad metrics and manual funnel data for one calendar date."""

    date: str  # YYYY-MM-DD

    active_spend: float = 0.0
    all_spend: float = 0.0
    active_dms: int = 0
    all_dms: int = 0
    active_impressions: int = 0
    all_impressions: int = 0
    active_clicks: int = 0
    all_clicks: int = 0
    active_reach: int = 0  # max across rows, never summed
    all_reach: int = 0

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

    last_updated: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with the persisted camelCase keys."""
        data: Dict[str, Any] = {"date": self.date}
        for attr, key in AD_METRIC_FIELDS + MANUAL_FIELDS:
            data[key] = getattr(self, attr)
        if self.last_updated:
            data["lastUpdated"] = self.last_updated
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DailyRecord":
        """Build a record from a persisted dict, tolerating legacy keys."""
        record = cls(date=str(data.get("date", "")))
        for attr, key in AD_METRIC_FIELDS + MANUAL_FIELDS:
            if key in data:
                setattr(record, attr, to_number(data[key], attr))
        if "activeSpend" not in data and "allSpend" not in data:
            for legacy_key, attrs in _LEGACY_AD_KEYS.items():
                if legacy_key in data:
                    for attr in attrs:
                        setattr(record, attr, to_number(data[legacy_key], attr))
        record.last_updated = data.get("lastUpdated")
        return record

    def manual_values(self) -> Dict[str, Any]:
        """Manual funnel fields keyed by attribute name."""
        return {attr: getattr(self, attr) for attr in MANUAL_ATTRS}

    def ad_values(self) -> Dict[str, Any]:
        """Ad metric fields keyed by attribute name."""
        return {attr: getattr(self, attr) for attr in AD_METRIC_ATTRS}
