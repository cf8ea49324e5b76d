"""Constants for Facebook Ads CSV ingestion.

Column phrases are matched case-insensitively against the export's header
row, so minor naming differences between exports still resolve.
"""

# Required logical columns - import FAILS without these
REQUIRED_COLUMNS = {
    "date": ["Reporting starts"],
    "campaign_name": ["Campaign name"],
    "delivery": ["Campaign Delivery"],
    "spend": ["Amount spent (USD)", "Amount spent"],
    "results": ["Results"],
    "result_indicator": ["Result indicator"],
}

# Optional columns - used if present
OPTIONAL_COLUMNS = {
    "attribution": ["Attribution setting"],
    "impressions": ["Impressions"],
    "clicks": ["Link clicks", "Clicks"],
    "reach": ["Reach"],
}

# Human-readable names used in error messages
COLUMN_LABELS = {
    "date": "Reporting starts",
    "campaign_name": "Campaign name",
    "delivery": "Campaign Delivery",
    "spend": "Amount spent (USD)",
    "results": "Results",
    "result_indicator": "Result indicator",
}

# Result indicator must contain this and must NOT contain the exclusion
DM_RESULT_TOKEN = "messaging_conversation_started"
DM_EXCLUDED_TOKEN = "link_click"

# Row classification markers
BOOSTED_POST_PREFIX = "Instagram post:"
SUMMARY_DELIVERY_VALUE = "0"
MULTIPLE_ATTRIBUTION = "Multiple attribution settings"

STATUS_ACTIVE = "Active"
STATUS_INACTIVE = "Inactive"
STATUS_UNKNOWN = "Unknown"
