"""Facebook Ads CSV ingestion for the DM ads dashboard.

This package turns Ads Manager CSV exports into dashboard data by:

1. Parsing quoted CSV text into header-keyed rows
2. Resolving required columns despite header naming differences
3. Dropping summary rows, boosted posts and rows without a valid date
4. Aggregating per-day and per-campaign totals for active and all campaigns
5. Computing derived KPIs (cost per DM, CPA, CTR, conversion rates, ROAS)

Example:
    >>> from ingest import CsvProcessor
    >>>
    >>> result = CsvProcessor().process(csv_text)
    >>> print(result.stats.to_dict())
    >>> print(result.data.active_metrics.cost_per_dm)
"""

from ingest.aggregator import MetricAggregator, count_inbound_dms, delivery_status
from ingest.columns import ColumnMap, resolve_columns, validate_columns
from ingest.csv_parser import parse_csv
from ingest.exceptions import CsvImportError, MalformedInputError, MissingColumnError
from ingest.metrics import (
    MetricScope,
    PRESET_RANGES,
    compute_metrics,
    filter_by_range,
    metrics_for_range,
    metrics_from_campaigns,
    resolve_preset,
)
from ingest.models import (
    AdRow,
    AggregateMetrics,
    AggregationResult,
    CampaignRecord,
    ImportSummary,
    ParsedCsv,
    ProcessingResult,
    ProcessingStats,
)
from ingest.processor import CsvProcessor, read_csv_file
from ingest.row_filter import classify, clean_rows

__all__ = [
    # Pipeline
    "CsvProcessor",
    "read_csv_file",
    "parse_csv",
    "resolve_columns",
    "validate_columns",
    "classify",
    "clean_rows",
    "MetricAggregator",
    "count_inbound_dms",
    "delivery_status",
    # Metrics
    "MetricScope",
    "PRESET_RANGES",
    "compute_metrics",
    "filter_by_range",
    "metrics_for_range",
    "metrics_from_campaigns",
    "resolve_preset",
    # Models
    "AdRow",
    "AggregateMetrics",
    "AggregationResult",
    "CampaignRecord",
    "ColumnMap",
    "ImportSummary",
    "ParsedCsv",
    "ProcessingResult",
    "ProcessingStats",
    # Errors
    "CsvImportError",
    "MalformedInputError",
    "MissingColumnError",
]
