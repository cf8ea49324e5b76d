"""Resolve logical columns against an export's actual header row.

A logical column matches a header whose text equals one of its expected
phrases (case-insensitive), otherwise the first header that contains the
phrase. Exact matches win so that e.g. "Impressions" is not resolved to
"CPM (cost per 1,000 impressions)".
"""

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence

from ingest.constants import COLUMN_LABELS, OPTIONAL_COLUMNS, REQUIRED_COLUMNS
from ingest.exceptions import MissingColumnError


@dataclass
class ColumnMap:
    """Logical column name -> actual header in this export."""

    mapped: Dict[str, str] = field(default_factory=dict)

    def header(self, logical: str) -> Optional[str]:
        return self.mapped.get(logical)

    def value(self, row: Mapping[str, str], logical: str) -> str:
        """Value of a logical column in a row, '' if the column is absent."""
        header = self.mapped.get(logical)
        if header is None:
            return ""
        return row.get(header, "") or ""


def find_header(headers: Sequence[str], phrases: Sequence[str]) -> Optional[str]:
    """Find the header matching any of the phrases, in phrase order."""
    lowered = [(h, h.lower()) for h in headers]
    for phrase in phrases:
        target = phrase.lower()
        for header, low in lowered:
            if low == target:
                return header
        for header, low in lowered:
            if target in low:
                return header
    return None


def resolve_columns(headers: Sequence[str]) -> ColumnMap:
    """Map every logical column that can be found in the headers."""
    column_map = ColumnMap()
    for logical, phrases in list(REQUIRED_COLUMNS.items()) + list(OPTIONAL_COLUMNS.items()):
        header = find_header(headers, phrases)
        if header is not None:
            column_map.mapped[logical] = header
    return column_map


def validate_columns(headers: Sequence[str]) -> ColumnMap:
    """Resolve columns, failing if any required column is missing.

    Raises:
        MissingColumnError: Listing every missing required column.
    """
    column_map = resolve_columns(headers)
    missing: List[str] = [
        COLUMN_LABELS[logical]
        for logical in REQUIRED_COLUMNS
        if logical not in column_map.mapped
    ]
    if missing:
        raise MissingColumnError(missing)
    return column_map
