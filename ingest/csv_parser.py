"""Parse Facebook Ads CSV export text into header-keyed rows.

The export is read line by line: blank lines are dropped, the first
remaining line is the header row and every other line is one data row.
Double-quoted fields may contain commas, and a doubled quote inside a
quoted field is a literal quote.
"""

import csv
import logging
from typing import Dict, List

from ingest.exceptions import MalformedInputError
from ingest.models import ParsedCsv

logger = logging.getLogger(__name__)

BOM = "\ufeff"


def parse_line(line: str) -> List[str]:
    """Split one CSV line into trimmed field values."""
    try:
        values = next(csv.reader([line], skipinitialspace=True), [])
    except csv.Error as e:
        raise MalformedInputError(f"Unparsable CSV line: {e}") from e
    return [value.strip() for value in values]


def parse_csv(text: str) -> ParsedCsv:
    """Parse CSV text into headers and one mapping per data line.

    Lines with fewer fields than headers get empty strings for the
    missing trailing fields; extra fields are ignored.

    Raises:
        MalformedInputError: If there is no header row or no data row.
    """
    lines = [line for line in (text or "").splitlines() if line.strip()]

    if len(lines) < 2:
        raise MalformedInputError(
            "CSV file must have at least a header row and one data row"
        )

    headers = [h.replace(BOM, "").strip() for h in parse_line(lines[0])]

    rows: List[Dict[str, str]] = []
    for line in lines[1:]:
        values = parse_line(line)
        row = {}
        for index, header in enumerate(headers):
            row[header] = values[index] if index < len(values) else ""
        rows.append(row)

    logger.debug(f"Parsed {len(rows)} rows with {len(headers)} columns")
    return ParsedCsv(headers=headers, rows=rows)
