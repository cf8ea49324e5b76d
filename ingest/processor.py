"""CSV processing pipeline for Facebook Ads exports.

Usage:
    from ingest.processor import CsvProcessor, read_csv_file

    text = await read_csv_file("~/Downloads/ads-export.csv")
    result = CsvProcessor().process(text)
    if not result.success:
        print(result.error_message)
        return

    store.bulk_import(result.data.daily_records)
"""

import asyncio
import logging
from pathlib import Path
from typing import Union

from ingest.aggregator import MetricAggregator
from ingest.columns import validate_columns
from ingest.csv_parser import parse_csv
from ingest.exceptions import CsvImportError, MissingColumnError
from ingest.models import ProcessingResult, ProcessingStats
from ingest.row_filter import clean_rows

logger = logging.getLogger(__name__)


async def read_csv_file(path: Union[str, Path], encoding: str = "utf-8-sig") -> str:
    """Read an uploaded export's full text.

    Resolves once with the whole content; read failures propagate as OSError.
    """
    csv_path = Path(path).expanduser()
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, lambda: csv_path.read_text(encoding=encoding))


class CsvProcessor:
    """Turns raw export text into daily records, campaigns and metrics."""

    def __init__(self, blank_delivery_is_active: bool = True) -> None:
        self.aggregator = MetricAggregator(blank_delivery_is_active=blank_delivery_is_active)

    def process(self, csv_text: str) -> ProcessingResult:
        """Parse, validate, clean and aggregate one export.

        Structural problems (no data rows, missing columns) abort the import
        and are reported in the result together with the stats gathered so
        far. Row-level problems only show up in the stats.
        """
        result = ProcessingResult(stats=ProcessingStats())

        try:
            parsed = parse_csv(csv_text)
            result.stats.total_rows = len(parsed.rows)

            columns = validate_columns(parsed.headers)

            rows = clean_rows(parsed.rows, columns, result.stats, result.warnings)

            result.data = self.aggregator.aggregate(rows)
            result.success = True

        except MissingColumnError as e:
            result.error_message = str(e)
            result.errors.append(str(e))
            result.fix_instructions = e.get_fix_instructions()
            logger.error(f"CSV import failed: {e}")

        except CsvImportError as e:
            result.error_message = str(e)
            result.errors.append(str(e))
            logger.error(f"CSV import failed: {e}")

        return result

    async def process_file(self, path: Union[str, Path]) -> ProcessingResult:
        """Read a CSV file and process its content."""
        text = await read_csv_file(path)
        return self.process(text)
