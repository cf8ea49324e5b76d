"""Exceptions raised while importing Facebook Ads CSV exports."""

from typing import List


class CsvImportError(Exception):
    """Base class for errors that abort a whole CSV import."""

    pass


class MalformedInputError(CsvImportError):
    """Raised when the CSV text has no header row or no data rows."""

    pass


class MissingColumnError(CsvImportError):
    """Raised when required columns cannot be found in the header row.

    All missing columns are reported at once so the export can be fixed
    in a single pass.
    """

    def __init__(self, missing: List[str]):
        self.missing = list(missing)
        super().__init__(f"Missing required columns: {', '.join(self.missing)}")

    def get_fix_instructions(self) -> str:
        """Generate instructions for fixing the Ads Manager export."""
        lines = [
            "",
            "=" * 60,
            "HOW TO FIX YOUR CSV EXPORT",
            "=" * 60,
            "",
            "In Ads Manager, open Reports → Customize columns and add:",
        ]
        for col in self.missing:
            lines.append(f"   • {col}")
        lines.extend([
            "",
            "Use the 'Days' breakdown so every row has a Reporting starts date,",
            "then export the table as CSV.",
            "",
            "=" * 60,
        ])
        return "\n".join(lines)
