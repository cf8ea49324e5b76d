"""Tests for row classification and cleaning.

Run with: pytest tests/test_row_filter.py -v
"""

import pytest

from ingest.columns import validate_columns
from ingest.csv_parser import parse_csv
from ingest.models import DropReason, ProcessingStats
from ingest.row_filter import classify, clean_rows, parse_int, parse_spend

HEADERS = [
    "Reporting starts", "Campaign name", "Campaign Delivery",
    "Attribution setting", "Amount spent (USD)", "Results", "Result indicator",
]


@pytest.fixture
def columns():
    return validate_columns(HEADERS)


def make_row(**overrides):
    row = {
        "Reporting starts": "2025-06-20",
        "Campaign name": "Test",
        "Campaign Delivery": "active",
        "Attribution setting": "7-day click",
        "Amount spent (USD)": "10.00",
        "Results": "2",
        "Result indicator": "actions:onsite_conversion.messaging_conversation_started_7d",
    }
    row.update(overrides)
    return row


class TestParseHelpers:
    """Tests for numeric parsing helpers."""

    def test_parse_int(self):
        """Test counts parse with thousands separators and fall back to 0."""
        assert parse_int("1,234") == 1234
        assert parse_int("12.0") == 12
        assert parse_int("") == 0
        assert parse_int("n/a") == 0
        assert parse_int("1e400") == 0
        assert parse_int("-inf") == 0

    def test_parse_spend_valid(self):
        """Test spend parses currency-formatted values."""
        assert parse_spend("100.50") == 100.5
        assert parse_spend("$1,000") == 1000.0
        assert parse_spend("0") == 0.0

    def test_parse_spend_invalid(self):
        """Test empty, non-numeric, non-finite and negative spend are unparsable."""
        assert parse_spend("") is None
        assert parse_spend("abc") is None
        assert parse_spend("nan") is None
        assert parse_spend("-5") is None
        assert parse_spend("inf") is None
        assert parse_spend("1e400") is None


class TestClassify:
    """Tests for deciding which rows are real delivery records."""

    def test_regular_row_kept(self, columns):
        """Test a dated campaign row is kept."""
        assert classify(make_row(), columns).keep is True

    def test_blank_campaign_name_is_summary(self, columns):
        """Test report total rows without a campaign name are dropped."""
        decision = classify(make_row(**{"Campaign name": "  "}), columns)
        assert decision.keep is False
        assert decision.reason == DropReason.SUMMARY

    def test_zero_delivery_is_summary(self, columns):
        """Test rows whose delivery is '0' are treated as totals."""
        decision = classify(make_row(**{"Campaign Delivery": "0"}), columns)
        assert decision.reason == DropReason.SUMMARY

    def test_multiple_attribution_is_summary(self, columns):
        """Test rows with mixed attribution settings are treated as totals."""
        decision = classify(
            make_row(**{"Attribution setting": "Multiple attribution settings"}),
            columns,
        )
        assert decision.reason == DropReason.SUMMARY

    def test_boosted_post(self, columns):
        """Test boosted Instagram posts are excluded."""
        decision = classify(make_row(**{"Campaign name": "Instagram post: New drop"}), columns)
        assert decision.reason == DropReason.BOOSTED_POST

    def test_invalid_date(self, columns):
        """Test rows without a YYYY-MM-DD date are excluded."""
        for value in ("", "06/20/2025", "2025-6-20", "Total"):
            decision = classify(make_row(**{"Reporting starts": value}), columns)
            assert decision.reason == DropReason.INVALID_DATE

    def test_invalid_date_checked_first(self, columns):
        """Test a row failing several checks counts under invalid date only."""
        row = make_row(**{"Reporting starts": "", "Campaign name": ""})
        assert classify(row, columns).reason == DropReason.INVALID_DATE

    def test_summary_checked_before_boosted(self, columns):
        """Test a boosted post row with delivery '0' counts as summary."""
        row = make_row(**{"Campaign name": "Instagram post: x", "Campaign Delivery": "0"})
        assert classify(row, columns).reason == DropReason.SUMMARY


class TestCleanRows:
    """Tests for turning raw rows into typed AdRows."""

    def test_sample_export_stats(self, sample_csv):
        """Test drop counters for the sample export."""
        parsed = parse_csv(sample_csv)
        columns = validate_columns(parsed.headers)
        stats = ProcessingStats(total_rows=len(parsed.rows))
        warnings = []

        rows = clean_rows(parsed.rows, columns, stats, warnings)

        assert len(rows) == 4
        assert stats.valid_rows == 4
        assert stats.summary_rows_removed == 2
        assert stats.boosted_posts_removed == 1
        assert stats.invalid_rows_removed == 1
        assert stats.spend_coerced == 1

    def test_overflowing_numbers_kept(self, columns):
        """Test a row with overflowing counts and spend is kept with zeros."""
        stats = ProcessingStats()
        row = make_row(**{"Amount spent (USD)": "1e400", "Results": "1e400"})

        rows = clean_rows([row], columns, stats)

        assert len(rows) == 1
        assert rows[0].spend == 0.0
        assert rows[0].results == 0
        assert stats.spend_coerced == 1
        assert (
            stats.valid_rows
            + stats.summary_rows_removed
            + stats.boosted_posts_removed
            + stats.invalid_rows_removed
        ) == stats.total_rows
        assert len(warnings) == 1

    def test_unparsable_spend_coerced_to_zero(self, columns):
        """Test a row with bad spend is kept with spend 0."""
        stats = ProcessingStats()
        rows = clean_rows([make_row(**{"Amount spent (USD)": "n/a"})], columns, stats)

        assert len(rows) == 1
        assert rows[0].spend == 0.0
        assert stats.spend_coerced == 1

    def test_typed_values(self, columns):
        """Test kept rows carry parsed numbers and missing optionals as 0."""
        rows = clean_rows([make_row()], columns, ProcessingStats())

        row = rows[0]
        assert row.date == "2025-06-20"
        assert row.spend == 10.0
        assert row.results == 2
        assert row.impressions == 0
        assert row.reach == 0
