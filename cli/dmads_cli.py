#!/usr/bin/env python3
"""DM Ads Dashboard CLI

Command-line tool for the Instagram DM ads dashboard:
- Validate and import Facebook Ads Manager CSV exports
- Record manual funnel data (meetings, closes, revenue)
- Show KPI summaries for a date range
- Export and restore JSON backups

Usage:
    python cli/dmads_cli.py validate <csv_file>
    python cli/dmads_cli.py import <csv_file> [--user ID]
    python cli/dmads_cli.py manual <date> [--meetings N] [--closes N] ...
    python cli/dmads_cli.py delete <date>
    python cli/dmads_cli.py summary [--preset last30days] [--scope all]
    python cli/dmads_cli.py export <json_file>
    python cli/dmads_cli.py restore <json_file>

Examples:
    python cli/dmads_cli.py import ~/Downloads/ads-export.csv --user alice
    python cli/dmads_cli.py manual 2025-06-20 --meetings 3 --closes 1 --revenue 2000
    python cli/dmads_cli.py summary --preset last7days
"""

import argparse
import asyncio
import logging
import sys
from datetime import date
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from config import ConfigError, ConfigManager
from ingest import (
    CsvImportError,
    CsvProcessor,
    MetricScope,
    metrics_for_range,
    parse_csv,
    read_csv_file,
    resolve_preset,
    validate_columns,
)
from ingest.exceptions import MissingColumnError
from storage import (
    BackupFormatError,
    EntryStore,
    SQLiteKeyValueStore,
    StaticIdentity,
    ValidationError,
    write_export,
)


def _load_config():
    try:
        return ConfigManager().get_config()
    except ConfigError as e:
        print(f"❌ {e}")
        sys.exit(1)


def _build_store(args, config) -> EntryStore:
    return EntryStore(
        SQLiteKeyValueStore(config.storage.path),
        identity=StaticIdentity(args.user),
        namespace_strategy=config.storage.namespace_strategy,
        key_prefix=config.storage.key_prefix,
        backup_retention_days=config.backup.retention_days,
        backup_version=config.backup.version,
        auto_backup=config.backup.auto_backup,
    )


def _read_csv(path: str) -> str:
    try:
        return asyncio.run(read_csv_file(path))
    except (OSError, UnicodeDecodeError) as e:
        print(f"❌ Failed to read {path}: {e}")
        sys.exit(1)


def cmd_validate(args, config=None):
    """Check an export's columns without importing."""
    text = _read_csv(args.file)
    try:
        parsed = parse_csv(text)
        columns = validate_columns(parsed.headers)
    except MissingColumnError as e:
        print(f"\n❌ VALIDATION FAILED")
        print(f"\nError: {e}")
        print(e.get_fix_instructions())
        sys.exit(1)
    except CsvImportError as e:
        print(f"\n❌ VALIDATION FAILED\n\nError: {e}")
        sys.exit(1)

    print(f"✓ Validation passed ({len(parsed.rows)} data rows)")
    for logical, header in columns.mapped.items():
        print(f"  {logical:<18} → {header}")


def cmd_import(args, config=None):
    """Import a CSV export and merge it into stored data."""
    config = config or _load_config()
    text = _read_csv(args.file)

    processor = CsvProcessor(blank_delivery_is_active=config.imports.blank_delivery_is_active)
    result = processor.process(text)
    stats = result.stats

    if not result.success:
        print(f"\n❌ IMPORT FAILED\n\nError: {result.error_message}")
        if result.fix_instructions:
            print(result.fix_instructions)
        sys.exit(1)

    store = _build_store(args, config)
    store.bulk_import(result.data.daily_records, preserve_manual=config.imports.preserve_manual)

    summary = result.data.summary
    print("=" * 60)
    print("IMPORT COMPLETE")
    print("=" * 60)
    print()
    print(f"  Rows read:            {stats.total_rows:,}")
    print(f"  Valid rows:           {stats.valid_rows:,}")
    print(f"  Summary rows removed: {stats.summary_rows_removed:,}")
    print(f"  Boosted posts removed:{stats.boosted_posts_removed:>6,}")
    print(f"  Invalid rows removed: {stats.invalid_rows_removed:,}")
    print()
    print(f"  Date range:           {summary.date_range_start} to {summary.date_range_end}")
    print(f"  Spend (active / all): ${summary.total_spend_active:,.2f} / ${summary.total_spend_all:,.2f}")
    print(f"  DMs (active / all):   {summary.total_dms_active:,} / {summary.total_dms_all:,}")
    print(f"  Campaigns:            {len(result.data.all_campaigns)} ({len(result.data.active_campaigns)} active)")
    print()


def cmd_manual(args, config=None):
    """Set manual funnel fields for a date."""
    config = config or _load_config()
    fields = {
        key: value
        for key, value in {
            "meetings": args.meetings,
            "shows": args.shows,
            "offersMade": args.offers_made,
            "closes": args.closes,
            "newCloses": args.new_closes,
            "recurringCloses": args.recurring_closes,
            "cashCollected": args.cash_collected,
            "revenue": args.revenue,
        }.items()
        if value is not None
    }
    if not fields:
        print("❌ Please fill in at least one field")
        sys.exit(1)

    store = _build_store(args, config)
    try:
        store.upsert_manual(args.date, fields)
    except ValidationError as e:
        print(f"❌ {e}")
        sys.exit(1)
    print(f"✓ Saved manual entry for {args.date}")


def cmd_delete(args, config=None):
    """Zero the manual fields for a date."""
    config = config or _load_config()
    try:
        _build_store(args, config).delete(args.date)
    except ValidationError as e:
        print(f"❌ {e}")
        sys.exit(1)
    print(f"✓ Cleared manual entry for {args.date}")


def cmd_summary(args, config=None):
    """Show KPIs for a date range."""
    config = config or _load_config()
    store = _build_store(args, config)
    start, end = resolve_preset(args.preset, date.today())
    metrics = metrics_for_range(store.get_daily_data(), start, end, MetricScope(args.scope))
    stats = store.get_stats()

    print("=" * 60)
    print(f"DM ADS SUMMARY ({start} to {end}, {args.scope} campaigns)")
    print("=" * 60)
    print()
    print(f"  Total spend:          ${metrics.total_spend:,.2f}")
    print(f"  Inbound DMs:          {metrics.inbound_dms:,}")
    print(f"  Meetings:             {metrics.meetings:,}")
    print(f"  Closes:               {metrics.closes:,}")
    print(f"  Revenue:              ${metrics.revenue:,.2f}")
    print(f"  Cash collected:       ${metrics.cash_collected:,.2f}")
    print()
    print(f"  Cost per DM:          ${metrics.cost_per_dm:,.2f}")
    print(f"  Cost per meeting:     ${metrics.cost_per_meeting:,.2f}")
    print(f"  Cost per acquisition: ${metrics.cost_per_acquisition:,.2f}")
    print(f"  CTR:                  {metrics.ctr:.2f}%")
    print(f"  DM → meeting:         {metrics.dm_to_meeting_rate:.2f}%")
    print(f"  Meeting → close:      {metrics.meeting_to_close_rate:.2f}%")
    print(f"  ROAS:                 {metrics.roas:.1f}x")
    print()

    if stats["totalDays"] == 0:
        print("  WARNING: No data imported yet!")
        print("  Use: python cli/dmads_cli.py import <csv_file>")
        print()


def cmd_export(args, config=None):
    """Write a JSON backup of all stored data."""
    config = config or _load_config()
    store = _build_store(args, config)
    path = write_export(args.file, store.backups.export_document())
    print(f"✓ Exported backup to {path}")


def cmd_restore(args, config=None):
    """Replace stored data with a JSON backup."""
    config = config or _load_config()
    store = _build_store(args, config)
    try:
        text = Path(args.file).expanduser().read_text(encoding="utf-8")
        records = store.backups.import_json(text)
    except (OSError, BackupFormatError) as e:
        print(f"❌ Restore failed: {e}")
        sys.exit(1)
    print(f"✓ Restored {len(records)} days from {args.file}")


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="DM Ads Dashboard",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s validate ~/Downloads/ads.csv          Validate CSV before import
  %(prog)s import ~/Downloads/ads.csv            Import CSV data
  %(prog)s manual 2025-06-20 --meetings 3        Record manual funnel data
  %(prog)s summary --preset last7days            Show KPI summary
  %(prog)s export backup.json                    Export JSON backup
        """
    )
    parser.add_argument("--user", default=None, help="User id for data namespacing")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    validate_parser = subparsers.add_parser("validate", help="Validate CSV without importing")
    validate_parser.add_argument("file", help="Path to CSV file")
    validate_parser.set_defaults(func=cmd_validate)

    import_parser = subparsers.add_parser("import", help="Import Facebook Ads CSV file")
    import_parser.add_argument("file", help="Path to CSV file")
    import_parser.set_defaults(func=cmd_import)

    manual_parser = subparsers.add_parser("manual", help="Set manual funnel data for a date")
    manual_parser.add_argument("date", help="Date (YYYY-MM-DD)")
    manual_parser.add_argument("--meetings", type=int)
    manual_parser.add_argument("--shows", type=int)
    manual_parser.add_argument("--offers-made", type=int)
    manual_parser.add_argument("--closes", type=int)
    manual_parser.add_argument("--new-closes", type=int)
    manual_parser.add_argument("--recurring-closes", type=int)
    manual_parser.add_argument("--cash-collected", type=float)
    manual_parser.add_argument("--revenue", type=float)
    manual_parser.set_defaults(func=cmd_manual)

    delete_parser = subparsers.add_parser("delete", help="Clear manual data for a date")
    delete_parser.add_argument("date", help="Date (YYYY-MM-DD)")
    delete_parser.set_defaults(func=cmd_delete)

    summary_parser = subparsers.add_parser("summary", help="Show KPI summary")
    summary_parser.add_argument("--preset", default="last30days", help="Date range preset (default: last30days)")
    summary_parser.add_argument("--scope", choices=["active", "all"], default="active")
    summary_parser.set_defaults(func=cmd_summary)

    export_parser = subparsers.add_parser("export", help="Export JSON backup")
    export_parser.add_argument("file", help="Output JSON path")
    export_parser.set_defaults(func=cmd_export)

    restore_parser = subparsers.add_parser("restore", help="Restore from JSON backup")
    restore_parser.add_argument("file", help="Backup JSON path")
    restore_parser.set_defaults(func=cmd_restore)

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(0)

    config = _load_config()
    level = "DEBUG" if args.verbose else config.log_level.upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(levelname)s %(name)s: %(message)s",
    )

    args.func(args, config)


if __name__ == "__main__":
    main()
