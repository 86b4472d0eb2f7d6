"""
Command-line interface for extracting a sportsbook bet-history export.

Usage:
    python -m betsheet.cli exports/bets.xlsx --user-id u_123
    python -m betsheet.cli exports/bets.xlsx --user-id u_123 --output-dir data/clean/bets
    python -m betsheet.cli exports/bets.xml --user-id u_123 --validate --config extract.yaml

Options:
    --user-id: Owner id stamped on every record (required)
    --output-dir: Write one CSV per output table here (optional)
    --config: JSON/YAML ExtractionConfig file (optional; BETSHEET_* env vars also apply)
    --validate: Print the batch validation report; exit 1 if any check fails
    --verbose: Log extraction diagnostics
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from betsheet.config import ExtractionConfig, load_extraction_config
from betsheet.errors import BetsheetError
from betsheet.export import write_batch_csv
from betsheet.pipeline import extract_betting_data
from betsheet.validate import validate_batch


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Extract bets, parlays and aggregate stats from a sportsbook export."
    )
    parser.add_argument("file", type=Path, help="Exported .xlsx/.xls/.xml/.csv file")
    parser.add_argument("--user-id", type=str, required=True, help="Owner id for every record")
    parser.add_argument("--output-dir", type=Path, default=None, help="Directory for CSV output")
    parser.add_argument("--config", type=Path, default=None, help="JSON or YAML extraction config")
    parser.add_argument("--validate", action="store_true", help="Run batch validation checks")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.file.exists():
        print(f"Error: file not found: {args.file}")
        return 1

    try:
        base = load_extraction_config(args.config) if args.config else ExtractionConfig()
        config = ExtractionConfig.from_env(base)
    except (ValueError, FileNotFoundError) as e:
        print(f"  ✗ FAILED - bad extraction config: {e}")
        return 1

    print(f"Extracting {args.file.name}")
    print("=" * 50)

    try:
        batch, sheet = extract_betting_data(args.file.read_bytes(), args.user_id, config=config)
    except BetsheetError as e:
        print(f"  ✗ FAILED - {e}")
        return 1

    print(f"Source: {sheet.file_type} (strategy: {sheet.strategy})")
    print(f"  Single bets:   {len(batch.single_bets)}")
    print(f"  Parlays:       {len(batch.parlay_headers)}")
    print(f"  Parlay legs:   {len(batch.parlay_legs)}")
    print(f"  Team stats:    {len(batch.team_stats)}")
    print(f"  Player stats:  {len(batch.player_stats)}")
    print(f"  Prop stats:    {len(batch.prop_stats)}")
    print(f"  Rows skipped:  {batch.stats.rows_skipped} (unclassified: {batch.stats.rows_unclassified})")

    if args.output_dir is not None:
        print()
        for name, path in write_batch_csv(batch, args.output_dir).items():
            print(f"  ✓ {name}: {path}")

    if args.validate:
        print()
        report = validate_batch(batch, source=args.file.name)
        print(report.summary())
        if not report.all_passed:
            return 1

    print()
    print("Extraction complete!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
