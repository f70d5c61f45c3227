"""
Pipeline: Build the county analysis table from the three configured sources.

Inputs (paths in src/configs/sources.py, relative to --base-path):
- rural_urban: USDA Rural-Urban Continuum Codes (primary table)
- hpsa: HRSA primary care HPSA designations
- hosp_rate: County Health Rankings preventable hospital stays

- Common key: county_fips, normalized to a 5-digit string.
- Merge method: left join from rural_urban; excluded states dropped.
- Rows with malformed keys are counted per table and left out.

Output: data_revealed/county_access_table.csv
  (fips, county, state, Rural_Urban, hpsa_score, hosp_rate)
Optional: metrics summary as JSON (--metrics-output).
"""

import argparse
import json
import logging
import sys
from pathlib import Path

project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

from src.configs import settings
from src.exporter.exporter import export_table
from src.metrics.deriver import derive_metrics
from src.table_builder.builder import DUPLICATE_POLICIES, build_county_table

logging.basicConfig(level=settings.LOG_LEVEL, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)

DEFAULT_OUTPUT = "data_revealed/county_access_table.csv"


def main():
    parser = argparse.ArgumentParser(
        description="Join rural-urban codes, HPSA scores and hospitalization rates on county_fips (left join)."
    )
    parser.add_argument(
        "--output",
        type=str,
        default=DEFAULT_OUTPUT,
        help=f"Output CSV (default: {DEFAULT_OUTPUT})",
    )
    parser.add_argument(
        "--base-path",
        type=str,
        default=settings.BASE_PATH,
        help="Project root for data paths (default: COUNTY_DATA_BASE_PATH or script parent)",
    )
    parser.add_argument(
        "--exclude-states",
        type=str,
        default=",".join(settings.EXCLUDED_STATES),
        help="Comma-separated state abbreviations to drop (default: %(default)s)",
    )
    parser.add_argument(
        "--on-duplicate",
        choices=DUPLICATE_POLICIES,
        default=None,
        help="Override the per-table policy for duplicate county_fips in secondary tables",
    )
    parser.add_argument(
        "--with-annotations",
        action="store_true",
        help="Append missing_fields and zero_score columns",
    )
    parser.add_argument(
        "--metrics-output",
        type=str,
        default=None,
        help="Write the metrics summary to this JSON file",
    )
    args = parser.parse_args()

    base = Path(args.base_path) if args.base_path else project_root
    output_path = base / args.output
    excluded = [s.strip().upper() for s in args.exclude_states.split(",") if s.strip()]

    try:
        result = build_county_table(
            base_path=base,
            excluded_states=excluded,
            on_duplicate=args.on_duplicate,
        )
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    for name, count in result.invalid_counts.items():
        if count:
            logger.warning(f"{name}: {count} rows dropped for malformed county_fips")
    for name, keys in result.duplicates.items():
        logger.warning(f"{name}: duplicate county_fips resolved for {len(keys)} counties")
    logger.info(f"Excluded {result.excluded_count} rows in states {excluded}")

    export_table(result.table, output_path, include_annotations=args.with_annotations)
    print(f"Saved {len(result.table)} rows to {output_path}")

    if args.metrics_output:
        report = derive_metrics(result.table, confidence=settings.CORRELATION_CONFIDENCE)
        summary = report.to_dict()
        summary["invalid_key_counts"] = result.invalid_counts
        summary["excluded_count"] = result.excluded_count
        summary["duplicate_keys"] = result.duplicates
        metrics_path = base / args.metrics_output
        metrics_path.parent.mkdir(parents=True, exist_ok=True)
        with open(metrics_path, "w", encoding="utf-8") as f:
            json.dump(summary, f, indent=2)
        print(f"Saved metrics to {metrics_path}")


if __name__ == "__main__":
    main()
    sys.exit(0)
