"""
Pipeline: Report metrics for an exported county table.

Input: the CSV written by pipeline_build_county_table.py.

Prints incomplete / zero-score counts, descriptive statistics, the per-RUCC
summary and the score/rate correlation. With --presentation-output, also
writes the dashboard view (metro / nonmetro / all) with adjusted_score and
adjusted_rate computed for reduction --reduction.
"""

import argparse
import logging
import sys
from pathlib import Path

project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

from src.configs import settings
from src.exporter.exporter import load_export
from src.metrics.deriver import derive_metrics
from src.metrics.presentation import VIEWS, presentation_frame

logging.basicConfig(level=settings.LOG_LEVEL, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)

DEFAULT_INPUT = "data_revealed/county_access_table.csv"


def main():
    parser = argparse.ArgumentParser(description="Print metrics for an exported county table.")
    parser.add_argument(
        "--input",
        type=str,
        default=DEFAULT_INPUT,
        help=f"Exported county table (default: {DEFAULT_INPUT})",
    )
    parser.add_argument(
        "--base-path",
        type=str,
        default=settings.BASE_PATH,
        help="Project root (default: COUNTY_DATA_BASE_PATH or script parent)",
    )
    parser.add_argument(
        "--confidence",
        type=float,
        default=settings.CORRELATION_CONFIDENCE,
        help="Confidence level for the correlation interval (default: %(default)s)",
    )
    parser.add_argument("--reduction", type=float, default=0.0, help="r in [0, 0.5] for adjusted values")
    parser.add_argument("--view", choices=list(VIEWS), default="all", help="Classification view")
    parser.add_argument(
        "--presentation-output",
        type=str,
        default=None,
        help="Write the filtered table with adjusted values to this CSV",
    )
    args = parser.parse_args()

    base = Path(args.base_path) if args.base_path else project_root
    input_path = base / args.input
    if not input_path.exists():
        print(f"Error: not found {input_path}", file=sys.stderr)
        sys.exit(1)

    table = load_export(input_path)
    logger.info(f"Loaded {len(table)} rows from {input_path}")
    report = derive_metrics(table, confidence=args.confidence)

    print(f"Counties: {report.n_records}")
    print(f"Incomplete: {report.incomplete_count}")
    print(f"HPSA score = 0: {report.zero_score_count}")
    print("\nDescriptive statistics:")
    print(report.descriptive.to_string())
    print("\nBy Rural_Urban code:")
    print(report.by_classification.to_string(index=False))

    corr = report.correlation
    print("\nCorrelation (hpsa_score vs hosp_rate):")
    if corr.defined:
        print(f"  r = {corr.r:.4f}, p = {corr.p_value:.4g}, n = {corr.n}")
        if corr.ci_low is not None:
            print(f"  {corr.confidence:.0%} CI: [{corr.ci_low:.4f}, {corr.ci_high:.4f}]")
    else:
        print(f"  undefined: {corr.reason}")

    if args.presentation_output:
        try:
            view = presentation_frame(table, r=args.reduction, view=args.view)
        except ValueError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
        out_path = base / args.presentation_output
        out_path.parent.mkdir(parents=True, exist_ok=True)
        view.to_csv(out_path, index=False, na_rep="")
        print(f"Saved {len(view)} rows to {out_path}")


if __name__ == "__main__":
    main()
    sys.exit(0)
