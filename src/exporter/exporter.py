"""
Exporter: write the reconciled county table as the dashboard's flat CSV, and read it back.

Column order is fixed (OUTPUT_COLUMNS); annotation columns, when requested,
follow it. Absent numbers are written as empty fields, never as 0, so a
re-load gives back the same table.
"""

import logging
from pathlib import Path

import pandas as pd

from src.configs.sources import OUTPUT_COLUMNS
from src.metrics.deriver import annotate
from src.table_builder.records import coerce_table

logger = logging.getLogger(__name__)

ANNOTATION_COLUMNS = ["missing_fields", "zero_score"]


def export_table(table: pd.DataFrame, path: Path | str, include_annotations: bool = False) -> Path:
    """Write table to path as CSV and return the path."""
    path = Path(path)
    out = coerce_table(table)
    if include_annotations:
        out = annotate(out)
    path.parent.mkdir(parents=True, exist_ok=True)
    out.to_csv(path, index=False, na_rep="")
    logger.info(f"Exported {len(out)} rows, columns: {list(out.columns)}")
    return path


def load_export(path: Path | str) -> pd.DataFrame:
    """Read a file written by export_table back into a reconciled table.

    Only empty fields count as missing, so county names such as "NA" survive.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Data not found: {path}")
    df = pd.read_csv(
        path,
        dtype={"fips": "string", "county": "string", "state": "string"},
        keep_default_na=False,
        na_values=[""],
    )
    missing = [c for c in OUTPUT_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"{path} is missing columns: {missing}")
    out = coerce_table(df)
    if "missing_fields" in df.columns:
        out["missing_fields"] = df["missing_fields"].astype("string").fillna("")
    if "zero_score" in df.columns:
        out["zero_score"] = df["zero_score"].astype(str).str.lower().eq("true")
    return out
