"""
Generic reader: load any table from SOURCES config into a DataFrame.

Single entry point for the three county inputs. Handles format (csv/xlsx),
read-time dtypes, filters, post_filters and renaming to canonical columns.
Key normalization and joins are left to the reconciler.
"""

from pathlib import Path

import pandas as pd

from src.configs.sources import SOURCES


def _resolve_path(path_str: str, base_path: Path | None) -> Path:
    p = Path(path_str)
    if not p.is_absolute() and base_path is not None:
        return base_path / p
    return p


def _read_file(path: Path, spec: dict) -> pd.DataFrame:
    fmt = spec.get("format", "csv").lower()
    read_kw: dict = {}
    if "read_dtypes" in spec:
        read_kw["dtype"] = spec["read_dtypes"]
    if "skiprows" in spec:
        read_kw["skiprows"] = spec["skiprows"]
    if fmt == "xlsx":
        read_kw["engine"] = "openpyxl"
        if "sheet" in spec:
            read_kw["sheet_name"] = spec["sheet"]
        return pd.read_excel(path, **read_kw)
    if fmt == "csv":
        return pd.read_csv(path, low_memory=False, **read_kw)
    raise ValueError(f"Unsupported format: {fmt}")


def _apply_filters(df: pd.DataFrame, filters: dict) -> pd.DataFrame:
    for col, val in filters.items():
        if col not in df.columns:
            continue
        if isinstance(val, list):
            df = df[df[col].isin(val)]
        else:
            df = df[df[col] == val]
    return df


def _apply_post_filters(df: pd.DataFrame, post_filters: dict) -> pd.DataFrame:
    for key, value in post_filters.items():
        if key.endswith("_not_ending_with"):
            col = key.replace("_not_ending_with", "")
            # Missing keys are kept so the reconciler can count them as invalid
            keep = ~df[col].astype("string").str.strip().str.endswith(str(value)).fillna(False)
            df = df[keep]
        else:
            raise ValueError(f"Unknown post_filter: {key}")
    return df


def _rename_and_select(df: pd.DataFrame, keys: dict, value_columns: dict) -> pd.DataFrame:
    rename = {}
    if keys:
        rename.update({v: k for k, v in keys.items()})
    if value_columns:
        rename.update({v: k for k, v in value_columns.items()})
    df = df.rename(columns=rename)
    keep = list((keys or {}).keys()) + list((value_columns or {}).keys())
    missing = [c for c in keep if c not in df.columns]
    if missing:
        raise ValueError(f"Columns not found after rename: {missing}")
    return df[keep].copy()


def read(
    table_name: str,
    base_path: Path | None = None,
    sources: dict | None = None,
) -> pd.DataFrame:
    """Load a single table from SOURCES into a DataFrame.

    Args:
        table_name: Key in SOURCES (e.g. 'rural_urban', 'hpsa', 'hosp_rate').
        base_path: Project root for resolving relative paths.
        sources: Alternative source config (defaults to SOURCES).

    Returns:
        DataFrame with canonical column names, in source row order.
    """
    sources = SOURCES if sources is None else sources
    if table_name not in sources:
        raise KeyError(f"Unknown table '{table_name}'. Available: {list(sources)}")
    spec = sources[table_name]

    path = _resolve_path(spec["path"], base_path)
    if not path.exists():
        raise FileNotFoundError(f"Data not found: {path}")
    df = _read_file(path, spec)

    keys = spec.get("keys", {})
    value_columns = spec.get("value_columns", {})

    # Filters (before rename, on raw column names)
    if "filters" in spec:
        df = _apply_filters(df, spec["filters"])

    df = _rename_and_select(df, keys, value_columns)

    # Post-filters (after rename)
    if "post_filters" in spec:
        df = _apply_post_filters(df, spec["post_filters"])

    return df.reset_index(drop=True)


def read_many(
    table_names: list[str],
    base_path: Path | None = None,
    sources: dict | None = None,
) -> dict[str, pd.DataFrame]:
    """Load multiple tables. Returns dict mapping table name to DataFrame."""
    return {name: read(name, base_path, sources) for name in table_names}


def list_tables(sources: dict | None = None) -> list[str]:
    """Return all available table names from SOURCES."""
    return list(SOURCES if sources is None else sources)
