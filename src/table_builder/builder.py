"""
Reconciler: join the county inputs into one table keyed by normalized FIPS.

Pattern:
- Normalize county_fips in every table to a 5-digit string; rows whose key cannot
  be normalized are set aside per table and counted.
- Left-join the classification table (primary) against the HPSA and
  hospitalization tables, so every primary county survives even when a
  secondary table has no row for it.
- Drop excluded states (non-continental) from the result.

Duplicate keys in a secondary table are resolved by the table's on_duplicate
policy and always reported; duplicate keys in the primary table are an error.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path

import numpy as np
import pandas as pd

from src.configs.sources import (
    DEFAULT_EXCLUDED_STATES,
    METRO_CODES,
    NONMETRO_CODES,
    OUTPUT_COLUMNS,
    PRIMARY_TABLE,
    SOURCES,
)
from src.table_builder.fips import normalize_fips_series
from src.table_builder.reader import read_many
from src.table_builder.records import coerce_table

logger = logging.getLogger(__name__)

KEY_COL = "county_fips"
SECONDARY_VALUES = {"hpsa": "hpsa_score", "hosp_rate": "hosp_rate"}
DUPLICATE_POLICIES = ("first", "max", "mean", "error")
RUCC_CODES = METRO_CODES + NONMETRO_CODES


class DuplicateKeyError(ValueError):
    """Raised when a table holds the same normalized county_fips more than once
    and its policy does not allow resolving it."""


@dataclass
class ReconcileResult:
    table: pd.DataFrame
    invalid_keys: dict[str, pd.DataFrame] = field(default_factory=dict)
    excluded_count: int = 0
    duplicates: dict[str, list[str]] = field(default_factory=dict)

    @property
    def invalid_counts(self) -> dict[str, int]:
        return {name: len(df) for name, df in self.invalid_keys.items()}


def _split_keys(df: pd.DataFrame, table_name: str) -> tuple[pd.DataFrame, pd.DataFrame]:
    """Return (rows with a normalized 'fips' column, rows whose key was rejected)."""
    if KEY_COL not in df.columns:
        raise ValueError(f"Table '{table_name}' has no '{KEY_COL}' column")
    normalized, invalid = normalize_fips_series(df[KEY_COL])
    mask = invalid.to_numpy(dtype=bool)
    rejected = df[mask].copy()
    valid = df.assign(fips=normalized)[~mask].drop(columns=KEY_COL)
    if len(rejected):
        logger.warning(
            f"{table_name}: {len(rejected)} rows with malformed {KEY_COL} excluded "
            f"(e.g. {rejected[KEY_COL].head(3).tolist()})"
        )
    return valid, rejected


def _coerce_measure(values: pd.Series, column: str, table_name: str) -> pd.Series:
    """Numeric, non-negative, nullable. Anything else becomes absent, never 0."""
    raw = values
    if raw.dtype == object or isinstance(raw.dtype, pd.StringDtype):
        raw = raw.astype("string").str.strip().replace("", pd.NA)
    numeric = pd.to_numeric(raw.astype(object).where(raw.notna(), np.nan), errors="coerce")
    numeric = numeric.astype("Float64")
    unreadable = int((numeric.isna() & raw.notna()).sum())
    infinite = numeric.abs().eq(np.inf).fillna(False)
    negative = (numeric < 0).fillna(False) & ~infinite
    if unreadable:
        logger.warning(f"{table_name}: {unreadable} non-numeric {column} values treated as absent")
    if negative.any():
        logger.warning(f"{table_name}: {int(negative.sum())} negative {column} values treated as absent")
    if infinite.any():
        logger.warning(f"{table_name}: {int(infinite.sum())} infinite {column} values treated as absent")
    return numeric.mask(negative | infinite)


def _coerce_classification(values: pd.Series, table_name: str) -> pd.Series:
    """RUCC code 1-9 as Int64. Unreadable, non-integral or out-of-range codes become absent."""
    numeric = pd.to_numeric(values.astype(object).where(values.notna(), np.nan), errors="coerce")
    unreadable = int((numeric.isna() & values.notna()).sum())
    out_of_range = numeric.notna() & ~numeric.isin(RUCC_CODES)
    if unreadable:
        logger.warning(f"{table_name}: {unreadable} non-numeric Rural_Urban values treated as absent")
    if out_of_range.any():
        logger.warning(
            f"{table_name}: {int(out_of_range.sum())} Rural_Urban values outside {list(RUCC_CODES)} "
            "treated as absent"
        )
    return numeric.mask(out_of_range).astype("Int64")


def _resolve_duplicates(
    df: pd.DataFrame,
    value_col: str,
    table_name: str,
    policy: str,
) -> tuple[pd.DataFrame, list[str]]:
    if policy not in DUPLICATE_POLICIES:
        raise ValueError(f"Unknown on_duplicate policy '{policy}'. Use one of {DUPLICATE_POLICIES}")
    dup_mask = df["fips"].duplicated(keep=False)
    if not dup_mask.any():
        return df, []
    dup_keys = sorted(df.loc[dup_mask, "fips"].unique().tolist())
    if policy == "error":
        raise DuplicateKeyError(f"{table_name}: duplicate county_fips {dup_keys[:10]}")
    logger.warning(
        f"{table_name}: {len(dup_keys)} county_fips appear more than once; "
        f"resolved with on_duplicate='{policy}'"
    )
    if policy == "first":
        df = df.drop_duplicates(subset=["fips"], keep="first")
    else:
        df = df.groupby("fips", as_index=False, sort=False)[value_col].agg(policy)
        df[value_col] = df[value_col].astype("Float64")
    return df, dup_keys


def _duplicate_policy(table_name: str, on_duplicate: str | dict | None) -> str:
    if isinstance(on_duplicate, str):
        return on_duplicate
    if isinstance(on_duplicate, dict) and table_name in on_duplicate:
        return on_duplicate[table_name]
    return SOURCES.get(table_name, {}).get("on_duplicate", "first")


def reconcile(
    rural_urban: pd.DataFrame,
    hpsa: pd.DataFrame,
    hosp_rate: pd.DataFrame,
    excluded_states: tuple[str, ...] | list[str] = DEFAULT_EXCLUDED_STATES,
    on_duplicate: str | dict | None = None,
) -> ReconcileResult:
    """Left-join the classification table against the HPSA and hospitalization tables.

    Args:
        rural_urban: Primary table (county_fips, county, state, Rural_Urban).
        hpsa: Secondary table (county_fips, hpsa_score).
        hosp_rate: Secondary table (county_fips, hosp_rate).
        excluded_states: State abbreviations dropped from the output.
        on_duplicate: Policy for duplicate secondary keys, either one policy for
            both tables or {table_name: policy}. Default: each table's SOURCES entry.

    Returns:
        ReconcileResult whose table has OUTPUT_COLUMNS, one row per valid,
        non-excluded primary row, in primary order.
    """
    invalid_keys: dict[str, pd.DataFrame] = {}
    duplicates: dict[str, list[str]] = {}

    primary, invalid_keys[PRIMARY_TABLE] = _split_keys(rural_urban, PRIMARY_TABLE)
    primary_dups = primary["fips"][primary["fips"].duplicated()].unique().tolist()
    if primary_dups:
        raise DuplicateKeyError(f"{PRIMARY_TABLE}: duplicate county_fips {sorted(primary_dups)[:10]}")

    excluded = {s.strip().upper() for s in excluded_states}
    states = primary["state"].astype("string").str.strip().str.upper()
    drop = states.isin(sorted(excluded)).fillna(False).to_numpy(dtype=bool)
    excluded_count = int(drop.sum())
    primary = primary[~drop].copy()
    primary["state"] = states[~drop]
    primary["Rural_Urban"] = _coerce_classification(primary["Rural_Urban"], PRIMARY_TABLE)
    logger.info(
        f"{PRIMARY_TABLE}: {len(primary)} counties kept, {excluded_count} excluded "
        f"({sorted(excluded)})"
    )

    out = primary
    for table_name, df in (("hpsa", hpsa), ("hosp_rate", hosp_rate)):
        value_col = SECONDARY_VALUES[table_name]
        valid, invalid_keys[table_name] = _split_keys(df, table_name)
        valid = valid[["fips", value_col]].copy()
        valid[value_col] = _coerce_measure(valid[value_col], value_col, table_name)
        valid, dup_keys = _resolve_duplicates(
            valid, value_col, table_name, _duplicate_policy(table_name, on_duplicate)
        )
        if dup_keys:
            duplicates[table_name] = dup_keys
        out = out.merge(valid, on="fips", how="left")
        unmatched = int(out[value_col].isna().sum())
        logger.info(f"After joining '{table_name}': {len(out)} rows, {unmatched} without {value_col}")

    table = coerce_table(out[OUTPUT_COLUMNS]).reset_index(drop=True)
    return ReconcileResult(
        table=table,
        invalid_keys=invalid_keys,
        excluded_count=excluded_count,
        duplicates=duplicates,
    )


def build_county_table(
    base_path: Path | None = None,
    sources: dict | None = None,
    excluded_states: tuple[str, ...] | list[str] = DEFAULT_EXCLUDED_STATES,
    on_duplicate: str | dict | None = None,
) -> ReconcileResult:
    """Load the three configured tables and reconcile them.

    Args:
        base_path: Project root for resolving data paths.
        sources: Alternative source config (defaults to SOURCES).
        excluded_states: State abbreviations dropped from the output.
        on_duplicate: Override for the per-table duplicate policies.

    Returns:
        ReconcileResult (see reconcile).
    """
    sources = SOURCES if sources is None else sources
    if on_duplicate is None:
        on_duplicate = {
            name: sources[name].get("on_duplicate", "first")
            for name in SECONDARY_VALUES
            if name in sources
        }
    tables = read_many([PRIMARY_TABLE, *SECONDARY_VALUES], base_path, sources)
    for name, df in tables.items():
        logger.info(f"{name}: {len(df)} rows read")
    return reconcile(
        tables[PRIMARY_TABLE],
        tables["hpsa"],
        tables["hosp_rate"],
        excluded_states=excluded_states,
        on_duplicate=on_duplicate,
    )
