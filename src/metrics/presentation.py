"""
Dashboard-facing calculations, recomputed on every request and never stored.

adjusted_score = hpsa_score * (1 - r)
adjusted_rate  = hosp_rate  * (1 - r)

r is the user-adjustable reduction in [0, 0.5]. An absent input gives an
absent output, never 0.
"""

import pandas as pd

from src.configs.sources import METRO_CODES, NONMETRO_CODES

MAX_REDUCTION = 0.5

VIEWS = {
    "all": None,
    "metro": METRO_CODES,
    "nonmetro": NONMETRO_CODES,
}


def _check_reduction(r: float) -> float:
    r = float(r)
    if not 0.0 <= r <= MAX_REDUCTION:
        raise ValueError(f"reduction must be in [0, {MAX_REDUCTION}], got {r}")
    return r


def _adjust(value, r: float):
    r = _check_reduction(r)
    if isinstance(value, pd.Series):
        return value.astype("Float64") * (1 - r)
    if value is None or pd.isna(value):
        return None
    return value * (1 - r)


def adjusted_score(score, r: float):
    """hpsa_score scaled by (1 - r). Works on a scalar (None stays None) or a Series."""
    return _adjust(score, r)


def adjusted_rate(rate, r: float):
    """hosp_rate scaled by (1 - r). Works on a scalar (None stays None) or a Series."""
    return _adjust(rate, r)


def filter_by_classification(table: pd.DataFrame, view: str = "all") -> pd.DataFrame:
    """Rows for one dashboard view: all counties, metro (RUCC 1-3) or nonmetro (RUCC 4-9)."""
    if view not in VIEWS:
        raise ValueError(f"Unknown view '{view}'. Available: {list(VIEWS)}")
    codes = VIEWS[view]
    if codes is None:
        return table
    mask = table["Rural_Urban"].isin(codes).fillna(False).astype(bool)
    return table[mask]


def scatter_frame(table: pd.DataFrame) -> pd.DataFrame:
    """Points for the score/rate scatter: both present and score above zero.

    Zero-score counties are still part of the correlation; they are only left
    off the plot.
    """
    both = table["hpsa_score"].notna() & table["hosp_rate"].notna()
    positive = (table["hpsa_score"] > 0).fillna(False)
    return table[(both & positive).astype(bool)]


def presentation_frame(table: pd.DataFrame, r: float = 0.0, view: str = "all") -> pd.DataFrame:
    """Filtered table with adjusted_score / adjusted_rate computed for reduction r."""
    out = filter_by_classification(table, view).copy()
    out["adjusted_score"] = adjusted_score(out["hpsa_score"], r)
    out["adjusted_rate"] = adjusted_rate(out["hosp_rate"], r)
    return out
