"""
Metrics deriver: diagnostics and statistics over a reconciled county table.

- incomplete: counties missing any of Rural_Urban / hpsa_score / hosp_rate
- zero scores: counties whose HPSA score is exactly 0 (absent scores are not zeros)
- correlation: Pearson r between hpsa_score and hosp_rate over pairwise-complete
  counties, zero scores included, with two-sided p-value and Fisher-z interval
- descriptive statistics overall and per RUCC code
"""

import json
import logging
from dataclasses import asdict, dataclass, field

import numpy as np
import pandas as pd
from scipy import stats

logger = logging.getLogger(__name__)

MEASURE_FIELDS = ["Rural_Urban", "hpsa_score", "hosp_rate"]
SUMMARY_FIELDS = ["hpsa_score", "hosp_rate"]


@dataclass(frozen=True)
class CorrelationResult:
    defined: bool
    n: int
    r: float | None = None
    p_value: float | None = None
    ci_low: float | None = None
    ci_high: float | None = None
    confidence: float = 0.95
    reason: str | None = None

    @classmethod
    def undefined(cls, n: int, reason: str, confidence: float = 0.95) -> "CorrelationResult":
        return cls(defined=False, n=n, confidence=confidence, reason=reason)


def find_incomplete(table: pd.DataFrame) -> pd.DataFrame:
    """Rows missing any of classification, score or rate."""
    mask = table[MEASURE_FIELDS].isna().any(axis=1)
    return table[mask]


def find_zero_scores(table: pd.DataFrame) -> pd.DataFrame:
    """Rows whose hpsa_score is present and exactly zero."""
    mask = (table["hpsa_score"] == 0).fillna(False).astype(bool)
    return table[mask]


def correlate(
    table: pd.DataFrame,
    x: str = "hpsa_score",
    y: str = "hosp_rate",
    confidence: float = 0.95,
) -> CorrelationResult:
    """Pearson correlation over rows where both x and y are present.

    Returns an undefined result (never raises, never 0) when fewer than two
    complete pairs exist, either variable is constant across them, or the
    input holds non-finite values. When |r| == 1 the interval collapses to
    [r, r] and reason says so.
    """
    if not 0 < confidence < 1:
        raise ValueError(f"confidence must be in (0, 1), got {confidence}")
    pairs = table[[x, y]].dropna()
    n = len(pairs)
    if n < 2:
        return CorrelationResult.undefined(n, f"fewer than 2 complete pairs (n={n})", confidence)

    xs = pairs[x].to_numpy(dtype=float)
    ys = pairs[y].to_numpy(dtype=float)
    if not (np.isfinite(xs).all() and np.isfinite(ys).all()):
        return CorrelationResult.undefined(n, "non-finite input", confidence)
    if np.ptp(xs) == 0 or np.ptp(ys) == 0:
        return CorrelationResult.undefined(n, "constant input", confidence)

    r, p_value = stats.pearsonr(xs, ys)
    if not np.isfinite(r):
        return CorrelationResult.undefined(n, "non-finite input", confidence)
    r = float(np.clip(r, -1.0, 1.0))

    # Fisher z interval needs n > 3
    ci_low = ci_high = None
    reason = None
    if n > 3:
        if abs(r) == 1.0:
            ci_low = ci_high = r
            reason = "perfect correlation; interval is degenerate"
        else:
            z = np.arctanh(r)
            se = 1.0 / np.sqrt(n - 3)
            z_crit = stats.norm.ppf(0.5 + confidence / 2)
            ci_low = float(np.tanh(z - z_crit * se))
            ci_high = float(np.tanh(z + z_crit * se))

    return CorrelationResult(
        defined=True,
        n=n,
        r=r,
        p_value=float(p_value),
        ci_low=ci_low,
        ci_high=ci_high,
        confidence=confidence,
        reason=reason,
    )


def describe(table: pd.DataFrame) -> pd.DataFrame:
    """count / mean / std / min / quartiles / max of score and rate (absent values skipped)."""
    return table[SUMMARY_FIELDS].astype("float64").describe()


def summarize_by_classification(table: pd.DataFrame) -> pd.DataFrame:
    """Per RUCC code: number of counties, plus count and mean of score and rate."""
    grouped = table.astype({c: "float64" for c in SUMMARY_FIELDS}).groupby("Rural_Urban", dropna=True)
    out = grouped[SUMMARY_FIELDS].agg(["count", "mean"])
    out.columns = [f"{col}_{stat}" for col, stat in out.columns]
    out.insert(0, "counties", grouped.size())
    return out.reset_index()


def annotate(table: pd.DataFrame) -> pd.DataFrame:
    """Add missing_fields (';'-joined names of absent fields) and zero_score flags."""
    out = table.copy()
    flags = table[MEASURE_FIELDS].isna()
    missing = [
        ";".join(col for col, is_missing in zip(MEASURE_FIELDS, row) if is_missing)
        for row in flags.itertuples(index=False)
    ]
    out["missing_fields"] = pd.Series(missing, index=table.index, dtype="string")
    out["zero_score"] = (table["hpsa_score"] == 0).fillna(False).astype(bool)
    return out


def _frame_to_dict(df: pd.DataFrame) -> dict:
    # to_json turns NaN into null and numpy scalars into plain numbers
    return json.loads(df.to_json())


@dataclass
class MetricsReport:
    n_records: int
    incomplete: pd.DataFrame
    zero_scores: pd.DataFrame
    correlation: CorrelationResult
    descriptive: pd.DataFrame
    by_classification: pd.DataFrame = field(default_factory=pd.DataFrame)

    @property
    def incomplete_count(self) -> int:
        return len(self.incomplete)

    @property
    def zero_score_count(self) -> int:
        return len(self.zero_scores)

    def to_dict(self) -> dict:
        """JSON-ready summary."""
        return {
            "n_records": self.n_records,
            "incomplete_count": self.incomplete_count,
            "incomplete_fips": self.incomplete["fips"].tolist(),
            "zero_score_count": self.zero_score_count,
            "zero_score_fips": self.zero_scores["fips"].tolist(),
            "correlation": asdict(self.correlation),
            "descriptive": _frame_to_dict(self.descriptive),
            "by_classification": _frame_to_dict(self.by_classification.set_index("Rural_Urban"))
            if len(self.by_classification) else {},
        }


def derive_metrics(table: pd.DataFrame, confidence: float = 0.95) -> MetricsReport:
    """Compute every diagnostic and statistic for a reconciled table."""
    report = MetricsReport(
        n_records=len(table),
        incomplete=find_incomplete(table),
        zero_scores=find_zero_scores(table),
        correlation=correlate(table, confidence=confidence),
        descriptive=describe(table),
        by_classification=summarize_by_classification(table),
    )
    logger.info(
        f"{report.n_records} counties: {report.incomplete_count} incomplete, "
        f"{report.zero_score_count} with HPSA score 0"
    )
    if report.correlation.defined:
        logger.info(
            f"Pearson r={report.correlation.r:.3f} (p={report.correlation.p_value:.3g}, "
            f"n={report.correlation.n})"
        )
    else:
        logger.info(f"Correlation undefined: {report.correlation.reason}")
    return report
