"""
CountyRecord: one reconciled county row with explicit optional fields.

Tables carry absence as <NA> in nullable dtypes; records carry it as None.
Neither form ever stands in a number for a missing value.
"""

from dataclasses import astuple, dataclass, fields

import pandas as pd

from src.configs.sources import OUTPUT_COLUMNS

# Nullable dtypes so that "absent" and 0 stay distinct through every step
TABLE_DTYPES = {
    "fips": "string",
    "county": "string",
    "state": "string",
    "Rural_Urban": "Int64",
    "hpsa_score": "Float64",
    "hosp_rate": "Float64",
}


@dataclass(frozen=True)
class CountyRecord:
    fips: str
    county: str | None
    state: str | None
    Rural_Urban: int | None = None
    hpsa_score: float | None = None
    hosp_rate: float | None = None

    @property
    def missing_fields(self) -> list[str]:
        return [
            name for name in ("Rural_Urban", "hpsa_score", "hosp_rate")
            if getattr(self, name) is None
        ]

    @property
    def is_complete(self) -> bool:
        return not self.missing_fields


def _none_if_na(value):
    return None if pd.isna(value) else value


def coerce_table(df: pd.DataFrame) -> pd.DataFrame:
    """Select OUTPUT_COLUMNS in order and cast them to TABLE_DTYPES."""
    return df[OUTPUT_COLUMNS].astype(TABLE_DTYPES)


def to_records(df: pd.DataFrame) -> list[CountyRecord]:
    """Convert a reconciled table into CountyRecord objects (absent -> None)."""
    out = []
    for row in coerce_table(df).itertuples(index=False):
        values = [_none_if_na(v) for v in row]
        fips, county, state, rucc, score, rate = values
        out.append(CountyRecord(
            fips=fips,
            county=county,
            state=state,
            Rural_Urban=None if rucc is None else int(rucc),
            hpsa_score=None if score is None else float(score),
            hosp_rate=None if rate is None else float(rate),
        ))
    return out


def from_records(records: list[CountyRecord]) -> pd.DataFrame:
    """Build a reconciled table from CountyRecord objects (None -> <NA>)."""
    columns = [f.name for f in fields(CountyRecord)]
    df = pd.DataFrame([astuple(r) for r in records], columns=columns)
    return coerce_table(df)
