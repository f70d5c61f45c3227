"""County FIPS normalization: any raw identifier -> 5-digit zero-padded string."""

import re

import numpy as np
import pandas as pd

FIPS_WIDTH = 5

_DIGITS = re.compile(r"^\d+$")
_INTEGRAL_FLOAT = re.compile(r"^(\d+)\.0*$")


class InvalidFipsError(ValueError):
    """Raised when a raw county identifier cannot be read as a non-negative integer code."""


def normalize_fips(value) -> str:
    """Normalize a raw county identifier to a 5-character zero-padded string.

    Accepts ints, integral floats (1001.0, as produced by spreadsheet reads)
    and digit strings of any padding ("1001", "01001", " 1001 ", "1001.0").
    Normalizing an already-normalized code returns it unchanged.
    """
    if value is None or value is pd.NA:
        raise InvalidFipsError("missing county identifier")
    if isinstance(value, (bool, np.bool_)):
        raise InvalidFipsError(f"not a county identifier: {value!r}")
    if isinstance(value, (int, np.integer)):
        code = int(value)
    elif isinstance(value, (float, np.floating)):
        if np.isnan(value) or not float(value).is_integer():
            raise InvalidFipsError(f"not an integral county identifier: {value!r}")
        code = int(value)
    elif isinstance(value, str):
        s = value.strip()
        m = _INTEGRAL_FLOAT.match(s)
        if m:
            s = m.group(1)
        if not _DIGITS.match(s):
            raise InvalidFipsError(f"non-numeric county identifier: {value!r}")
        code = int(s)
    else:
        raise InvalidFipsError(f"unsupported identifier type: {type(value).__name__}")

    if code < 0:
        raise InvalidFipsError(f"negative county identifier: {value!r}")
    out = str(code).zfill(FIPS_WIDTH)
    if len(out) > FIPS_WIDTH:
        raise InvalidFipsError(f"county identifier wider than {FIPS_WIDTH} digits: {value!r}")
    return out


def _try_normalize(value):
    try:
        return normalize_fips(value)
    except InvalidFipsError:
        return pd.NA


def normalize_fips_series(series: pd.Series) -> tuple[pd.Series, pd.Series]:
    """Normalize a column of raw identifiers.

    Returns:
        (normalized, invalid): normalized is a "string" Series with <NA> where the
        raw value could not be normalized; invalid is the matching boolean mask.
    """
    normalized = series.map(_try_normalize).astype("string")
    invalid = normalized.isna()
    return normalized, invalid
