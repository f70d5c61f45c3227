"""Table builder: source reader, FIPS normalization and the county reconciler."""

from src.table_builder.reader import read, read_many, list_tables
from src.table_builder.fips import InvalidFipsError, normalize_fips, normalize_fips_series
from src.table_builder.records import CountyRecord, to_records, from_records
from src.table_builder.builder import (
    DuplicateKeyError,
    ReconcileResult,
    reconcile,
    build_county_table,
)

__all__ = [
    "read",
    "read_many",
    "list_tables",
    "InvalidFipsError",
    "normalize_fips",
    "normalize_fips_series",
    "CountyRecord",
    "to_records",
    "from_records",
    "DuplicateKeyError",
    "ReconcileResult",
    "reconcile",
    "build_county_table",
]
