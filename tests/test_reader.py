"""Tests for src.table_builder.reader."""

import sys
from pathlib import Path

import pandas as pd
import pytest

project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

from src.table_builder.reader import (
    read,
    read_many,
    list_tables,
    _resolve_path,
    _read_file,
    _apply_filters,
    _apply_post_filters,
    _rename_and_select,
)


def _csv_sources(**overrides):
    spec = {
        "path": "raw/hosp.csv",
        "format": "csv",
        "read_dtypes": {"FIPS": "string"},
        "keys": {"county_fips": "FIPS"},
        "value_columns": {"hosp_rate": "Rate"},
    }
    spec.update(overrides)
    return {"hosp_rate": spec}


# --- list_tables ---


def test_list_tables_contains_expected():
    out = list_tables()
    assert out == ["rural_urban", "hpsa", "hosp_rate"]


def test_list_tables_custom_sources():
    assert list_tables(_csv_sources()) == ["hosp_rate"]


# --- read (errors) ---


def test_read_unknown_table_raises():
    with pytest.raises(KeyError, match="Unknown table"):
        read("nonexistent_table")


def test_read_missing_file_raises():
    base = Path("/nonexistent/base")
    with pytest.raises(FileNotFoundError, match="Data not found"):
        read("rural_urban", base_path=base)


# --- read ---


def test_read_csv_keeps_leading_zeros(tmp_path):
    raw = tmp_path / "raw"
    raw.mkdir()
    (raw / "hosp.csv").write_text("FIPS,Rate,Other\n01001,3500.5,x\n06037,,y\n")
    out = read("hosp_rate", base_path=tmp_path, sources=_csv_sources())
    assert list(out.columns) == ["county_fips", "hosp_rate"]
    assert out["county_fips"].tolist() == ["01001", "06037"]
    assert out["hosp_rate"].iloc[0] == 3500.5
    assert pd.isna(out["hosp_rate"].iloc[1])


def test_read_applies_skiprows_and_post_filters(tmp_path):
    raw = tmp_path / "raw"
    raw.mkdir()
    (raw / "hosp.csv").write_text(
        "FIPS,Rate\n"
        "fipscode,v005_rawvalue\n"
        "01000,4000\n"
        "01001,3500\n"
    )
    sources = _csv_sources(skiprows=[1], post_filters={"county_fips_not_ending_with": "000"})
    out = read("hosp_rate", base_path=tmp_path, sources=sources)
    assert out["county_fips"].tolist() == ["01001"]
    assert out.index.tolist() == [0]


def test_read_xlsx(tmp_path):
    path = tmp_path / "rucc.xlsx"
    pd.DataFrame({
        "FIPS": ["01001", "01003"],
        "State": ["AL", "AL"],
        "County_Name": ["Autauga County", "Baldwin County"],
        "RUCC_2023": [2, 3],
    }).to_excel(path, sheet_name="Codes", index=False)
    sources = {
        "rural_urban": {
            "path": str(path),
            "format": "xlsx",
            "sheet": "Codes",
            "read_dtypes": {"FIPS": "string"},
            "keys": {"county_fips": "FIPS"},
            "value_columns": {"county": "County_Name", "state": "State", "Rural_Urban": "RUCC_2023"},
        }
    }
    out = read("rural_urban", sources=sources)
    assert list(out.columns) == ["county_fips", "county", "state", "Rural_Urban"]
    assert out["county_fips"].tolist() == ["01001", "01003"]
    assert out["Rural_Urban"].tolist() == [2, 3]


# --- read_many ---


def test_read_many_unknown_table_raises():
    with pytest.raises(KeyError):
        read_many(["rural_urban", "nonexistent"])


def test_read_many_returns_dict():
    result = read_many([])
    assert result == {}


# --- _resolve_path ---


def test_resolve_path_relative_with_base():
    base = Path("/project")
    out = _resolve_path("data/raw/foo.csv", base)
    assert out == Path("/project/data/raw/foo.csv")


def test_resolve_path_relative_no_base():
    out = _resolve_path("data/foo.csv", None)
    assert out == Path("data/foo.csv")


def test_resolve_path_absolute_unchanged():
    base = Path("/project")
    out = _resolve_path("/absolute/path.csv", base)
    assert out == Path("/absolute/path.csv")


# --- _apply_filters ---


def test_apply_filters_scalar():
    df = pd.DataFrame({"a": [1, 2, 3], "b": [10, 20, 20]})
    out = _apply_filters(df, {"b": 20})
    assert out["b"].tolist() == [20, 20]


def test_apply_filters_list():
    df = pd.DataFrame({"status": ["Designated", "Withdrawn", "Proposed For Withdrawal"]})
    out = _apply_filters(df, {"status": ["Designated", "Proposed For Withdrawal"]})
    assert set(out["status"]) == {"Designated", "Proposed For Withdrawal"}


def test_apply_filters_missing_column_skipped():
    df = pd.DataFrame({"a": [1, 2, 3]})
    out = _apply_filters(df, {"nonexistent": 1})
    assert len(out) == 3


# --- _apply_post_filters ---


def test_apply_post_filters_not_ending_with():
    df = pd.DataFrame({"county_fips": ["01001", "01000", "48201"]})
    out = _apply_post_filters(df, {"county_fips_not_ending_with": "000"})
    assert out["county_fips"].tolist() == ["01001", "48201"]


def test_apply_post_filters_keeps_missing_keys():
    df = pd.DataFrame({"county_fips": pd.array(["01001", None, "01000"], dtype="string")})
    out = _apply_post_filters(df, {"county_fips_not_ending_with": "000"})
    assert len(out) == 2
    assert out["county_fips"].isna().sum() == 1


def test_apply_post_filters_unknown_raises():
    df = pd.DataFrame({"x": [1]})
    with pytest.raises(ValueError, match="Unknown post_filter"):
        _apply_post_filters(df, {"unknown_key": "x"})


# --- _rename_and_select ---


def test_rename_and_select():
    df = pd.DataFrame({"FIPS": ["01001"], "HPSA Score": [14], "extra": [1]})
    out = _rename_and_select(df, {"county_fips": "FIPS"}, {"hpsa_score": "HPSA Score"})
    assert list(out.columns) == ["county_fips", "hpsa_score"]
    assert out["hpsa_score"].tolist() == [14]


def test_rename_and_select_missing_column_raises():
    df = pd.DataFrame({"FIPS": ["01001"]})
    with pytest.raises(ValueError, match="Columns not found"):
        _rename_and_select(df, {"county_fips": "FIPS"}, {"hpsa_score": "HPSA Score"})


# --- _read_file ---


def test_read_file_csv(tmp_path):
    csv_path = tmp_path / "test.csv"
    csv_path.write_text("a,b\n1,2\n3,4")
    out = _read_file(csv_path, {"format": "csv"})
    assert list(out.columns) == ["a", "b"]
    assert out.shape == (2, 2)


def test_read_file_unsupported_format_raises(tmp_path):
    p = tmp_path / "x.parquet"
    p.touch()
    with pytest.raises(ValueError, match="Unsupported format"):
        _read_file(p, {"format": "parquet"})
