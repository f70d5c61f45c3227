"""
Source configuration for the three county-level input tables.

Canonical keys (aligned across tables):
- county_fips: raw county identifier, normalized to a 5-digit string by the reconciler
- state: 2-letter state code (classification table only)
- county: county name (classification table only)

The classification table ("rural_urban") is the primary side of every join;
"hpsa" and "hosp_rate" are secondary and may be missing counties.

on_duplicate: what the reconciler does when a secondary table has more than one
row for the same normalized county_fips (first | max | mean | error).
"""

PRIMARY_TABLE = "rural_urban"

SOURCES = {
    # ---- Primary: USDA ERS Rural-Urban Continuum Codes ----
    "rural_urban": {
        "path": "data/raw_data/rural_urban/Ruralurbancontinuumcodes2023.xlsx",
        "format": "xlsx",
        "vintage": 2023,
        "sheet": "Rural-urban Continuum Code 2023",
        # Keep FIPS as text so leading zeros survive the read
        "read_dtypes": {
            "FIPS": "string",
            "State": "string",
            "County_Name": "string",
        },
        "keys": {"county_fips": "FIPS"},
        "value_columns": {
            "county": "County_Name",
            "state": "State",
            "Rural_Urban": "RUCC_2023",
        },
    },
    # ---- Secondary: HRSA primary care HPSA designations ----
    "hpsa": {
        "path": "data/raw_data/hpsa/BCD_HPSA_FCT_DET_PC.csv",
        "format": "csv",
        "vintage": 2024,
        "read_dtypes": {"Common State County FIPS Code": "string"},
        "filters": {
            "HPSA Status": ["Designated", "Proposed For Withdrawal"],
            "Designation Type": ["Geographic HPSA", "High Needs Geographic HPSA"],
        },
        "keys": {"county_fips": "Common State County FIPS Code"},
        "value_columns": {"hpsa_score": "HPSA Score"},
        # A county can carry several geographic designations; report the most severe
        "on_duplicate": "max",
    },
    # ---- Secondary: County Health Rankings preventable hospital stays ----
    "hosp_rate": {
        "path": "data/raw_data/county_health_rankings/analytic_data2024.csv",
        "format": "csv",
        "vintage": 2024,
        # Row 2 of the analytic file repeats the variable codes
        "skiprows": [1],
        "read_dtypes": {"5-digit FIPS Code": "string"},
        "keys": {"county_fips": "5-digit FIPS Code"},
        "value_columns": {"hosp_rate": "Preventable Hospital Stays raw value"},
        # State and national summary rows
        "post_filters": {"county_fips_not_ending_with": "000"},
        "on_duplicate": "first",
    },
}

# Output contract for the dashboard extract
OUTPUT_COLUMNS = ["fips", "county", "state", "Rural_Urban", "hpsa_score", "hosp_rate"]

# Non-continental states left out of the analysis
DEFAULT_EXCLUDED_STATES = ("AK", "HI")

# RUCC 1-3 are metropolitan, 4-9 nonmetropolitan
METRO_CODES = (1, 2, 3)
NONMETRO_CODES = (4, 5, 6, 7, 8, 9)
