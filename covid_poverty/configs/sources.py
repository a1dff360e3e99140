"""
Source configuration for the COVID-19 mortality and ACS poverty tables.

Canonical keys (aligned across tables):
- county_id: 5-digit county GEOID (state 2 + county 3)
- date: report date (ISO, YYYY-MM-DD)
- year_month: calendar month label "YYYY-M" (unpadded month)

Grain: county_day | county
- county_day: one row per county per report date (daily COVID-19 files)
- county: one row per county (ACS covariates, fetched from the Census API)
"""

SOURCES = {
    # ---- Daily COVID-19 reports (NYT rolling-average county files, one per year) ----
    "covid_daily": {
        "grain": "county_day",
        "sources": [
            {"path": "data/raw_data/covid/us-counties-2020.csv", "format": "csv"},
            {"path": "data/raw_data/covid/us-counties-2021.csv", "format": "csv"},
            {"path": "data/raw_data/covid/us-counties-2022.csv", "format": "csv"},
        ],
        "keys": {
            "county_id": "geoid",
            "date": "date",
        },
        "value_columns": {
            "deaths": "deaths",
            "deaths_avg_per_100k": "deaths_avg_per_100k",
        },
        "dtypes": {
            "county_id": "string",
            "date": "string",
            "deaths": "float64",
            "deaths_avg_per_100k": "float64",
        },
        # geoid is published as "USA-01001"; joins use the bare GEOID
        "county_id_prefix": "USA-",
    },
    # ---- ACS 5-year county covariates ----
    "acs_covariates": {
        "grain": "county",
        "dataset": "acs/acs5",
        "geography": "county",
        "year": 2020,
        "variables": {
            "population": "B01001_001",
            "poverty_denominator": "B05010_001",
            "poverty_numerator": "B05010_002",
        },
        # ACS annotation values published in place of an estimate
        # (e.g. -666666666: too few sample observations)
        "special_values": [
            -111111111,
            -222222222,
            -333333333,
            -555555555,
            -666666666,
            -888888888,
            -999999999,
        ],
    },
}

# Inclusive year range for the ordered year_month label set
PERIOD = {"start_year": 2020, "end_year": 2022}

# Poverty proportion cut points; intervals are (left, right]
POVERTY_BINS = [0.0, 0.05, 0.10, 0.20, 1.0]

# Monthly mortality measures. Exactly one is used per run.
MEASURES = {
    "deaths": {
        "column": "deaths",
        "method": "sum",
        "is_rate": False,
        "comment": (
            "Daily new deaths summed per county-month; converted to a rate per "
            "100k with the ACS population after the join."
        ),
    },
    "deaths_avg_per_100k": {
        "column": "deaths_avg_per_100k",
        "method": "mean",
        "is_rate": True,
        "comment": (
            "Mean of the published 7-day rolling average deaths per 100k across "
            "the days of the month; already a rate, used as-is."
        ),
    },
}
DEFAULT_MEASURE = "deaths"

OUTPUTS = {
    "chart": "covid19_rates_and_poverty_levels.png",
    "table": "covid19_rates_and_poverty_levels.csv",
    "chart_size": (9, 5),
    "chart_dpi": 150,
}
