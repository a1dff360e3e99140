"""Table builder: schema-checked reader and the monthly mortality / poverty summary builders."""

from covid_poverty.table_builder.reader import read, read_many, list_tables, SchemaError
from covid_poverty.table_builder.builder import (
    build_monthly_mortality,
    reshape_covariates,
    merge_covariates,
    add_mortality_rate,
    categorize_poverty,
    weighted_mean,
    summarize_by_poverty,
    build_poverty_summary,
    write_summary,
    year_month_labels,
)

__all__ = [
    "read",
    "read_many",
    "list_tables",
    "SchemaError",
    "build_monthly_mortality",
    "reshape_covariates",
    "merge_covariates",
    "add_mortality_rate",
    "categorize_poverty",
    "weighted_mean",
    "summarize_by_poverty",
    "build_poverty_summary",
    "write_summary",
    "year_month_labels",
]
