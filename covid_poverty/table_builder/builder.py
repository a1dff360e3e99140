"""
Composable builders for the county-month mortality and poverty summary tables.

Stages (each takes and returns a DataFrame):
- Monthly mortality: daily county reports -> one row per county_id, year_month
- Covariates: ACS long table -> one row per county with proportion_in_poverty
- Merge: left join covariates onto monthly mortality, rate per 100k, poverty bucket
- Summary: population-weighted mean mortality per year_month, poverty_bucket
"""

import logging
from pathlib import Path

import numpy as np
import pandas as pd

from covid_poverty.configs.sources import (
    SOURCES,
    PERIOD,
    POVERTY_BINS,
    MEASURES,
    DEFAULT_MEASURE,
)

logger = logging.getLogger(__name__)

KEY_COL = "county_id"
SUMMARY_COLUMNS = ["year_month", "poverty_bucket", "weighted_mean_mortality"]


def _get_measure(measure: str) -> dict:
    if measure not in MEASURES:
        raise KeyError(f"Unknown measure '{measure}'. Available: {list(MEASURES)}")
    return MEASURES[measure]


def strip_county_prefix(series: pd.Series, prefix: str = "USA-") -> pd.Series:
    """Remove a leading literal prefix from county ids; ids without it are unchanged."""
    s = series.astype("string").str.strip()
    if not prefix:
        return s
    return s.where(~s.str.startswith(prefix, na=False), s.str.slice(len(prefix)))


def year_month_labels(start_year: int, end_year: int) -> list[str]:
    """Ordered "YYYY-M" labels for every month from January start_year to December end_year."""
    if end_year < start_year:
        raise ValueError(f"end_year {end_year} is before start_year {start_year}")
    return [f"{year}-{month}" for year in range(start_year, end_year + 1) for month in range(1, 13)]


def add_year_month(df: pd.DataFrame, labels: list[str]) -> pd.DataFrame:
    """Parse `date` and add `year_month` as an ordered categorical over labels.

    Rows whose date does not parse, or whose month falls outside labels, are dropped.
    """
    if not labels:
        raise ValueError("year_month labels are empty")
    df = df.copy()
    dates = pd.to_datetime(df["date"], format="%Y-%m-%d", errors="coerce")
    bad_dates = int(dates.isna().sum())
    if bad_dates:
        logger.warning(f"Dropping {bad_dates} rows with unparseable dates")

    text = dates.dt.year.astype("Int64").astype("string") + "-" + dates.dt.month.astype("Int64").astype("string")
    year_month = pd.Categorical(text, categories=labels, ordered=True)
    out_of_range = int((dates.notna() & pd.isna(year_month)).sum())
    if out_of_range:
        logger.warning(f"Dropping {out_of_range} rows with dates outside {labels[0]}..{labels[-1]}")

    df["date"] = dates
    df["year_month"] = year_month
    return df[df["year_month"].notna()].reset_index(drop=True)


def build_monthly_mortality(
    daily: pd.DataFrame,
    measure: str = DEFAULT_MEASURE,
    labels: list[str] | None = None,
    prefix: str | None = None,
) -> pd.DataFrame:
    """Aggregate daily county reports to one row per county_id and observed year_month.

    Args:
        daily: Daily table with county_id, date and the measure's column.
        measure: Key in MEASURES; decides the column and sum/mean method.
        labels: Ordered year_month labels. Default: from PERIOD.
        prefix: County id prefix to strip. Default: from SOURCES["covid_daily"].

    Returns:
        DataFrame with county_id, year_month (ordered categorical) and the
        measure column.
    """
    spec = _get_measure(measure)
    column = spec["column"]
    if labels is None:
        labels = year_month_labels(PERIOD["start_year"], PERIOD["end_year"])
    if prefix is None:
        prefix = SOURCES["covid_daily"].get("county_id_prefix", "")

    df = daily.copy()
    df[KEY_COL] = strip_county_prefix(df[KEY_COL], prefix)
    df = add_year_month(df, labels)

    grouped = df.groupby([KEY_COL, "year_month"], observed=True)[column]
    # a county-month with no reported values stays NaN rather than summing to 0
    if spec["method"] == "sum":
        monthly = grouped.sum(min_count=1).reset_index()
    else:
        monthly = grouped.agg(spec["method"]).reset_index()
    logger.info(
        f"Monthly mortality ({spec['method']} of {column}): {len(monthly)} rows, "
        f"{monthly[KEY_COL].nunique()} counties"
    )
    return monthly


def reshape_covariates(long_df: pd.DataFrame, variables: list[str] | None = None) -> pd.DataFrame:
    """Pivot the ACS long table to one row per county and derive proportion_in_poverty.

    Args:
        long_df: GEOID, NAME, variable, estimate, moe rows.
        variables: Expected variable names. Default: from SOURCES["acs_covariates"].

    Returns:
        DataFrame with county_id, county_name, population, poverty_numerator,
        poverty_denominator, proportion_in_poverty.
    """
    if variables is None:
        variables = list(SOURCES["acs_covariates"]["variables"])

    # duplicated GEOID/variable pairs raise here
    wide = long_df.drop(columns=["moe"], errors="ignore").pivot(
        index=["GEOID", "NAME"],
        columns="variable",
        values="estimate",
    )
    missing = [v for v in variables if v not in wide.columns]
    if missing:
        raise ValueError(f"ACS covariates missing variables {missing}; found {list(wide.columns)}")
    wide = wide[variables].reset_index()
    wide.columns.name = None
    wide = wide.rename(columns={"GEOID": KEY_COL, "NAME": "county_name"})
    wide[KEY_COL] = wide[KEY_COL].astype("string")

    denominator = wide["poverty_denominator"].where(wide["poverty_denominator"] != 0)
    wide["proportion_in_poverty"] = wide["poverty_numerator"] / denominator
    undefined = int(wide["proportion_in_poverty"].isna().sum())
    if undefined:
        logger.warning(f"{undefined} counties have no defined poverty proportion")
    logger.info(f"Covariates: {len(wide)} counties")
    return wide


def merge_covariates(monthly: pd.DataFrame, covariates: pd.DataFrame) -> pd.DataFrame:
    """Left join covariates onto monthly mortality on county_id."""
    right = covariates.copy()
    right[KEY_COL] = right[KEY_COL].astype("string")
    left = monthly.copy()
    left[KEY_COL] = left[KEY_COL].astype("string")

    merged = left.merge(right, on=KEY_COL, how="left", validate="many_to_one", indicator=True)
    unmatched = merged.loc[merged["_merge"] == "left_only", KEY_COL].nunique()
    merged = merged.drop(columns="_merge")
    if unmatched:
        logger.warning(f"{unmatched} counties have no covariate match")
    return merged


def add_mortality_rate(df: pd.DataFrame, measure: str = DEFAULT_MEASURE) -> pd.DataFrame:
    """Add mortality_per_100k; missing or zero population gives NaN."""
    spec = _get_measure(measure)
    df = df.copy()
    if spec["is_rate"]:
        df["mortality_per_100k"] = df[spec["column"]].astype(float)
    else:
        population = df["population"].where(df["population"] > 0)
        df["mortality_per_100k"] = df[spec["column"]] / population * 100000
    return df


def categorize_poverty(proportion: pd.Series, bins: list[float] | None = None) -> pd.Series:
    """Bucket poverty proportions into right-closed intervals.

    The lowest edge is excluded, so 0 and anything outside (bins[0], bins[-1]]
    gets no bucket (NaN).
    """
    if bins is None:
        bins = POVERTY_BINS
    return pd.cut(proportion, bins=bins, right=True, include_lowest=False)


def weighted_mean(values: pd.Series, weights: pd.Series) -> float:
    """sum(v * w) / sum(w) over pairs where both are present; NaN if the total weight is 0."""
    values = pd.Series(np.asarray(values, dtype=float))
    weights = pd.Series(np.asarray(weights, dtype=float))
    mask = values.notna() & weights.notna()
    total = weights[mask].sum()
    if total == 0:
        return np.nan
    return float((values[mask] * weights[mask]).sum() / total)


def summarize_by_poverty(merged: pd.DataFrame) -> pd.DataFrame:
    """Population-weighted mean mortality per year_month and poverty_bucket.

    Rows without a poverty bucket are excluded. Sorted by year_month
    (chronological) then poverty_bucket.
    """
    bucketed = merged[merged["poverty_bucket"].notna()]
    dropped = len(merged) - len(bucketed)
    if dropped:
        logger.warning(f"Excluding {dropped} county-month rows without a poverty bucket")

    rows = []
    for (year_month, bucket), group in bucketed.groupby(["year_month", "poverty_bucket"], observed=True):
        rows.append({
            "year_month": year_month,
            "poverty_bucket": bucket,
            "weighted_mean_mortality": weighted_mean(group["mortality_per_100k"], group["population"]),
        })
    summary = pd.DataFrame(rows, columns=SUMMARY_COLUMNS)
    summary["year_month"] = pd.Categorical(
        summary["year_month"], categories=merged["year_month"].cat.categories, ordered=True
    )
    summary["poverty_bucket"] = pd.Categorical(
        summary["poverty_bucket"], categories=merged["poverty_bucket"].cat.categories, ordered=True
    )
    summary = summary.sort_values(["year_month", "poverty_bucket"], ignore_index=True)
    logger.info(f"Summary: {len(summary)} rows")
    return summary


def build_poverty_summary(
    daily: pd.DataFrame,
    acs_long: pd.DataFrame,
    measure: str = DEFAULT_MEASURE,
    labels: list[str] | None = None,
    bins: list[float] | None = None,
) -> tuple[pd.DataFrame, pd.DataFrame]:
    """Run aggregation, covariate reshape, merge, bucketing and summary in order.

    Returns:
        (merged, summary): the county-month table with covariates, rate and
        bucket, and the weighted summary table.
    """
    monthly = build_monthly_mortality(daily, measure=measure, labels=labels)
    covariates = reshape_covariates(acs_long)
    merged = merge_covariates(monthly, covariates)
    merged = add_mortality_rate(merged, measure=measure)
    merged["poverty_bucket"] = categorize_poverty(merged["proportion_in_poverty"], bins)
    summary = summarize_by_poverty(merged)
    return merged, summary


def write_summary(summary: pd.DataFrame, path: Path) -> Path:
    """Write the summary table as CSV with a header and no index column."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    out = summary[SUMMARY_COLUMNS].sort_values(["year_month", "poverty_bucket"])
    out.to_csv(path, index=False, na_rep="NA")
    return path
