"""
Pipeline: Monthly county COVID-19 mortality by poverty level.

Reads the yearly daily-report CSVs (SOURCES["covid_daily"]), fetches ACS 2020
county population and poverty counts from the Census API
(SOURCES["acs_covariates"]), and builds the population-weighted mean monthly
mortality per 100k for each poverty bucket.

Outputs (under --output-dir):
- covid19_rates_and_poverty_levels.png
- covid19_rates_and_poverty_levels.csv (year_month, poverty_bucket, weighted_mean_mortality)
"""

import argparse
import logging
import sys
from pathlib import Path

project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

from covid_poverty.census.acs import fetch_acs
from covid_poverty.configs.sources import SOURCES, PERIOD, POVERTY_BINS, MEASURES, DEFAULT_MEASURE, OUTPUTS
from covid_poverty.plotting.chart import plot_mortality_by_poverty
from covid_poverty.table_builder.builder import build_poverty_summary, write_summary, year_month_labels
from covid_poverty.table_builder.reader import read

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)

DEFAULT_OUTPUT_DIR = "data/processed_data"


def main():
    parser = argparse.ArgumentParser(
        description="Build monthly county COVID-19 mortality by poverty level (chart + CSV)."
    )
    parser.add_argument(
        "--output-dir",
        type=str,
        default=DEFAULT_OUTPUT_DIR,
        help=f"Output directory, relative to base path (default: {DEFAULT_OUTPUT_DIR})",
    )
    parser.add_argument(
        "--base-path",
        type=str,
        default=None,
        help="Project root for data paths (default: project root)",
    )
    parser.add_argument(
        "--measure",
        type=str,
        choices=list(MEASURES),
        default=DEFAULT_MEASURE,
        help=f"Monthly mortality measure (default: {DEFAULT_MEASURE})",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress table head prints (only show INFO logs)",
    )
    args = parser.parse_args()

    base = Path(args.base_path) if args.base_path else project_root
    output_dir = base / args.output_dir

    print("Reading daily COVID-19 reports...")
    daily = read("covid_daily", base_path=base, measure=args.measure)

    acs = SOURCES["acs_covariates"]
    acs_long = fetch_acs(
        acs["variables"],
        year=acs["year"],
        geography=acs["geography"],
        dataset=acs["dataset"],
        special_values=acs["special_values"],
    )

    labels = year_month_labels(PERIOD["start_year"], PERIOD["end_year"])
    merged, summary = build_poverty_summary(
        daily, acs_long, measure=args.measure, labels=labels, bins=POVERTY_BINS
    )
    logger.info(f"Merged: {len(merged)} county-month rows, {len(merged.columns)} columns")
    if not args.quiet:
        print(f"\n--- summary (head) ---\n{summary.head(12)}\n")

    chart_path = plot_mortality_by_poverty(summary, output_dir / OUTPUTS["chart"])
    table_path = write_summary(summary, output_dir / OUTPUTS["table"])
    print(f"Saved chart to {chart_path}")
    print(f"Saved {len(summary)} rows to {table_path}")


if __name__ == "__main__":
    main()
    sys.exit(0)
