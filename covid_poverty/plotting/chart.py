"""
Line chart of the weighted monthly mortality per poverty bucket.
"""

from pathlib import Path

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from covid_poverty.configs.sources import OUTPUTS

TITLE = "Monthly County COVID-19 Mortality Estimates by Poverty Level in the US"
XLABEL = "Date"
YLABEL = "COVID-19 Mortality per 100k (monthly observations)"


def bucket_colors(buckets: list, cmap_name: str = "RdBu_r") -> dict:
    """Map ordered buckets onto a diverging colormap; the last (highest) bucket is the red end."""
    cmap = matplotlib.colormaps[cmap_name]
    if len(buckets) == 1:
        return {buckets[0]: cmap(1.0)}
    positions = np.linspace(0.0, 1.0, len(buckets))
    return {b: cmap(p) for b, p in zip(buckets, positions)}


def draw_mortality_by_poverty(summary: pd.DataFrame, ax) -> list:
    """Draw one line per poverty_bucket onto ax; returns the drawn lines.

    year_month must be an ordered categorical; the x axis follows its category
    order, limited to months present in the summary.
    """
    summary = summary.sort_values(["year_month", "poverty_bucket"], ignore_index=True)
    months = summary["year_month"].cat.remove_unused_categories()
    month_labels = [str(m) for m in months.cat.categories]
    x_pos = months.cat.codes

    buckets = list(summary["poverty_bucket"].cat.categories)
    colors = bucket_colors(buckets)

    lines = []
    for bucket in buckets:
        mask = summary["poverty_bucket"] == bucket
        if not mask.any():
            continue
        (line,) = ax.plot(
            x_pos[mask],
            summary.loc[mask, "weighted_mean_mortality"],
            marker="o",
            markersize=3,
            color=colors[bucket],
            label=str(bucket),
        )
        lines.append(line)

    ax.set_xticks(range(len(month_labels)))
    ax.set_xticklabels(month_labels, rotation=75, ha="right")
    ax.set_xlabel(XLABEL)
    ax.set_ylabel(YLABEL)
    ax.set_title(TITLE)
    ax.legend(title="Proportion in poverty")
    return lines


def plot_mortality_by_poverty(
    summary: pd.DataFrame,
    path: Path,
    figsize: tuple = OUTPUTS["chart_size"],
    dpi: int = OUTPUTS["chart_dpi"],
) -> Path:
    """Plot weighted_mean_mortality against year_month and save it as an image."""
    path = Path(path)
    fig, ax = plt.subplots(figsize=figsize)
    draw_mortality_by_poverty(summary, ax)
    fig.tight_layout()

    path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(path, dpi=dpi)
    plt.close(fig)
    return path
