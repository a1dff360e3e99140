"""Tests for covid_poverty.plotting.chart."""

import sys
from pathlib import Path

import pandas as pd

project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

import matplotlib.pyplot as plt
from matplotlib.colors import to_rgba

from covid_poverty.plotting.chart import bucket_colors, draw_mortality_by_poverty, plot_mortality_by_poverty
from covid_poverty.table_builder.builder import categorize_poverty, year_month_labels


def _summary() -> pd.DataFrame:
    labels = year_month_labels(2020, 2020)
    return pd.DataFrame({
        "year_month": pd.Categorical(["2020-9", "2020-9", "2020-10", "2020-10"], categories=labels, ordered=True),
        "poverty_bucket": categorize_poverty(pd.Series([0.03, 0.3, 0.03, 0.3])),
        "weighted_mean_mortality": [1.0, 4.0, 2.0, 5.0],
    })


def test_plot_writes_png(tmp_path):
    path = plot_mortality_by_poverty(_summary(), tmp_path / "charts" / "chart.png")
    assert path.exists()
    assert path.read_bytes()[:8] == b"\x89PNG\r\n\x1a\n"


def test_bucket_colors_highest_bucket_is_red_end():
    buckets = ["low", "mid", "high", "highest"]
    colors = bucket_colors(buckets)
    r_low, _, b_low, _ = colors["low"]
    r_high, _, b_high, _ = colors["highest"]
    assert b_low > r_low
    assert r_high > b_high


def test_bucket_colors_single_bucket():
    colors = bucket_colors(["only"])
    assert list(colors) == ["only"]


def test_draw_orders_months_and_draws_one_line_per_present_bucket():
    summary = _summary().iloc[[2, 3, 0, 1]].reset_index(drop=True)
    fig, ax = plt.subplots()
    lines = draw_mortality_by_poverty(summary, ax)
    fig.canvas.draw()

    assert [t.get_text() for t in ax.get_xticklabels()] == ["2020-9", "2020-10"]
    assert len(lines) == 2
    assert len(ax.get_lines()) == 2
    assert [line.get_label() for line in lines] == ["(0.0, 0.05]", "(0.2, 1.0]"]

    low, high = lines
    assert list(low.get_xdata()) == [0, 1]
    assert list(low.get_ydata()) == [1.0, 2.0]
    assert list(high.get_ydata()) == [4.0, 5.0]

    r, _, b, _ = to_rgba(high.get_color())
    assert r > b
    r, _, b, _ = to_rgba(low.get_color())
    assert b > r
    plt.close(fig)
