"""Plotting utilities."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Sequence

import matplotlib.pyplot as plt
from matplotlib.ticker import PercentFormatter
import numpy as np

from .models import ComparisonRow, RegionStats

MATRIX_COLUMNS = (
    ("avg_mobility", "Avg Mobility"),
    ("min_mobility", "Min Mobility"),
    ("avg_stay", "Avg Stay Home"),
    ("max_stay", "Max Stay Home"),
)


@dataclass(frozen=True)
class PlotPaths:
    mobility_trend: Path
    stay_trend: Path
    mobility_comparison: Path
    stay_comparison: Path
    region_matrix: Path


def build_plot_paths(output_dir: Path, prefix: str = "") -> PlotPaths:
    output_dir.mkdir(parents=True, exist_ok=True)
    return PlotPaths(
        mobility_trend=output_dir / f"{prefix}mobility_trend.png",
        stay_trend=output_dir / f"{prefix}stay_home_trend.png",
        mobility_comparison=output_dir / f"{prefix}mobility_comparison.png",
        stay_comparison=output_dir / f"{prefix}stay_home_comparison.png",
        region_matrix=output_dir / f"{prefix}region_matrix.png",
    )


def _as_dates(values: Sequence[str]) -> list[date]:
    return [date.fromisoformat(value) for value in values]


def plot_single_series(
    dates: Sequence[str],
    values: Sequence[float],
    output_path: Path,
    *,
    title: str,
    y_label: str,
    color: str = "#1f77b4",
    linestyle: str = "-",
    marker: str = "o",
    markersize: float = 3.0,
    zero_line: bool = False,
) -> None:
    plt.figure(figsize=(12, 5))
    ax = plt.gca()
    ax.plot(
        _as_dates(dates),
        values,
        color=color,
        linestyle=linestyle,
        linewidth=1.5,
        marker=marker,
        markersize=markersize,
    )
    if zero_line:
        ax.axhline(0.0, color="#64748b", linewidth=0.8)
    ax.yaxis.set_major_formatter(PercentFormatter(xmax=1.0, decimals=0))
    plt.title(title)
    plt.xlabel("Date")
    plt.ylabel(y_label)
    plt.grid(True, linestyle="--", linewidth=0.5, alpha=0.6)
    plt.tight_layout()
    plt.savefig(output_path, dpi=150)
    plt.close()


def plot_comparison_series(
    rows: Sequence[ComparisonRow],
    output_path: Path,
    *,
    field: str,
    title: str,
    y_label: str,
    primary_color: str = "#2563eb",
    secondary_color: str = "#f97316",
    marker: str = "o",
    markersize: float = 3.0,
    stats_text: str | None = None,
) -> None:
    """Plot primary and secondary values of merged rows; missing dates leave gaps."""
    days = _as_dates([row.date for row in rows])
    primary = [_nan_if_none(getattr(row, f"primary_{field}")) for row in rows]
    secondary = [_nan_if_none(getattr(row, f"secondary_{field}")) for row in rows]
    primary_label = next((row.primary_label for row in rows if row.primary_label), "Primary")
    secondary_label = next((row.secondary_label for row in rows if row.secondary_label), "Comparison")

    plt.figure(figsize=(12, 5))
    ax = plt.gca()
    ax.plot(
        days,
        primary,
        color=primary_color,
        linewidth=1.8,
        label=primary_label,
        marker=marker,
        markersize=markersize,
    )
    ax.plot(
        days,
        secondary,
        color=secondary_color,
        linewidth=1.8,
        linestyle="--",
        label=secondary_label,
        marker=marker,
        markersize=markersize,
    )
    if field == "mobility":
        ax.axhline(0.0, color="#64748b", linewidth=0.8)
    ax.yaxis.set_major_formatter(PercentFormatter(xmax=1.0, decimals=0))
    ax.set_xlabel("Date")
    ax.set_ylabel(y_label)
    ax.grid(True, linestyle="--", linewidth=0.5, alpha=0.6)
    ax.legend(loc="best")

    if stats_text:
        title = f"{title}\n{stats_text}"
    plt.title(title)
    plt.tight_layout()
    plt.savefig(output_path, dpi=150)
    plt.close()


def plot_region_matrix(
    matrix: Sequence[RegionStats],
    output_path: Path,
    *,
    title: str,
) -> None:
    if not matrix:
        return

    values = np.array(
        [[getattr(stats, field) for field, _ in MATRIX_COLUMNS] for stats in matrix],
        dtype=float,
    )
    row_labels = [f"{stats.name} (n={stats.data_points})" for stats in matrix]
    column_labels = [label for _, label in MATRIX_COLUMNS]

    fig_width = max(6, len(column_labels) * 1.8)
    fig_height = max(3, len(row_labels) * 0.4)
    fig, ax = plt.subplots(figsize=(fig_width, fig_height))

    bound = float(np.nanmax(np.abs(values))) or 1.0
    cmap = plt.colormaps.get("RdYlGn")
    im = ax.imshow(values, cmap=cmap, vmin=-bound, vmax=bound, aspect="auto")
    fig.colorbar(im, ax=ax, fraction=0.046, pad=0.04, format=PercentFormatter(xmax=1.0))

    ax.set_xticks(range(len(column_labels)))
    ax.set_xticklabels(column_labels, rotation=30, ha="right")
    ax.set_yticks(range(len(row_labels)))
    ax.set_yticklabels(row_labels)

    for row_idx in range(values.shape[0]):
        for col_idx in range(values.shape[1]):
            ax.text(
                col_idx,
                row_idx,
                f"{values[row_idx, col_idx] * 100:.1f}%",
                ha="center",
                va="center",
                color="black",
                fontsize=8,
            )

    ax.set_title(title)
    fig.savefig(output_path, dpi=150, bbox_inches="tight")
    plt.close(fig)


def _nan_if_none(value: float | None) -> float:
    return float("nan") if value is None else value
