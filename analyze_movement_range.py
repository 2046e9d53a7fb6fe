#!/usr/bin/env python3
"""Summarise Movement Range exports per region or per country and generate plots."""

from __future__ import annotations

import argparse
from dataclasses import asdict
import json
import os
from pathlib import Path
from typing import Sequence

from movement_analysis.constants import (
    DEFAULT_SORT_DIRECTION,
    DEFAULT_SORT_KEY,
    MATRIX_SORT_KEYS,
    SORT_DIRECTIONS,
    WHOLE_COUNTRY_OPTION,
    format_percent,
    format_signed_percent,
)
from movement_analysis.data_sources import HuggingFaceOptions, resolve_data_path
from movement_analysis.loaders import (
    load_movement_records,
    regions_by_country,
    unique_countries,
)
from movement_analysis.models import (
    ComparisonRow,
    CountryAggregate,
    CountrySelector,
    CountryView,
    MovementRecord,
    RegionSelector,
    RegionView,
    SeriesStats,
)
from movement_analysis.plotting import (
    PlotPaths,
    build_plot_paths,
    plot_comparison_series,
    plot_region_matrix,
    plot_single_series,
)
from movement_analysis.processing import (
    build_country_view,
    build_region_view,
    compute_comparison_correlation,
)

MATRIX_PREVIEW_ROWS = 15


def _format_stats_text(r_value: float, p_value: float, sample_size: int) -> str:
    p_text = "p<0.001" if p_value < 0.001 else f"p={p_value:.3f}"
    return f"r={r_value:.3f}, {p_text}, days={sample_size}"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=(
            "Summarise Movement Range mobility and stay-at-home trends for a region "
            "or a whole country, optionally compared against a second series."
        ),
    )
    parser.add_argument(
        "--movement-file",
        type=Path,
        default=None,
        help=(
            "Tab-separated Movement Range export (.txt or .tsv). "
            "Defaults to data/movement-range.txt when omitted."
        ),
    )
    parser.add_argument(
        "--view",
        choices=("country", "region"),
        default="country",
        help="'country' for the country overview, 'region' for comparative analysis (default: country).",
    )
    parser.add_argument(
        "--country",
        default=None,
        help="Country code to analyse (default: first country alphabetically).",
    )
    parser.add_argument(
        "--region",
        default=None,
        help=(
            "Region (polygon name) for the region view. Defaults to the whole-country average. "
            "In the country view, use --compare-region instead."
        ),
    )
    parser.add_argument(
        "--compare-type",
        choices=("country", "region"),
        default=None,
        help=(
            "Country view only: compare against another country or against a region of the "
            "selected country. Implied by --compare-country / --compare-region."
        ),
    )
    parser.add_argument(
        "--compare-country",
        default=None,
        help="Country of the comparison series.",
    )
    parser.add_argument(
        "--compare-region",
        default=None,
        help="Region of the comparison series (defaults to the whole-country average in the region view).",
    )
    parser.add_argument(
        "--sort-key",
        choices=MATRIX_SORT_KEYS,
        default=DEFAULT_SORT_KEY,
        help=f"Region matrix sort column (default: {DEFAULT_SORT_KEY}).",
    )
    parser.add_argument(
        "--sort-direction",
        choices=SORT_DIRECTIONS,
        default=DEFAULT_SORT_DIRECTION,
        help=f"Region matrix sort direction (default: {DEFAULT_SORT_DIRECTION}).",
    )
    parser.add_argument(
        "--matrix-tab",
        choices=("primary", "secondary"),
        default="primary",
        help="Which aggregate's region matrix to sort and plot in the country view.",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path("plots"),
        help="Directory where plots will be written (default: ./plots).",
    )
    parser.add_argument(
        "--export-json",
        type=Path,
        default=None,
        metavar="PATH",
        help="Also write the computed view to this JSON file.",
    )
    parser.add_argument(
        "--list-countries",
        action="store_true",
        help="Print the available countries with their region counts and exit.",
    )
    parser.add_argument(
        "--hf-repo-id",
        help="Optional Hugging Face dataset repository ID to download data from (e.g., username/dataset).",
    )
    parser.add_argument(
        "--hf-revision",
        default=None,
        help="Optional revision (branch/tag/commit) for the Hugging Face dataset repository.",
    )
    parser.add_argument(
        "--hf-token",
        default=os.getenv("HF_TOKEN"),
        help="Hugging Face token used for private dataset access (default: read from HF_TOKEN env var).",
    )
    parser.add_argument(
        "--hf-file",
        default="movement-range.txt",
        help="Relative path of the export inside the Hugging Face dataset.",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    hf_options = HuggingFaceOptions(
        repo_id=args.hf_repo_id,
        revision=args.hf_revision,
        token=args.hf_token,
        movement_file=args.hf_file,
    )
    data_path = resolve_data_path(movement_file=args.movement_file, hf_options=hf_options)

    try:
        records = load_movement_records(data_path)
    except ValueError as exc:
        raise SystemExit(str(exc)) from exc
    if not records:
        raise SystemExit("No movement records found in the export.")

    countries = unique_countries(records)
    if args.list_countries:
        for country in countries:
            print(f"{country}: {len(regions_by_country(records, country))} regions")
        return

    country = args.country or countries[0]
    _require_country(country, countries)

    output_dir = args.output_dir.expanduser().resolve()

    if args.view == "region":
        view = _run_region_view(records, countries, country, args, output_dir)
    else:
        view = _run_country_view(records, countries, country, args, output_dir)

    if args.export_json is not None:
        export_path = args.export_json.expanduser().resolve()
        export_path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"view": args.view, "source": str(data_path), **asdict(view)}
        with export_path.open("w", encoding="utf-8") as handle:
            json.dump(payload, handle, ensure_ascii=False, indent=2)
        print(f"Saved JSON export to {export_path}")


def _require_country(country: str, countries: list[str]) -> None:
    if country not in countries:
        raise SystemExit(f"Country '{country}' not found in the export. Use --list-countries.")


def _require_region(records: list[MovementRecord], country: str, region: str) -> None:
    if region == WHOLE_COUNTRY_OPTION:
        return
    if region not in regions_by_country(records, country):
        raise SystemExit(f"Region '{region}' not found for country '{country}'.")


def _run_region_view(
    records: list[MovementRecord],
    countries: list[str],
    country: str,
    args: argparse.Namespace,
    output_dir: Path,
) -> RegionView:
    region = args.region or WHOLE_COUNTRY_OPTION
    _require_region(records, country, region)
    primary = RegionSelector(country, region)

    secondary = None
    if args.compare_country or args.compare_region:
        compare_country = args.compare_country or countries[0]
        _require_country(compare_country, countries)
        compare_region = args.compare_region or WHOLE_COUNTRY_OPTION
        _require_region(records, compare_country, compare_region)
        secondary = RegionSelector(compare_country, compare_region)

    view = build_region_view(records, primary, secondary)
    plot_paths = build_plot_paths(output_dir, prefix="region_")

    _print_series_stats(view.primary_label, view.primary_stats)
    if secondary is not None:
        _print_series_stats(view.secondary_label, view.secondary_stats)
    print(f"Baseline: {view.baseline_type}")

    if secondary is None:
        dates = [point.date for point in view.primary_series]
        _plot_trends(
            dates,
            [point.mobility for point in view.primary_series],
            [point.stay for point in view.primary_series],
            view.primary_label,
            plot_paths,
        )
    else:
        _plot_comparisons(view.rows, view.primary_label, view.secondary_label, plot_paths)

    return view


def _run_country_view(
    records: list[MovementRecord],
    countries: list[str],
    country: str,
    args: argparse.Namespace,
    output_dir: Path,
) -> CountryView:
    compare_type = args.compare_type
    if compare_type is None and args.compare_region:
        compare_type = "region"
    elif compare_type is None and args.compare_country:
        compare_type = "country"

    comparison = None
    if compare_type == "country":
        default_country = countries[1] if len(countries) > 1 else countries[0]
        compare_country = args.compare_country or default_country
        _require_country(compare_country, countries)
        comparison = CountrySelector(compare_country)
    elif compare_type == "region":
        available = regions_by_country(records, country)
        compare_region = args.compare_region or available[0]
        _require_region(records, country, compare_region)
        comparison = RegionSelector(country, compare_region)

    view = build_country_view(
        records,
        country,
        comparison,
        sort_key=args.sort_key,
        sort_direction=args.sort_direction,
        matrix_tab=args.matrix_tab,
    )
    if view is None:
        raise SystemExit(f"No records found for country '{country}'.")

    _print_aggregate_summary(view.primary_label, view.primary)
    if view.secondary is not None:
        _print_aggregate_summary(view.secondary_label, view.secondary)
    elif comparison is not None:
        print(f"Skipping comparison with {view.secondary_label} (no data).")

    plot_paths = build_plot_paths(output_dir, prefix="country_")
    if view.secondary is None:
        _plot_trends(
            [row.date for row in view.rows],
            [row.primary_mobility for row in view.rows],
            [row.primary_stay for row in view.rows],
            view.primary_label,
            plot_paths,
        )
    else:
        _plot_comparisons(view.rows, view.primary_label, view.secondary_label, plot_paths)

    matrix_label = view.primary_label
    if args.matrix_tab == "secondary" and view.secondary is not None:
        matrix_label = view.secondary_label
    _print_matrix(view, matrix_label, args.sort_key, args.sort_direction)
    plot_region_matrix(
        view.matrix,
        plot_paths.region_matrix,
        title=f"Regional Breakdown: {matrix_label}",
    )
    print(f"Saved plot to {plot_paths.region_matrix}")

    return view


def _plot_trends(
    dates: list[str],
    mobility: list[float],
    stay: list[float],
    label: str,
    plot_paths: PlotPaths,
) -> None:
    if not dates:
        print(f"Skipping trend plots for {label} (no data).")
        return

    plot_single_series(
        dates,
        mobility,
        plot_paths.mobility_trend,
        title=f"Relative Mobility Change: {label}",
        y_label="Change vs baseline",
        zero_line=True,
    )
    print(f"Saved plot to {plot_paths.mobility_trend}")

    plot_single_series(
        dates,
        stay,
        plot_paths.stay_trend,
        title=f"Stay-at-Home Ratio: {label}",
        y_label="Share of users in a single tile",
        color="#4f46e5",
    )
    print(f"Saved plot to {plot_paths.stay_trend}")


def _plot_comparisons(
    rows: Sequence[ComparisonRow],
    primary_label: str,
    secondary_label: str | None,
    plot_paths: PlotPaths,
) -> None:
    if not rows:
        print("Skipping comparison plots (no data).")
        return

    for field, output_path, title, y_label in (
        ("mobility", plot_paths.mobility_comparison, "Relative Mobility Change", "Change vs baseline"),
        ("stay", plot_paths.stay_comparison, "Stay-at-Home Ratio", "Share of users in a single tile"),
    ):
        corr, p_value, overlap = compute_comparison_correlation(rows, field)
        stats_text = None
        if p_value is not None:
            stats_text = _format_stats_text(corr, p_value, overlap)
            print(f"{primary_label} vs {secondary_label} ({field}): {stats_text}")
        else:
            print(f"{primary_label} vs {secondary_label} ({field}): insufficient overlapping days.")

        plot_comparison_series(
            rows,
            output_path,
            field=field,
            title=f"{title}: {primary_label} vs {secondary_label}",
            y_label=y_label,
            stats_text=stats_text,
        )
        print(f"Saved plot to {output_path}")


def _print_series_stats(label: str | None, stats: SeriesStats | None) -> None:
    if stats is None:
        print(f"{label}: no data.")
        return
    sign = "+" if float(stats.avg_mobility) > 0 else ""
    print(
        f"{label}: avg mobility {sign}{stats.avg_mobility}%, "
        f"max stay-at-home {stats.max_stay_home}%, "
        f"{stats.count} records ({stats.start} to {stats.end})"
    )


def _print_aggregate_summary(label: str | None, aggregate: CountryAggregate) -> None:
    mean_mobility = aggregate.mean_region_mobility
    mobility_text = format_signed_percent(mean_mobility) if mean_mobility is not None else "n/a"
    date_range = aggregate.date_range
    range_text = f"{date_range[0]} to {date_range[1]}" if date_range else "no dates"
    print(
        f"{label}: {aggregate.total_regions} regions, "
        f"national avg mobility {mobility_text}, {range_text}"
    )


def _print_matrix(view: CountryView, label: str | None, sort_key: str, direction: str) -> None:
    print(f"Regional breakdown for {label} (sorted by {sort_key} {direction}):")
    for stats in view.matrix[:MATRIX_PREVIEW_ROWS]:
        print(
            f"  {stats.name}: avg mobility {format_signed_percent(stats.avg_mobility)}, "
            f"min mobility {format_percent(stats.min_mobility)}%, "
            f"avg stay {format_percent(stats.avg_stay)}%, "
            f"max stay {format_percent(stats.max_stay)}%, "
            f"n={stats.data_points}"
        )
    hidden = len(view.matrix) - MATRIX_PREVIEW_ROWS
    if hidden > 0:
        print(f"  ... {hidden} more regions")


if __name__ == "__main__":
    main()
