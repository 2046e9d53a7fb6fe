"""Tests of movement_analysis.plotting"""

from movement_analysis.models import ComparisonRow, RegionStats
from movement_analysis.plotting import (
    build_plot_paths,
    plot_comparison_series,
    plot_region_matrix,
    plot_single_series,
)


def test_build_plot_paths_creates_directory(tmp_path):
    paths = build_plot_paths(tmp_path / "out", prefix="country_")

    assert (tmp_path / "out").is_dir()
    assert paths.region_matrix.name == "country_region_matrix.png"


def test_single_series(tmp_path):
    output_path = tmp_path / "trend.png"

    plot_single_series(
        ["2020-03-01", "2020-03-02"],
        [-0.1, -0.2],
        output_path,
        title="Mobility",
        y_label="Change",
        zero_line=True,
    )

    assert output_path.exists()


def test_comparison_series_with_gaps(tmp_path):
    rows = [
        ComparisonRow("2020-03-01", -0.1, 0.2, "A", -0.3, 0.4, "B"),
        ComparisonRow("2020-03-02", None, None, None, -0.2, 0.3, "B"),
        ComparisonRow("2020-03-03", -0.15, 0.25, "A"),
    ]
    output_path = tmp_path / "comparison.png"

    plot_comparison_series(
        rows,
        output_path,
        field="mobility",
        title="Mobility",
        y_label="Change",
        stats_text="r=0.500, p=?, days=1",
    )

    assert output_path.exists()


def test_region_matrix(tmp_path):
    output_path = tmp_path / "matrix.png"

    plot_region_matrix(
        [
            RegionStats("Alpha", -0.2, 0.3, 0.5, -0.4, 10),
            RegionStats("Bravo", 0.1, 0.2, 0.3, -0.1, 8),
        ],
        output_path,
        title="Regions",
    )

    assert output_path.exists()


def test_empty_region_matrix_writes_nothing(tmp_path):
    output_path = tmp_path / "matrix.png"

    plot_region_matrix([], output_path, title="Regions")

    assert not output_path.exists()
