"""Smoke tests of the analyze_movement_range command line."""

import json

import pytest

import analyze_movement_range

ROWS = [
    "2020-03-01\tXYZ\tGADM\tXYZ.1_1\tAlpha\t-0.2\t0.5\tfull_february\tDAY_OF_WEEK",
    "2020-03-02\tXYZ\tGADM\tXYZ.1_1\tAlpha\t-0.3\t0.4\tfull_february\tDAY_OF_WEEK",
    "2020-03-01\tXYZ\tGADM\tXYZ.2_1\tBravo\t0.0\t0.3\tfull_february\tDAY_OF_WEEK",
    "2020-03-03\tXYZ\tGADM\tXYZ.2_1\tBravo\t-0.1\t0.2\tfull_february\tDAY_OF_WEEK",
    "2020-03-01\tQRS\tGADM\tQRS.1_1\tNorth\t0.1\t0.15\tfull_february\tDAY_OF_WEEK",
    "2020-03-04\tQRS\tGADM\tQRS.1_1\tNorth\t0.05\t0.25\tfull_february\tDAY_OF_WEEK",
]


@pytest.fixture
def movement_file(write_tsv):
    return write_tsv(ROWS)


def test_list_countries(movement_file, capsys):
    analyze_movement_range.main(["--movement-file", str(movement_file), "--list-countries"])

    out = capsys.readouterr().out
    assert "QRS: 1 regions" in out
    assert "XYZ: 2 regions" in out


def test_country_view_defaults_to_first_country(movement_file, tmp_path, capsys):
    output_dir = tmp_path / "plots"
    export_path = tmp_path / "view.json"

    analyze_movement_range.main(
        [
            "--movement-file",
            str(movement_file),
            "--output-dir",
            str(output_dir),
            "--export-json",
            str(export_path),
        ]
    )

    out = capsys.readouterr().out
    assert "QRS: 1 regions" in out
    assert (output_dir / "country_mobility_trend.png").exists()
    assert (output_dir / "country_region_matrix.png").exists()

    payload = json.loads(export_path.read_text(encoding="utf-8"))
    assert payload["view"] == "country"
    assert payload["primary_label"] == "QRS"
    assert payload["primary"]["total_regions"] == 1
    assert [row["date"] for row in payload["rows"]] == ["2020-03-01", "2020-03-04"]


def test_country_view_compared_with_country(movement_file, tmp_path, capsys):
    output_dir = tmp_path / "plots"
    export_path = tmp_path / "view.json"

    analyze_movement_range.main(
        [
            "--movement-file",
            str(movement_file),
            "--country",
            "XYZ",
            "--compare-country",
            "QRS",
            "--sort-key",
            "name",
            "--sort-direction",
            "desc",
            "--output-dir",
            str(output_dir),
            "--export-json",
            str(export_path),
        ]
    )

    out = capsys.readouterr().out
    assert "XYZ: 2 regions" in out
    assert "sorted by name desc" in out
    assert (output_dir / "country_mobility_comparison.png").exists()
    assert (output_dir / "country_stay_home_comparison.png").exists()

    payload = json.loads(export_path.read_text(encoding="utf-8"))
    assert payload["secondary_label"] == "QRS"
    assert [stats["name"] for stats in payload["matrix"]] == ["Bravo", "Alpha"]
    assert payload["rows"][-1]["primary_mobility"] is None
    assert payload["rows"][-1]["primary_label"] == "XYZ"


def test_country_view_compared_with_own_region(movement_file, tmp_path):
    export_path = tmp_path / "view.json"

    analyze_movement_range.main(
        [
            "--movement-file",
            str(movement_file),
            "--country",
            "XYZ",
            "--compare-type",
            "region",
            "--matrix-tab",
            "secondary",
            "--output-dir",
            str(tmp_path / "plots"),
            "--export-json",
            str(export_path),
        ]
    )

    payload = json.loads(export_path.read_text(encoding="utf-8"))
    assert payload["secondary_label"] == "Alpha"
    assert payload["secondary"]["total_regions"] == 1
    assert [stats["name"] for stats in payload["matrix"]] == ["Alpha"]


def test_region_view_with_comparison(movement_file, tmp_path, capsys):
    output_dir = tmp_path / "plots"

    analyze_movement_range.main(
        [
            "--movement-file",
            str(movement_file),
            "--view",
            "region",
            "--country",
            "XYZ",
            "--region",
            "Alpha",
            "--compare-country",
            "XYZ",
            "--output-dir",
            str(output_dir),
        ]
    )

    out = capsys.readouterr().out
    assert "Alpha: avg mobility -25.0%" in out
    assert "XYZ (Avg): avg mobility" in out
    assert (output_dir / "region_mobility_comparison.png").exists()


def test_region_view_single_series(movement_file, tmp_path, capsys):
    output_dir = tmp_path / "plots"

    analyze_movement_range.main(
        [
            "--movement-file",
            str(movement_file),
            "--view",
            "region",
            "--country",
            "XYZ",
            "--output-dir",
            str(output_dir),
        ]
    )

    out = capsys.readouterr().out
    assert "Baseline: AVERAGE" in out
    assert (output_dir / "region_mobility_trend.png").exists()
    assert (output_dir / "region_stay_home_trend.png").exists()


@pytest.mark.parametrize(
    "extra_args, message",
    (
        pytest.param(["--country", "NOPE"], "Country 'NOPE' not found", id="unknown-country"),
        pytest.param(
            ["--view", "region", "--country", "XYZ", "--region", "Nowhere"],
            "Region 'Nowhere' not found",
            id="unknown-region",
        ),
    ),
)
def test_unknown_selection_exits(movement_file, tmp_path, extra_args, message):
    with pytest.raises(SystemExit, match=message):
        analyze_movement_range.main(
            ["--movement-file", str(movement_file), "--output-dir", str(tmp_path), *extra_args]
        )


def test_empty_export_exits(write_tsv, tmp_path):
    path = write_tsv([])

    with pytest.raises(SystemExit, match="No movement records"):
        analyze_movement_range.main(["--movement-file", str(path), "--output-dir", str(tmp_path)])
