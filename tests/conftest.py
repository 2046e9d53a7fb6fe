import matplotlib

matplotlib.use("Agg")

import pytest

from movement_analysis.models import MovementRecord

TSV_HEADER = (
    "ds\tcountry\tpolygon_source\tpolygon_id\tpolygon_name\t"
    "all_day_bing_tiles_visited_relative_change\tall_day_ratio_single_tile_users\t"
    "baseline_name\tbaseline_type"
)


def make_record(day, country, region, mobility, stay, baseline_type="DAY_OF_WEEK"):
    return MovementRecord(
        date=day,
        country=country,
        region_id=f"{country}.{region}",
        region_name=region,
        mobility_change=mobility,
        stay_home_ratio=stay,
        baseline_name="full_february",
        baseline_type=baseline_type,
        polygon_source="GADM",
    )


@pytest.fixture
def records():
    # Deliberately unsorted; region B skips 2020-03-02.
    return [
        make_record("2020-03-02", "XYZ", "A", -0.30, 0.40),
        make_record("2020-03-01", "XYZ", "A", -0.20, 0.50),
        make_record("2020-03-01", "XYZ", "B", 0.00, 0.30),
        make_record("2020-03-03", "XYZ", "B", -0.10, 0.20),
        make_record("2020-03-03", "XYZ", "A", -0.40, 0.60),
        make_record("2020-03-01", "QRS", "North", 0.10, 0.15),
        make_record("2020-03-04", "QRS", "North", 0.05, 0.25),
        make_record("2020-03-04", "QRS", "South", -0.05, 0.35),
    ]


@pytest.fixture
def write_tsv(tmp_path):
    def _write(lines, name="movement-range.txt", header=TSV_HEADER):
        path = tmp_path / name
        path.write_text("\n".join([header, *lines]) + "\n", encoding="utf-8")
        return path

    return _write
