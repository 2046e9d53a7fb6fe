"""Shared constants and helpers for Movement Range analysis."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

# Reserved region selector meaning "average across every region of the country".
# Parentheses keep it from colliding with a real polygon name.
WHOLE_COUNTRY_OPTION = "(Whole Country Average)"

# Baseline tag for points averaged across regions.
AVERAGE_BASELINE = "AVERAGE"
MIXED_BASELINE = "MIXED"

SUPPORTED_EXTENSIONS = (".txt", ".tsv")

# Columns of the Movement Range export.
DATE_COLUMN = "ds"
COUNTRY_COLUMN = "country"
MOBILITY_COLUMN = "all_day_bing_tiles_visited_relative_change"
STAY_HOME_COLUMN = "all_day_ratio_single_tile_users"
TEXT_COLUMNS = (
    "ds",
    "country",
    "polygon_source",
    "polygon_id",
    "polygon_name",
    "baseline_name",
    "baseline_type",
)
NUMERIC_COLUMNS = (MOBILITY_COLUMN, STAY_HOME_COLUMN)

# Running extremes are seeded outside the valid range of each field.
MAX_STAY_SEED = -1.0
MIN_MOBILITY_SEED = 999.0

MATRIX_SORT_KEYS = (
    "name",
    "avg_mobility",
    "avg_stay",
    "max_stay",
    "min_mobility",
    "data_points",
)
SORT_DIRECTIONS = ("asc", "desc")
DEFAULT_SORT_KEY = "avg_mobility"
DEFAULT_SORT_DIRECTION = "asc"


def series_label(country: str, region: str) -> str:
    """Return the display label of a country/region selection."""
    if region == WHOLE_COUNTRY_OPTION:
        return f"{country} (Avg)"
    return region


def format_percent(ratio: float) -> str:
    """Format a fraction as a percentage string with one decimal, ties rounded away from zero."""
    scaled = Decimal(ratio * 100).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
    return f"{scaled:.1f}"


def format_signed_percent(ratio: float) -> str:
    text = format_percent(ratio)
    return f"+{text}%" if ratio > 0 else f"{text}%"
