"""Aggregation, normalization and comparison helpers."""

from __future__ import annotations

from collections import defaultdict
from datetime import date
import math
from statistics import NormalDist
from typing import Iterable, Sequence

import numpy as np

try:  # Optional dependency for exact p-values
    from scipy import stats as _scipy_stats
except ImportError:  # pragma: no cover - SciPy is optional
    _scipy_stats = None

from .constants import (
    AVERAGE_BASELINE,
    DEFAULT_SORT_DIRECTION,
    DEFAULT_SORT_KEY,
    MATRIX_SORT_KEYS,
    MAX_STAY_SEED,
    MIN_MOBILITY_SEED,
    MIXED_BASELINE,
    SORT_DIRECTIONS,
    WHOLE_COUNTRY_OPTION,
    format_percent,
    series_label,
)
from .models import (
    ComparisonRow,
    CountryAggregate,
    CountrySelector,
    CountryView,
    MovementRecord,
    NormalizedDataPoint,
    RegionSelector,
    RegionStats,
    RegionView,
    Selector,
    SeriesStats,
    TrendPoint,
)

_NORMAL_DIST = NormalDist()


def _day_key(value: str) -> date:
    return date.fromisoformat(value)


def aggregate_country(records: Iterable[MovementRecord], country: str) -> CountryAggregate | None:
    """Average a country's rows per date (trend) and per region (matrix) in one pass."""
    if not country:
        return None

    date_counts: defaultdict[str, int] = defaultdict(int)
    date_mobility: defaultdict[str, float] = defaultdict(float)
    date_stay: defaultdict[str, float] = defaultdict(float)

    # Dicts keep first-seen order, which becomes the matrix order.
    region_counts: dict[str, int] = {}
    region_mobility: dict[str, float] = {}
    region_stay: dict[str, float] = {}
    region_max_stay: dict[str, float] = {}
    region_min_mobility: dict[str, float] = {}

    for record in records:
        if record.country != country:
            continue

        date_counts[record.date] += 1
        date_mobility[record.date] += record.mobility_change
        date_stay[record.date] += record.stay_home_ratio

        name = record.region_name
        if name not in region_counts:
            region_counts[name] = 0
            region_mobility[name] = 0.0
            region_stay[name] = 0.0
            region_max_stay[name] = MAX_STAY_SEED
            region_min_mobility[name] = MIN_MOBILITY_SEED
        region_counts[name] += 1
        region_mobility[name] += record.mobility_change
        region_stay[name] += record.stay_home_ratio
        region_max_stay[name] = max(region_max_stay[name], record.stay_home_ratio)
        region_min_mobility[name] = min(region_min_mobility[name], record.mobility_change)

    if not date_counts:
        return None

    ordered_days = sorted(date_counts, key=_day_key)
    trend = tuple(
        TrendPoint(
            date=day,
            avg_mobility=date_mobility[day] / date_counts[day],
            avg_stay=date_stay[day] / date_counts[day],
        )
        for day in ordered_days
    )
    matrix = tuple(
        RegionStats(
            name=name,
            avg_mobility=region_mobility[name] / count,
            avg_stay=region_stay[name] / count,
            max_stay=region_max_stay[name],
            min_mobility=region_min_mobility[name],
            data_points=count,
        )
        for name, count in region_counts.items()
    )
    return CountryAggregate(trend=trend, matrix=matrix, total_regions=len(matrix))


def normalize_series(
    records: Sequence[MovementRecord], country: str, region: str
) -> list[NormalizedDataPoint]:
    """Return the date-sorted series of one region or of the whole-country average.

    Same-date rows of a single region are kept as separate points.
    """
    if not country or not region:
        return []

    if region == WHOLE_COUNTRY_OPTION:
        aggregate = aggregate_country(records, country)
        if aggregate is None:
            return []
        return [
            NormalizedDataPoint(
                date=point.date,
                mobility=point.avg_mobility,
                stay=point.avg_stay,
                baseline_type=AVERAGE_BASELINE,
            )
            for point in aggregate.trend
        ]

    matching = [
        record
        for record in records
        if record.country == country and record.region_name == region
    ]
    matching.sort(key=lambda record: _day_key(record.date))
    return [
        NormalizedDataPoint(
            date=record.date,
            mobility=record.mobility_change,
            stay=record.stay_home_ratio,
            baseline_type=record.baseline_type,
        )
        for record in matching
    ]


def region_as_aggregate(
    series: Sequence[NormalizedDataPoint], region_name: str
) -> CountryAggregate | None:
    """Reshape one normalized series into a single-row ``CountryAggregate``."""
    if not series:
        return None

    mobility_values = [point.mobility for point in series]
    stay_values = [point.stay for point in series]

    trend = tuple(
        TrendPoint(date=point.date, avg_mobility=point.mobility, avg_stay=point.stay)
        for point in series
    )
    row = RegionStats(
        name=region_name,
        avg_mobility=sum(mobility_values) / len(mobility_values),
        avg_stay=sum(stay_values) / len(stay_values),
        max_stay=max(stay_values),
        min_mobility=min(mobility_values),
        data_points=len(series),
    )
    return CountryAggregate(trend=trend, matrix=(row,), total_regions=1)


def summarize_series(series: Sequence[NormalizedDataPoint]) -> SeriesStats | None:
    """Reduce a series to its summary card values.

    ``start`` and ``end`` are the first and last points, so the series must
    already be sorted by date.
    """
    if not series:
        return None

    mobility_values = [point.mobility for point in series]
    avg_mobility = sum(mobility_values) / len(mobility_values)
    max_stay = max(point.stay for point in series)
    return SeriesStats(
        avg_mobility=format_percent(avg_mobility),
        max_stay_home=format_percent(max_stay),
        count=len(series),
        start=series[0].date,
        end=series[-1].date,
    )


def merge_series(
    primary: Sequence[object],
    secondary: Sequence[object] | None,
    primary_label: str | None,
    secondary_label: str | None = None,
    *,
    mobility_field: str = "mobility",
    stay_field: str = "stay",
    label_missing_primary: bool = False,
) -> list[ComparisonRow]:
    """Full outer join of two series on their exact date strings.

    Later points overwrite earlier ones that share a date. Rows only present
    in ``secondary`` get ``None`` primary values, and the primary label too
    when ``label_missing_primary`` is set.
    """
    rows: dict[str, ComparisonRow] = {}

    for point in primary:
        rows[point.date] = ComparisonRow(
            date=point.date,
            primary_mobility=getattr(point, mobility_field),
            primary_stay=getattr(point, stay_field),
            primary_label=primary_label,
        )

    for point in secondary or ():
        existing = rows.get(point.date)
        if existing is None:
            existing = ComparisonRow(
                date=point.date,
                primary_mobility=None,
                primary_stay=None,
                primary_label=primary_label if label_missing_primary else None,
            )
        rows[point.date] = ComparisonRow(
            date=existing.date,
            primary_mobility=existing.primary_mobility,
            primary_stay=existing.primary_stay,
            primary_label=existing.primary_label,
            secondary_mobility=getattr(point, mobility_field),
            secondary_stay=getattr(point, stay_field),
            secondary_label=secondary_label,
        )

    return sorted(rows.values(), key=lambda row: _day_key(row.date))


def merge_trends(
    primary: CountryAggregate,
    secondary: CountryAggregate | None,
    primary_label: str,
    secondary_label: str | None = None,
) -> list[ComparisonRow]:
    return merge_series(
        primary.trend,
        secondary.trend if secondary is not None else None,
        primary_label,
        secondary_label,
        mobility_field="avg_mobility",
        stay_field="avg_stay",
        label_missing_primary=True,
    )


def sort_matrix(
    matrix: Iterable[RegionStats], key: str, direction: str = "asc"
) -> list[RegionStats]:
    """Sort region rows by one field; ties keep their incoming order."""
    if key not in MATRIX_SORT_KEYS:
        raise ValueError(f"Unknown sort key {key!r}; expected one of {MATRIX_SORT_KEYS}")
    if direction not in SORT_DIRECTIONS:
        raise ValueError(f"Sort direction must be 'asc' or 'desc', got {direction!r}")

    return sorted(
        matrix,
        key=lambda stats: getattr(stats, key),
        reverse=direction == "desc",
    )


def next_sort_direction(current: tuple[str, str] | None, key: str) -> str:
    """Direction after clicking ``key``: ascending toggles to descending on the same key."""
    if current is not None and current == (key, "asc"):
        return "desc"
    return "asc"


def resolve_aggregate(records: Sequence[MovementRecord], selector: Selector) -> CountryAggregate | None:
    if isinstance(selector, CountrySelector):
        return aggregate_country(records, selector.country)
    if isinstance(selector, RegionSelector):
        series = normalize_series(records, selector.country, selector.region)
        return region_as_aggregate(series, series_label(selector.country, selector.region))
    raise TypeError(f"Unsupported selector: {selector!r}")


def selector_label(selector: Selector) -> str:
    if isinstance(selector, RegionSelector):
        return series_label(selector.country, selector.region)
    return selector.country


def build_region_view(
    records: Sequence[MovementRecord],
    primary: RegionSelector,
    secondary: RegionSelector | None = None,
) -> RegionView:
    """Everything the comparative-analysis view shows for one or two series."""
    primary_series = normalize_series(records, primary.country, primary.region)
    primary_label = series_label(primary.country, primary.region)

    secondary_series: list[NormalizedDataPoint] = []
    secondary_label = None
    if secondary is not None:
        secondary_series = normalize_series(records, secondary.country, secondary.region)
        secondary_label = series_label(secondary.country, secondary.region)

    rows = merge_series(primary_series, secondary_series, primary_label, secondary_label)
    baseline_type = primary_series[0].baseline_type if primary_series else None
    return RegionView(
        primary_series=tuple(primary_series),
        secondary_series=tuple(secondary_series),
        rows=tuple(rows),
        primary_stats=summarize_series(primary_series),
        secondary_stats=summarize_series(secondary_series) if secondary is not None else None,
        primary_label=primary_label,
        secondary_label=secondary_label,
        baseline_type=baseline_type or MIXED_BASELINE,
    )


def build_country_view(
    records: Sequence[MovementRecord],
    country: str,
    comparison: Selector | None = None,
    *,
    sort_key: str = DEFAULT_SORT_KEY,
    sort_direction: str = DEFAULT_SORT_DIRECTION,
    matrix_tab: str = "primary",
) -> CountryView | None:
    """Everything the country-overview view shows; ``None`` for an unknown country."""
    primary = aggregate_country(records, country)
    if primary is None:
        return None

    secondary = None
    secondary_label = None
    if comparison is not None:
        secondary = resolve_aggregate(records, comparison)
        secondary_label = selector_label(comparison)

    rows = merge_trends(primary, secondary, country, secondary_label)
    active = secondary if matrix_tab == "secondary" and secondary is not None else primary
    return CountryView(
        primary=primary,
        secondary=secondary,
        rows=tuple(rows),
        matrix=tuple(sort_matrix(active.matrix, sort_key, sort_direction)),
        primary_label=country,
        secondary_label=secondary_label,
    )


def _correlation_p_value(corr: float, n: int) -> float:
    if _scipy_stats is not None:  # pragma: no cover - SciPy optional
        t_dist = _scipy_stats.t(df=n - 2)
        t_score = abs(corr) * math.sqrt((n - 2) / (1.0 - corr * corr))
        return float(2.0 * t_dist.sf(t_score))

    # Fisher z approximation when SciPy is unavailable
    z_score = abs(math.atanh(corr)) * math.sqrt(max(n - 3, 1))
    return 2.0 * (1.0 - _NORMAL_DIST.cdf(z_score))


def compute_comparison_correlation(
    rows: Iterable[ComparisonRow], field: str = "mobility"
) -> tuple[float, float | None, int]:
    """Pearson r, two-tailed p-value and day count over the dates both series cover.

    Fewer than three shared days, or a flat series, give no p-value.
    """
    if field not in ("mobility", "stay"):
        raise ValueError("field must be 'mobility' or 'stay'")

    pairs = [
        (getattr(row, f"primary_{field}"), getattr(row, f"secondary_{field}"))
        for row in rows
    ]
    values = np.asarray(
        [pair for pair in pairs if pair[0] is not None and pair[1] is not None],
        dtype=float,
    ).reshape(-1, 2)
    n = len(values)
    if n < 3 or np.ptp(values[:, 0]) == 0 or np.ptp(values[:, 1]) == 0:
        return float("nan"), None, n

    corr = float(np.corrcoef(values[:, 0], values[:, 1])[0, 1])
    if abs(corr) >= 1.0:
        return math.copysign(1.0, corr), 0.0, n
    return corr, _correlation_p_value(corr, n), n
