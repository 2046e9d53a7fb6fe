"""Immutable value types passed between the loader, the engine and the plots."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class MovementRecord:
    """One row of the Movement Range export."""

    date: str
    country: str
    region_id: str
    region_name: str
    mobility_change: float
    stay_home_ratio: float
    baseline_name: str = ""
    baseline_type: str = ""
    polygon_source: str = ""


@dataclass(frozen=True)
class NormalizedDataPoint:
    date: str
    mobility: float
    stay: float
    baseline_type: str | None = None


@dataclass(frozen=True)
class TrendPoint:
    date: str
    avg_mobility: float
    avg_stay: float


@dataclass(frozen=True)
class RegionStats:
    name: str
    avg_mobility: float
    avg_stay: float
    max_stay: float
    min_mobility: float
    data_points: int


@dataclass(frozen=True)
class CountryAggregate:
    """Daily trend plus per-region matrix for a country or a single region."""

    trend: tuple[TrendPoint, ...]
    matrix: tuple[RegionStats, ...]
    total_regions: int

    @property
    def mean_region_mobility(self) -> float | None:
        # Unweighted: every region counts once regardless of its row count.
        if not self.total_regions:
            return None
        return sum(stats.avg_mobility for stats in self.matrix) / self.total_regions

    @property
    def date_range(self) -> tuple[str, str] | None:
        if not self.trend:
            return None
        return self.trend[0].date, self.trend[-1].date


@dataclass(frozen=True)
class ComparisonRow:
    date: str
    primary_mobility: float | None
    primary_stay: float | None
    primary_label: str | None = None
    secondary_mobility: float | None = None
    secondary_stay: float | None = None
    secondary_label: str | None = None


@dataclass(frozen=True)
class SeriesStats:
    """Summary card values; percentages are preformatted strings."""

    avg_mobility: str
    max_stay_home: str
    count: int
    start: str
    end: str


@dataclass(frozen=True)
class CountrySelector:
    country: str


@dataclass(frozen=True)
class RegionSelector:
    country: str
    region: str


Selector = Union[CountrySelector, RegionSelector]


@dataclass(frozen=True)
class RegionView:
    """Series, merged rows and summary cards of the comparative-analysis view."""

    primary_series: tuple[NormalizedDataPoint, ...]
    secondary_series: tuple[NormalizedDataPoint, ...]
    rows: tuple[ComparisonRow, ...]
    primary_stats: SeriesStats | None
    secondary_stats: SeriesStats | None
    primary_label: str
    secondary_label: str | None
    baseline_type: str


@dataclass(frozen=True)
class CountryView:
    """Aggregates, merged trend rows and the sorted matrix of the country overview."""

    primary: CountryAggregate
    secondary: CountryAggregate | None
    rows: tuple[ComparisonRow, ...]
    matrix: tuple[RegionStats, ...]
    primary_label: str
    secondary_label: str | None
