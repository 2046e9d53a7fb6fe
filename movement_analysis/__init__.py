"""Utilities for analysing Movement Range exports."""

from .constants import WHOLE_COUNTRY_OPTION  # noqa: F401
from .data_sources import HuggingFaceOptions, resolve_data_path  # noqa: F401
from .models import (  # noqa: F401
    ComparisonRow,
    CountryAggregate,
    CountrySelector,
    MovementRecord,
    NormalizedDataPoint,
    RegionSelector,
    RegionStats,
)
