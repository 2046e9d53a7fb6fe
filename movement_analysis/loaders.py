"""TSV loading utilities for Movement Range exports (pandas-based)."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

import pandas as pd

from .constants import (
    COUNTRY_COLUMN,
    DATE_COLUMN,
    MOBILITY_COLUMN,
    NUMERIC_COLUMNS,
    STAY_HOME_COLUMN,
    SUPPORTED_EXTENSIONS,
    TEXT_COLUMNS,
)
from .models import MovementRecord


def load_movement_records(path: Path) -> list[MovementRecord]:
    """Return one record per row of a tab-separated Movement Range export.

    Blank numeric cells become 0.0, dates are normalised to YYYY-MM-DD and
    rows without a readable date or a country are dropped.
    """
    if not path.exists():
        raise FileNotFoundError(f"Data file not found: {path}")
    if path.suffix.lower() not in SUPPORTED_EXTENSIONS:
        raise ValueError(
            f"Unsupported file type '{path.suffix}' for {path}. "
            "Please provide a valid .txt or .tsv file."
        )

    df = _read_movement_tsv(path)
    if df.empty:
        return []

    return [
        MovementRecord(
            date=row.ds,
            country=row.country,
            region_id=row.polygon_id,
            region_name=row.polygon_name,
            mobility_change=float(getattr(row, MOBILITY_COLUMN)),
            stay_home_ratio=float(getattr(row, STAY_HOME_COLUMN)),
            baseline_name=row.baseline_name,
            baseline_type=row.baseline_type,
            polygon_source=row.polygon_source,
        )
        for row in df.itertuples(index=False)
    ]


def unique_countries(records: Iterable[MovementRecord]) -> list[str]:
    return sorted({record.country for record in records})


def regions_by_country(records: Iterable[MovementRecord], country: str) -> list[str]:
    return sorted({record.region_name for record in records if record.country == country})


def _read_movement_tsv(path: Path) -> pd.DataFrame:
    # Everything is read as text so ids and names keep their exact spelling.
    try:
        df = pd.read_csv(
            path,
            sep="\t",
            encoding="utf-8",
            dtype=str,
            keep_default_na=False,
        )
    except pd.errors.EmptyDataError:
        return pd.DataFrame()
    if DATE_COLUMN not in df.columns or COUNTRY_COLUMN not in df.columns:
        return pd.DataFrame()

    for column in TEXT_COLUMNS:
        if column not in df.columns:
            df[column] = ""
        df[column] = df[column].fillna("").astype(str)

    for column in NUMERIC_COLUMNS:
        if column not in df.columns:
            df[column] = 0.0
        df[column] = pd.to_numeric(df[column], errors="coerce").fillna(0.0)

    # Dates are re-emitted as YYYY-MM-DD; unreadable or blank ones drop the row.
    days = pd.to_datetime(df[DATE_COLUMN], errors="coerce", format="mixed")
    df[DATE_COLUMN] = days.dt.strftime("%Y-%m-%d")
    df = df.dropna(subset=[DATE_COLUMN])

    df = df.loc[df[COUNTRY_COLUMN].ne(""), list(TEXT_COLUMNS) + list(NUMERIC_COLUMNS)].copy()
    return df
