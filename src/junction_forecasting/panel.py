from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Tuple

import numpy as np
import pandas as pd
from pandas.tseries.frequencies import to_offset

from .exceptions import InsufficientDataError, LoadError

logger = logging.getLogger(__name__)

RAW_COLUMNS = ['ID', 'DateTime', 'Junction', 'Vehicles']


@dataclass(frozen=True)
class CleaningReport:
    rows_in: int
    missing_field: int
    unparsable_timestamp: int
    malformed_value: int
    duplicate_row: int
    conflicting_key: int
    rows_out: int

    @property
    def dropped(self) -> int:
        return self.rows_in - self.rows_out


@dataclass(frozen=True)
class JunctionSplit:
    junction: int
    train: pd.DataFrame
    test: pd.DataFrame

    @property
    def horizon(self) -> int:
        return int(len(self.test))


def load_traffic(path: Path) -> pd.DataFrame:
    """Read the raw junction CSV; an empty file yields an empty frame."""
    try:
        return pd.read_csv(path, dtype=str, keep_default_na=True)
    except pd.errors.EmptyDataError:
        logger.warning('Input file %s is empty', path)
        return pd.DataFrame(columns=RAW_COLUMNS)


def clean_traffic(raw: pd.DataFrame, timestamp_format: str = '%Y-%m-%d %H:%M:%S') -> Tuple[pd.DataFrame, CleaningReport]:
    """Drop invalid rows and return (clean frame, counts of what was dropped).

    Row-level problems never raise. A missing column does, since no row could
    be valid without it.
    """
    missing_cols = [c for c in RAW_COLUMNS if c not in raw.columns]
    if missing_cols:
        raise LoadError(f'Missing required column(s): {missing_cols}')

    df = raw[RAW_COLUMNS].copy()
    rows_in = int(len(df))

    # whitespace-only cells count as missing
    df = df.replace(r'^\s*$', np.nan, regex=True)
    n0 = len(df)
    df = df.dropna(subset=RAW_COLUMNS)
    missing_field = n0 - len(df)

    n0 = len(df)
    df['DateTime'] = pd.to_datetime(df['DateTime'], format=timestamp_format, errors='coerce')
    df = df.dropna(subset=['DateTime'])
    unparsable_timestamp = n0 - len(df)

    n0 = len(df)
    junction = pd.to_numeric(df['Junction'], errors='coerce')
    vehicles = pd.to_numeric(df['Vehicles'], errors='coerce')
    ok = (
        junction.notna() & (junction == np.floor(junction))
        & vehicles.notna() & (vehicles >= 0) & (vehicles == np.floor(vehicles))
    )
    df = df[ok].copy()
    df['Junction'] = junction[ok].astype(int)
    df['Vehicles'] = vehicles[ok].astype(int)
    malformed_value = n0 - len(df)

    n0 = len(df)
    df = df.drop_duplicates()
    duplicate_row = n0 - len(df)

    n0 = len(df)
    df = df.drop_duplicates(subset=['DateTime', 'Junction'], keep='first')
    conflicting_key = n0 - len(df)

    df = df.sort_values(['Junction', 'DateTime'], kind='mergesort').reset_index(drop=True)

    report = CleaningReport(
        rows_in=rows_in,
        missing_field=missing_field,
        unparsable_timestamp=unparsable_timestamp,
        malformed_value=malformed_value,
        duplicate_row=duplicate_row,
        conflicting_key=conflicting_key,
        rows_out=int(len(df)),
    )
    logger.info('Cleaned %d -> %d rows (%d dropped)', report.rows_in, report.rows_out, report.dropped)
    return df, report


def count_gaps(clean: pd.DataFrame, freq: str = 'h') -> Dict[int, int]:
    """Missing cadence steps per junction between its first and last observation."""
    step = pd.Timedelta(to_offset(freq))
    gaps = {}
    for jid, g in clean.groupby('Junction', sort=True):
        expected = int((g['DateTime'].max() - g['DateTime'].min()) / step) + 1
        gaps[int(jid)] = expected - int(len(g))
    return gaps


def regularize_hourly(clean: pd.DataFrame, freq: str = 'h') -> pd.DataFrame:
    """Reindex every junction onto a gap-free grid; missing hours get NaN counts."""
    parts = []
    for jid, g in clean.groupby('Junction', sort=True):
        s = g.set_index('DateTime')[['ID', 'Vehicles']].asfreq(freq)
        s['Junction'] = int(jid)
        parts.append(s.reset_index())
    if not parts:
        return clean.copy()
    out = pd.concat(parts, ignore_index=True)
    return out[RAW_COLUMNS]


def derive_features(clean: pd.DataFrame, lag_hours: List[int]) -> pd.DataFrame:
    """Calendar fields, log1p target, per-junction lags and first differences."""
    base = clean[['DateTime', 'Junction', 'Vehicles']].copy()
    base = base.sort_values(['Junction', 'DateTime'], kind='mergesort').reset_index(drop=True)

    base['y'] = np.log1p(base['Vehicles'].astype(float))

    base['day_of_week'] = base['DateTime'].dt.day_name()
    base['month'] = base['DateTime'].dt.month_name()
    base['is_weekend'] = base['DateTime'].dt.dayofweek >= 5
    base['hour'] = base['DateTime'].dt.hour

    g = base.groupby('Junction', group_keys=False)['Vehicles']
    for lag in lag_hours:
        base[f'Vehicles_lag_{lag}'] = g.shift(lag)
    base['Vehicles_diff_1'] = g.diff()

    return base


def lag_columns(lag_hours: List[int]) -> List[str]:
    return [f'Vehicles_lag_{lag}' for lag in lag_hours] + ['Vehicles_diff_1']


def complete_lag_rows(derived: pd.DataFrame, lag_hours: List[int]) -> pd.DataFrame:
    """Rows whose lag/difference fields are all defined."""
    return derived.dropna(subset=['Vehicles'] + lag_columns(lag_hours)).reset_index(drop=True)


def split_by_junction(frame: pd.DataFrame) -> Dict[int, pd.DataFrame]:
    return {
        int(jid): g.reset_index(drop=True)
        for jid, g in frame.groupby('Junction', sort=True)
    }


def build_derived_series(
    clean: pd.DataFrame,
    lag_hours: List[int],
    fill_gaps: bool = False,
    freq: str = 'h',
) -> Dict[int, pd.DataFrame]:
    """Junction id -> DerivedSeries."""
    for jid, n_gaps in count_gaps(clean, freq=freq).items():
        if n_gaps:
            logger.warning('Junction %d has %d missing %s steps%s', jid, n_gaps, freq,
                           ' (filled with NaN)' if fill_gaps else '')

    if fill_gaps:
        clean = regularize_hourly(clean, freq=freq)

    return split_by_junction(derive_features(clean, lag_hours=lag_hours))


def split_point(n: int, frac: float) -> int:
    if not 0.0 < frac < 1.0:
        raise ValueError(f'train fraction must be in (0, 1), got {frac}')
    if n < 2:
        raise InsufficientDataError(f'need at least 2 records to split, got {n}')
    k = int(np.floor(n * frac + 0.5))
    return min(max(k, 1), n - 1)


def chronological_split(derived: pd.DataFrame, frac: float = 0.8) -> JunctionSplit:
    junction = int(derived['Junction'].iloc[0]) if len(derived) else -1
    k = split_point(len(derived), frac)
    return JunctionSplit(
        junction=junction,
        train=derived.iloc[:k].reset_index(drop=True),
        test=derived.iloc[k:].reset_index(drop=True),
    )
