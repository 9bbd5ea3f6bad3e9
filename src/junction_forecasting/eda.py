"""Exploratory tables handed to the figures script: lag correlations, calendar
profiles, seasonal decomposition and a per-junction summary."""

from __future__ import annotations

from typing import Dict, List

import numpy as np
import pandas as pd

from statsmodels.tsa.seasonal import seasonal_decompose

from .exceptions import InsufficientDataError
from .panel import complete_lag_rows

INSUFFICIENT = 'insufficient data'
CONSTANT = 'constant series'

DAY_ORDER = ['Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday', 'Sunday']
MONTH_ORDER = ['January', 'February', 'March', 'April', 'May', 'June', 'July',
               'August', 'September', 'October', 'November', 'December']


def lag_correlations(derived: Dict[int, pd.DataFrame], lag_hours: List[int]) -> pd.DataFrame:
    """Pearson correlation of Vehicles with each lag, per junction, on complete-lag rows.

    A junction left with fewer than two complete rows gets status
    'insufficient data', one whose values (or lagged values) never vary gets
    'constant series'. Both carry a NaN correlation, never 0.
    """
    rows = []
    for jid, d in sorted(derived.items()):
        complete = complete_lag_rows(d, lag_hours)
        for lag in lag_hours:
            col = f'Vehicles_lag_{lag}'
            corr = np.nan
            if len(complete) < 2:
                status = INSUFFICIENT
            elif complete['Vehicles'].nunique() < 2 or complete[col].nunique() < 2:
                status = CONSTANT
            else:
                corr = complete['Vehicles'].astype(float).corr(complete[col].astype(float))
                status = 'ok' if np.isfinite(corr) else INSUFFICIENT
            rows.append({
                'Junction': jid,
                'lag': lag,
                'corr': float(corr) if status == 'ok' else np.nan,
                'n_rows': int(len(complete)),
                'status': status,
            })
    return pd.DataFrame(rows, columns=['Junction', 'lag', 'corr', 'n_rows', 'status'])


def calendar_profiles(derived: Dict[int, pd.DataFrame]) -> Dict[str, pd.DataFrame]:
    """Mean vehicles per junction by hour, day of week, month and weekend flag."""
    panel = pd.concat(derived.values(), ignore_index=True) if derived else pd.DataFrame(
        columns=['Junction', 'Vehicles', 'hour', 'day_of_week', 'month', 'is_weekend'])

    def profile(key: str, order=None) -> pd.DataFrame:
        out = (
            panel.groupby(['Junction', key], as_index=False, observed=True)
            .agg(mean_vehicles=('Vehicles', 'mean'), n=('Vehicles', 'count'))
        )
        if order is not None:
            out[key] = pd.Categorical(out[key], categories=order, ordered=True)
        return out.sort_values(['Junction', key]).reset_index(drop=True)

    return {
        'hour': profile('hour'),
        'day_of_week': profile('day_of_week', DAY_ORDER),
        'month': profile('month', MONTH_ORDER),
        'is_weekend': profile('is_weekend'),
    }


def decompose_junction(derived: pd.DataFrame, period: int = 24, model: str = 'additive', freq: str = 'h') -> pd.DataFrame:
    """Seasonal decomposition on the regular `freq` grid.

    Missing steps would shift the seasonal phase, so a junction with gaps
    (or NaN counts) raises InsufficientDataError instead of being decomposed.
    """
    series = derived.set_index('DateTime')['Vehicles'].astype(float).sort_index().asfreq(freq)
    n_missing = int(series.isna().sum())
    if n_missing:
        raise InsufficientDataError(f'decomposition needs a gap-free {freq} series, {n_missing} steps are missing')
    if len(series) < 2 * period:
        raise InsufficientDataError(f'decomposition with period {period} needs {2 * period} observations, got {len(series)}')

    res = seasonal_decompose(series.to_numpy(), model=model, period=period)
    return pd.DataFrame({
        'DateTime': series.index,
        'observed': res.observed,
        'trend': res.trend,
        'seasonal': res.seasonal,
        'resid': res.resid,
    })


def summarize_junctions(derived: Dict[int, pd.DataFrame]) -> pd.DataFrame:
    rows = []
    for jid, d in sorted(derived.items()):
        rows.append({
            'Junction': jid,
            'n_obs': int(d['Vehicles'].notna().sum()),
            'start': d['DateTime'].min(),
            'end': d['DateTime'].max(),
            'mean_vehicles': float(d['Vehicles'].mean()),
            'max_vehicles': float(d['Vehicles'].max()),
        })
    return pd.DataFrame(rows, columns=['Junction', 'n_obs', 'start', 'end', 'mean_vehicles', 'max_vehicles'])
