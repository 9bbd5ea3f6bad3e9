from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Tuple

import numpy as np
import pandas as pd

from sklearn.metrics import mean_absolute_error, mean_squared_error

from .forecasting import ForecastResult

SCALES = ('log', 'raw')
TABLE_COLUMNS = ['Junction', 'Model', 'MAE', 'MSE', 'RMSE', 'n_valid', 'status', 'notes']


@dataclass(frozen=True)
class ErrorRecord:
    junction: int
    method: str
    mae: float = float('nan')
    mse: float = float('nan')
    rmse: float = float('nan')
    n_valid: int = 0
    status: str = 'ok'
    notes: str = ''


def valid_pairs(y, yhat) -> Tuple[np.ndarray, np.ndarray]:
    """Aligned values with every position dropped where either side is missing."""
    y = np.asarray(y, dtype=float).ravel()
    yhat = np.asarray(yhat, dtype=float).ravel()
    if y.shape != yhat.shape:
        raise ValueError(f'length mismatch: {y.size} actual vs {yhat.size} predicted')
    mask = np.isfinite(y) & np.isfinite(yhat)
    return y[mask], yhat[mask]


def mae(y, yhat) -> float:
    y, yhat = valid_pairs(y, yhat)
    if y.size == 0:
        return float('nan')
    return float(mean_absolute_error(y, yhat))


def mse(y, yhat) -> float:
    y, yhat = valid_pairs(y, yhat)
    if y.size == 0:
        return float('nan')
    return float(mean_squared_error(y, yhat))


def rmse(y, yhat) -> float:
    return float(np.sqrt(mse(y, yhat)))


def inv_log1p(z):
    z = np.asarray(z, dtype=float)
    return np.clip(np.expm1(z), 0, None)


def score_block(y, yhat) -> dict:
    """Metrics computed in the current scale of y/yhat."""
    return {
        'MAE': mae(y, yhat),
        'MSE': mse(y, yhat),
        'RMSE': rmse(y, yhat),
        'n_valid': int(valid_pairs(y, yhat)[0].size),
    }


def score_forecast(result: ForecastResult, actual_log, actual_raw, scale: str = 'log') -> ErrorRecord:
    """Compare one forecast (made on log1p scale) with the test actuals.

    scale='log' scores against log1p(Vehicles); scale='raw' back-transforms the
    predictions and scores against vehicle counts.
    """
    if scale not in SCALES:
        raise ValueError(f'scale must be one of {SCALES}, got {scale!r}')

    if not result.ok:
        return ErrorRecord(junction=result.junction, method=result.method, status=result.status, notes=result.notes)

    if scale == 'raw':
        y, yhat = actual_raw, inv_log1p(result.predictions)
    else:
        y, yhat = actual_log, result.predictions

    s = score_block(y, yhat)
    if s['n_valid'] == 0:
        return ErrorRecord(
            junction=result.junction,
            method=result.method,
            status='insufficient_data',
            notes='INSUFFICIENT DATA: no position with both a prediction and an actual',
        )

    return ErrorRecord(
        junction=result.junction,
        method=result.method,
        mae=s['MAE'],
        mse=s['MSE'],
        rmse=s['RMSE'],
        n_valid=s['n_valid'],
        notes=result.notes,
    )


def comparison_table(records: Iterable[ErrorRecord]) -> pd.DataFrame:
    """One row per (junction, method), stable-sorted by junction then model name."""
    rows = [
        {
            'Junction': r.junction,
            'Model': r.method,
            'MAE': r.mae,
            'MSE': r.mse,
            'RMSE': r.rmse,
            'n_valid': r.n_valid,
            'status': r.status,
            'notes': r.notes,
        }
        for r in records
    ]
    table = pd.DataFrame(rows, columns=TABLE_COLUMNS)
    return table.sort_values(['Junction', 'Model'], kind='mergesort').reset_index(drop=True)
