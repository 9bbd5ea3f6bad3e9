from __future__ import annotations

import warnings
from dataclasses import dataclass, field
from typing import Callable, Dict, Tuple

import numpy as np
import pandas as pd

from statsmodels.tools.sm_exceptions import ConvergenceWarning
from statsmodels.tsa.arima.model import ARIMA
from statsmodels.tsa.statespace.sarimax import SARIMAX

from .config import ProjectConfig
from .exceptions import FitFailure, InsufficientDataError

Forecaster = Callable[[pd.Series, pd.Series], np.ndarray]


@dataclass(frozen=True)
class ForecastResult:
    junction: int
    method: str
    predictions: np.ndarray = field(default_factory=lambda: np.empty(0))
    status: str = 'ok'
    notes: str = ''

    @property
    def ok(self) -> bool:
        return self.status == 'ok'


def _as_float(values) -> np.ndarray:
    return np.asarray(values, dtype=float).ravel()


def _require_length(train: np.ndarray, min_obs: int, label: str) -> None:
    if train.size < min_obs:
        raise InsufficientDataError(f'{label} needs at least {min_obs} training observations, got {train.size}')


def moving_average_forecast(train, horizon: int, window: int = 3, observed=None) -> np.ndarray:
    """Trailing mean of the `window` values preceding each forecast point.

    With `observed` (the actual values over the horizon) the window slides over
    train + observed, one step ahead per prediction. Without it the forecasts
    themselves are fed back into the window. Points whose window is not full
    are NaN.
    """
    if window < 1:
        raise ValueError(f'window must be >= 1, got {window}')
    y = _as_float(train)

    if observed is not None:
        obs = _as_float(observed)[:horizon]
        full = pd.Series(np.concatenate([y, obs]))
        pred = full.rolling(window=window, min_periods=window).mean().shift(1)
        return pred.to_numpy()[y.size:y.size + horizon]

    hist = list(y)
    out = np.full(horizon, np.nan)
    for i in range(horizon):
        tail = hist[-window:]
        if len(tail) == window:
            out[i] = float(np.mean(tail))
        hist.append(out[i])
    return out


def seasonal_naive_forecast(train, horizon: int, season_length: int = 24) -> np.ndarray:
    """Repeat the last full season of training data forward."""
    y = _as_float(train)
    _require_length(y, season_length, f'SeasonalNaive(s={season_length})')
    last_season = y[-season_length:]
    reps = int(np.ceil(horizon / season_length))
    return np.tile(last_season, reps)[:horizon]


def _fit_forecast(model, horizon: int, label: str, require_convergence: bool, **fit_kwargs) -> np.ndarray:
    try:
        with warnings.catch_warnings():
            # convergence is checked from mle_retvals instead
            warnings.simplefilter('ignore', ConvergenceWarning)
            warnings.simplefilter('ignore', UserWarning)
            res = model.fit(**fit_kwargs)
            fc = _as_float(res.forecast(steps=horizon))
    except (np.linalg.LinAlgError, ValueError, IndexError, OverflowError) as e:
        raise FitFailure(f'{label}: {type(e).__name__}: {e}') from e

    retvals = getattr(res, 'mle_retvals', None) or {}
    if require_convergence and not retvals.get('converged', True):
        raise FitFailure(f'{label}: optimizer did not converge')

    if fc.shape != (horizon,) or not np.all(np.isfinite(fc)):
        raise FitFailure(f'{label}: forecast is not {horizon} finite values')

    return fc


def arima_forecast(
    train,
    horizon: int,
    order: Tuple[int, int, int] = (1, 1, 1),
    require_convergence: bool = True,
) -> np.ndarray:
    y = _as_float(train)
    p, d, q = order
    label = f'ARIMA{tuple(order)}'
    _require_length(y, p + d + q + 2, label)
    return _fit_forecast(ARIMA(y, order=order), horizon, label, require_convergence)


def sarima_forecast(
    train,
    horizon: int,
    order: Tuple[int, int, int] = (1, 1, 1),
    seasonal_order: Tuple[int, int, int] = (1, 1, 1),
    season_length: int = 12,
    require_convergence: bool = True,
) -> np.ndarray:
    y = _as_float(train)
    p, d, q = order
    P, D, Q = seasonal_order
    label = f'SARIMA{tuple(order)}{(P, D, Q, season_length)}'
    # differencing eats d + D*s points; the seasonal AR/MA terms need one more season
    _require_length(y, d + season_length * (D + max(P, Q)) + max(p, q) + 1, label)
    model = SARIMAX(y, order=order, seasonal_order=(P, D, Q, season_length))
    return _fit_forecast(model, horizon, label, require_convergence, disp=False)


def method_label(method: str, cfg: ProjectConfig) -> str:
    if method == 'moving_average':
        return f'MovingAverage_w{cfg.ma_window}'
    if method == 'seasonal_naive':
        return f'SeasonalNaive_s{cfg.naive_season_length}'
    if method == 'arima':
        return 'ARIMA_{}-{}-{}'.format(*cfg.arima_order)
    if method == 'sarima':
        return 'SARIMA_{}-{}-{}_{}-{}-{}-{}'.format(*cfg.sarima_order, *cfg.sarima_seasonal_order, cfg.sarima_season_length)
    raise ValueError(f'Unknown forecasting method: {method}')


def build_forecasters(cfg: ProjectConfig = ProjectConfig()) -> Dict[str, Forecaster]:
    """Name -> callable(train, test) returning len(test) predictions."""
    zoo: Dict[str, Forecaster] = {}

    for method in cfg.methods:
        name = method_label(method, cfg)

        if method == 'moving_average':
            zoo[name] = lambda train, test: moving_average_forecast(
                train, len(test), window=cfg.ma_window, observed=test)
        elif method == 'seasonal_naive':
            zoo[name] = lambda train, test: seasonal_naive_forecast(
                train, len(test), season_length=cfg.naive_season_length)
        elif method == 'arima':
            zoo[name] = lambda train, test: arima_forecast(
                train, len(test), order=cfg.arima_order, require_convergence=cfg.require_convergence)
        elif method == 'sarima':
            zoo[name] = lambda train, test: sarima_forecast(
                train, len(test),
                order=cfg.sarima_order,
                seasonal_order=cfg.sarima_seasonal_order,
                season_length=cfg.sarima_season_length,
                require_convergence=cfg.require_convergence,
            )

    return zoo


def run_forecaster(junction: int, name: str, fn: Forecaster, train: pd.Series, test: pd.Series) -> ForecastResult:
    """Fit one (junction, method) cell; data and fit problems become a non-ok result."""
    try:
        pred = fn(train, test)
    except InsufficientDataError as e:
        return ForecastResult(junction=junction, method=name, status='insufficient_data',
                              notes=f'INSUFFICIENT DATA: {e}')
    except FitFailure as e:
        return ForecastResult(junction=junction, method=name, status='failed',
                              notes=f'FAILED: {type(e).__name__}: {e}')
    return ForecastResult(junction=junction, method=name, predictions=np.asarray(pred, dtype=float))


def insufficient_result(junction: int, name: str, reason: str) -> ForecastResult:
    return ForecastResult(junction=junction, method=name, status='insufficient_data',
                          notes=f'INSUFFICIENT DATA: {reason}')

