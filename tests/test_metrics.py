import numpy as np
import pytest

from junction_forecasting.forecasting import ForecastResult
from junction_forecasting.metrics import (
    ErrorRecord,
    comparison_table,
    mae,
    mse,
    rmse,
    score_forecast,
)


def test_basic_metrics():
    y, yhat = [1.0, 2.0, 3.0], [2.0, 2.0, 5.0]
    assert mae(y, yhat) == pytest.approx(1.0)
    assert mse(y, yhat) == pytest.approx(5.0 / 3.0)
    assert rmse(y, yhat) == pytest.approx(np.sqrt(5.0 / 3.0))


def test_missing_positions_are_ignored():
    y = [1.0, np.nan, 3.0, 4.0]
    yhat = [2.0, 2.0, np.nan, 4.0]
    assert mae(y, yhat) == pytest.approx(0.5)
    assert mse(y, yhat) == pytest.approx(0.5)


def test_no_valid_positions_gives_nan():
    assert np.isnan(mae([np.nan], [1.0]))
    assert np.isnan(rmse([1.0], [np.nan]))


def test_length_mismatch_raises():
    with pytest.raises(ValueError):
        mae([1.0, 2.0], [1.0])


@pytest.mark.parametrize('seed', range(5))
def test_rmse_squared_equals_mse(seed):
    rng = np.random.default_rng(seed)
    y, yhat = rng.normal(size=50), rng.normal(size=50)
    assert rmse(y, yhat) ** 2 == pytest.approx(mse(y, yhat), rel=1e-12)


def test_score_forecast_log_and_raw_scales():
    res = ForecastResult(junction=1, method='M', predictions=np.log1p([9.0, 19.0]))
    actual_raw = np.array([10.0, 20.0])

    raw = score_forecast(res, np.log1p(actual_raw), actual_raw, scale='raw')
    assert raw.mae == pytest.approx(1.0)
    assert raw.n_valid == 2

    log = score_forecast(res, np.log1p(actual_raw), actual_raw, scale='log')
    assert log.mae == pytest.approx(np.mean(np.log1p([10.0, 20.0]) - np.log1p([9.0, 19.0])))
    assert log.rmse ** 2 == pytest.approx(log.mse)

    with pytest.raises(ValueError):
        score_forecast(res, [], [], scale='percent')


def test_score_forecast_keeps_failed_cells():
    res = ForecastResult(junction=2, method='ARIMA_1-1-1', status='failed', notes='FAILED: FitFailure: x')
    rec = score_forecast(res, [1.0], [1.0])
    assert rec.status == 'failed'
    assert rec.notes == 'FAILED: FitFailure: x'
    assert np.isnan(rec.mae) and np.isnan(rec.rmse)


def test_score_forecast_all_missing_is_insufficient():
    res = ForecastResult(junction=2, method='MovingAverage_w3', predictions=np.array([np.nan, np.nan]))
    rec = score_forecast(res, [1.0, 2.0], [1.0, 2.0])
    assert rec.status == 'insufficient_data'


def test_comparison_table_is_sorted_by_junction_then_model():
    records = [
        ErrorRecord(junction=2, method='SeasonalNaive_s24', mae=1.0, mse=1.0, rmse=1.0, n_valid=3),
        ErrorRecord(junction=1, method='SeasonalNaive_s24', mae=2.0, mse=4.0, rmse=2.0, n_valid=3),
        ErrorRecord(junction=1, method='ARIMA_1-1-1', status='failed', notes='FAILED'),
    ]
    table = comparison_table(records)
    assert table[['Junction', 'Model']].values.tolist() == [
        [1, 'ARIMA_1-1-1'],
        [1, 'SeasonalNaive_s24'],
        [2, 'SeasonalNaive_s24'],
    ]
    assert list(table.columns) == ['Junction', 'Model', 'MAE', 'MSE', 'RMSE', 'n_valid', 'status', 'notes']
    assert np.isnan(table.loc[0, 'RMSE'])
