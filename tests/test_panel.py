import numpy as np
import pandas as pd
import pytest

from junction_forecasting.exceptions import InsufficientDataError, LoadError
from junction_forecasting.panel import (
    RAW_COLUMNS,
    build_derived_series,
    chronological_split,
    clean_traffic,
    complete_lag_rows,
    count_gaps,
    derive_features,
    load_traffic,
    split_point,
)

from conftest import make_raw

LAGS = [1, 2, 3]


def test_clean_drops_invalid_rows():
    raw = make_raw({1: [5, 6, 7, 8, 9]})
    bad = pd.DataFrame([
        {'ID': 'x1', 'DateTime': '2015-13-01 00:00:00', 'Junction': '1', 'Vehicles': '4'},  # bad month
        {'ID': 'x2', 'DateTime': '2015-11-02 00:00:00', 'Junction': '1', 'Vehicles': None},  # missing
        {'ID': 'x3', 'DateTime': '2015-11-02 01:00:00', 'Junction': '1', 'Vehicles': '-3'},  # negative
        {'ID': 'x4', 'DateTime': '2015-11-02 02:00:00', 'Junction': 'north', 'Vehicles': '3'},
        raw.iloc[0].to_dict(),  # exact duplicate
        {**raw.iloc[1].to_dict(), 'ID': 'x6', 'Vehicles': '99'},  # same key, different count
    ])
    clean, report = clean_traffic(pd.concat([raw, bad], ignore_index=True))

    assert report.rows_in == 11
    assert report.missing_field == 1
    assert report.unparsable_timestamp == 1
    assert report.malformed_value == 2
    assert report.duplicate_row == 1
    assert report.conflicting_key == 1
    assert report.rows_out == 5
    assert report.dropped == 6
    assert clean['Vehicles'].tolist() == [5, 6, 7, 8, 9]
    assert not clean.duplicated(subset=['DateTime', 'Junction']).any()


def test_clean_does_not_mutate_input():
    raw = make_raw({1: [1, 2, 3]})
    before = raw.copy()
    clean_traffic(raw)
    pd.testing.assert_frame_equal(raw, before)


def test_clean_missing_column_is_fatal():
    raw = make_raw({1: [1, 2, 3]}).drop(columns=['Vehicles'])
    with pytest.raises(LoadError):
        clean_traffic(raw)


def test_load_traffic_empty_file(tmp_path):
    path = tmp_path / 'traffic.csv'
    path.write_text('')
    df = load_traffic(path)
    assert df.empty
    assert list(df.columns) == RAW_COLUMNS


def test_log1p_is_nonnegative_and_monotonic():
    counts = [0, 1, 2, 5, 5, 40, 300]
    clean, _ = clean_traffic(make_raw({1: counts}))
    d = derive_features(clean, LAGS)
    assert d['y'].iloc[0] == 0.0
    assert (d['y'] >= 0).all()
    assert d['y'].is_monotonic_increasing
    np.testing.assert_allclose(d['y'], np.log1p(counts))


def test_calendar_fields():
    clean, _ = clean_traffic(make_raw({1: [3, 4]}, start='2015-11-07 13:00:00'))
    row = derive_features(clean, LAGS).iloc[0]
    assert row['day_of_week'] == 'Saturday'
    assert row['month'] == 'November'
    assert bool(row['is_weekend'])
    assert row['hour'] == 13


def test_lags_never_cross_junctions():
    clean, _ = clean_traffic(make_raw({1: [1, 2, 3, 4, 5], 2: [10, 20, 30, 40, 50]}))
    derived = build_derived_series(clean, LAGS)

    for jid, d in derived.items():
        assert d['Vehicles_diff_1'].isna().tolist()[:1] == [True]
        for k in LAGS:
            lag = d[f'Vehicles_lag_{k}']
            assert lag.iloc[:k].isna().all()
            assert lag.iloc[k:].tolist() == d['Vehicles'].iloc[:-k].tolist()

    assert derived[2]['Vehicles_lag_1'].iloc[1] == 10
    assert derived[2]['Vehicles_diff_1'].iloc[1] == 10
    assert len(complete_lag_rows(derived[1], LAGS)) == 2


def test_fill_gaps_inserts_missing_hours():
    raw = make_raw({1: [1, 2, 3, 4, 5]})
    raw = raw.drop(index=2).reset_index(drop=True)
    clean, _ = clean_traffic(raw)
    assert count_gaps(clean) == {1: 1}

    d = build_derived_series(clean, LAGS, fill_gaps=True)[1]
    assert len(d) == 5
    assert np.isnan(d['Vehicles'].iloc[2])
    assert d['DateTime'].diff().dropna().eq(pd.Timedelta(hours=1)).all()


def test_split_is_a_chronological_partition(raw_scenario):
    clean, _ = clean_traffic(raw_scenario)
    d = build_derived_series(clean, LAGS)[1]
    split = chronological_split(d, 0.8)

    assert split.junction == 1
    assert len(split.train) == 8
    assert split.horizon == 2
    assert split.train['DateTime'].max() < split.test['DateTime'].min()
    assert split.train['Vehicles'].tolist() + split.test['Vehicles'].tolist() == d['Vehicles'].tolist()


@pytest.mark.parametrize('n', [2, 3, 7, 10, 11, 101])
def test_split_point_is_deterministic_and_non_empty(n):
    k = split_point(n, 0.8)
    assert k == split_point(n, 0.8)
    assert 1 <= k <= n - 1


def test_split_needs_two_records():
    with pytest.raises(InsufficientDataError):
        split_point(1, 0.8)


def test_split_fraction_must_be_open_interval():
    with pytest.raises(ValueError):
        split_point(10, 1.0)
