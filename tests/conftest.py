import numpy as np
import pandas as pd
import pytest
from rich.console import Console

SCENARIO_COUNTS = [10, 12, 11, 13, 14, 15, 16, 14, 13, 12]


def make_raw(counts_by_junction, start='2015-11-01 00:00:00'):
    """Raw string records shaped like the junction CSV."""
    rows = []
    for jid, counts in counts_by_junction.items():
        stamps = pd.date_range(start, periods=len(counts), freq='h')
        for ts, v in zip(stamps, counts):
            rows.append({
                'ID': f"{ts:%Y%m%d%H}{jid}",
                'DateTime': f"{ts:%Y-%m-%d %H:%M:%S}",
                'Junction': str(jid),
                'Vehicles': str(v),
            })
    return pd.DataFrame(rows, columns=['ID', 'DateTime', 'Junction', 'Vehicles'])


def synthetic_counts(n, base, seed):
    rng = np.random.default_rng(seed)
    h = np.arange(n)
    vals = base + 8 * np.sin(2 * np.pi * h / 24) + rng.normal(0, 2, n)
    return np.clip(np.round(vals), 0, None).astype(int)


@pytest.fixture
def raw_two_junctions():
    return make_raw({
        1: synthetic_counts(24 * 6, base=40, seed=0),
        2: synthetic_counts(24 * 6, base=15, seed=1),
    })


@pytest.fixture
def raw_scenario():
    return make_raw({1: SCENARIO_COUNTS})


@pytest.fixture
def quiet_console():
    return Console(quiet=True)
