from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Tuple


@dataclass(frozen=True)
class ProjectConfig:
    # Paths (repo-relative by default)
    traffic_path: Path = Path('data/raw/traffic.csv')
    derived_out_path: Path = Path('data/processed/junction_hourly_features.csv.gz')
    comparison_out_path: Path = Path('reports/models/model_comparison.csv')
    forecasts_out_path: Path = Path('reports/predictions/forecasts_test.csv.gz')

    # Input parsing
    timestamp_format: str = '%Y-%m-%d %H:%M:%S'
    freq: str = 'h'
    fill_gaps: bool = False

    # Feature engineering
    lag_hours: List[int] = field(default_factory=lambda: [1, 2, 3])

    # Split
    train_frac: float = 0.8

    # Forecasters
    methods: List[str] = field(default_factory=lambda: ['moving_average', 'seasonal_naive', 'arima', 'sarima'])
    ma_window: int = 3
    naive_season_length: int = 24
    arima_order: Tuple[int, int, int] = (1, 1, 1)
    sarima_order: Tuple[int, int, int] = (1, 1, 1)
    sarima_seasonal_order: Tuple[int, int, int] = (1, 1, 1)
    # NB: kept separate from naive_season_length (24); 12 is what the SARIMA baseline has always used
    sarima_season_length: int = 12
    require_convergence: bool = True

    # Evaluation: 'log' compares log1p(Vehicles), 'raw' compares vehicle counts
    eval_scale: str = 'log'
