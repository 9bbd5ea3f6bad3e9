"""Hourly junction traffic forecasting (per-junction univariate baselines).

Cleans the junction vehicle-count CSV, derives calendar/lag features, and
compares moving-average, seasonal-naive, ARIMA and SARIMA forecasts on a
chronological hold-out. CLI-friendly scripts live under /scripts.
"""

from .config import ProjectConfig
from .pipeline import PipelineResult, run_pipeline
