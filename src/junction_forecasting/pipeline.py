from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Tuple

import pandas as pd

from rich.console import Console

from .config import ProjectConfig
from .eda import lag_correlations
from .exceptions import InsufficientDataError, LoadError
from .forecasting import ForecastResult
from .modeling import evaluate_forecasters
from .panel import CleaningReport, JunctionSplit, build_derived_series, chronological_split, clean_traffic, load_traffic

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineResult:
    cleaning: CleaningReport
    derived: Dict[int, pd.DataFrame]
    splits: Dict[int, JunctionSplit]
    comparison: pd.DataFrame
    forecasts: Dict[Tuple[int, str], ForecastResult]
    lag_correlations: pd.DataFrame


def prepare_junctions(raw: pd.DataFrame, cfg: ProjectConfig = ProjectConfig()) -> Tuple[CleaningReport, Dict[int, pd.DataFrame]]:
    """Clean raw records and derive features; zero usable junctions is fatal."""
    clean, report = clean_traffic(raw, timestamp_format=cfg.timestamp_format)
    if clean.empty:
        raise LoadError(f'No usable observations after cleaning ({report.rows_in} rows read, {report.dropped} dropped)')

    derived = build_derived_series(clean, lag_hours=cfg.lag_hours, fill_gaps=cfg.fill_gaps, freq=cfg.freq)
    logger.info('Prepared %d junction series: %s', len(derived), sorted(derived))
    return report, derived


def split_junctions(derived: Dict[int, pd.DataFrame], train_frac: float) -> Tuple[Dict[int, JunctionSplit], Dict[int, str]]:
    splits: Dict[int, JunctionSplit] = {}
    skipped: Dict[int, str] = {}
    for jid, d in sorted(derived.items()):
        try:
            splits[jid] = chronological_split(d, train_frac)
        except InsufficientDataError as e:
            logger.warning('Junction %d not split: %s', jid, e)
            skipped[jid] = str(e)
    return splits, skipped


def run_pipeline(
    cfg: ProjectConfig = ProjectConfig(),
    raw: pd.DataFrame | None = None,
    console: Console | None = None,
) -> PipelineResult:
    """Load -> clean -> features -> split -> forecast -> evaluate.

    `raw` overrides reading `cfg.traffic_path`.
    """
    if raw is None:
        raw = load_traffic(cfg.traffic_path)

    report, derived = prepare_junctions(raw, cfg)
    splits, skipped = split_junctions(derived, cfg.train_frac)
    comparison, forecasts = evaluate_forecasters(splits, cfg=cfg, unsplittable=skipped, console=console)

    return PipelineResult(
        cleaning=report,
        derived=derived,
        splits=splits,
        comparison=comparison,
        forecasts=forecasts,
        lag_correlations=lag_correlations(derived, cfg.lag_hours),
    )
