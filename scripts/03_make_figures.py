#!/usr/bin/env python
"""Generate the exploratory and model-comparison figures.

Expected inputs:
- raw junction CSV: data/raw/traffic.csv
- comparison CSV (optional): reports/models/model_comparison.csv
- forecasts CSV (optional): reports/predictions/forecasts_test.csv.gz

Outputs:
- assets/figures/*.html (+ PNG when kaleido is installed)
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

import pandas as pd
from rich.logging import RichHandler

from junction_forecasting.config import ProjectConfig
from junction_forecasting.eda import calendar_profiles, decompose_junction, lag_correlations
from junction_forecasting.exceptions import InsufficientDataError, LoadError
from junction_forecasting.panel import load_traffic
from junction_forecasting.pipeline import prepare_junctions
from junction_forecasting.viz_utils import (
    comparison_bar_figure,
    decomposition_figure,
    forecast_figure,
    hourly_profile_figure,
    junction_series_figure,
    lag_correlation_heatmap,
    save_plotly,
)


def parse_args() -> argparse.Namespace:
    defaults = ProjectConfig()
    p = argparse.ArgumentParser()
    p.add_argument('--traffic', type=Path, default=defaults.traffic_path)
    p.add_argument('--comparison', type=Path, default=defaults.comparison_out_path)
    p.add_argument('--pred', type=Path, default=defaults.forecasts_out_path)
    p.add_argument('--outdir', type=Path, default=Path('assets/figures'))
    p.add_argument('--png', action='store_true', help='Also write PNGs (requires kaleido).')
    return p.parse_args()


def main() -> None:
    args = parse_args()
    logging.basicConfig(level=logging.WARNING, format='%(message)s', handlers=[RichHandler()])
    cfg = ProjectConfig(traffic_path=args.traffic)

    def out(stem: str):
        return args.outdir / f'{stem}.html', (args.outdir / f'{stem}.png' if args.png else None)

    outputs: list[Path] = []

    try:
        _, derived = prepare_junctions(load_traffic(cfg.traffic_path), cfg)
    except LoadError as e:
        raise SystemExit(f'Load failed: {e}')

    outputs += save_plotly(junction_series_figure(derived), *out('fig01_junction_series'))
    outputs += save_plotly(hourly_profile_figure(calendar_profiles(derived)['hour']), *out('fig02_hourly_profile'))

    corrs = lag_correlations(derived, cfg.lag_hours)
    for row in corrs[corrs['status'] != 'ok'].itertuples():
        print(f'[warn] Junction {row.Junction} lag {row.lag}: {row.status}')
    outputs += save_plotly(lag_correlation_heatmap(corrs), *out('fig03_lag_correlations'))

    for jid, d in sorted(derived.items()):
        try:
            decomp = decompose_junction(d, period=cfg.naive_season_length, freq=cfg.freq)
        except InsufficientDataError as e:
            print(f'[warn] Junction {jid}: {e}. Skipping decomposition.')
            continue
        outputs += save_plotly(decomposition_figure(decomp, jid), *out(f'fig04_decomposition_j{jid}'), height=900)

    if args.comparison.exists():
        table = pd.read_csv(args.comparison)
        for metric in ('MAE', 'RMSE'):
            outputs += save_plotly(comparison_bar_figure(table, metric), *out(f'fig05_comparison_{metric.lower()}'))
    else:
        print(f'[warn] comparison file not found: {args.comparison}. Skipping Figure 5.')

    if args.pred.exists():
        pred = pd.read_csv(args.pred, compression='infer')
        pred['DateTime'] = pd.to_datetime(pred['DateTime'], errors='coerce')
        for jid in sorted(pred['Junction'].unique()):
            outputs += save_plotly(forecast_figure(pred, int(jid)), *out(f'fig06_forecasts_j{int(jid)}'))
    else:
        print(f'[warn] forecasts file not found: {args.pred}. Skipping Figure 6.')

    wrote = [p for p in outputs if p.exists()]
    print(f'\nDone. Wrote {len(wrote)} files to {args.outdir}:\n')
    for p in wrote:
        print(' -', p.name)


if __name__ == '__main__':
    main()
