#!/usr/bin/env python3
from __future__ import annotations

import argparse
import logging
from pathlib import Path

from rich.logging import RichHandler

from junction_forecasting.config import ProjectConfig
from junction_forecasting.exceptions import LoadError
from junction_forecasting.pipeline import run_pipeline
from junction_forecasting.prediction import forecast_frame


def main() -> None:
    defaults = ProjectConfig()
    ap = argparse.ArgumentParser(description='Fit the four baselines per junction and write a comparison CSV.')
    ap.add_argument('--traffic', type=str, default=str(defaults.traffic_path))
    ap.add_argument('--out', type=str, default=str(defaults.comparison_out_path))
    ap.add_argument('--pred-out', type=str, default=str(defaults.forecasts_out_path))
    ap.add_argument('--train-frac', type=float, default=defaults.train_frac)
    ap.add_argument('--ma-window', type=int, default=defaults.ma_window)
    ap.add_argument('--naive-season', type=int, default=defaults.naive_season_length)
    ap.add_argument('--sarima-season', type=int, default=defaults.sarima_season_length)
    ap.add_argument('--scale', choices=['log', 'raw'], default=defaults.eval_scale, help='Scale the errors are computed on.')
    ap.add_argument('--methods', nargs='+', default=defaults.methods)
    ap.add_argument('--allow-unconverged', action='store_true', help='Keep ARIMA/SARIMA fits whose optimizer did not converge.')
    ap.add_argument('--fill-gaps', action='store_true')
    args = ap.parse_args()

    logging.basicConfig(level=logging.WARNING, format='%(message)s', handlers=[RichHandler()])

    cfg = ProjectConfig(
        traffic_path=Path(args.traffic),
        comparison_out_path=Path(args.out),
        forecasts_out_path=Path(args.pred_out),
        fill_gaps=args.fill_gaps,
        train_frac=args.train_frac,
        methods=list(args.methods),
        ma_window=args.ma_window,
        naive_season_length=args.naive_season,
        sarima_season_length=args.sarima_season,
        require_convergence=not args.allow_unconverged,
        eval_scale=args.scale,
    )

    try:
        result = run_pipeline(cfg)
    except LoadError as e:
        raise SystemExit(f'Load failed: {e}')

    res = result.comparison
    cfg.comparison_out_path.parent.mkdir(parents=True, exist_ok=True)
    res.to_csv(cfg.comparison_out_path, index=False)

    pred = forecast_frame(result.splits, result.forecasts)
    cfg.forecasts_out_path.parent.mkdir(parents=True, exist_ok=True)
    pred.to_csv(cfg.forecasts_out_path, index=False, compression='gzip')

    n_bad = int((res['status'] != 'ok').sum())
    print(res[['Junction', 'Model', 'MAE', 'MSE', 'RMSE', 'status']].to_string(index=False))
    print(f'Wrote: {cfg.comparison_out_path} ({len(res)} rows, {n_bad} failed/missing)')
    print(f'Wrote: {cfg.forecasts_out_path} ({pred.shape[0]:,} rows)')


if __name__ == '__main__':
    main()
