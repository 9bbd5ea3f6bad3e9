#!/usr/bin/env python3
from __future__ import annotations

import argparse
import logging
from pathlib import Path

import pandas as pd
from rich.logging import RichHandler

from junction_forecasting.config import ProjectConfig
from junction_forecasting.eda import summarize_junctions
from junction_forecasting.exceptions import LoadError
from junction_forecasting.panel import load_traffic
from junction_forecasting.pipeline import prepare_junctions


def main() -> None:
    ap = argparse.ArgumentParser(description='Clean the junction CSV and write per-junction calendar/lag features.')
    ap.add_argument('--traffic', type=str, default=str(ProjectConfig().traffic_path), help='Raw CSV with ID, DateTime, Junction, Vehicles.')
    ap.add_argument('--out', type=str, default=str(ProjectConfig().derived_out_path), help='Output .csv.gz path for the derived series.')
    ap.add_argument('--fill-gaps', action='store_true', help='Reindex each junction onto a gap-free hourly grid.')
    args = ap.parse_args()

    logging.basicConfig(level=logging.INFO, format='%(message)s', handlers=[RichHandler()])

    cfg = ProjectConfig(
        traffic_path=Path(args.traffic),
        derived_out_path=Path(args.out),
        fill_gaps=args.fill_gaps,
    )

    try:
        report, derived = prepare_junctions(load_traffic(cfg.traffic_path), cfg)
    except LoadError as e:
        raise SystemExit(f'Load failed: {e}')

    print(f'Rows read: {report.rows_in:,}  kept: {report.rows_out:,}')
    print(f'  missing field: {report.missing_field}  bad timestamp: {report.unparsable_timestamp}  '
          f'malformed: {report.malformed_value}  duplicate: {report.duplicate_row}  conflicting: {report.conflicting_key}')

    panel = pd.concat(derived.values(), ignore_index=True)
    cfg.derived_out_path.parent.mkdir(parents=True, exist_ok=True)
    panel.to_csv(cfg.derived_out_path, index=False, compression='gzip')

    print(f'Wrote derived series: {cfg.derived_out_path} ({panel.shape[0]:,} rows, {len(derived)} junctions)')

    summary = summarize_junctions(derived)
    summary_csv = cfg.derived_out_path.parent / 'junction_summary.csv'
    summary.to_csv(summary_csv, index=False)

    print(summary.to_string(index=False))
    print(f'Wrote junction summary: {summary_csv}')


if __name__ == '__main__':
    main()
