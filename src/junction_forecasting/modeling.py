from __future__ import annotations

import logging
import time
from typing import Dict, List, Tuple

import pandas as pd

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, TimeElapsedColumn

from .config import ProjectConfig
from .forecasting import ForecastResult, build_forecasters, insufficient_result, run_forecaster
from .metrics import ErrorRecord, comparison_table, score_forecast
from .panel import JunctionSplit

logger = logging.getLogger(__name__)

ForecastMap = Dict[Tuple[int, str], ForecastResult]


def evaluate_forecasters(
    splits: Dict[int, JunctionSplit],
    cfg: ProjectConfig = ProjectConfig(),
    unsplittable: Dict[int, str] | None = None,
    console: Console | None = None,
) -> Tuple[pd.DataFrame, ForecastMap]:
    """
    Fit every forecaster on every junction's train prefix and score it on the test suffix.

    Each (junction, method) cell is independent. A cell that cannot be fitted is
    kept in the table with status 'failed' or 'insufficient_data' and NaN metrics;
    junctions listed in `unsplittable` (id -> reason) get such a row per method.
    """
    zoo = build_forecasters(cfg)
    unsplittable = unsplittable or {}

    records: List[ErrorRecord] = []
    forecasts: ForecastMap = {}

    console = console or Console()
    console.print(f"[dim]Junctions:[/dim] {len(splits)} split, {len(unsplittable)} too short"
                  f"  |  [dim]Models:[/dim] {len(zoo)}  |  [dim]Scale:[/dim] {cfg.eval_scale}")

    progress = Progress(
        SpinnerColumn(),
        TextColumn("[bold]{task.description}[/bold]"),
        BarColumn(),
        TextColumn("{task.completed}/{task.total}"),
        TimeElapsedColumn(),
        console=console,
    )

    with progress:
        task = progress.add_task("Forecasts", total=len(zoo) * (len(splits) + len(unsplittable)))

        for jid, reason in sorted(unsplittable.items()):
            for name in zoo:
                res = insufficient_result(jid, name, reason)
                forecasts[(jid, name)] = res
                records.append(score_forecast(res, [], [], scale=cfg.eval_scale))
                progress.update(task, advance=1)

        for jid, split in sorted(splits.items()):
            train_y = split.train['y']
            test_y = split.test['y']

            for name, fn in zoo.items():
                t0 = time.perf_counter()
                res = run_forecaster(jid, name, fn, train_y, test_y)
                fit_s = time.perf_counter() - t0

                forecasts[(jid, name)] = res
                records.append(score_forecast(res, test_y.to_numpy(), split.test['Vehicles'].to_numpy(),
                                              scale=cfg.eval_scale))

                if res.ok:
                    console.print(f"[green]✓[/green] J{jid} {name}  [dim]fit[/dim] {fit_s:.2f}s")
                else:
                    logger.warning('Junction %d %s: %s', jid, name, res.notes)
                    console.print(f"[red]✗[/red] J{jid} {name}  {res.notes}")

                progress.update(task, advance=1)

    return comparison_table(records), forecasts
