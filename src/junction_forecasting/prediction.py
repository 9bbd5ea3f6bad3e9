from __future__ import annotations

from typing import Dict, Tuple

import pandas as pd

from .forecasting import ForecastResult
from .metrics import inv_log1p
from .panel import JunctionSplit

FRAME_COLUMNS = ['Junction', 'DateTime', 'Model', 'y_true', 'y_pred', 'vol_true', 'vol_pred']


def forecast_frame(splits: Dict[int, JunctionSplit], forecasts: Dict[Tuple[int, str], ForecastResult]) -> pd.DataFrame:
    """Tidy test-window predictions for every successful (junction, model) cell (includes volume-scale columns)."""
    parts = []
    for (jid, name), res in sorted(forecasts.items()):
        if not res.ok or jid not in splits:
            continue
        test = splits[jid].test
        parts.append(pd.DataFrame({
            'Junction': jid,
            'DateTime': pd.to_datetime(test['DateTime']).to_numpy(),
            'Model': name,
            'y_true': test['y'].to_numpy(dtype=float),
            'y_pred': res.predictions,
            'vol_true': test['Vehicles'].to_numpy(dtype=float),
        }))

    if not parts:
        return pd.DataFrame(columns=FRAME_COLUMNS)

    pred = pd.concat(parts, ignore_index=True)
    pred['vol_pred'] = inv_log1p(pred['y_pred'])
    return pred[FRAME_COLUMNS]
