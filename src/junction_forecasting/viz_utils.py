from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List

import pandas as pd

import plotly.graph_objects as go
from plotly.subplots import make_subplots

logger = logging.getLogger(__name__)

LAYOUT = dict(
    template='plotly_white',
    hovermode='x unified',
    legend=dict(orientation='h', yanchor='bottom', y=1.02, xanchor='right', x=1.0),
    margin=dict(t=90),
)


def save_plotly(fig: go.Figure, html_out: Path, png_out: Path | None = None, width: int = 1500, height: int = 520) -> List[Path]:
    html_out.parent.mkdir(parents=True, exist_ok=True)
    fig.write_html(
        html_out,
        include_plotlyjs='cdn',
        config={'responsive': True, 'displayModeBar': False},
    )
    written = [html_out]

    if png_out is not None:
        png_out.parent.mkdir(parents=True, exist_ok=True)
        # Requires `kaleido`
        try:
            fig.write_image(png_out, width=width, height=height, scale=2)
            written.append(png_out)
        except (ValueError, ImportError, RuntimeError) as e:
            logger.warning('Could not write PNG %s: %s', png_out.name, e)

    return written


def junction_series_figure(derived: Dict[int, pd.DataFrame]) -> go.Figure:
    fig = go.Figure()
    for jid, d in sorted(derived.items()):
        fig.add_trace(go.Scatter(
            x=d['DateTime'],
            y=d['Vehicles'],
            mode='lines',
            name=f'Junction {jid}',
            line=dict(width=1),
            hovertemplate='%{x|%Y-%m-%d %H:00}<br>Vehicles=%{y}<extra></extra>',
        ))
    fig.update_layout(
        title=dict(text='Hourly vehicles per junction', x=0.02, xanchor='left'),
        xaxis_title='Date',
        yaxis_title='Vehicles per hour',
        **LAYOUT,
    )
    return fig


def hourly_profile_figure(hour_profile: pd.DataFrame) -> go.Figure:
    fig = go.Figure()
    for jid, g in hour_profile.groupby('Junction', sort=True):
        fig.add_trace(go.Scatter(x=g['hour'], y=g['mean_vehicles'], mode='lines+markers', name=f'Junction {jid}'))
    fig.update_layout(
        title=dict(text='Mean vehicles by hour of day', x=0.02, xanchor='left'),
        xaxis_title='Hour of day',
        yaxis_title='Mean vehicles',
        **LAYOUT,
    )
    fig.update_xaxes(dtick=2)
    return fig


def decomposition_figure(decomp: pd.DataFrame, junction: int) -> go.Figure:
    parts = ['observed', 'trend', 'seasonal', 'resid']
    fig = make_subplots(rows=len(parts), cols=1, shared_xaxes=True, subplot_titles=[p.title() for p in parts])
    for i, part in enumerate(parts, start=1):
        fig.add_trace(go.Scatter(x=decomp['DateTime'], y=decomp[part], mode='lines', name=part, showlegend=False), row=i, col=1)
    fig.update_layout(
        title=dict(text=f'Junction {junction}: additive decomposition', x=0.02, xanchor='left'),
        template='plotly_white',
        height=900,
    )
    return fig


def forecast_figure(pred: pd.DataFrame, junction: int, value_col: str = 'vol') -> go.Figure:
    """Actual vs every model's forecast over the test window of one junction."""
    g = pred[pred['Junction'] == junction]
    fig = go.Figure()
    if not g.empty:
        actual = g.drop_duplicates(subset=['DateTime']).sort_values('DateTime')
        fig.add_trace(go.Scatter(
            x=actual['DateTime'], y=actual[f'{value_col}_true'],
            mode='lines', name='Actual', line=dict(width=3, color='black'),
        ))
    for name, m in g.groupby('Model', sort=True):
        fig.add_trace(go.Scatter(x=m['DateTime'], y=m[f'{value_col}_pred'], mode='lines', name=name, line=dict(width=1.5)))
    fig.update_layout(
        title=dict(text=f'Junction {junction}: test-window forecasts', x=0.02, xanchor='left'),
        xaxis_title='Date',
        yaxis_title='Vehicles' if value_col == 'vol' else 'log1p(Vehicles)',
        **LAYOUT,
    )
    return fig


def comparison_bar_figure(table: pd.DataFrame, metric: str = 'RMSE') -> go.Figure:
    ok = table[table['status'] == 'ok']
    fig = go.Figure()
    for name, g in ok.groupby('Model', sort=True):
        fig.add_trace(go.Bar(x=[f'Junction {j}' for j in g['Junction']], y=g[metric], name=name))
    fig.update_layout(
        title=dict(text=f'{metric} by junction and model', x=0.02, xanchor='left'),
        yaxis_title=metric,
        barmode='group',
        **LAYOUT,
    )
    return fig


def lag_correlation_heatmap(corrs: pd.DataFrame) -> go.Figure:
    grid = corrs.pivot(index='Junction', columns='lag', values='corr').sort_index()
    fig = go.Figure(go.Heatmap(
        z=grid.to_numpy(),
        x=[f'lag {c}' for c in grid.columns],
        y=[f'Junction {j}' for j in grid.index],
        zmin=-1,
        zmax=1,
        colorscale='RdBu',
        reversescale=True,
        texttemplate='%{z:.2f}',
    ))
    fig.update_layout(
        title=dict(text='Correlation of vehicles with lagged vehicles', x=0.02, xanchor='left'),
        template='plotly_white',
    )
    return fig
