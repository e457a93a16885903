"""Plotly chart of renderable series.

Missing values stay None and ``connectgaps`` is off, so gaps in a token's
data break the line instead of being bridged or drawn at zero.
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, NamedTuple, Optional

import plotly.graph_objects as go

from strategyutils.pipeline.grid import SERIES_SEPARATOR
from strategyutils.pipeline.session import RenderableSeries
from strategyutils.render.format import fmt, fmt_axis, fmt_multiple, fmt_percent, fmt_usd


class SeriesDef(NamedTuple):
    label: str
    color: str
    fmt: Callable[[Optional[float]], str]


# Series definitions for the chart
SERIES_DEF: dict[str, SeriesDef] = {
    "open": SeriesDef("Open", "#7aa2ff", fmt),
    "high": SeriesDef("High", "#33ff99", fmt),
    "low": SeriesDef("Low", "#ff9f43", fmt),
    "close": SeriesDef("Close", "#00f0ff", fmt),
    "volume": SeriesDef("Volume", "#ffd166", fmt),
    "mcap": SeriesDef("Market Cap", "#ff00ff", fmt_usd),
    "fee": SeriesDef("Trading fee", "#39ff14", fmt_percent),
    "breakeven": SeriesDef("Breakeven x", "#ff4d4d", fmt_multiple),
    "breakeven_mc": SeriesDef("Breakeven MC", "#b967ff", fmt_usd),
}

# Compare mode: one color per token, one dash style per metric
TOKEN_COLORS = (
    "#00f0ff", "#ff00ff", "#39ff14", "#ffd166",
    "#ff4d4d", "#7aa2ff", "#b967ff", "#ff9f43",
)
METRIC_DASHES = ("solid", "dash", "dot", "dashdot", "longdash", "longdashdot")

# How much vertical breathing room around data (top & bottom)
Y_PAD_FRAC = 0.08
Y_TICKS = 6


def split_series_key(key: str) -> tuple[Optional[str], str]:
    """``"Punk:close"`` -> ``("Punk", "close")``; ``"close"`` -> ``(None, "close")``."""
    if SERIES_SEPARATOR in key:
        token, metric = key.rsplit(SERIES_SEPARATOR, 1)
        return token, metric
    return None, key


def y_range(renderable: RenderableSeries) -> Optional[tuple[float, float]]:
    """Padded min/max over every non-null value, or None when there is nothing to plot."""
    values = [v for series in renderable.series.values() for v in series if v is not None]
    if not values:
        return None
    lo, hi = min(values), max(values)
    if lo == hi:
        lo, hi = lo - 1, hi + 1
    pad = max((hi - lo) * Y_PAD_FRAC, 1e-6)
    return lo - pad, hi + pad


def axis_ticks(lo: float, hi: float, count: int = Y_TICKS) -> list[float]:
    """Evenly spaced tick values from lo to hi inclusive."""
    if count < 2 or hi <= lo:
        return [lo]
    gap = (hi - lo) / (count - 1)
    return [lo + i * gap for i in range(count)]


def build_figure(renderable: RenderableSeries, title: str = "") -> go.Figure:
    """One line per series on a shared time axis."""
    x = [datetime.fromtimestamp(ts, tz=timezone.utc) for ts in renderable.timestamps]
    fig = go.Figure()

    token_order: list[str] = []
    metric_order: list[str] = []
    for key in renderable.series:
        token, metric = split_series_key(key)
        if token is not None and token not in token_order:
            token_order.append(token)
        if metric not in metric_order:
            metric_order.append(metric)

    for key, values in renderable.series.items():
        token, metric = split_series_key(key)
        cfg = SERIES_DEF[metric]

        if token is None:
            name, color, dash = cfg.label, cfg.color, "solid"
        else:
            name = f"{token} · {cfg.label}"
            color = TOKEN_COLORS[token_order.index(token) % len(TOKEN_COLORS)]
            dash = METRIC_DASHES[metric_order.index(metric) % len(METRIC_DASHES)]

        fig.add_trace(go.Scatter(
            x=x,
            y=values,
            name=name,
            mode="lines",
            connectgaps=False,
            line={"color": color, "width": 2, "dash": dash},
            text=[cfg.fmt(v) for v in values],
            hovertemplate=f"{name}: %{{text}}<extra></extra>",
        ))

    fig.update_layout(
        title=title or None,
        template="plotly_dark",
        hovermode="x unified",
        legend={"orientation": "h", "y": -0.15},
        margin={"l": 8, "r": 56, "t": 40 if title else 12, "b": 22},
    )
    fig.update_yaxes(side="right")

    bounds = y_range(renderable)
    if bounds is None:
        fig.add_annotation(text="No data to plot.", showarrow=False, x=0.5, y=0.5, xref="paper", yref="paper")
    else:
        ticks = axis_ticks(*bounds)
        fig.update_yaxes(
            range=list(bounds),
            tickmode="array",
            tickvals=ticks,
            ticktext=[fmt_axis(v) for v in ticks],
        )

    return fig


def write_chart(fig: go.Figure, path: Path) -> Path:
    """Write the figure as a standalone HTML page."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.write_html(str(path), include_plotlyjs=True, full_html=True)
    return path
