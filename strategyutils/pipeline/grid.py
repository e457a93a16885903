"""Canonical time grid and series projection.

Compare mode overlays several tokens on one x-axis. Every token's rows are
looked up on the same evenly spaced grid by exact timestamp; a missing row
is a None (a gap in the chart), never a zero or an interpolated value.
"""

import math
from typing import Iterable, Mapping, Optional, Sequence

from strategyutils.models import Candle, Dataset
from strategyutils.pipeline.fees import breakeven_market_cap, breakeven_multiple, fee_percent
from strategyutils.pipeline.supply import market_cap_at

METRICS = (
    "open",
    "high",
    "low",
    "close",
    "volume",
    "mcap",
    "fee",
    "breakeven",
    "breakeven_mc",
)

SERIES_SEPARATOR = ":"


def series_key(token_key: str, metric: str) -> str:
    return f"{token_key}{SERIES_SEPARATOR}{metric}"


def build_grid(start_unix: int, end_unix: int, step_seconds: int) -> tuple[int, ...]:
    """``start, start+step, ...`` up to and including ``end`` when it lands on a step."""
    if step_seconds <= 0:
        raise ValueError(f"step_seconds must be positive, got {step_seconds}")
    if end_unix < start_unix:
        return ()
    count = (end_unix - start_unix) // step_seconds + 1
    return tuple(start_unix + i * step_seconds for i in range(count))


def _finite_or_none(value: Optional[float]) -> Optional[float]:
    if value is None or not math.isfinite(value):
        return None
    return value


def metric_value(dataset: Dataset, candle: Optional[Candle], metric: str) -> Optional[float]:
    """One metric for one row, using the dataset's own supply and launch time."""
    if metric not in METRICS:
        raise ValueError(f"Unknown metric: {metric}. Must be one of {list(METRICS)}")
    if candle is None:
        return None

    if metric in ("open", "high", "low", "close", "volume"):
        return _finite_or_none(getattr(candle, metric))

    if metric == "fee":
        return _finite_or_none(fee_percent(candle.timestamp, dataset.launch_ts))

    mcap = market_cap_at(candle, dataset.supply)
    if metric == "mcap":
        return _finite_or_none(mcap)

    multiple = breakeven_multiple(fee_percent(candle.timestamp, dataset.launch_ts))
    if metric == "breakeven":
        return _finite_or_none(multiple)
    return _finite_or_none(breakeven_market_cap(multiple, mcap))


def build_series(dataset: Dataset, metric_keys: Iterable[str]) -> dict[str, list[Optional[float]]]:
    """Single-token series over the dataset's own rows, keyed by metric."""
    return {
        metric: [metric_value(dataset, candle, metric) for candle in dataset.rows]
        for metric in metric_keys
    }


def project_onto_grid(
    datasets: Mapping[str, Dataset],
    grid: Sequence[int],
    metric_keys: Iterable[str],
    strategy_keys: Optional[Iterable[str]] = None,
) -> dict[str, list[Optional[float]]]:
    """Re-project every selected dataset onto the shared grid.

    Args:
        datasets: Loaded datasets by token key.
        grid: Canonical timestamps.
        metric_keys: Metrics to project.
        strategy_keys: Token keys to include, in order; all datasets when None.

    Returns:
        ``{"<token>:<metric>": values}`` where each list has ``len(grid)``
        entries and missing rows are None.
    """
    metrics = list(metric_keys)
    keys = list(datasets.keys()) if strategy_keys is None else [k for k in strategy_keys if k in datasets]

    combined: dict[str, list[Optional[float]]] = {}
    for key in keys:
        dataset = datasets[key]
        by_ts = {candle.timestamp: candle for candle in dataset.rows}
        rows = [by_ts.get(ts) for ts in grid]
        for metric in metrics:
            combined[series_key(key, metric)] = [metric_value(dataset, row, metric) for row in rows]
    return combined
