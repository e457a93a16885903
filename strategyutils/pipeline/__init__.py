"""Data pipeline: pool selection, candles, supply, fees, grid and load sessions."""

from strategyutils.pipeline.aggregate import aggregate_candles
from strategyutils.pipeline.dataset import STEPS, DatasetRequest, Step, load_dataset, load_token_info
from strategyutils.pipeline.fees import breakeven_market_cap, breakeven_multiple, fee_percent
from strategyutils.pipeline.grid import (
    METRICS,
    build_grid,
    build_series,
    metric_value,
    project_onto_grid,
)
from strategyutils.pipeline.pools import compute_launch_ts, parse_iso_ts, select_pool
from strategyutils.pipeline.session import (
    LoadOutcome,
    LoadState,
    RenderableSeries,
    SelectTab,
    SetSeries,
    ToggleSeries,
    ToggleToken,
    TokenRef,
    Viewer,
    ViewSession,
    apply_event,
    renderable_series,
)
from strategyutils.pipeline.supply import derive_supply, market_cap_at, reference_price

__all__ = [
    # Candles
    "aggregate_candles",
    "STEPS",
    "Step",
    "DatasetRequest",
    "load_dataset",
    "load_token_info",
    # Pools
    "select_pool",
    "compute_launch_ts",
    "parse_iso_ts",
    # Supply and fees
    "derive_supply",
    "reference_price",
    "market_cap_at",
    "fee_percent",
    "breakeven_multiple",
    "breakeven_market_cap",
    # Grid
    "METRICS",
    "build_grid",
    "build_series",
    "metric_value",
    "project_onto_grid",
    # Sessions
    "LoadOutcome",
    "LoadState",
    "RenderableSeries",
    "SelectTab",
    "SetSeries",
    "ToggleSeries",
    "ToggleToken",
    "TokenRef",
    "Viewer",
    "ViewSession",
    "apply_event",
    "renderable_series",
]
