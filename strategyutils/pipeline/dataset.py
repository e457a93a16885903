"""Per-token dataset loading.

Flow:
  1) Load token (with top pools) for {network}:{address}
  2) Pick the most liquid pool and the launch proxy
  3) Fetch OHLCV for timeframe/aggregate (USD; token side honored)
  4) Optionally aggregate 1m -> 10m client-side
  5) Clip to the requested range and derive supply once
"""

import logging
import math
import time
from typing import Literal, NamedTuple, Optional

from pydantic import BaseModel, Field

from strategyutils.clients.base import BaseMarketClient
from strategyutils.errors import NoPoolError
from strategyutils.models import (
    MAX_OHLCV_LIMIT,
    Candle,
    Dataset,
    OHLCVRequest,
    Pool,
    TokenInfo,
    TokenResponse,
)
from strategyutils.pipeline.aggregate import aggregate_candles
from strategyutils.pipeline.pools import compute_launch_ts, select_pool
from strategyutils.pipeline.supply import derive_supply, reference_price
from strategyutils.signal import AbortSignal

logger = logging.getLogger(__name__)

MAX_ROWS = 1000
DEFAULT_LOOKBACK_SECONDS = 60 * 60


class Step(NamedTuple):
    """How one display step maps onto the OHLCV endpoint."""

    timeframe: Literal["minute", "hour", "day"]
    aggregate: int
    seconds: int
    client_aggregated: bool = False


STEPS: dict[str, Step] = {
    "1m": Step("minute", 1, 60),
    "5m": Step("minute", 5, 300),
    "10m": Step("minute", 1, 600, client_aggregated=True),  # built from 1m
    "15m": Step("minute", 15, 900),
    "1h": Step("hour", 1, 3600),
    "4h": Step("hour", 4, 14400),
    "12h": Step("hour", 12, 43200),
    "1d": Step("day", 1, 86400),
}


def get_step(step: str) -> Step:
    if step not in STEPS:
        raise ValueError(f"Invalid step: {step}. Must be one of {list(STEPS.keys())}")
    return STEPS[step]


def align_start(start_unix: int, step: Step) -> int:
    """Floor a start time onto the step's bucket boundary.

    Candles are keyed by bucket start (whole minutes, hours, days), so a
    range starting mid-bucket would never match a row exactly.
    """
    return start_unix - start_unix % step.seconds


def range_end(start_unix: int, max_rows: int, step: Step) -> int:
    """End implied by the row count: the last grid point, inclusive."""
    return start_unix + (max_rows - 1) * step.seconds


def raw_candle_limit(step: Step, max_rows: int, start_unix: int, end_unix: int) -> int:
    """How many candles to ask the API for.

    Client-aggregated steps need native 1-minute candles for every bucket,
    so the request covers both ``max_rows * 10`` and the full span in
    minutes, plus a margin of 10. Native steps cover both ``max_rows`` and
    the span in steps, plus 5. Always capped at the API maximum.
    """
    span = max(0, end_unix - start_unix)
    if step.client_aggregated:
        need_by_range = math.ceil(span / 60)
        per_bucket = step.seconds // 60
        wanted = max(max_rows * per_bucket, need_by_range) + 10
    else:
        need_by_range = math.ceil(span / step.seconds)
        wanted = max(max_rows, need_by_range) + 5
    return min(MAX_OHLCV_LIMIT, wanted)


def clip_rows(series: list[Candle], start_unix: int, end_unix: int, max_rows: int) -> list[Candle]:
    """Rows inside [start, end], keeping the earliest ``max_rows``."""
    in_range = [c for c in series if start_unix <= c.timestamp <= end_unix]
    return in_range[:max_rows]


def normalize_series(candles: list[Candle]) -> list[Candle]:
    """Sort ascending and drop duplicate timestamps (the later entry wins)."""
    by_ts = {c.timestamp: c for c in candles}
    return [by_ts[ts] for ts in sorted(by_ts)]


class DatasetRequest(BaseModel):
    """Inputs of one token load."""

    key: str = Field(..., min_length=1, description="Display key")
    network: str = Field(default="eth", min_length=1, description="Network id")
    address: str = Field(..., min_length=1, description="Token contract address")
    step: str = Field(default="1h", description="Step key from STEPS")
    max_rows: int = Field(default=100, ge=1, le=MAX_ROWS, description="Rows wanted")
    start_unix: Optional[int] = Field(default=None, description="Range start, floored to the step; now-1h when unset")
    start_at_launch: bool = Field(default=False, description="Start at the launch proxy when known")
    now: Optional[int] = Field(default=None, description="Clock override, unix seconds")

    model_config = {"frozen": True}


async def _resolve_pool(
    client: BaseMarketClient,
    key: str,
    network: str,
    address: str,
    signal: Optional[AbortSignal],
) -> tuple[TokenResponse, Pool, Optional[int]]:
    token_json = await client.fetch_token_with_pools(network, address, signal)
    pool = select_pool(token_json, address)
    if pool is None:
        raise NoPoolError(address, network)

    launch_ts = compute_launch_ts(token_json, pool)
    logger.info(
        "%s: pool %s on %s (side=%s, reserve=%.0f)",
        key, pool.pool_address, pool.dex_name, pool.side, pool.reserve_usd,
    )
    return token_json, pool, launch_ts


async def load_token_info(
    client: BaseMarketClient,
    key: str,
    address: str,
    network: str = "eth",
    signal: Optional[AbortSignal] = None,
) -> TokenInfo:
    """Token attributes, pool and launch time from a single token request.

    Supply is derived from the live price only, since no candles are fetched.
    """
    token_json, pool, launch_ts = await _resolve_pool(client, key, network, address, signal)
    attrs = token_json.attributes
    ref_price = reference_price(attrs, ())
    return TokenInfo(
        key=key,
        network=network,
        address=address,
        token=attrs,
        pool=pool,
        launch_ts=launch_ts,
        supply=derive_supply(attrs, ref_price),
        ref_price=ref_price,
    )


async def load_dataset(
    client: BaseMarketClient,
    request: DatasetRequest,
    signal: Optional[AbortSignal] = None,
) -> Dataset:
    """Build the dataset for one token.

    Args:
        client: Market-data client.
        request: What to load.
        signal: Cancellation signal of the current load session.

    Returns:
        A fresh, immutable Dataset.

    Raises:
        NoPoolError: If the token has no pools.
        HttpError, NetworkError: On API failures.
        AbortedError: If the signal fired.
    """
    step = get_step(request.step)

    token_json, pool, launch_ts = await _resolve_pool(
        client, request.key, request.network, request.address, signal
    )

    if request.start_at_launch and launch_ts is not None:
        start_unix = launch_ts
    elif request.start_unix is not None:
        start_unix = request.start_unix
    else:
        now = request.now if request.now is not None else int(time.time())
        start_unix = now - DEFAULT_LOOKBACK_SECONDS
    start_unix = align_start(start_unix, step)
    end_unix = range_end(start_unix, request.max_rows, step)

    limit = raw_candle_limit(step, request.max_rows, start_unix, end_unix)
    raw = await client.fetch_ohlcv(
        OHLCVRequest(
            network=request.network,
            pool_address=pool.pool_address,
            timeframe=step.timeframe,
            aggregate=1 if step.client_aggregated else step.aggregate,
            limit=limit,
            before_timestamp=end_unix,
            side=pool.side,
            include_empty_intervals=True,
        ),
        signal,
    )

    series = normalize_series(raw)
    if step.client_aggregated:
        series = aggregate_candles(series, step.seconds)

    rows = clip_rows(series, start_unix, end_unix, request.max_rows)
    logger.debug(
        "%s: limit=%d fetched=%d series=%d rows=%d",
        request.key, limit, len(raw), len(series), len(rows),
    )

    attrs = token_json.attributes
    ref_price = reference_price(attrs, rows, series)
    supply = derive_supply(attrs, ref_price)

    return Dataset(
        key=request.key,
        network=request.network,
        address=request.address,
        token=attrs,
        pool=pool,
        launch_ts=launch_ts,
        supply=supply,
        ref_price=ref_price,
        step=request.step,
        start_unix=start_unix,
        end_unix=end_unix,
        max_rows=request.max_rows,
        rows=tuple(rows),
    )
