"""Tests for per-token dataset loading.

**Feature: strategy-utils**
"""

import asyncio

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st
from pydantic import ValidationError

from strategyutils.errors import AbortedError, HttpError, NoPoolError
from strategyutils.models import Candle
from strategyutils.pipeline.dataset import (
    STEPS,
    DatasetRequest,
    align_start,
    clip_rows,
    get_step,
    load_dataset,
    load_token_info,
    normalize_series,
    range_end,
    raw_candle_limit,
)
from strategyutils.signal import AbortSignal

from fakes import NOW, WETH, FakeMarketClient, make_candles, pool_payload, token_payload

TOKEN = "0x6bcba7cd81a5f12c10ca1bf9b36761cc382658e8"
POOL = "0xpoolbirb"
LAUNCH_ISO = "2023-11-14T21:00:00Z"
LAUNCH = 1_699_995_600


def _client(candles, **attributes) -> FakeMarketClient:
    pools = [pool_payload(POOL, reserve="250000", base=WETH, quote=TOKEN, created=LAUNCH_ISO)]
    attributes.setdefault("price_usd", "0.5")
    attributes.setdefault("normalized_total_supply", "1000000")
    return FakeMarketClient(
        tokens={TOKEN: token_payload(TOKEN, pools, **attributes)},
        candles={POOL: candles},
    )


def _load(client: FakeMarketClient, **kwargs):
    kwargs.setdefault("key", "BirbStrategy")
    kwargs.setdefault("address", TOKEN)
    kwargs.setdefault("now", NOW)
    return asyncio.run(load_dataset(client, DatasetRequest(**kwargs)))


class TestRawCandleLimit:
    """
    **Feature: strategy-utils, Property 9: Raw Candle Limit**

    *For any* step and row count, the request covers every row (and every
    minute for resampled steps) plus a margin, capped at 1000.
    """

    @given(step_key=st.sampled_from(list(STEPS)), rows=st.integers(min_value=1, max_value=1000))
    @settings(max_examples=200)
    def test_limit_bounds(self, step_key: str, rows: int):
        step = STEPS[step_key]
        start = NOW
        end = range_end(start, rows, step)
        limit = raw_candle_limit(step, rows, start, end)

        assert 1 <= limit <= 1000
        if step.client_aggregated:
            assert limit == min(1000, max(rows * 10, (end - start + 59) // 60) + 10)
        else:
            assert limit == min(1000, max(rows, (end - start + step.seconds - 1) // step.seconds) + 5)

    def test_known_values(self):
        assert raw_candle_limit(STEPS["1h"], 100, 0, range_end(0, 100, STEPS["1h"])) == 105
        assert raw_candle_limit(STEPS["10m"], 50, 0, range_end(0, 50, STEPS["10m"])) == 510
        assert raw_candle_limit(STEPS["10m"], 100, 0, range_end(0, 100, STEPS["10m"])) == 1000


class TestRowHelpers:
    def test_clip_keeps_first_rows_in_range(self):
        candles = make_candles(0, 10, 60)
        rows = clip_rows(candles, 120, 480, 3)
        assert [c.timestamp for c in rows] == [120, 180, 240]

    def test_normalize_sorts_and_later_duplicate_wins(self):
        a = Candle(timestamp=60, open=1, high=1, low=1, close=1, volume=0)
        b = Candle(timestamp=0, open=2, high=2, low=2, close=2, volume=0)
        c = Candle(timestamp=60, open=3, high=3, low=3, close=3, volume=0)
        assert normalize_series([a, b, c]) == [b, c]

    def test_unknown_step(self):
        with pytest.raises(ValueError):
            get_step("2h")


class TestStartAlignment:
    """
    **Feature: strategy-utils, Property 17: Bucket-Aligned Range**

    *For any* start time and step, the range starts on the step's bucket
    boundary at or before the requested start, so rows always land on it.
    """

    @given(step_key=st.sampled_from(list(STEPS)), start=st.integers(min_value=0, max_value=4_000_000_000))
    @settings(max_examples=200)
    def test_floor_to_step(self, step_key: str, start: int):
        step = STEPS[step_key]
        aligned = align_start(start, step)

        assert aligned % step.seconds == 0
        assert start - step.seconds < aligned <= start
        assert align_start(aligned, step) == aligned

    @given(offset=st.integers(min_value=1, max_value=3599))
    @settings(max_examples=30, deadline=None)
    def test_unaligned_clock_still_finds_rows(self, offset: int):
        start = NOW - 3600
        client = _client(make_candles(start - 3600 * 5, 20, 3600))

        dataset = _load(client, step="1h", max_rows=3, now=NOW + offset)

        assert dataset.start_unix == start
        assert [c.timestamp for c in dataset.rows] == [start, start + 3600, start + 7200]
        assert client.ohlcv_requests[0].before_timestamp == start + 7200

    def test_unaligned_user_start(self):
        start = NOW - 3600
        client = _client(make_candles(start, 30, 60))

        dataset = _load(client, step="1m", max_rows=5, start_unix=start + 59)

        assert dataset.start_unix == start
        assert dataset.rows[0].timestamp == start
        assert len(dataset.rows) == 5


class TestLoadDataset:
    def test_native_step_request_and_rows(self):
        start = NOW - 3600
        candles = make_candles(start - 3600 * 5, 20, 3600, price=0.4, drift=0.01)
        client = _client(list(reversed(candles)))

        dataset = _load(client, step="1h", max_rows=3)

        request = client.ohlcv_requests[0]
        assert request.pool_address == POOL
        assert (request.timeframe, request.aggregate) == ("hour", 1)
        assert request.before_timestamp == start + 2 * 3600
        assert request.side == "quote"
        assert request.limit == 8
        assert request.include_empty_intervals is True

        assert dataset.start_unix == start
        assert dataset.end_unix == start + 2 * 3600
        assert [c.timestamp for c in dataset.rows] == [start, start + 3600, start + 7200]
        assert dataset.launch_ts == LAUNCH
        assert dataset.supply == 1_000_000
        assert dataset.ref_price == 0.5
        assert not dataset.is_short

    def test_ten_minute_step_is_resampled(self):
        start = NOW - 3600
        start -= start % 600
        client = _client(make_candles(start, 60, 60, price=1.0, drift=0.001))

        dataset = _load(client, step="10m", max_rows=6, start_unix=start)

        request = client.ohlcv_requests[0]
        assert (request.timeframe, request.aggregate) == ("minute", 1)
        assert request.limit == 70
        assert [c.timestamp for c in dataset.rows] == [start + i * 600 for i in range(6)]
        assert dataset.rows[0].open == 1.0
        assert dataset.rows[0].close == pytest.approx(1.009)
        assert dataset.rows[0].volume == sum(100.0 + i for i in range(10))

    def test_start_at_launch(self):
        client = _client(make_candles(LAUNCH, 30, 60))
        dataset = _load(client, step="1m", max_rows=10, start_at_launch=True)

        assert dataset.start_unix == LAUNCH
        assert dataset.rows[0].timestamp == LAUNCH
        assert len(dataset.rows) == 10

    def test_short_data_is_not_an_error(self):
        start = NOW - 3600
        client = _client(make_candles(start, 2, 3600))
        dataset = _load(client, step="1h", max_rows=5)

        assert len(dataset.rows) == 2
        assert dataset.is_short

    def test_supply_falls_back_to_latest_close(self):
        start = NOW - 3600
        client = _client(
            make_candles(start, 3, 3600, price=2.0),
            price_usd=None,
            normalized_total_supply=None,
            market_cap_usd="1000",
        )
        dataset = _load(client, step="1h", max_rows=3)

        assert dataset.ref_price == 2.0
        assert dataset.supply == 500.0

    def test_no_pool(self):
        client = FakeMarketClient(tokens={TOKEN: token_payload(TOKEN, [])})
        with pytest.raises(NoPoolError):
            _load(client)
        assert client.ohlcv_requests == []

    def test_http_error_propagates(self):
        client = _client([])
        client.errors[POOL] = HttpError(429, "/ohlcv")
        with pytest.raises(HttpError):
            _load(client)

    def test_aborted_signal(self):
        client = _client([])
        signal = AbortSignal()
        signal.abort()

        async def run():
            await load_dataset(client, DatasetRequest(key="B", address=TOKEN, now=NOW), signal)

        with pytest.raises(AbortedError):
            asyncio.run(run())
        assert client.token_calls == [("eth", TOKEN)]
        assert client.rate_meter.count() == 0

    def test_dataset_is_frozen(self):
        dataset = _load(_client(make_candles(NOW - 3600, 1, 3600)), max_rows=1)
        with pytest.raises(ValidationError):
            dataset.supply = 1.0


class TestLoadTokenInfo:
    def test_single_token_request(self):
        client = _client(make_candles(NOW - 3600, 3, 3600))
        info = asyncio.run(load_token_info(client, "BirbStrategy", TOKEN))

        assert client.token_calls == [("eth", TOKEN)]
        assert client.ohlcv_requests == []
        assert client.rate_meter.count() == 1

        assert info.pool.pool_address == POOL
        assert info.pool.side == "quote"
        assert info.launch_ts == LAUNCH
        assert info.ref_price == 0.5
        assert info.supply == 1_000_000

    def test_no_live_price_leaves_supply_from_attributes(self):
        client = _client([], price_usd=None, normalized_total_supply=None, market_cap_usd="1000")
        info = asyncio.run(load_token_info(client, "BirbStrategy", TOKEN))

        assert info.ref_price is None
        assert info.supply is None

    def test_no_pool(self):
        client = FakeMarketClient(tokens={TOKEN: token_payload(TOKEN, [])})
        with pytest.raises(NoPoolError):
            asyncio.run(load_token_info(client, "BirbStrategy", TOKEN))
