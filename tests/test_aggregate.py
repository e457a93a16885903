"""Property-based tests for client-side candle aggregation.

**Feature: strategy-utils**
"""

import random

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from strategyutils.models import Candle
from strategyutils.pipeline.aggregate import aggregate_candles, bucket_start

price = st.floats(min_value=0.0001, max_value=1000, allow_nan=False, allow_infinity=False)


@st.composite
def minute_candles(draw):
    """Runs of 1-minute candles starting on a 10-minute boundary, possibly with gaps."""
    start = draw(st.integers(min_value=0, max_value=10_000)) * 600
    minutes = draw(st.lists(st.integers(min_value=0, max_value=59), min_size=1, max_size=40, unique=True))
    candles = []
    for m in sorted(minutes):
        o, c = draw(price), draw(price)
        hi = max(o, c) + draw(st.floats(min_value=0, max_value=10))
        lo = max(0.0, min(o, c) - draw(st.floats(min_value=0, max_value=10)))
        candles.append(Candle(
            timestamp=start + m * 60,
            open=o,
            high=hi,
            low=lo,
            close=c,
            volume=draw(st.floats(min_value=0, max_value=1e6)),
        ))
    return candles


class TestAggregationCorrectness:
    """
    **Feature: strategy-utils, Property 3: Aggregation Correctness**

    *For any* run of 1-minute candles, aggregating into 600 s buckets gives
    one row per bucket present, with open from the first candle, close
    from the last, the max high, the min low and the summed volume.
    """

    @given(candles=minute_candles())
    @settings(max_examples=100)
    def test_bucket_fields(self, candles: list[Candle]):
        result = aggregate_candles(candles, 600)

        expected_buckets = sorted({bucket_start(c.timestamp, 600) for c in candles})
        assert [r.timestamp for r in result] == expected_buckets

        for row in result:
            members = [c for c in candles if bucket_start(c.timestamp, 600) == row.timestamp]
            assert row.open == members[0].open
            assert row.close == members[-1].close
            assert row.high == max(c.high for c in members)
            assert row.low == min(c.low for c in members)
            assert row.volume == pytest.approx(sum(c.volume for c in members))

    @given(candles=minute_candles(), seed=st.integers(min_value=0, max_value=2**32 - 1))
    @settings(max_examples=50)
    def test_input_order_does_not_matter(self, candles: list[Candle], seed: int):
        shuffled = list(candles)
        random.Random(seed).shuffle(shuffled)

        ordered = aggregate_candles(candles, 600)
        mixed = aggregate_candles(shuffled, 600)

        assert [(r.timestamp, r.open, r.high, r.low, r.close) for r in mixed] == [
            (r.timestamp, r.open, r.high, r.low, r.close) for r in ordered
        ]

    def test_two_full_buckets(self):
        candles = [
            Candle(timestamp=600 + i * 60, open=i, high=i + 1, low=i, close=i + 0.5, volume=1)
            for i in range(20)
        ]
        first, second = aggregate_candles(candles, 600)

        assert (first.timestamp, first.open, first.close) == (600, 0, 9.5)
        assert (first.high, first.low, first.volume) == (10, 0, 10)
        assert (second.timestamp, second.open, second.close) == (1200, 10, 19.5)

    def test_empty_input(self):
        assert aggregate_candles([], 600) == []

    def test_non_positive_bucket_rejected(self):
        with pytest.raises(ValueError):
            aggregate_candles([], 0)
