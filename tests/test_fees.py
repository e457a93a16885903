"""Property-based tests for the launch-fee decay and breakeven math.

**Feature: strategy-utils**
"""

import math

import pytest
from hypothesis import assume, given, settings
from hypothesis import strategies as st

from strategyutils.pipeline.fees import (
    DEFAULT_FEE,
    FLOOR_FEE,
    LAUNCH_FEE,
    breakeven_market_cap,
    breakeven_multiple,
    fee_percent,
)

launch = st.integers(min_value=1_600_000_000, max_value=1_900_000_000)
offset = st.integers(min_value=0, max_value=30 * 24 * 3600)


class TestFeeMonotonicity:
    """
    **Feature: strategy-utils, Property 5: Fee Monotonicity**

    *For any* launch time, the fee is 95 at launch, never increases
    afterwards, is 10 from minute 85 on, and is 95 before launch.
    """

    @given(launch_ts=launch, a=offset, b=offset)
    @settings(max_examples=200)
    def test_non_increasing_after_launch(self, launch_ts: int, a: int, b: int):
        early, late = sorted((a, b))
        assert fee_percent(launch_ts + late, launch_ts) <= fee_percent(launch_ts + early, launch_ts)

    @given(launch_ts=launch)
    @settings(max_examples=50)
    def test_launch_fee_at_launch(self, launch_ts: int):
        assert fee_percent(launch_ts, launch_ts) == LAUNCH_FEE

    @given(launch_ts=launch, extra=offset)
    @settings(max_examples=100)
    def test_floor_after_85_minutes(self, launch_ts: int, extra: int):
        assert fee_percent(launch_ts + 85 * 60 + extra, launch_ts) == FLOOR_FEE

    @given(launch_ts=launch, before=st.integers(min_value=1, max_value=10**7))
    @settings(max_examples=100)
    def test_launch_fee_before_launch(self, launch_ts: int, before: int):
        assert fee_percent(launch_ts - before, launch_ts) == LAUNCH_FEE

    def test_45_minutes_in(self):
        launch_ts = 1_700_000_000
        assert fee_percent(launch_ts + 2700, launch_ts) == 50
        assert breakeven_multiple(50) == 2

    def test_one_percent_per_whole_minute(self):
        assert fee_percent(59, 0) == 95
        assert fee_percent(60, 0) == 94
        assert fee_percent(84 * 60 + 59, 0) == 11
        assert fee_percent(85 * 60, 0) == 10

    @pytest.mark.parametrize("launch_ts", [None, math.nan, math.inf])
    def test_unknown_launch_is_flat_default(self, launch_ts):
        assert fee_percent(1_700_000_000, launch_ts) == DEFAULT_FEE


class TestBreakevenInverse:
    """
    **Feature: strategy-utils, Property 6: Breakeven Inverse Relation**

    *For any* fee below 100%, the breakeven multiple times (100 - fee) is 100.
    """

    @given(fee=st.floats(min_value=-1000, max_value=99.999, allow_nan=False))
    @settings(max_examples=200)
    def test_inverse(self, fee: float):
        assume(100 - fee > 1e-9)
        multiple = breakeven_multiple(fee)
        assert multiple * (100 - fee) == pytest.approx(100)

    @pytest.mark.parametrize("fee", [100, 150, None, math.nan, math.inf])
    def test_undefined_fees(self, fee):
        assert breakeven_multiple(fee) is None

    def test_breakeven_market_cap(self):
        assert breakeven_market_cap(2.0, 1_000_000) == 2_000_000
        assert breakeven_market_cap(None, 1_000_000) is None
        assert breakeven_market_cap(2.0, None) is None
        assert breakeven_market_cap(2.0, math.nan) is None
