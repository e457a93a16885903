"""Supply estimate and historical market cap.

Historical market cap is ``close_at_ts * supply`` with one supply figure
per load, assumed constant across the whole range (mint/burn drift is not
modelled).
"""

import math
from typing import Optional, Sequence

from strategyutils.models import Candle, TokenAttributes, num_or_none

MAX_DECIMALS = 36


def _positive(value: Optional[float]) -> Optional[float]:
    return value if value is not None and math.isfinite(value) and value > 0 else None


def normalize_total_supply(total_supply: Optional[float], decimals: Optional[float]) -> Optional[float]:
    """Scale a raw base-unit supply by ``10**decimals``.

    Missing decimals count as 0; decimals outside [0, 36] yield None.
    """
    total = num_or_none(total_supply)
    if total is None:
        return None
    dec = num_or_none(decimals) if decimals is not None else 0.0
    if dec is None or dec < 0 or dec > MAX_DECIMALS:
        return None
    return total / math.pow(10, dec)


def derive_supply(attrs: TokenAttributes, ref_price: Optional[float]) -> Optional[float]:
    """Pick a token supply for market-cap math.

    Priority, first positive finite value wins:
      1) normalized_circulating_supply
      2) circulating_supply (assumed already normalized)
      3) normalized_total_supply
      4) total_supply scaled by decimals
      5) market_cap_usd / ref_price
      6) fdv_usd / ref_price
    Rules 5 and 6 need ``ref_price > 0``.

    Returns:
        Supply in whole tokens, or None when nothing qualifies.
    """
    for candidate in (
        attrs.normalized_circulating_supply,
        attrs.circulating_supply,
        attrs.normalized_total_supply,
        normalize_total_supply(attrs.total_supply, attrs.decimals),
    ):
        supply = _positive(candidate)
        if supply is not None:
            return supply

    price = _positive(num_or_none(ref_price))
    if price is None:
        return None

    for valuation in (attrs.market_cap_usd, attrs.fdv_usd):
        value = _positive(valuation)
        if value is not None:
            supply = _positive(value / price)
            if supply is not None:
                return supply

    return None


def reference_price(
    attrs: TokenAttributes,
    rows: Sequence[Candle],
    series: Sequence[Candle] = (),
) -> Optional[float]:
    """Live price_usd, else the close of the latest in-range row, else of the latest fetched candle."""
    live = num_or_none(attrs.price_usd)
    if live is not None:
        return live
    latest = rows[-1] if rows else (series[-1] if series else None)
    return num_or_none(latest.close) if latest is not None else None


def market_cap_at(candle: Optional[Candle], supply: Optional[float]) -> Optional[float]:
    """Close times supply; None (never 0) when either is unknown."""
    if candle is None or supply is None:
        return None
    close = num_or_none(candle.close)
    if close is None or not math.isfinite(supply):
        return None
    value = close * supply
    return value if math.isfinite(value) else None
