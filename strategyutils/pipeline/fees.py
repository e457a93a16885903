"""Launch-fee decay and breakeven math.

Trading fee schedule:
  minute 0 after launch: 95%
  then -1% per minute until minute 85 reaches 10%
  after that: flat 10%. Unknown launch time: flat 10%.
"""

import math
from typing import Optional

LAUNCH_FEE = 95
FLOOR_FEE = 10
DEFAULT_FEE = 10


def _finite(value) -> bool:
    return value is not None and not isinstance(value, bool) and math.isfinite(value)


def fee_percent(ts: int, launch_ts: Optional[float]) -> float:
    """Trading fee in percent at ``ts`` for a token launched at ``launch_ts``."""
    if not _finite(launch_ts):
        return DEFAULT_FEE
    delta = ts - launch_ts
    if delta < 0:
        return LAUNCH_FEE
    minutes = math.floor(delta / 60)
    return max(FLOOR_FEE, LAUNCH_FEE - minutes)


def breakeven_multiple(fee: Optional[float]) -> Optional[float]:
    """Price multiple needed to recover a fee of ``fee`` percent.

    None when the fee is unknown or 100% and above.
    """
    if not _finite(fee):
        return None
    denom = 100 - fee
    if denom <= 0:
        return None
    return 100 / denom


def breakeven_market_cap(multiple: Optional[float], market_cap: Optional[float]) -> Optional[float]:
    if not _finite(multiple) or not _finite(market_cap):
        return None
    return multiple * market_cap
