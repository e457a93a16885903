"""Display formatting. Unknown values always render as an em dash."""

import math
import time
from datetime import datetime, tzinfo
from typing import Optional

MISSING = "—"
COMPACT_FROM = 100_000

_SCALES = ((1e3, "K"), (1e6, "M"), (1e9, "B"), (1e12, "T"))


def _is_number(n) -> bool:
    return n is not None and not isinstance(n, bool) and isinstance(n, (int, float)) and math.isfinite(n)


def _trim(text: str) -> str:
    return text.rstrip("0").rstrip(".") if "." in text else text


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def compact(n: float, dp: int = 2) -> str:
    """1234567 -> "1.23M". Values below 1000 are printed plainly."""
    magnitude = abs(n)
    chosen = None
    for i, (scale, _) in enumerate(_SCALES):
        if magnitude >= scale:
            chosen = i
    if chosen is None:
        return _trim(f"{n:.{dp}f}")

    scale, suffix = _SCALES[chosen]
    # 999_999 rounds to "1000K"; promote it to "1M"
    if round(magnitude / scale, dp) >= 1000 and chosen + 1 < len(_SCALES):
        scale, suffix = _SCALES[chosen + 1]
    return f"{_trim(f'{n / scale:.{dp}f}')}{suffix}"


def fmt(n: Optional[float], dp: int = 8) -> str:
    """Plain number with up to ``dp`` decimals, compact from 100k."""
    if not _is_number(n):
        return MISSING
    if abs(n) >= COMPACT_FROM:
        return compact(n)
    return _trim(f"{n:.{min(dp, 8)}f}")


def fmt_usd(n: Optional[float], max_dp: int = 2) -> str:
    if not _is_number(n):
        return MISSING
    sign = "-" if n < 0 else ""
    if abs(n) >= COMPACT_FROM:
        return f"{sign}${compact(abs(n))}"
    return f"{sign}${abs(n):,.{max_dp}f}"


def fmt_percent(p: Optional[float]) -> str:
    """Whole percent, e.g. 95%."""
    if not _is_number(p):
        return MISSING
    return f"{_round_half_up(p)}%"


def fmt_multiple(x: Optional[float]) -> str:
    """Breakeven multiple; 20x rather than 20.00x."""
    if not _is_number(x):
        return MISSING
    r = round(x, 2)
    if abs(r - round(r)) < 1e-9:
        return f"{int(round(r))}x"
    return f"{r:.2f}x"


def fmt_axis(v: float) -> str:
    """Axis tick label; compact from 100k, else up to two decimals."""
    if not _is_number(v):
        return MISSING
    if abs(v) >= COMPACT_FROM:
        return compact(v, dp=1)
    return _trim(f"{v:,.2f}")


def short_addr(address: Optional[str]) -> str:
    if not address:
        return MISSING
    return f"{address[:6]}…{address[-4:]}" if len(address) > 12 else address


def fmt_ts(ts: Optional[int], tz: Optional[tzinfo] = None, with_time: bool = True) -> str:
    """Unix seconds as local (or ``tz``) date and time."""
    if ts is None:
        return MISSING
    dt = datetime.fromtimestamp(ts, tz=tz) if tz else datetime.fromtimestamp(ts)
    return dt.strftime("%Y-%m-%d %H:%M" if with_time else "%Y-%m-%d")


def human_age(from_ts: Optional[int], now: Optional[float] = None) -> str:
    """Coarse age such as "1y 2m", "3d" or "5h"."""
    if not from_ts:
        return MISSING
    now = time.time() if now is None else now
    s = int(now - from_ts)
    if s <= 0:
        return "just now"

    year, month, day, hour = 365 * 24 * 3600, 30 * 24 * 3600, 24 * 3600, 3600
    y = s // year
    mo = (s % year) // month
    d = (s % month) // day
    h = (s % day) // hour

    parts = []
    if y:
        parts.append(f"{y}y")
    if mo:
        parts.append(f"{mo}m")
    if d and len(parts) < 2:
        parts.append(f"{d}d")
    if not parts:
        parts.append(f"{h}h")
    return " ".join(parts)
