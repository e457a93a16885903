"""Client-side candle resampling (1-minute to N-minute buckets)."""

from typing import Iterable

from strategyutils.models import Candle


def bucket_start(timestamp: int, bucket_seconds: int) -> int:
    return (timestamp // bucket_seconds) * bucket_seconds


def aggregate_candles(candles: Iterable[Candle], bucket_seconds: int) -> list[Candle]:
    """Aggregate fine candles into fixed-width buckets.

    Open comes from the earliest candle in a bucket and close from the latest,
    regardless of input order. High is the max, low the min, volume the sum.

    Args:
        candles: 1-minute candles, any order.
        bucket_seconds: Bucket width in seconds (600 for 10m).

    Returns:
        One candle per non-empty bucket, ascending by bucket start.
    """
    if bucket_seconds <= 0:
        raise ValueError(f"bucket_seconds must be positive, got {bucket_seconds}")

    buckets: dict[int, dict] = {}
    for candle in candles:
        key = bucket_start(candle.timestamp, bucket_seconds)
        b = buckets.get(key)
        if b is None:
            buckets[key] = {
                "open": candle.open,
                "high": candle.high,
                "low": candle.low,
                "close": candle.close,
                "volume": candle.volume,
                "first": candle.timestamp,
                "last": candle.timestamp,
            }
            continue

        b["high"] = max(b["high"], candle.high)
        b["low"] = min(b["low"], candle.low)
        b["volume"] += candle.volume
        if candle.timestamp < b["first"]:
            b["open"] = candle.open
            b["first"] = candle.timestamp
        if candle.timestamp > b["last"]:
            b["close"] = candle.close
            b["last"] = candle.timestamp

    return [
        Candle(
            timestamp=key,
            open=b["open"],
            high=b["high"],
            low=b["low"],
            close=b["close"],
            volume=b["volume"],
        )
        for key, b in sorted(buckets.items())
    ]
