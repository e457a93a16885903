"""Candle (OHLCV) data model."""

from typing import Sequence

from pydantic import BaseModel, Field


class Candle(BaseModel):
    """Represents a single OHLCV candle keyed by unix seconds."""

    timestamp: int = Field(..., description="Bucket start, unix seconds")
    open: float = Field(..., description="Opening price (USD)")
    high: float = Field(..., description="High price (USD)")
    low: float = Field(..., description="Low price (USD)")
    close: float = Field(..., description="Closing price (USD)")
    volume: float = Field(..., ge=0, description="Volume (USD)")

    model_config = {"frozen": True}

    @classmethod
    def from_tuple(cls, row: Sequence) -> "Candle":
        """Build a candle from the API's ``[ts, o, h, l, c, v]`` tuple."""
        return cls(
            timestamp=int(row[0]),
            open=float(row[1]),
            high=float(row[2]),
            low=float(row[3]),
            close=float(row[4]),
            volume=float(row[5]),
        )
