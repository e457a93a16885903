"""OHLCV request parameters and response decode."""

import math
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from strategyutils.models.candle import Candle

MAX_OHLCV_LIMIT = 1000


class OHLCVRequest(BaseModel):
    """Parameters of ``GET /networks/{network}/pools/{pool}/ohlcv/{timeframe}``."""

    network: str = Field(..., min_length=1, description="Network id, e.g. eth")
    pool_address: str = Field(..., min_length=1, description="Pool contract address")
    timeframe: Literal["minute", "hour", "day"] = Field(..., description="API timeframe")
    aggregate: int = Field(default=1, ge=1, description="Candles per API bucket")
    limit: int = Field(default=100, ge=1, le=MAX_OHLCV_LIMIT, description="Max candles returned")
    before_timestamp: Optional[int] = Field(default=None, description="Return candles before this unix ts")
    side: Optional[Literal["base", "quote"]] = Field(default=None, description="Token side to price")
    include_empty_intervals: bool = Field(default=True, description="Fill gaps with empty candles")
    currency: Literal["usd", "token"] = Field(default="usd", description="Price currency")

    model_config = {"frozen": True}

    def query_params(self) -> dict[str, str]:
        """Query string parameters in the order the API documents them."""
        params = {
            "aggregate": str(self.aggregate),
            "limit": str(self.limit),
        }
        if self.before_timestamp:
            params["before_timestamp"] = str(self.before_timestamp)
        params["currency"] = self.currency
        if self.include_empty_intervals:
            params["include_empty_intervals"] = "true"
        if self.side in ("base", "quote"):
            params["token"] = self.side
        return params


class _OHLCVAttributes(BaseModel):
    ohlcv_list: list[Any] = Field(default_factory=list)

    model_config = {"extra": "ignore"}

    @field_validator("ohlcv_list", mode="before")
    @classmethod
    def coerce_list(cls, v):
        return v if isinstance(v, list) else []


class _OHLCVData(BaseModel):
    attributes: _OHLCVAttributes = Field(default_factory=_OHLCVAttributes)

    model_config = {"extra": "ignore"}

    @field_validator("attributes", mode="before")
    @classmethod
    def coerce_attributes(cls, v):
        return v if isinstance(v, dict) else {}


class OHLCVResponse(BaseModel):
    """``{data: {attributes: {ohlcv_list: [[ts, o, h, l, c, v], ...]}}}``."""

    data: _OHLCVData = Field(default_factory=_OHLCVData)

    model_config = {"extra": "ignore"}

    @field_validator("data", mode="before")
    @classmethod
    def coerce_data(cls, v):
        return v if isinstance(v, dict) else {}

    def candles(self) -> list[Candle]:
        """Decode the tuple list, dropping rows that are short, non-numeric or invalid."""
        candles = []
        for row in self.data.attributes.ohlcv_list:
            if not isinstance(row, (list, tuple)) or len(row) < 6:
                continue
            try:
                values = [float(x) for x in row[:6]]
            except (TypeError, ValueError, OverflowError):
                continue
            if not all(math.isfinite(x) for x in values):
                continue
            try:
                candles.append(Candle.from_tuple(values))
            except ValidationError:
                continue
        return candles
