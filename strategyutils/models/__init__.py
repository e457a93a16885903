"""Data models for Strategy Utils."""

from strategyutils.models.candle import Candle
from strategyutils.models.dataset import Dataset, TokenInfo
from strategyutils.models.ohlcv import MAX_OHLCV_LIMIT, OHLCVRequest, OHLCVResponse
from strategyutils.models.token import (
    IncludedResource,
    Pool,
    TokenAttributes,
    TokenResponse,
    num_or_none,
)

__all__ = [
    "Candle",
    "Dataset",
    "IncludedResource",
    "MAX_OHLCV_LIMIT",
    "OHLCVRequest",
    "OHLCVResponse",
    "Pool",
    "TokenAttributes",
    "TokenInfo",
    "TokenResponse",
    "num_or_none",
]
