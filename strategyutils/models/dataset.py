"""Per-token results produced by one load."""

from typing import Optional

from pydantic import BaseModel, Field

from strategyutils.models.candle import Candle
from strategyutils.models.token import Pool, TokenAttributes


class TokenInfo(BaseModel):
    """A token, its most liquid pool and launch proxy, without candles."""

    key: str = Field(..., min_length=1, description="Display key (strategy name or address)")
    network: str = Field(..., description="Network id")
    address: str = Field(..., description="Token contract address")
    token: TokenAttributes = Field(default_factory=TokenAttributes, description="Token attributes")
    pool: Pool = Field(..., description="Most liquid pool")
    launch_ts: Optional[int] = Field(default=None, description="Launch proxy, unix seconds")
    supply: Optional[float] = Field(default=None, description="Supply estimate for market cap")
    ref_price: Optional[float] = Field(default=None, description="Price the supply was derived at")

    model_config = {"frozen": True}


class Dataset(TokenInfo):
    """Everything one token load produced.

    Created fresh on every load and never mutated; the next load replaces it.
    """

    step: str = Field(..., description="Step key, e.g. 1h")
    start_unix: int = Field(..., description="Range start, inclusive")
    end_unix: int = Field(..., description="Range end, inclusive")
    max_rows: int = Field(..., ge=1, description="Rows requested")
    rows: tuple[Candle, ...] = Field(default=(), description="In-range candles, ascending")

    @property
    def is_short(self) -> bool:
        """True when fewer rows came back than were requested."""
        return len(self.rows) < self.max_rows
