"""Typed decode of the GeckoTerminal token (+ top pools) response.

The API returns JSON:API documents whose numeric fields are usually
strings ("12345.67"), sometimes numbers and sometimes null. Every numeric
field here is decoded leniently to ``float | None`` so the rest of the
pipeline never has to touch the wire format.
"""

import math
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, field_validator


def num_or_none(value: Any) -> Optional[float]:
    """Coerce an API value to a finite float, or None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    return number if math.isfinite(number) else None


class _Lenient(BaseModel):
    model_config = {"frozen": True, "extra": "ignore"}


def _dict_or_empty(cls, value: Any) -> Any:
    return value if isinstance(value, dict) else {}


def _str_or_none(cls, value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


class VolumeWindows(_Lenient):
    """Rolling USD volume windows; only h24 is used."""

    h24: Optional[float] = None

    @field_validator("h24", mode="before")
    @classmethod
    def coerce_number(cls, v):
        return num_or_none(v)


class TokenAttributes(_Lenient):
    """Raw attribute bag of a token. Read-only external input."""

    name: Optional[str] = None
    symbol: Optional[str] = None
    address: Optional[str] = None
    decimals: Optional[float] = None
    total_supply: Optional[float] = None
    normalized_total_supply: Optional[float] = None
    circulating_supply: Optional[float] = None
    normalized_circulating_supply: Optional[float] = None
    price_usd: Optional[float] = None
    market_cap_usd: Optional[float] = None
    fdv_usd: Optional[float] = None
    total_reserve_in_usd: Optional[float] = None
    volume_usd: VolumeWindows = Field(default_factory=VolumeWindows)

    @field_validator(
        "decimals",
        "total_supply",
        "normalized_total_supply",
        "circulating_supply",
        "normalized_circulating_supply",
        "price_usd",
        "market_cap_usd",
        "fdv_usd",
        "total_reserve_in_usd",
        mode="before",
    )
    @classmethod
    def coerce_number(cls, v):
        return num_or_none(v)

    coerce_text = field_validator("name", "symbol", "address", mode="before")(_str_or_none)
    coerce_volume = field_validator("volume_usd", mode="before")(_dict_or_empty)


class TokenData(_Lenient):
    id: Optional[str] = None
    type: Optional[str] = None
    attributes: TokenAttributes = Field(default_factory=TokenAttributes)

    coerce_attributes = field_validator("attributes", mode="before")(_dict_or_empty)
    coerce_text = field_validator("id", "type", mode="before")(_str_or_none)


class ResourceRef(_Lenient):
    id: Optional[str] = None
    type: Optional[str] = None

    coerce_text = field_validator("id", "type", mode="before")(_str_or_none)


class Relationship(_Lenient):
    data: Optional[ResourceRef] = None


class PoolRelationships(_Lenient):
    base_token: Relationship = Field(default_factory=Relationship)
    quote_token: Relationship = Field(default_factory=Relationship)
    dex: Relationship = Field(default_factory=Relationship)


class PoolAttributes(_Lenient):
    address: Optional[str] = None
    name: Optional[str] = None
    dex_name: Optional[str] = None
    reserve_in_usd: Optional[float] = None
    pool_created_at: Optional[str] = None
    volume_usd: VolumeWindows = Field(default_factory=VolumeWindows)

    @field_validator("reserve_in_usd", mode="before")
    @classmethod
    def coerce_number(cls, v):
        return num_or_none(v)

    coerce_text = field_validator(
        "address", "name", "dex_name", "pool_created_at", mode="before"
    )(_str_or_none)
    coerce_volume = field_validator("volume_usd", mode="before")(_dict_or_empty)


class IncludedResource(_Lenient):
    """One entry of ``included``; only ``type == "pool"`` entries matter."""

    id: Optional[str] = None
    type: Optional[str] = None
    attributes: PoolAttributes = Field(default_factory=PoolAttributes)
    relationships: PoolRelationships = Field(default_factory=PoolRelationships)

    coerce_nested = field_validator("attributes", "relationships", mode="before")(_dict_or_empty)
    coerce_text = field_validator("id", "type", mode="before")(_str_or_none)

    @staticmethod
    def _address_from_id(resource_id: Optional[str]) -> str:
        # ids look like "eth_0xabc..."; bare addresses pass through
        resource_id = resource_id or ""
        return resource_id.split("_", 1)[1] if "_" in resource_id else resource_id

    @property
    def base_address(self) -> str:
        ref = self.relationships.base_token.data
        return self._address_from_id(ref.id) if ref else ""

    @property
    def quote_address(self) -> str:
        ref = self.relationships.quote_token.data
        return self._address_from_id(ref.id) if ref else ""


class TokenResponse(_Lenient):
    """``GET /networks/{network}/tokens/{address}?include=top_pools``."""

    data: TokenData = Field(default_factory=TokenData)
    included: list[IncludedResource] = Field(default_factory=list)

    @field_validator("included", mode="before")
    @classmethod
    def coerce_included(cls, v):
        return [item for item in v if isinstance(item, dict)] if isinstance(v, list) else []

    coerce_data = field_validator("data", mode="before")(_dict_or_empty)

    @property
    def attributes(self) -> TokenAttributes:
        return self.data.attributes

    @property
    def pools(self) -> list[IncludedResource]:
        return [item for item in self.included if item.type == "pool"]


class Pool(BaseModel):
    """The pool chosen for a token load. Immutable once selected."""

    pool_address: str = Field(..., min_length=1, description="Pool contract address")
    reserve_usd: float = Field(default=0.0, description="Liquidity in USD")
    dex_name: str = Field(default="—", description="DEX display name")
    side: Literal["base", "quote"] = Field(
        default="base", description="Which side of the pool the queried token is"
    )
    created_at_iso: Optional[str] = Field(default=None, description="Pool creation time (ISO8601)")
    base_address: str = Field(default="", description="Base token address")
    quote_address: str = Field(default="", description="Quote token address")

    model_config = {"frozen": True}
