"""Pool selection and launch-time discovery."""

from datetime import datetime, timezone
from typing import Optional

from strategyutils.models import IncludedResource, Pool, TokenResponse


def _norm_addr(address: Optional[str]) -> str:
    return (address or "").lower()


def _liquidity_key(pool: IncludedResource) -> tuple[float, float]:
    reserve = pool.attributes.reserve_in_usd or 0.0
    volume = pool.attributes.volume_usd.h24 or 0.0
    return (reserve, volume)


def parse_iso_ts(text: Optional[str]) -> Optional[int]:
    """Parse an ISO8601 timestamp to unix seconds; None when unparseable.

    Naive timestamps are taken as UTC.
    """
    if not text:
        return None
    try:
        parsed = datetime.fromisoformat(text.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(parsed.timestamp())


def select_pool(token_json: TokenResponse, token_address: str) -> Optional[Pool]:
    """Pick the most liquid pool and which side the token sits on.

    Pools are ranked by reserve_in_usd, then 24h volume, both descending.
    The sort is stable, so equal keys keep API order.

    Args:
        token_json: Decoded token response with included pools.
        token_address: The address that was queried.

    Returns:
        The chosen Pool, or None when no pool has an address.
    """
    pools = [p for p in token_json.pools if p.attributes.address]
    if not pools:
        return None

    best = sorted(pools, key=_liquidity_key, reverse=True)[0]

    # No match on either side falls back to "base"
    side = "quote" if _norm_addr(best.quote_address) == _norm_addr(token_address) else "base"

    return Pool(
        pool_address=best.attributes.address,
        reserve_usd=best.attributes.reserve_in_usd or 0.0,
        dex_name=best.attributes.dex_name or "—",
        side=side,
        created_at_iso=best.attributes.pool_created_at,
        base_address=best.base_address,
        quote_address=best.quote_address,
    )


def compute_launch_ts(
    token_json: TokenResponse,
    chosen_pool: Optional[Pool] = None,
) -> Optional[int]:
    """Earliest pool creation time, used as a proxy for token launch.

    Falls back to the chosen pool's own creation time, then None.
    """
    created = [parse_iso_ts(p.attributes.pool_created_at) for p in token_json.pools]
    created = [ts for ts in created if ts is not None]
    if created:
        return min(created)
    if chosen_pool is not None:
        return parse_iso_ts(chosen_pool.created_at_iso)
    return None
