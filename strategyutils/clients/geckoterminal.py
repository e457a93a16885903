"""GeckoTerminal public API client built on aiohttp.

Root and rate limit: https://api.geckoterminal.com/api/v2 (about 30 req/min).
Token (+top pools): /networks/{network}/tokens/{address}?include=top_pools
OHLCV: /networks/{network}/pools/{pool}/ohlcv/{timeframe}?aggregate=...
"""

import asyncio
import logging
from typing import Any, Optional
from urllib.parse import quote

import aiohttp
from pydantic import ValidationError

from strategyutils.clients.base import BaseMarketClient
from strategyutils.clients.ratemeter import RateMeter
from strategyutils.errors import AbortedError, DecodeError, HttpError, NetworkError
from strategyutils.models import Candle, OHLCVRequest, OHLCVResponse, TokenResponse
from strategyutils.signal import AbortSignal

logger = logging.getLogger(__name__)

API_ROOT = "https://api.geckoterminal.com/api/v2"
DEFAULT_RATE_LIMIT = 30


class GeckoTerminalClient(BaseMarketClient):
    """Async client for the two GeckoTerminal endpoints the pipeline needs.

    Use as an async context manager; a session passed in by the caller is
    used as-is and left open.
    """

    def __init__(
        self,
        api_root: str = API_ROOT,
        session: Optional[aiohttp.ClientSession] = None,
        rate_meter: Optional[RateMeter] = None,
        timeout: Optional[float] = None,
    ):
        """Initialize the client.

        Args:
            api_root: REST root, without trailing slash.
            session: Existing aiohttp session to reuse.
            rate_meter: Shared call counter; a 30/min meter by default.
            timeout: Total per-request timeout in seconds; None waits forever.
        """
        self.api_root = api_root.rstrip("/")
        self.rate_meter = rate_meter or RateMeter(limit=DEFAULT_RATE_LIMIT)
        self.timeout = timeout
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "GeckoTerminalClient":
        if self._session is None:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            )
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    async def _request(self, path: str, params: Optional[dict[str, str]]) -> Any:
        if self._session is None:
            raise RuntimeError("GeckoTerminalClient used outside 'async with'")

        url = f"{self.api_root}{path}"
        try:
            async with self._session.get(
                url, params=params, headers={"accept": "application/json"}
            ) as resp:
                if resp.status < 200 or resp.status >= 300:
                    logger.warning("GeckoTerminal HTTP %s for %s", resp.status, path)
                    raise HttpError(resp.status, path)
                try:
                    return await resp.json(content_type=None)
                except ValueError as e:
                    raise DecodeError(f"Invalid JSON from {path}: {e}") from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning("GeckoTerminal request failed for %s: %s", path, e)
            raise NetworkError(f"Request failed for {path}: {e}") from e

    async def _get_json(
        self,
        path: str,
        params: Optional[dict[str, str]] = None,
        signal: Optional[AbortSignal] = None,
    ) -> Any:
        """GET ``path`` and return decoded JSON, honouring the abort signal."""
        if signal is not None:
            signal.raise_if_aborted()

        self.rate_meter.record()
        logger.debug("GET %s %s", path, params or {})

        if signal is None:
            return await self._request(path, params)

        request = asyncio.ensure_future(self._request(path, params))
        aborted = asyncio.ensure_future(signal.wait())
        try:
            await asyncio.wait({request, aborted}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            aborted.cancel()
            if not request.done():
                request.cancel()
                await asyncio.gather(request, return_exceptions=True)

        if signal.aborted:
            # A response that raced the abort is stale; drop it.
            if request.done() and not request.cancelled():
                request.exception()
            raise AbortedError(signal.reason)
        return request.result()

    async def fetch_token_with_pools(
        self,
        network: str,
        address: str,
        signal: Optional[AbortSignal] = None,
    ) -> TokenResponse:
        """Get a token and its top pools."""
        path = (
            f"/networks/{quote(network, safe='')}"
            f"/tokens/{quote(address, safe='')}"
        )
        payload = await self._get_json(path, {"include": "top_pools"}, signal)
        try:
            return TokenResponse.model_validate(payload if isinstance(payload, dict) else {})
        except ValidationError as e:
            raise DecodeError(f"Unexpected token payload for {address}: {e}") from e

    async def fetch_ohlcv(
        self,
        request: OHLCVRequest,
        signal: Optional[AbortSignal] = None,
    ) -> list[Candle]:
        """Get OHLCV candles for a pool."""
        path = (
            f"/networks/{quote(request.network, safe='')}"
            f"/pools/{quote(request.pool_address, safe='')}"
            f"/ohlcv/{request.timeframe}"
        )
        payload = await self._get_json(path, request.query_params(), signal)
        try:
            response = OHLCVResponse.model_validate(payload if isinstance(payload, dict) else {})
        except ValidationError as e:
            raise DecodeError(f"Unexpected OHLCV payload for {request.pool_address}: {e}") from e
        return response.candles()
