"""Base market-data client interface."""

from abc import ABC, abstractmethod
from typing import Optional

from strategyutils.clients.ratemeter import RateMeter
from strategyutils.models import Candle, OHLCVRequest, TokenResponse
from strategyutils.signal import AbortSignal


class BaseMarketClient(ABC):
    """Abstract base class for market-data sources.

    The GeckoTerminal client and the in-memory clients used in tests both
    implement this interface, so the pipeline never depends on HTTP.
    """

    rate_meter: RateMeter

    @abstractmethod
    async def fetch_token_with_pools(
        self,
        network: str,
        address: str,
        signal: Optional[AbortSignal] = None,
    ) -> TokenResponse:
        """Get a token and its top pools.

        Args:
            network: Network id (e.g. "eth").
            address: Token contract address.
            signal: Optional cancellation signal for the current load.

        Returns:
            Decoded token response; ``pools`` may be empty.

        Raises:
            HttpError: On a non-2xx answer.
            NetworkError: On transport or decode failure.
            AbortedError: If the signal fired.
        """
        pass

    @abstractmethod
    async def fetch_ohlcv(
        self,
        request: OHLCVRequest,
        signal: Optional[AbortSignal] = None,
    ) -> list[Candle]:
        """Get OHLCV candles for a pool.

        Args:
            request: Pool, timeframe, limit and side to fetch.
            signal: Optional cancellation signal for the current load.

        Returns:
            Candles in API order (usually newest first).

        Raises:
            HttpError: On a non-2xx answer.
            NetworkError: On transport or decode failure.
            AbortedError: If the signal fired.
        """
        pass
