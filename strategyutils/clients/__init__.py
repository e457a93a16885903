"""Market-data clients."""

from strategyutils.clients.base import BaseMarketClient
from strategyutils.clients.geckoterminal import API_ROOT, GeckoTerminalClient
from strategyutils.clients.ratemeter import RateMeter

__all__ = [
    "API_ROOT",
    "BaseMarketClient",
    "GeckoTerminalClient",
    "RateMeter",
]
