"""Strategy Utils - on-chain price analysis for NFTStrategy tokens.

Fetches token and pool data from GeckoTerminal, picks the most liquid pool,
pulls OHLCV candles and derives market cap and launch-fee series for a
single token or for all configured tokens on a shared time axis.
"""

__version__ = "0.1.0"
