"""Error types raised by the data pipeline."""

from typing import Optional


class StrategyUtilsError(Exception):
    """Base class for all pipeline errors."""


class HttpError(StrategyUtilsError):
    """The API answered with a non-2xx status."""

    def __init__(self, status: int, path: str = ""):
        self.status = status
        self.path = path
        super().__init__(f"HTTP {status} {path}".strip())


class NetworkError(StrategyUtilsError):
    """The request never produced an HTTP response (DNS, reset, timeout)."""


class DecodeError(NetworkError):
    """The API answered 2xx but the body was not the expected JSON shape."""


class AbortedError(StrategyUtilsError):
    """The load was cancelled before it completed.

    Raised instead of HttpError/NetworkError whenever an AbortSignal fires,
    so callers can report "Stopped." rather than a failure.
    """

    def __init__(self, reason: Optional[str] = None):
        self.reason = reason
        super().__init__(reason or "Aborted")


class NoPoolError(StrategyUtilsError):
    """The token has no discoverable pools on the selected network."""

    def __init__(self, address: str, network: str = ""):
        self.address = address
        self.network = network
        super().__init__("No pools found for this token on the selected network.")


class InsufficientDataWarning(UserWarning):
    """Fewer rows were available than requested. Never fatal."""

    def __init__(self, key: str, available: int, requested: int):
        self.key = key
        self.available = available
        self.requested = requested
        super().__init__(f"{key}: only {available} of {requested} rows available")
