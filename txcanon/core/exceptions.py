"""
Application-level exceptions.

One base class, one subclass per failure the fetch pipeline distinguishes.
Per-signature failures (everything except StartSignatureNotFound and
ConfigError) are caught at the orchestrator's per-signature boundary.
"""

from __future__ import annotations


class TxCanonError(Exception):
    """Base class for txcanon errors."""


class ConfigError(TxCanonError):
    """Invalid or missing configuration; fatal at startup."""


class NotFound(TxCanonError):
    """Cache miss. Expected during normal operation, never logged as an error."""

    def __init__(self, signature: str) -> None:
        super().__init__(f"No cached transaction for {signature}")
        self.signature = signature


class NetworkError(TxCanonError):
    """A single RPC request failed; the fetch client retries it."""


class FetchTimeout(NetworkError):
    """A single RPC request exceeded the per-request timeout."""


class RateLimited(NetworkError):
    """The provider signalled too many requests (HTTP 429 or equivalent)."""


class OtherNetworkError(NetworkError):
    """Transport, HTTP status or JSON-RPC error other than rate limiting."""


class FetchExhausted(TxCanonError):
    """Every attempt for one signature failed or came back empty."""

    def __init__(self, signature: str, attempts: int) -> None:
        super().__init__(f"Failed to fetch {signature} after {attempts} attempts")
        self.signature = signature
        self.attempts = attempts


class StartSignatureNotFound(TxCanonError):
    """The requested resume signature is not in the input list."""

    def __init__(self, signature: str) -> None:
        super().__init__(f"Start signature not found: {signature}")
        self.signature = signature
