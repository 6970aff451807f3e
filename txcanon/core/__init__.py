"""
Core utilities — exceptions and cross-cutting concerns shared by the
fetcher, normalizer and orchestrator.
"""

from txcanon.core.exceptions import (
    ConfigError,
    FetchExhausted,
    FetchTimeout,
    NetworkError,
    NotFound,
    OtherNetworkError,
    RateLimited,
    StartSignatureNotFound,
    TxCanonError,
)

__all__ = [
    "ConfigError",
    "FetchExhausted",
    "FetchTimeout",
    "NetworkError",
    "NotFound",
    "OtherNetworkError",
    "RateLimited",
    "StartSignatureNotFound",
    "TxCanonError",
]
