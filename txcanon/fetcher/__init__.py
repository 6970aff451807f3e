"""
Transaction fetcher package.

Endpoint pool (round-robin + per-endpoint pacing), durable signature-keyed
cache, and the retrying getTransaction client that ties them together.
"""

from txcanon.fetcher.cache import TransactionCache
from txcanon.fetcher.client import (
    FailureClass,
    RetryingFetchClient,
    backoff_ms,
    classify_failure,
)
from txcanon.fetcher.models import EndpointStats, RawTransaction, TxEncoding
from txcanon.fetcher.pool import EndpointPool

__all__ = [
    "EndpointPool",
    "EndpointStats",
    "FailureClass",
    "RawTransaction",
    "RetryingFetchClient",
    "TransactionCache",
    "TxEncoding",
    "backoff_ms",
    "classify_failure",
]
