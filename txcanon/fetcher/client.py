"""
Retrying getTransaction client over the endpoint pool.

For one signature: cache read-through, then up to max_retries attempts, each
on the next pooled endpoint. An attempt asks for the jsonParsed encoding
first and falls back to raw json when the provider returns nothing. Errors
are classified so rate limiting backs off harder (base * 3**attempt) than
other failures (base * 2**attempt). Successful results are written through
to the cache.
"""

from __future__ import annotations

import asyncio
import random
from enum import Enum
from typing import Any, Awaitable, Callable

import httpx

from txcanon.core.exceptions import (
    FetchExhausted,
    FetchTimeout,
    NetworkError,
    OtherNetworkError,
    RateLimited,
)
from txcanon.fetcher.cache import TransactionCache
from txcanon.fetcher.models import RawTransaction, TxEncoding
from txcanon.fetcher.pool import EndpointPool
from txcanon.txcanon_logging import bind_signature, short_rpc

DEFAULT_MAX_RETRIES = 5
DEFAULT_BASE_BACKOFF_MS = 1000
DEFAULT_REQUEST_TIMEOUT_SEC = 30.0
# Upper bound of uniform jitter added to each backoff
EMPTY_JITTER_MS = 100.0
ERROR_JITTER_MS = 150.0

_RATE_LIMIT_MARKERS = ("429", "too many requests")
_RPC_RATE_LIMIT_CODE = -32429
_ERROR_PREVIEW = 50

_request_id = 0


def _next_id() -> int:
    global _request_id
    _request_id += 1
    return _request_id


def build_get_transaction_body(
    signature: str,
    encoding: TxEncoding,
    commitment: str = "finalized",
) -> dict[str, Any]:
    return {
        "jsonrpc": "2.0",
        "id": _next_id(),
        "method": "getTransaction",
        "params": [
            signature,
            {
                "encoding": encoding.value,
                "commitment": commitment,
                "maxSupportedTransactionVersion": 0,
            },
        ],
    }


class FailureClass(str, Enum):
    RATE_LIMITED = "rate_limited"
    OTHER = "other"


def classify_failure(exc: BaseException) -> FailureClass:
    """RATE_LIMITED when the provider signalled too many requests, else OTHER."""
    if isinstance(exc, RateLimited):
        return FailureClass.RATE_LIMITED
    if isinstance(exc, httpx.HTTPStatusError) and exc.response.status_code == 429:
        return FailureClass.RATE_LIMITED
    text = str(exc).lower()
    if any(marker in text for marker in _RATE_LIMIT_MARKERS):
        return FailureClass.RATE_LIMITED
    return FailureClass.OTHER


def backoff_ms(attempt: int, base_ms: float, failure: FailureClass | None = None) -> float:
    """
    Backoff before the next attempt, without jitter.

    attempt is 1-based. Empty responses and generic failures grow as
    base * 2**attempt; rate-limit failures as base * 3**attempt.
    """
    factor = 3 if failure is FailureClass.RATE_LIMITED else 2
    return base_ms * (factor ** attempt)


def _raise_for_rpc_response(resp: httpx.Response) -> dict[str, Any]:
    """Map HTTP/JSON-RPC failures onto the fetch error taxonomy; return the decoded body."""
    if resp.status_code == 429:
        raise RateLimited(f"HTTP 429 Too Many Requests from {short_rpc(str(resp.url))}")
    try:
        resp.raise_for_status()
    except httpx.HTTPStatusError as e:
        raise OtherNetworkError(f"HTTP {resp.status_code}: {e}") from e
    try:
        data = resp.json()
    except ValueError as e:
        raise OtherNetworkError(f"Invalid JSON from RPC: {e}") from e
    if not isinstance(data, dict):
        raise OtherNetworkError("RPC returned a non-object body")
    err = data.get("error")
    if err:
        message = err.get("message", err) if isinstance(err, dict) else err
        code = err.get("code") if isinstance(err, dict) else None
        text = f"Solana RPC error: {message} (code={code})"
        if code == _RPC_RATE_LIMIT_CODE or any(m in str(message).lower() for m in _RATE_LIMIT_MARKERS):
            raise RateLimited(text)
        raise OtherNetworkError(text)
    return data


class RetryingFetchClient:
    """
    Fetch transactions by signature with pooling, pacing, timeout and retry.

    Use as an async context manager (or call aclose()) so the owned
    httpx.AsyncClient is closed. A caller-supplied http_client is not closed.
    """

    def __init__(
        self,
        pool: EndpointPool,
        cache: TransactionCache,
        *,
        max_retries: int = DEFAULT_MAX_RETRIES,
        request_timeout_sec: float = DEFAULT_REQUEST_TIMEOUT_SEC,
        base_backoff_ms: float = DEFAULT_BASE_BACKOFF_MS,
        commitment: str = "finalized",
        http_client: httpx.AsyncClient | None = None,
        sleep: Callable[[float], Awaitable[Any]] | None = None,
    ) -> None:
        """
        Args:
            pool: Shared endpoint pool (round-robin + pacing).
            cache: Read-through / write-through transaction cache.
            max_retries: Attempts per signature before FetchExhausted.
            request_timeout_sec: Hard timeout for each single RPC request.
            base_backoff_ms: Backoff base; see backoff_ms().
            commitment: RPC commitment level.
            http_client: Optional client (tests inject httpx.MockTransport).
            sleep: Optional coroutine used for backoff sleeps (tests record delays).
        """
        if max_retries < 1:
            raise ValueError("max_retries must be >= 1")
        if request_timeout_sec <= 0:
            raise ValueError("request_timeout_sec must be positive")
        self._pool = pool
        self._cache = cache
        self._max_retries = max_retries
        self._timeout = request_timeout_sec
        self._base_backoff_ms = base_backoff_ms
        self._commitment = commitment
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=httpx.Timeout(request_timeout_sec))
        self._sleep = sleep or asyncio.sleep

    @property
    def pool(self) -> EndpointPool:
        return self._pool

    @property
    def cache(self) -> TransactionCache:
        return self._cache

    async def __aenter__(self) -> "RetryingFetchClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def fetch(self, signature: str) -> RawTransaction:
        """Return the transaction for signature; raises FetchExhausted after the last attempt."""
        log = bind_signature(signature)
        if self._cache.has(signature):
            log.debug("fetch_cache_hit")
            return self._cache.get(signature)

        for attempt in range(1, self._max_retries + 1):
            last = attempt == self._max_retries
            rpc = await self._pool.next()
            try:
                raw = await self._fetch_once(rpc, signature)
            except NetworkError as e:
                self._pool.record_failure(rpc)
                failure = classify_failure(e)
                delay = 0.0 if last else backoff_ms(attempt, self._base_backoff_ms, failure)
                log.warning(
                    "fetch_attempt_failed",
                    rpc=short_rpc(rpc),
                    attempt=attempt,
                    failure=failure.value,
                    error=str(e)[:_ERROR_PREVIEW],
                    backoff_ms=delay,
                )
                if not last:
                    await self._sleep((delay + random.uniform(0, ERROR_JITTER_MS)) / 1000.0)
                continue

            if raw is not None:
                self._pool.record_success(rpc)
                self._cache.put(signature, raw)
                log.debug(
                    "fetch_ok",
                    rpc=short_rpc(rpc),
                    attempt=attempt,
                    encoding=raw.encoding.value,
                )
                return raw

            delay = 0.0 if last else backoff_ms(attempt, self._base_backoff_ms)
            log.info(
                "fetch_empty_result",
                rpc=short_rpc(rpc),
                attempt=attempt,
                backoff_ms=delay,
            )
            if not last:
                await self._sleep((delay + random.uniform(0, EMPTY_JITTER_MS)) / 1000.0)

        raise FetchExhausted(signature, self._max_retries)

    async def _fetch_once(self, rpc: str, signature: str) -> RawTransaction | None:
        """One attempt on one endpoint: jsonParsed, then raw json. None when both are empty."""
        for encoding in (TxEncoding.PARSED, TxEncoding.RAW):
            result = await self._request(rpc, signature, encoding)
            if result:
                return RawTransaction.from_payload(result, encoding)
        return None

    async def _request(
        self,
        rpc: str,
        signature: str,
        encoding: TxEncoding,
    ) -> dict[str, Any] | None:
        """Perform one getTransaction call under the hard timeout."""
        body = build_get_transaction_body(signature, encoding, self._commitment)
        try:
            resp = await asyncio.wait_for(self._http.post(rpc, json=body), timeout=self._timeout)
        except asyncio.TimeoutError as e:
            raise FetchTimeout(f"timeout after {self._timeout}s ({encoding.value})") from e
        except httpx.TimeoutException as e:
            raise FetchTimeout(f"timeout: {e}") from e
        except httpx.HTTPError as e:
            raise OtherNetworkError(f"{type(e).__name__}: {e}") from e
        data = _raise_for_rpc_response(resp)
        result = data.get("result")
        return result if isinstance(result, dict) else None
