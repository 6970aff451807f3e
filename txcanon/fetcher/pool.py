"""
RPC endpoint pool: strict round-robin with per-endpoint pacing.

The pool owns every endpoint's mutable usage state. Callers only ever see
endpoint URLs and immutable EndpointStats snapshots. Success/failure
counters are observability only; routing is always pure round-robin.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field

from txcanon.core.exceptions import ConfigError
from txcanon.fetcher.models import EndpointStats
from txcanon.txcanon_logging import get_logger, short_rpc

logger = get_logger(__name__)


@dataclass
class _Endpoint:
    url: str
    request_count: int = 0
    success_count: int = 0
    failure_count: int = 0
    last_request_at: float | None = None
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)


class EndpointPool:
    """
    Hands out RPC endpoints in rotation and enforces a minimum interval
    between requests to the same endpoint.

    One pool instance is shared by reference between all concurrent fetch
    tasks. Pacing for an endpoint runs under that endpoint's lock, so only
    callers that drew the same endpoint wait on each other.
    """

    def __init__(self, urls: list[str] | tuple[str, ...], *, min_interval_sec: float = 0.3) -> None:
        """
        Args:
            urls: Endpoint URLs in rotation order. A repeated URL is kept once,
                at its first position, so each endpoint has one pacing state.
            min_interval_sec: Minimum spacing between two requests to one endpoint.
        """
        cleaned = list(dict.fromkeys(u.strip() for u in urls if u and u.strip()))
        if not cleaned:
            raise ConfigError("EndpointPool needs at least one endpoint")
        if min_interval_sec < 0:
            raise ConfigError("min_interval_sec must be >= 0")
        self._endpoints = [_Endpoint(url=u) for u in cleaned]
        self._by_url = {e.url: e for e in self._endpoints}
        self._min_interval = min_interval_sec
        self._index = -1

    def __len__(self) -> int:
        return len(self._endpoints)

    @property
    def urls(self) -> list[str]:
        return [e.url for e in self._endpoints]

    async def next(self) -> str:
        """
        Return the next endpoint URL in rotation, sleeping until the endpoint's
        minimum interval since its last use has elapsed.
        """
        # No await between read and write: the rotation step is atomic on the loop.
        self._index = (self._index + 1) % len(self._endpoints)
        endpoint = self._endpoints[self._index]
        endpoint.request_count += 1

        async with endpoint.lock:
            if endpoint.last_request_at is not None and self._min_interval > 0:
                elapsed = time.monotonic() - endpoint.last_request_at
                if elapsed < self._min_interval:
                    await asyncio.sleep(self._min_interval - elapsed)
            endpoint.last_request_at = time.monotonic()
        return endpoint.url

    def record_success(self, url: str) -> None:
        endpoint = self._by_url.get(url)
        if endpoint is not None:
            endpoint.success_count += 1

    def record_failure(self, url: str) -> None:
        endpoint = self._by_url.get(url)
        if endpoint is not None:
            endpoint.failure_count += 1

    def stats(self) -> list[EndpointStats]:
        """Snapshot of per-endpoint counters, in rotation order."""
        return [
            EndpointStats(
                url=e.url,
                requests=e.request_count,
                success=e.success_count,
                failures=e.failure_count,
            )
            for e in self._endpoints
        ]

    def log_stats(self) -> None:
        """Emit one rpc_stats line per endpoint (end-of-run summary)."""
        for s in self.stats():
            logger.info(
                "rpc_stats",
                rpc=short_rpc(s.url),
                requests=s.requests,
                success=s.success,
                failures=s.failures,
                success_rate=s.success_rate,
            )
