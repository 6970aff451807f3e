"""
Batch orchestrator: windowed, bounded-concurrency sweep over signatures.

The input list is cut into consecutive windows of `concurrency` signatures.
Each window runs fetch -> normalize -> classify -> sink for all of its
signatures concurrently and is awaited in full before the next starts.
Per-signature failures are logged and counted; they never abort the run.
"""

from __future__ import annotations

import asyncio
import time
from enum import Enum
from typing import Any, Protocol

from txcanon.fetcher.models import RawTransaction
from txcanon.normalizer import TxKind, classify, normalize
from txcanon.orchestrator.models import BatchSummary, ProcessedTransaction
from txcanon.orchestrator.signatures import select_signatures
from txcanon.orchestrator.sinks import ResultSink
from txcanon.txcanon_logging import get_logger, short_signature

logger = get_logger(__name__)

DEFAULT_CONCURRENCY = 5
DEFAULT_PROGRESS_EVERY_WINDOWS = 10
_ERROR_PREVIEW = 120


class _Outcome(str, Enum):
    OK = "ok"
    UNRECOGNIZED = TxKind.UNRECOGNIZED.value
    FAILED = "failed"


class TransactionFetcher(Protocol):
    async def fetch(self, signature: str) -> RawTransaction: ...


class BatchOrchestrator:
    """
    Drive a fetcher over an ordered signature list, window by window.

    If the fetcher exposes a `pool` with log_stats(), per-endpoint stats are
    logged at the end of every run.
    """

    def __init__(
        self,
        fetcher: TransactionFetcher,
        *,
        concurrency: int = DEFAULT_CONCURRENCY,
        batch_delay_sec: float = 0.0,
        progress_every_windows: int = DEFAULT_PROGRESS_EVERY_WINDOWS,
        sink: ResultSink | None = None,
    ) -> None:
        """
        Args:
            fetcher: Object with `async fetch(signature) -> RawTransaction`.
            concurrency: Window width W (signatures in flight at once).
            batch_delay_sec: Pause between windows.
            progress_every_windows: Emit a progress line every N windows (and at the end).
            sink: Optional callback(ProcessedTransaction); may be sync or async.
        """
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        if progress_every_windows < 1:
            raise ValueError("progress_every_windows must be >= 1")
        if batch_delay_sec < 0:
            raise ValueError("batch_delay_sec must be >= 0")
        self._fetcher = fetcher
        self._concurrency = concurrency
        self._batch_delay = batch_delay_sec
        self._progress_every = progress_every_windows
        self._sink = sink

    async def run(
        self,
        signatures: list[str],
        *,
        start_from: str | None = None,
        skip: int = 0,
    ) -> BatchSummary:
        """
        Process signatures (from the resume point on) and return the summary.

        Raises StartSignatureNotFound before any work when start_from is absent.
        """
        selected, start_index = select_signatures(signatures, start_from=start_from, skip=skip)
        summary = BatchSummary(total=len(selected), start_index=start_index)
        logger.info(
            "batch_started",
            loaded=len(signatures),
            start_index=start_index,
            processing=len(selected),
            concurrency=self._concurrency,
        )

        started = time.monotonic()
        window_no = 0
        for i in range(0, len(selected), self._concurrency):
            window = selected[i : i + self._concurrency]
            outcomes = await asyncio.gather(*(self._process_one(sig) for sig in window))
            window_no += 1
            for outcome in outcomes:
                summary.processed += 1
                if outcome is _Outcome.OK:
                    summary.succeeded += 1
                elif outcome is _Outcome.UNRECOGNIZED:
                    summary.unrecognized += 1
                else:
                    summary.failed += 1
            summary.elapsed_sec = time.monotonic() - started

            done = summary.processed >= len(selected)
            if window_no % self._progress_every == 0 or done:
                logger.info(
                    "batch_progress",
                    processed=summary.processed,
                    total=len(selected),
                    rate_per_sec=summary.rate_per_sec,
                    elapsed_sec=round(summary.elapsed_sec, 1),
                )
            if not done and self._batch_delay > 0:
                await asyncio.sleep(self._batch_delay)

        summary.elapsed_sec = time.monotonic() - started
        logger.info("batch_done", **summary.to_dict())
        self._log_endpoint_stats()
        return summary

    async def _process_one(self, signature: str) -> _Outcome:
        """fetch -> normalize -> classify -> sink, with the per-signature error boundary."""
        try:
            raw = await self._fetcher.fetch(signature)
            canonical = normalize(raw, signature)
            if canonical is None:
                logger.warning("batch_no_instructions", signature=short_signature(signature))
                return _Outcome.UNRECOGNIZED
            kind = classify(canonical.instructions)
            await self._dispatch(ProcessedTransaction(signature=signature, transaction=canonical, kind=kind))
            logger.info(
                "batch_item_ok",
                signature=short_signature(signature),
                kind=kind,
                instructions=len(canonical.instructions),
            )
            return _Outcome.OK
        except Exception as e:
            logger.error(
                "batch_item_failed",
                signature=short_signature(signature),
                error_kind=type(e).__name__,
                error=str(e)[:_ERROR_PREVIEW],
            )
            return _Outcome.FAILED

    async def _dispatch(self, item: ProcessedTransaction) -> None:
        """Call the sink; support sync or async callbacks."""
        cb = self._sink
        if cb is None:
            return
        result: Any = cb(item)
        if asyncio.iscoroutine(result):
            await result

    def _log_endpoint_stats(self) -> None:
        pool = getattr(self._fetcher, "pool", None)
        log_stats = getattr(pool, "log_stats", None)
        if callable(log_stats):
            log_stats()
