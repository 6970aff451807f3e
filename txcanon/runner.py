"""
Pipeline wiring: settings -> endpoint pool -> cache -> fetch client ->
orchestrator -> JSONL sink.

    python main.py data/signatures.csv [start_signature]

Env: SOLANA_RPC_URL (comma-separated), CONCURRENCY, MAX_RETRIES,
REQUEST_TIMEOUT_MS, BATCH_DELAY_MS, PER_RPC_DELAY_MS, TX_CACHE_DIR,
TX_OUTPUT_PATH. See txcanon.config.settings.
"""

from __future__ import annotations

import argparse
import asyncio
from pathlib import Path

from txcanon.config import FetchSettings, get_settings
from txcanon.config.env import load_txcanon_env
from txcanon.core.exceptions import ConfigError, StartSignatureNotFound
from txcanon.fetcher import EndpointPool, RetryingFetchClient, TransactionCache
from txcanon.orchestrator import BatchOrchestrator, BatchSummary, JsonlSink, load_signatures
from txcanon.txcanon_logging import configure_logging, get_logger, short_rpc, short_signature

logger = get_logger(__name__)

DEFAULT_SIGNATURES_PATH = "data/signatures.csv"


async def run_pipeline(
    settings: FetchSettings,
    signatures_path: str | Path,
    start_from: str | None = None,
) -> BatchSummary:
    """Load signatures and run one full batch with the given settings."""
    signatures = load_signatures(signatures_path)
    pool = EndpointPool(settings.rpc_endpoints, min_interval_sec=settings.per_rpc_delay_sec)
    cache = TransactionCache(settings.cache_dir)
    logger.info(
        "pipeline_config",
        rpc_pool=[short_rpc(u) for u in pool.urls],
        concurrency=settings.concurrency,
        max_retries=settings.max_retries,
        cache_dir=str(settings.cache_dir),
        output_path=str(settings.output_path),
    )
    async with RetryingFetchClient(
        pool,
        cache,
        max_retries=settings.max_retries,
        request_timeout_sec=settings.request_timeout_sec,
        base_backoff_ms=settings.base_backoff_ms,
        commitment=settings.commitment,
    ) as client:
        orchestrator = BatchOrchestrator(
            client,
            concurrency=settings.concurrency,
            batch_delay_sec=settings.batch_delay_sec,
            progress_every_windows=settings.progress_every_windows,
            sink=JsonlSink(settings.output_path),
        )
        return await orchestrator.run(signatures, start_from=start_from)


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Fetch and canonicalise Solana transactions")
    ap.add_argument("signatures", nargs="?", default=DEFAULT_SIGNATURES_PATH, help="CSV/line file of signatures")
    ap.add_argument("start_signature", nargs="?", default=None, help="Resume from this signature")
    args = ap.parse_args(argv)

    # LOG_LEVEL / LOG_FORMAT may live in .env only
    load_txcanon_env()
    configure_logging()

    path = Path(args.signatures)
    if not path.is_file():
        logger.error("pipeline_missing_signatures_file", path=str(path))
        return 1
    try:
        settings = get_settings()
        asyncio.run(run_pipeline(settings, path, args.start_signature))
    except ConfigError as e:
        logger.error("pipeline_config_error", error=str(e))
        return 1
    except StartSignatureNotFound as e:
        logger.error("pipeline_start_signature_not_found", signature=short_signature(e.signature))
        return 1
    except KeyboardInterrupt:
        logger.info("pipeline_keyboard_interrupt")
        return 130
    return 0
