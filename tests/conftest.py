"""
Pytest fixtures for txcanon tests: sample getTransaction payloads in both
encodings, a temporary cache directory, and environment isolation.
"""

from __future__ import annotations

import pytest

from tests.payloads import make_parsed_payload, make_raw_payload, make_v0_raw_payload
from txcanon.fetcher.cache import TransactionCache

_ENV_KEYS = (
    "SOLANA_RPC_URL",
    "HELIUS_API_KEY",
    "CONCURRENCY",
    "MAX_RETRIES",
    "REQUEST_TIMEOUT_MS",
    "BATCH_DELAY_MS",
    "PER_RPC_DELAY_MS",
    "BASE_BACKOFF_MS",
    "PROGRESS_EVERY_WINDOWS",
    "TX_CACHE_DIR",
    "TX_OUTPUT_PATH",
    "COMMITMENT",
)


@pytest.fixture
def raw_payload() -> dict:
    return make_raw_payload()


@pytest.fixture
def v0_raw_payload() -> dict:
    return make_v0_raw_payload()


@pytest.fixture
def parsed_payload() -> dict:
    return make_parsed_payload()


@pytest.fixture
def tx_cache(tmp_path) -> TransactionCache:
    return TransactionCache(tmp_path / "out_jsonl")


@pytest.fixture
def clean_env(monkeypatch):
    """Remove txcanon env vars and reset the settings cache."""
    from txcanon.config.settings import get_settings

    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    get_settings.cache_clear()
    yield monkeypatch
    get_settings.cache_clear()
