"""
Application settings for the fetch/normalize pipeline.

Responsibilities:
- Load configuration from environment variables and .env files.
- Validate values and provide defaults for everything.
- Expose typed settings (endpoints, concurrency, retry, timeouts, pacing)
  for use across the fetcher, orchestrator and runner.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

from txcanon.config.env import env_int, env_str, get_rpc_endpoints, load_txcanon_env
from txcanon.core.exceptions import ConfigError

DEFAULT_CONCURRENCY = 5
DEFAULT_MAX_RETRIES = 5
DEFAULT_REQUEST_TIMEOUT_MS = 30_000
DEFAULT_BATCH_DELAY_MS = 0
DEFAULT_PER_RPC_DELAY_MS = 300
DEFAULT_BASE_BACKOFF_MS = 1000
DEFAULT_PROGRESS_EVERY_WINDOWS = 10
DEFAULT_CACHE_DIR = "out_jsonl"
DEFAULT_OUTPUT_PATH = "out_canonical.jsonl"
DEFAULT_COMMITMENT = "finalized"


@dataclass(frozen=True)
class FetchSettings:
    """Typed configuration; all durations are stored in milliseconds."""

    rpc_endpoints: tuple[str, ...]
    concurrency: int = DEFAULT_CONCURRENCY
    max_retries: int = DEFAULT_MAX_RETRIES
    request_timeout_ms: int = DEFAULT_REQUEST_TIMEOUT_MS
    batch_delay_ms: int = DEFAULT_BATCH_DELAY_MS
    per_rpc_delay_ms: int = DEFAULT_PER_RPC_DELAY_MS
    base_backoff_ms: int = DEFAULT_BASE_BACKOFF_MS
    progress_every_windows: int = DEFAULT_PROGRESS_EVERY_WINDOWS
    cache_dir: Path = field(default_factory=lambda: Path(DEFAULT_CACHE_DIR))
    output_path: Path = field(default_factory=lambda: Path(DEFAULT_OUTPUT_PATH))
    commitment: str = DEFAULT_COMMITMENT

    def __post_init__(self) -> None:
        if not self.rpc_endpoints:
            raise ConfigError("at least one RPC endpoint is required")
        if self.concurrency < 1:
            raise ConfigError("CONCURRENCY must be >= 1")
        if self.max_retries < 1:
            raise ConfigError("MAX_RETRIES must be >= 1")
        if self.request_timeout_ms <= 0:
            raise ConfigError("REQUEST_TIMEOUT_MS must be positive")
        for name in ("batch_delay_ms", "per_rpc_delay_ms", "base_backoff_ms"):
            if getattr(self, name) < 0:
                raise ConfigError(f"{name.upper()} must be >= 0")
        if self.progress_every_windows < 1:
            raise ConfigError("PROGRESS_EVERY_WINDOWS must be >= 1")

    @property
    def request_timeout_sec(self) -> float:
        return self.request_timeout_ms / 1000.0

    @property
    def batch_delay_sec(self) -> float:
        return self.batch_delay_ms / 1000.0

    @property
    def per_rpc_delay_sec(self) -> float:
        return self.per_rpc_delay_ms / 1000.0

    @classmethod
    def from_env(cls) -> "FetchSettings":
        """Build settings from the environment (after loading .env)."""
        load_txcanon_env()
        try:
            return cls(
                rpc_endpoints=tuple(get_rpc_endpoints()),
                concurrency=env_int("CONCURRENCY", DEFAULT_CONCURRENCY),
                max_retries=env_int("MAX_RETRIES", DEFAULT_MAX_RETRIES),
                request_timeout_ms=env_int("REQUEST_TIMEOUT_MS", DEFAULT_REQUEST_TIMEOUT_MS),
                batch_delay_ms=env_int("BATCH_DELAY_MS", DEFAULT_BATCH_DELAY_MS),
                per_rpc_delay_ms=env_int("PER_RPC_DELAY_MS", DEFAULT_PER_RPC_DELAY_MS),
                base_backoff_ms=env_int("BASE_BACKOFF_MS", DEFAULT_BASE_BACKOFF_MS),
                progress_every_windows=env_int(
                    "PROGRESS_EVERY_WINDOWS", DEFAULT_PROGRESS_EVERY_WINDOWS
                ),
                cache_dir=Path(env_str("TX_CACHE_DIR", DEFAULT_CACHE_DIR)),
                output_path=Path(env_str("TX_OUTPUT_PATH", DEFAULT_OUTPUT_PATH)),
                commitment=env_str("COMMITMENT", DEFAULT_COMMITMENT),
            )
        except ValueError as e:
            raise ConfigError(f"invalid numeric setting: {e}") from e


@lru_cache(maxsize=1)
def get_settings() -> FetchSettings:
    """
    Return the current application settings (read once per process).

    Tests that change the environment should call get_settings.cache_clear().
    """
    return FetchSettings.from_env()
