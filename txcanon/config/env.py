"""
Environment variable loading for txcanon.

- SOLANA_RPC_URL: comma-separated RPC endpoints, used round-robin
- HELIUS_API_KEY: optional; adds the Helius mainnet endpoint to the pool
- Loads .env from project root when available.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# Project root: config is txcanon/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_PACKAGE_DIR = _CONFIG_DIR.parent
_ROOT = _PACKAGE_DIR.parent
_ENV_PATH = _ROOT / ".env"

MAINNET_RPC_URL = "https://api.mainnet-beta.solana.com"
HELIUS_MAINNET_URL_TEMPLATE = "https://mainnet.helius-rpc.com/?api-key={key}"


def load_txcanon_env() -> None:
    """Load .env from project root. Safe to call multiple times; never overrides set vars."""
    load_dotenv(_ENV_PATH)


def parse_endpoint_list(raw: str) -> list[str]:
    """Split a comma-separated endpoint list; trims, drops blanks and duplicates (order kept)."""
    out: list[str] = []
    for part in raw.split(","):
        url = part.strip()
        if url and url not in out:
            out.append(url)
    return out


def get_rpc_endpoints() -> list[str]:
    """
    Resolve the RPC endpoint pool from env.
    SOLANA_RPC_URL (comma-separated) plus the Helius endpoint when HELIUS_API_KEY
    is set; public mainnet when neither is configured.
    """
    load_txcanon_env()
    endpoints = parse_endpoint_list(os.getenv("SOLANA_RPC_URL") or "")
    key = (os.getenv("HELIUS_API_KEY") or "").strip()
    if key:
        helius = HELIUS_MAINNET_URL_TEMPLATE.format(key=key)
        if helius not in endpoints:
            endpoints.append(helius)
    return endpoints or [MAINNET_RPC_URL]


def env_int(name: str, default: int) -> int:
    """Read an int env var; blank means default. Raises ValueError on garbage."""
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    return int(raw, 10)


def env_str(name: str, default: str) -> str:
    raw = (os.getenv(name) or "").strip()
    return raw or default
