"""
Main entrypoint: fetch, cache and canonicalise the transactions listed in a
signatures file.

    python main.py data/signatures.csv [start_signature]

Env: SOLANA_RPC_URL (comma-separated pool), CONCURRENCY, MAX_RETRIES,
REQUEST_TIMEOUT_MS, BATCH_DELAY_MS, PER_RPC_DELAY_MS, TX_CACHE_DIR, TX_OUTPUT_PATH.
"""

import sys

from txcanon.runner import main

if __name__ == "__main__":
    sys.exit(main())
