"""
Local transaction cache: one JSON file per signature.

Append-only and durable across restarts: existence of <signature>.json is a
cache hit, its content is the verbatim getTransaction result. There is no
eviction; the cache makes the fetch stage resumable after interruption.
"""

from __future__ import annotations

import hashlib
import json
import os
import re
import tempfile
from pathlib import Path
from typing import Any

from txcanon.core.exceptions import NotFound
from txcanon.fetcher.models import RawTransaction
from txcanon.txcanon_logging import get_logger, short_signature

logger = get_logger(__name__)

_PLAIN_NAME = re.compile(r"[A-Za-z0-9_-][A-Za-z0-9_.-]{0,119}")
# Never produced by the plain form, so hashed and plain names cannot collide
_HASHED_PREFIX = "~"


def cache_file_stem(signature: str) -> str:
    """
    File name (without .json) for an identifier; one-to-one.

    Base58 signatures and other short plain names are used as-is. Anything
    else (path separators, over-long, leading dot) becomes "~" + sha256 hex.
    """
    if _PLAIN_NAME.fullmatch(signature):
        return signature
    return _HASHED_PREFIX + hashlib.sha256(signature.encode("utf-8")).hexdigest()


class TransactionCache:
    """
    Directory-backed cache keyed by transaction signature.

    put() writes to a temp file in the same directory and renames it into
    place, so concurrent writers of the same signature are harmless (last
    write wins) and readers never see partial records.
    """

    def __init__(self, directory: str | Path) -> None:
        self._dir = Path(directory)

    @property
    def directory(self) -> Path:
        return self._dir

    def path_for(self, signature: str) -> Path:
        return self._dir / f"{cache_file_stem(signature)}.json"

    def has(self, signature: str) -> bool:
        return self.path_for(signature).is_file()

    def get(self, signature: str) -> RawTransaction:
        """Return the cached transaction; raises NotFound when absent."""
        path = self.path_for(signature)
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise NotFound(signature) from e
        payload: dict[str, Any] = json.loads(text)
        return RawTransaction.from_payload(payload)

    def put(self, signature: str, raw: RawTransaction) -> Path:
        """Persist raw.payload verbatim; idempotent, creates the directory if needed."""
        self._dir.mkdir(parents=True, exist_ok=True)
        path = self.path_for(signature)
        fd, tmp_name = tempfile.mkstemp(dir=self._dir, prefix=".tmp-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(raw.payload, f)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug("cache_write", signature=short_signature(signature), path=str(path))
        return path

    def __len__(self) -> int:
        if not self._dir.is_dir():
            return 0
        return sum(1 for p in self._dir.glob("*.json") if not p.name.startswith(".tmp-"))
