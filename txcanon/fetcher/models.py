"""
Data models for fetcher output.

RawTransaction is the boundary type between the fetcher and the normalizer:
a tagged union over the provider encodings. Only the normalizer looks inside
payload; everything else treats it as opaque.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class TxEncoding(str, Enum):
    """getTransaction encoding the payload was returned in."""

    PARSED = "jsonParsed"
    RAW = "json"


@dataclass(frozen=True)
class EndpointStats:
    """Snapshot of one endpoint's usage counters."""

    url: str
    requests: int
    success: int
    failures: int

    @property
    def success_rate(self) -> float:
        """Percentage of requests that succeeded; 0.0 before any request."""
        if self.requests == 0:
            return 0.0
        return round(self.success / self.requests * 100.0, 1)

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "requests": self.requests,
            "success": self.success,
            "failures": self.failures,
            "success_rate": self.success_rate,
        }


def _message_of(payload: dict[str, Any]) -> dict[str, Any]:
    tx = payload.get("transaction")
    if isinstance(tx, dict) and isinstance(tx.get("message"), dict):
        return tx["message"]
    if isinstance(payload.get("message"), dict):
        return payload["message"]
    return payload


def detect_encoding(payload: dict[str, Any]) -> TxEncoding:
    """
    Infer the encoding of a verbatim getTransaction result.

    jsonParsed messages carry accountKeys as {pubkey, signer, writable} objects
    and instructions with programId strings; json messages carry plain string
    keys and programIdIndex integers.
    """
    message = _message_of(payload)
    keys = message.get("accountKeys") or []
    if keys and isinstance(keys[0], dict):
        return TxEncoding.PARSED
    for ix in message.get("instructions") or []:
        if not isinstance(ix, dict):
            continue
        if "parsed" in ix or "programId" in ix:
            return TxEncoding.PARSED
        if "programIdIndex" in ix:
            return TxEncoding.RAW
    return TxEncoding.RAW


@dataclass(frozen=True)
class RawTransaction:
    """
    Provider-returned transaction, persisted verbatim in the cache.

    encoding tags which shape payload has; version is "legacy" or the
    versioned-message number (0) as reported by the RPC.
    """

    encoding: TxEncoding
    payload: dict[str, Any] = field(hash=False, compare=True)
    version: str | int = "legacy"

    @classmethod
    def from_payload(
        cls,
        payload: dict[str, Any],
        encoding: TxEncoding | None = None,
    ) -> "RawTransaction":
        """Wrap an RPC result; detects the encoding when not given (cache reads)."""
        version = payload.get("version", "legacy")
        if version is None:
            version = "legacy"
        return cls(
            encoding=encoding or detect_encoding(payload),
            payload=payload,
            version=version,
        )

    @property
    def is_parsed(self) -> bool:
        return self.encoding is TxEncoding.PARSED
