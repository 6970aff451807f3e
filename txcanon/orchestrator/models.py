"""Batch records: the renderer handoff and the end-of-run summary."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from txcanon.normalizer.models import CanonicalTransaction


@dataclass(frozen=True)
class ProcessedTransaction:
    """What the external renderer receives for each processed signature."""

    signature: str
    transaction: CanonicalTransaction
    kind: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "signature": self.signature,
            "kind": self.kind,
            "transaction": self.transaction.to_dict(),
        }


@dataclass
class BatchSummary:
    """Counters for one orchestrator run."""

    total: int = 0
    """Signatures selected for this run (after resume)."""
    start_index: int = 0
    processed: int = 0
    succeeded: int = 0
    failed: int = 0
    unrecognized: int = 0
    """Fetched but carried no instructions (normalize returned None)."""
    elapsed_sec: float = 0.0

    @property
    def rate_per_sec(self) -> float:
        if self.elapsed_sec <= 0:
            return 0.0
        return round(self.processed / self.elapsed_sec, 2)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "start_index": self.start_index,
            "processed": self.processed,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "unrecognized": self.unrecognized,
            "elapsed_sec": round(self.elapsed_sec, 1),
            "rate_per_sec": self.rate_per_sec,
        }
