"""
Canonical, provider-agnostic transaction model.

Whatever encoding the provider returned, the normalizer produces these
records. Schema is stable and renderer-agnostic; to_dict()/to_json() are
deterministic so the same RawTransaction always serialises to the same bytes.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class AccountRef:
    """One account referenced by an instruction, with its derived roles."""

    address: str
    is_signer: bool
    is_writable: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "address": self.address,
            "is_signer": self.is_signer,
            "is_writable": self.is_writable,
        }


@dataclass(frozen=True)
class Instruction:
    """One canonical instruction; position in CanonicalTransaction.instructions is execution order."""

    program_id: str
    description: str
    accounts: tuple[AccountRef, ...]
    data_base64: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "program_id": self.program_id,
            "description": self.description,
            "accounts": [a.to_dict() for a in self.accounts],
            "data_base64": self.data_base64,
        }


@dataclass(frozen=True)
class ComputeDirective:
    """Compute budget extracted from the instruction stream."""

    units: int
    """Compute unit limit (setComputeUnitLimit)."""
    micro_lamports: int | None = None
    """Compute unit price (setComputeUnitPrice), when the transaction also set one."""

    def to_dict(self) -> dict[str, Any]:
        return {"units": self.units, "micro_lamports": self.micro_lamports}


@dataclass(frozen=True)
class CanonicalTransaction:
    """
    Normalized transaction handed to renderers.

    unique_accounts holds every program_id and account address appearing in
    instructions, de-duplicated in first-seen order.
    """

    signature: str | None
    instructions: tuple[Instruction, ...]
    unique_accounts: tuple[str, ...]
    compute_directive: ComputeDirective | None = None
    version: str | int = "legacy"

    def to_dict(self) -> dict[str, Any]:
        return {
            "signature": self.signature,
            "version": self.version,
            "instructions": [ix.to_dict() for ix in self.instructions],
            "unique_accounts": list(self.unique_accounts),
            "compute_directive": (
                self.compute_directive.to_dict() if self.compute_directive else None
            ),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), sort_keys=True, separators=(",", ":"))
