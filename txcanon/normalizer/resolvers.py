"""
Program id resolution: an ordered chain of pure extractors, first match wins.

Providers describe an instruction's program in different ways depending on
encoding and version. Each extractor handles one representation and returns
None when it does not apply; an instruction no extractor resolves is dropped.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Callable

from txcanon.normalizer.accounts import AccountTable
from txcanon.normalizer.program_ids import SYSTEM_PROGRAM_ID

ProgramIdExtractor = Callable[[dict[str, Any], AccountTable], "str | None"]


def structured_program_key(ix: dict[str, Any], table: AccountTable) -> str | None:
    """programId given as a key object, e.g. {"pubkey": "..."}."""
    pid = ix.get("programId")
    if not isinstance(pid, Mapping):
        return None
    value = pid.get("pubkey") or pid.get("address")
    return value if isinstance(value, str) and value else None


def string_program_id(ix: dict[str, Any], table: AccountTable) -> str | None:
    """programId given as a base58 string (jsonParsed)."""
    pid = ix.get("programId")
    return pid if isinstance(pid, str) and pid else None


def system_program_marker(ix: dict[str, Any], table: AccountTable) -> str | None:
    """Parsed instructions tagged program="system" without an explicit id."""
    return SYSTEM_PROGRAM_ID if ix.get("program") == "system" else None


def program_id_index(ix: dict[str, Any], table: AccountTable) -> str | None:
    """programIdIndex into the message account keys (json)."""
    idx = ix.get("programIdIndex")
    if not isinstance(idx, int) or isinstance(idx, bool):
        return None
    return table.address_at(idx)


PROGRAM_ID_RESOLVERS: tuple[tuple[str, ProgramIdExtractor], ...] = (
    ("structured_key", structured_program_key),
    ("string_program_id", string_program_id),
    ("system_marker", system_program_marker),
    ("program_id_index", program_id_index),
)


def resolve_program_id(
    ix: dict[str, Any],
    table: AccountTable,
    resolvers: tuple[tuple[str, ProgramIdExtractor], ...] = PROGRAM_ID_RESOLVERS,
) -> str | None:
    """Return the first program id any resolver yields, or None (instruction is dropped)."""
    for _name, extract in resolvers:
        pid = extract(ix, table)
        if pid:
            return pid
    return None
