"""
Transaction normalizer: RawTransaction to CanonicalTransaction.

Handles jsonParsed and raw json payloads, legacy and v0 messages. Per
instruction: resolve the program id (see resolvers), resolve accounts and
their roles (see accounts), label it, and convert its data to base64.
ComputeBudget instructions are not domain actions: they are removed from the
instruction list and summarised as a ComputeDirective.

Purely structural and deterministic; no I/O.
"""

from __future__ import annotations

import base64
import binascii
from typing import Any

import base58

from txcanon.fetcher.models import RawTransaction
from txcanon.normalizer.accounts import AccountTable, refs_from_accounts, refs_from_parsed_info
from txcanon.normalizer.models import (
    AccountRef,
    CanonicalTransaction,
    ComputeDirective,
    Instruction,
)
from txcanon.normalizer.program_ids import (
    COMPUTE_BUDGET_PROGRAM_ID,
    DEFAULT_COMPUTE_UNITS,
    MEMO_PROGRAM_IDS,
    SET_COMPUTE_UNIT_LIMIT,
    SET_COMPUTE_UNIT_PRICE,
    SYSTEM_PROGRAM_ID,
    TOKEN_PROGRAM_ID,
)
from txcanon.normalizer.resolvers import resolve_program_id
from txcanon.txcanon_logging import get_logger, short_signature

logger = get_logger(__name__)

_PROGRAM_PREVIEW = 8
_MINT_PREVIEW = 8


def _get_message_and_meta(
    payload: dict[str, Any],
) -> tuple[dict[str, Any], dict[str, Any] | None]:
    """Return (message, meta): transaction.message, else message, else the payload itself."""
    tx_obj = payload.get("transaction")
    if isinstance(tx_obj, dict) and isinstance(tx_obj.get("message"), dict):
        message = tx_obj["message"]
    elif isinstance(payload.get("message"), dict):
        message = payload["message"]
    else:
        message = payload
    meta = payload.get("meta")
    return message, meta if isinstance(meta, dict) else None


def _get_instructions(payload: dict[str, Any], message: dict[str, Any]) -> list[Any]:
    instructions = message.get("instructions")
    if not instructions:
        tx_obj = payload.get("transaction")
        if isinstance(tx_obj, dict):
            instructions = tx_obj.get("instructions")
    return instructions if isinstance(instructions, list) else []


def _signature_of(payload: dict[str, Any]) -> str | None:
    tx_obj = payload.get("transaction")
    sigs = tx_obj.get("signatures") if isinstance(tx_obj, dict) else None
    if isinstance(sigs, list) and sigs and isinstance(sigs[0], str):
        return sigs[0]
    return None


def _b58decode(s: str) -> bytes:
    """Decode base58 instruction data to bytes; fallback to base64 for RPC variance."""
    try:
        return base58.b58decode(s)
    except ValueError:
        pass
    try:
        return base64.b64decode(s, validate=True)
    except binascii.Error as e:
        raise ValueError(f"Could not decode instruction data (base58/base64): {e}") from e


def _data_bytes(data: Any) -> bytes | None:
    """Instruction data as bytes; json/jsonParsed carry base58, or [payload, "base64"]."""
    if isinstance(data, str):
        if not data:
            return b""
        try:
            return _b58decode(data)
        except ValueError as e:
            logger.debug("normalize_data_undecodable", error=str(e))
            return None
    if isinstance(data, list) and len(data) == 2 and data[1] == "base64" and isinstance(data[0], str):
        try:
            return base64.b64decode(data[0], validate=True)
        except binascii.Error as e:
            logger.debug("normalize_data_undecodable", error=str(e))
            return None
    return None


def _data_base64(ix: dict[str, Any]) -> str:
    raw = _data_bytes(ix.get("data"))
    if raw is None:
        return ""
    return base64.b64encode(raw).decode("ascii")


def _describe(ix: dict[str, Any], program_id: str) -> str:
    """Short human-readable label for an instruction."""
    parsed = ix.get("parsed")
    if isinstance(parsed, dict):
        description = parsed.get("type") or "parsed instruction"
        info = parsed.get("info")
        if isinstance(info, dict):
            if info.get("lamports"):
                description += f" ({info['lamports']} lamports)"
            amount = info.get("amount")
            if not amount and isinstance(info.get("tokenAmount"), dict):
                amount = info["tokenAmount"].get("amount")
            if amount:
                description += f" (amount: {amount})"
            mint = info.get("mint")
            if isinstance(mint, str) and mint:
                description += f" (mint: {mint[:_MINT_PREVIEW]}...)"
        return description
    if isinstance(parsed, str) or program_id in MEMO_PROGRAM_IDS:
        # spl-memo decodes to the memo text itself
        return "Memo"
    if program_id == SYSTEM_PROGRAM_ID:
        return "System instruction"
    if program_id == TOKEN_PROGRAM_ID:
        return "SPL Token instruction"
    return f"Program {program_id[:_PROGRAM_PREVIEW]}... instruction"


def _accounts(ix: dict[str, Any], table: AccountTable) -> list[AccountRef]:
    accounts = ix.get("accounts")
    if isinstance(accounts, list):
        return refs_from_accounts(accounts, table)
    parsed = ix.get("parsed")
    if isinstance(parsed, dict) and isinstance(parsed.get("info"), dict):
        return refs_from_parsed_info(parsed["info"])
    return []


class _ComputeBudget:
    """Accumulates ComputeBudget instructions; later instructions overwrite earlier ones."""

    def __init__(self) -> None:
        self.units: int | None = None
        self.micro_lamports: int | None = None

    def add(self, ix: dict[str, Any]) -> None:
        parsed = ix.get("parsed")
        if isinstance(parsed, dict):
            info = parsed.get("info") if isinstance(parsed.get("info"), dict) else {}
            if parsed.get("type") == "setComputeUnitLimit":
                self.units = _as_int(info.get("units"), DEFAULT_COMPUTE_UNITS)
            elif parsed.get("type") == "setComputeUnitPrice":
                self.micro_lamports = _as_int(info.get("microLamports"), None)
            return
        raw = _data_bytes(ix.get("data"))
        if not raw:
            return
        if raw[0] == SET_COMPUTE_UNIT_LIMIT and len(raw) >= 5:
            self.units = int.from_bytes(raw[1:5], "little")
        elif raw[0] == SET_COMPUTE_UNIT_PRICE and len(raw) >= 9:
            self.micro_lamports = int.from_bytes(raw[1:9], "little")

    def directive(self) -> ComputeDirective | None:
        if self.units is None:
            return None
        return ComputeDirective(units=self.units, micro_lamports=self.micro_lamports)


def _as_int(value: Any, default: int | None) -> int | None:
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return default
    return default


def normalize(raw: RawTransaction, signature: str | None = None) -> CanonicalTransaction | None:
    """
    Convert a fetched transaction into its canonical form.

    Returns None when the payload has no instructions at all. Instructions
    whose program id cannot be resolved are dropped, so the result may have
    an empty instruction list (e.g. a compute-budget-only transaction).
    """
    payload = raw.payload
    message, meta = _get_message_and_meta(payload)
    instructions = _get_instructions(payload, message)
    if not instructions:
        return None

    signature = signature or _signature_of(payload)
    table = AccountTable.from_message(message, meta)
    budget = _ComputeBudget()
    canonical: list[Instruction] = []
    unique: dict[str, None] = {}
    dropped = 0

    for ix in instructions:
        if not isinstance(ix, dict):
            dropped += 1
            continue
        program_id = resolve_program_id(ix, table)
        if program_id is None:
            dropped += 1
            continue
        if program_id == COMPUTE_BUDGET_PROGRAM_ID:
            budget.add(ix)
            continue

        refs = _accounts(ix, table)
        unique.setdefault(program_id, None)
        for ref in refs:
            unique.setdefault(ref.address, None)
        canonical.append(
            Instruction(
                program_id=program_id,
                description=_describe(ix, program_id),
                accounts=tuple(refs),
                data_base64=_data_base64(ix),
            )
        )

    if dropped:
        logger.debug(
            "normalize_instructions_dropped",
            signature=short_signature(signature),
            dropped=dropped,
        )

    return CanonicalTransaction(
        signature=signature,
        instructions=tuple(canonical),
        unique_accounts=tuple(unique),
        compute_directive=budget.directive(),
        version=raw.version,
    )
