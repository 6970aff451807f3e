"""Coarse category tag for a canonical instruction list."""

from __future__ import annotations

from collections.abc import Sequence
from enum import Enum

from txcanon.normalizer.models import Instruction
from txcanon.normalizer.program_ids import MEMO_PROGRAM_IDS, SYSTEM_PROGRAM_ID, TOKEN_PROGRAM_IDS


class TxKind(str, Enum):
    SYSTEM = "system"
    TOKEN = "token"
    MEMO = "memo"
    PROGRAM = "program"
    COMPLEX = "complex"
    UNRECOGNIZED = "unrecognized"


MULTI_PREFIX = "multi-"


def classify_program(program_id: str) -> TxKind:
    if program_id == SYSTEM_PROGRAM_ID:
        return TxKind.SYSTEM
    if program_id in TOKEN_PROGRAM_IDS:
        return TxKind.TOKEN
    if program_id in MEMO_PROGRAM_IDS:
        return TxKind.MEMO
    return TxKind.PROGRAM


def classify(instructions: Sequence[Instruction]) -> str:
    """
    system / token / memo / program for a single instruction, multi-<n> for
    several, complex when every instruction was dropped during normalization.
    """
    if not instructions:
        return TxKind.COMPLEX.value
    if len(instructions) == 1:
        return classify_program(instructions[0].program_id).value
    return f"{MULTI_PREFIX}{len(instructions)}"
