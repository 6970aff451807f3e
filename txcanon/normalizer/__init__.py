"""
Transaction normalizer package.

Turns any fetched transaction shape into the canonical instruction model
and tags it with a coarse category for routing.
"""

from txcanon.normalizer.accounts import AccountTable, derive_header_roles
from txcanon.normalizer.classifier import TxKind, classify
from txcanon.normalizer.models import (
    AccountRef,
    CanonicalTransaction,
    ComputeDirective,
    Instruction,
)
from txcanon.normalizer.normalizer import normalize
from txcanon.normalizer.resolvers import PROGRAM_ID_RESOLVERS, resolve_program_id

__all__ = [
    "AccountRef",
    "AccountTable",
    "CanonicalTransaction",
    "ComputeDirective",
    "Instruction",
    "PROGRAM_ID_RESOLVERS",
    "TxKind",
    "classify",
    "derive_header_roles",
    "normalize",
    "resolve_program_id",
]
