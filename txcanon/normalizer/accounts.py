"""
Account key table and account-role derivation.

Index-based (raw json) messages do not carry signer/writable flags; roles
come from the message header counts:

    signer   iff i < numRequiredSignatures
    writable iff i is in neither read-only range:
        [numRequiredSignatures - numReadonlySignedAccounts, numRequiredSignatures)
        [n_static - numReadonlyUnsignedAccounts, n_static)

Addresses loaded from lookup tables (v0 messages) follow the static keys:
writable ones first, then read-only; they are never signers.

Parsed (jsonParsed) instructions only name accounts inside decoded info, so
their roles come from a field-name table. That table is a best-effort
heuristic and can mis-tag roles for programs whose decoded shape differs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from txcanon.normalizer.models import AccountRef

Role = tuple[bool, bool]
"""(is_signer, is_writable)"""

# Field name in parsed.info -> (is_signer, is_writable); evaluated in this order
PARSED_INFO_ROLE_FIELDS: tuple[tuple[str, bool, bool], ...] = (
    ("source", True, True),
    ("destination", False, True),
    ("owner", True, False),
    ("authority", True, False),
    ("mint", False, True),
    ("account", False, True),
    ("tokenAccount", False, True),
    ("multisigAuthority", False, False),
    ("newAccount", False, True),
    ("fromPubkey", True, True),
    ("toPubkey", False, True),
)


def derive_header_roles(
    num_required_signatures: int,
    num_readonly_signed: int,
    num_readonly_unsigned: int,
    num_accounts: int,
) -> list[Role]:
    """Signer/writable role for each static account index, from header counts alone."""
    readonly_signed_start = num_required_signatures - num_readonly_signed
    readonly_unsigned_start = num_accounts - num_readonly_unsigned
    roles: list[Role] = []
    for i in range(num_accounts):
        is_signer = i < num_required_signatures
        if is_signer:
            is_writable = i < readonly_signed_start
        else:
            is_writable = i < readonly_unsigned_start
        roles.append((is_signer, is_writable))
    return roles


def _header_int(header: dict[str, Any], key: str) -> int:
    value = header.get(key)
    return value if isinstance(value, int) and not isinstance(value, bool) else 0


def _key_address(key: Any) -> str:
    if isinstance(key, str):
        return key
    if isinstance(key, dict):
        return str(key.get("pubkey") or "")
    return ""


@dataclass(frozen=True)
class AccountTable:
    """Resolved account keys of one message, each with its derived role."""

    addresses: tuple[str, ...]
    roles: tuple[Role, ...]

    @classmethod
    def from_message(
        cls,
        message: dict[str, Any],
        meta: dict[str, Any] | None = None,
    ) -> "AccountTable":
        """
        Build the table once per transaction.

        accountKeys may be strings (json) or {pubkey, signer, writable}
        objects (jsonParsed). Explicit flags on key objects win over header
        derivation. For string keys, meta.loadedAddresses (writable, then
        readonly) is appended; jsonParsed already lists loaded keys inline.
        """
        keys = message.get("accountKeys") or []
        header = message.get("header") or {}
        header_roles = derive_header_roles(
            _header_int(header, "numRequiredSignatures"),
            _header_int(header, "numReadonlySignedAccounts"),
            _header_int(header, "numReadonlyUnsignedAccounts"),
            len(keys),
        )

        addresses: list[str] = []
        roles: list[Role] = []
        for i, key in enumerate(keys):
            addresses.append(_key_address(key))
            if isinstance(key, dict) and isinstance(key.get("signer"), bool) and isinstance(
                key.get("writable"), bool
            ):
                roles.append((key["signer"], key["writable"]))
            else:
                roles.append(header_roles[i])

        if keys and isinstance(keys[0], str):
            loaded = (meta or {}).get("loadedAddresses") or {}
            for addr in loaded.get("writable") or []:
                addresses.append(_key_address(addr))
                roles.append((False, True))
            for addr in loaded.get("readonly") or []:
                addresses.append(_key_address(addr))
                roles.append((False, False))

        return cls(addresses=tuple(addresses), roles=tuple(roles))

    def __len__(self) -> int:
        return len(self.addresses)

    def address_at(self, index: int) -> str | None:
        if 0 <= index < len(self.addresses) and self.addresses[index]:
            return self.addresses[index]
        return None

    def ref_at(self, index: int) -> AccountRef | None:
        address = self.address_at(index)
        if address is None:
            return None
        is_signer, is_writable = self.roles[index]
        return AccountRef(address=address, is_signer=is_signer, is_writable=is_writable)

    def ref_for(self, address: str) -> AccountRef:
        """Ref for an address named directly; unknown addresses get no roles."""
        try:
            index = self.addresses.index(address)
        except ValueError:
            return AccountRef(address=address, is_signer=False, is_writable=False)
        is_signer, is_writable = self.roles[index]
        return AccountRef(address=address, is_signer=is_signer, is_writable=is_writable)


def refs_from_accounts(accounts: list[Any], table: AccountTable) -> list[AccountRef]:
    """
    Resolve an instruction's accounts list: integers index the account table
    (json), strings are addresses (partially decoded jsonParsed instructions).
    Out-of-range indices are skipped.
    """
    refs: list[AccountRef] = []
    for entry in accounts:
        if isinstance(entry, bool):
            continue
        if isinstance(entry, int):
            ref = table.ref_at(entry)
            if ref is not None:
                refs.append(ref)
        elif isinstance(entry, str) and entry:
            refs.append(table.ref_for(entry))
    return refs


def refs_from_parsed_info(info: dict[str, Any]) -> list[AccountRef]:
    """Best-effort roles from semantically named fields of a decoded instruction."""
    refs: list[AccountRef] = []
    for field_name, is_signer, is_writable in PARSED_INFO_ROLE_FIELDS:
        value = info.get(field_name)
        if isinstance(value, str) and value:
            refs.append(AccountRef(address=value, is_signer=is_signer, is_writable=is_writable))
    return refs
