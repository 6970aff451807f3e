"""
Pytest tests for the normalizer: header-derived roles, parsed-info role
heuristic, program id resolution, compute budget extraction, determinism.
"""

from __future__ import annotations

import base64
import json

from tests.payloads import (
    COSIGNER,
    DEST,
    LOOKUP_READONLY,
    LOOKUP_WRITABLE,
    MINT,
    PAYER,
    SIG_A,
    SIG_B,
    TOKEN_ACCOUNT,
    b58,
    system_transfer_data,
)
from txcanon.fetcher.models import RawTransaction, TxEncoding
from txcanon.normalizer import (
    AccountRef,
    AccountTable,
    derive_header_roles,
    normalize,
    resolve_program_id,
)
from txcanon.normalizer.program_ids import (
    COMPUTE_BUDGET_PROGRAM_ID,
    SYSTEM_PROGRAM_ID,
    TOKEN_PROGRAM_ID,
)
from txcanon.normalizer.resolvers import PROGRAM_ID_RESOLVERS

MEMO_V2 = "MemoSq4gqABAXKb96qnH8TysNcWxMyWCqXgDLGmfcHr"
SOME_PROGRAM = "JUP6LkbZbjS1jKKwapdHNy74zcZ3tLUZoi5QNyVTaV4"


def _all_addresses(tx) -> set[str]:
    out = set()
    for ix in tx.instructions:
        out.add(ix.program_id)
        out.update(a.address for a in ix.accounts)
    return out


def test_header_roles_literal_example():
    """Header 2/1/1 over 5 accounts: signers {0,1}, writable {0,2,3}."""
    roles = derive_header_roles(2, 1, 1, 5)
    signers = {i for i, (s, _w) in enumerate(roles) if s}
    writable = {i for i, (_s, w) in enumerate(roles) if w}
    assert signers == {0, 1}
    assert writable == {0, 2, 3}


def test_header_roles_no_readonly():
    """Without read-only ranges every account is writable."""
    roles = derive_header_roles(1, 0, 0, 3)
    assert roles == [(True, True), (False, True), (False, True)]


def test_raw_transaction_roles_from_header(raw_payload):
    """Index-based accounts take their roles from the message header."""
    tx = normalize(RawTransaction.from_payload(raw_payload, TxEncoding.RAW))
    assert tx is not None
    assert tx.signature == SIG_A
    assert len(tx.instructions) == 2

    transfer = tx.instructions[0]
    assert transfer.program_id == SYSTEM_PROGRAM_ID
    assert transfer.description == "System instruction"
    assert transfer.accounts == (
        AccountRef(PAYER, True, True),
        AccountRef(DEST, False, True),
    )
    assert transfer.data_base64 == base64.b64encode(system_transfer_data(5000)).decode("ascii")

    # Read-only signer; out-of-range index 9 is skipped
    second = tx.instructions[1]
    assert second.accounts == (
        AccountRef(COSIGNER, True, False),
        AccountRef(DEST, False, True),
    )
    assert second.data_base64 == ""


def test_compute_budget_raw_extracted_and_removed(raw_payload):
    """setComputeUnitLimit / setComputeUnitPrice become the directive, not instructions."""
    tx = normalize(RawTransaction.from_payload(raw_payload, TxEncoding.RAW))
    assert tx.compute_directive is not None
    assert tx.compute_directive.units == 300_000
    assert tx.compute_directive.micro_lamports == 1000
    assert all(ix.program_id != COMPUTE_BUDGET_PROGRAM_ID for ix in tx.instructions)
    assert COMPUTE_BUDGET_PROGRAM_ID not in tx.unique_accounts


def test_compute_budget_parsed_type_default_units():
    """Parsed setComputeUnitLimit without units falls back to 200000."""
    payload = {
        "transaction": {
            "signatures": [SIG_A],
            "message": {
                "accountKeys": [{"pubkey": PAYER, "signer": True, "writable": True}],
                "instructions": [
                    {"programId": COMPUTE_BUDGET_PROGRAM_ID, "parsed": {"type": "setComputeUnitLimit", "info": {}}},
                    {"programId": SOME_PROGRAM, "accounts": [PAYER], "data": ""},
                ],
            },
        }
    }
    tx = normalize(RawTransaction.from_payload(payload))
    assert tx.compute_directive.units == 200_000
    assert tx.compute_directive.micro_lamports is None
    assert [ix.program_id for ix in tx.instructions] == [SOME_PROGRAM]


def test_no_compute_directive_when_only_price_set():
    """A unit price alone does not produce a directive."""
    payload = {
        "transaction": {
            "message": {
                "accountKeys": [PAYER, COMPUTE_BUDGET_PROGRAM_ID],
                "header": {"numRequiredSignatures": 1, "numReadonlySignedAccounts": 0, "numReadonlyUnsignedAccounts": 1},
                "instructions": [
                    {"programIdIndex": 1, "accounts": [], "data": b58(bytes([3]) + (5).to_bytes(8, "little"))},
                ],
            }
        }
    }
    tx = normalize(RawTransaction.from_payload(payload), signature=SIG_A)
    assert tx.compute_directive is None
    assert tx.instructions == ()


def test_parsed_transaction_heuristic_roles(parsed_payload):
    """Parsed instructions get roles from the field-name table (best-effort)."""
    tx = normalize(RawTransaction.from_payload(parsed_payload, TxEncoding.PARSED))
    assert tx is not None
    assert [ix.program_id for ix in tx.instructions] == [SYSTEM_PROGRAM_ID, TOKEN_PROGRAM_ID, MEMO_V2]
    assert tx.compute_directive.units == 150_000

    system_ix, token_ix, memo_ix = tx.instructions
    assert system_ix.description == "transfer (5000 lamports)"
    assert system_ix.accounts == (
        AccountRef(PAYER, True, True),
        AccountRef(DEST, False, True),
    )
    assert system_ix.data_base64 == ""

    assert token_ix.description == "transferChecked (amount: 1000) (mint: EPjFWdd5...)"
    # Expected accuracy of the heuristic: source is tagged signer even though
    # the authority actually signs for a token transfer.
    assert token_ix.accounts == (
        AccountRef(TOKEN_ACCOUNT, True, True),
        AccountRef(DEST, False, True),
        AccountRef(PAYER, True, False),
        AccountRef(MINT, False, True),
    )

    assert memo_ix.description == "Memo"
    assert memo_ix.accounts == ()


def test_unique_accounts_matches_instruction_addresses(parsed_payload, raw_payload, v0_raw_payload):
    """unique_accounts is exactly the set of program ids and account addresses, without repeats."""
    for payload in (parsed_payload, raw_payload, v0_raw_payload):
        tx = normalize(RawTransaction.from_payload(payload))
        assert set(tx.unique_accounts) == _all_addresses(tx)
        assert len(tx.unique_accounts) == len(set(tx.unique_accounts))


def test_unique_accounts_first_seen_order(parsed_payload):
    """unique_accounts keeps insertion order: program id, then its accounts."""
    tx = normalize(RawTransaction.from_payload(parsed_payload))
    assert tx.unique_accounts == (
        SYSTEM_PROGRAM_ID,
        PAYER,
        DEST,
        TOKEN_PROGRAM_ID,
        TOKEN_ACCOUNT,
        MINT,
        MEMO_V2,
    )


def test_v0_loaded_addresses(v0_raw_payload):
    """Lookup-table addresses follow static keys: writable then read-only, never signers."""
    tx = normalize(RawTransaction.from_payload(v0_raw_payload))
    assert tx.version == 0
    assert tx.signature == SIG_B
    (ix,) = tx.instructions
    assert ix.program_id == TOKEN_PROGRAM_ID
    assert ix.description == "SPL Token instruction"
    assert ix.accounts == (
        AccountRef(PAYER, True, True),
        AccountRef(DEST, False, True),
        AccountRef(LOOKUP_WRITABLE, False, True),
        AccountRef(LOOKUP_READONLY, False, False),
    )
    assert ix.data_base64 == base64.b64encode(b"\x03").decode("ascii")


def test_account_table_explicit_flags_win():
    """jsonParsed key flags override header derivation."""
    message = {
        "header": {"numRequiredSignatures": 1, "numReadonlySignedAccounts": 0, "numReadonlyUnsignedAccounts": 0},
        "accountKeys": [
            {"pubkey": PAYER, "signer": True, "writable": True},
            {"pubkey": DEST, "signer": False, "writable": False},
        ],
    }
    table = AccountTable.from_message(message, {"loadedAddresses": {"writable": [LOOKUP_WRITABLE]}})
    # Parsed keys already list loaded addresses inline, so meta is not appended
    assert len(table) == 2
    assert table.ref_at(1) == AccountRef(DEST, False, False)
    assert table.ref_for("unknown") == AccountRef("unknown", False, False)
    assert table.ref_at(7) is None


def test_resolver_chain_order():
    """Structured key beats string id beats system marker beats programIdIndex."""
    table = AccountTable.from_message({"accountKeys": [PAYER, SOME_PROGRAM]})
    assert [name for name, _ in PROGRAM_ID_RESOLVERS] == [
        "structured_key",
        "string_program_id",
        "system_marker",
        "program_id_index",
    ]
    assert resolve_program_id({"programId": {"pubkey": MEMO_V2}, "programIdIndex": 1}, table) == MEMO_V2
    assert resolve_program_id({"programId": TOKEN_PROGRAM_ID, "program": "system"}, table) == TOKEN_PROGRAM_ID
    assert resolve_program_id({"program": "system", "programIdIndex": 1}, table) == SYSTEM_PROGRAM_ID
    assert resolve_program_id({"programIdIndex": 1}, table) == SOME_PROGRAM
    assert resolve_program_id({"programIdIndex": 5}, table) is None
    assert resolve_program_id({"data": "abc"}, table) is None


def test_unresolvable_instructions_dropped():
    """Instructions with no resolvable program id are dropped, leaving an empty list."""
    payload = {"message": {"accountKeys": [PAYER], "instructions": [{"programIdIndex": 3}, "garbage"]}}
    tx = normalize(RawTransaction.from_payload(payload), signature=SIG_A)
    assert tx is not None
    assert tx.instructions == ()
    assert tx.unique_accounts == ()


def test_no_instructions_returns_none():
    """A payload without instructions cannot be normalized."""
    payload = {"transaction": {"signatures": [SIG_A], "message": {"accountKeys": [PAYER], "instructions": []}}}
    assert normalize(RawTransaction.from_payload(payload)) is None
    assert normalize(RawTransaction.from_payload({})) is None


def test_base64_data_fallback_and_tuple_form():
    """Data that is not base58 is accepted as base64; [data, "base64"] is decoded too."""
    payload = {
        "message": {
            "accountKeys": [PAYER, SOME_PROGRAM],
            "instructions": [
                {"programIdIndex": 1, "accounts": [0], "data": "aGVsbG8="},
                {"programIdIndex": 1, "accounts": [0], "data": ["aGk=", "base64"]},
            ],
        }
    }
    tx = normalize(RawTransaction.from_payload(payload), signature=SIG_A)
    assert tx.instructions[0].data_base64 == "aGVsbG8="
    assert tx.instructions[1].data_base64 == "aGk="
    assert tx.instructions[0].description == "Program JUP6LkbZ... instruction"


def test_normalize_is_deterministic(parsed_payload, raw_payload):
    """Normalizing the same raw transaction twice yields identical serialisations."""
    for payload in (parsed_payload, raw_payload):
        raw = RawTransaction.from_payload(payload)
        first = normalize(raw).to_json()
        second = normalize(raw).to_json()
        assert first == second
        assert json.loads(first)["signature"] == SIG_A


def test_explicit_signature_wins(raw_payload):
    """The signature argument overrides the one inside the payload."""
    tx = normalize(RawTransaction.from_payload(raw_payload), signature="override")
    assert tx.signature == "override"
    assert tx.to_dict()["compute_directive"] == {"units": 300_000, "micro_lamports": 1000}
