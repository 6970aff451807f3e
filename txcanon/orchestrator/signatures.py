"""
Signature list input: load from CSV-like files and select the resume point.
"""

from __future__ import annotations

import csv
from pathlib import Path

from txcanon.core.exceptions import StartSignatureNotFound

HEADER_FIELD = "signature"


def parse_signature_lines(lines: list[str]) -> list[str]:
    """
    First comma-delimited field of each line; blank lines, '#' comments and the
    'signature' header are skipped. Order and duplicates are preserved.
    """
    out: list[str] = []
    for row in csv.reader(line.strip() for line in lines):
        if not row:
            continue
        sig = row[0].strip()
        if not sig or sig.startswith("#") or sig.lower() == HEADER_FIELD:
            continue
        out.append(sig)
    return out


def load_signatures(path: str | Path) -> list[str]:
    with open(path, newline="", encoding="utf-8") as f:
        return parse_signature_lines(f.read().splitlines())


def select_signatures(
    signatures: list[str],
    *,
    start_from: str | None = None,
    skip: int = 0,
) -> tuple[list[str], int]:
    """
    Return (signatures to process, index of the first one in the input).

    start_from takes precedence over skip; a start_from absent from the list
    raises StartSignatureNotFound before any work is done.
    """
    if start_from:
        try:
            start = signatures.index(start_from)
        except ValueError:
            raise StartSignatureNotFound(start_from) from None
    else:
        if skip < 0:
            raise ValueError("skip must be >= 0")
        start = min(skip, len(signatures))
    return signatures[start:], start
