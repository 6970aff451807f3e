"""
Result sinks: where processed transactions are handed to the renderer.

A sink is any callable taking a ProcessedTransaction; it may be sync or
async. JsonlSink is the default file-based handoff.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Awaitable, Callable, Union

from txcanon.orchestrator.models import ProcessedTransaction

ResultSink = Callable[[ProcessedTransaction], Union[Awaitable[None], None]]


class JsonlSink:
    """Append one JSON line per processed transaction: {signature, kind, transaction}."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def __call__(self, item: ProcessedTransaction) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        line = json.dumps(item.to_dict(), sort_keys=True, separators=(",", ":"))
        # Single write per record; the event loop runs sinks one at a time
        with open(self._path, "a", encoding="utf-8") as f:
            f.write(line + "\n")
