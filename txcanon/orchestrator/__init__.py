"""
Batch orchestration package.

Loads the signature list, selects the resume point, and sweeps the list
in sequential windows of concurrent fetch/normalize/classify work.
"""

from txcanon.orchestrator.batch import BatchOrchestrator, TransactionFetcher
from txcanon.orchestrator.models import BatchSummary, ProcessedTransaction
from txcanon.orchestrator.signatures import (
    load_signatures,
    parse_signature_lines,
    select_signatures,
)
from txcanon.orchestrator.sinks import JsonlSink, ResultSink

__all__ = [
    "BatchOrchestrator",
    "BatchSummary",
    "JsonlSink",
    "ProcessedTransaction",
    "ResultSink",
    "TransactionFetcher",
    "load_signatures",
    "parse_signature_lines",
    "select_signatures",
]
