"""
Structured logging for txcanon.

JSON logs with timestamp, signature, event_type and endpoint fields.
Use get_logger() in all modules for aggregation-friendly output.
"""

from txcanon.txcanon_logging.logger import (
    bind_signature,
    configure_logging,
    get_logger,
    short_rpc,
    short_signature,
)

__all__ = ["bind_signature", "configure_logging", "get_logger", "short_rpc", "short_signature"]
