"""Utility modules."""

from .logging_setup import (
    get_logger,
    set_log_timezone,
    setup_category_logging,
    shutdown_logging,
)
from .timezone import from_epoch, lookback_window, now_utc
from .trace_context import generate_cycle_id, get_cycle_id, new_cycle

__all__ = [
    # Logging setup
    "get_logger",
    "set_log_timezone",
    "setup_category_logging",
    "shutdown_logging",
    # Trace context
    "generate_cycle_id",
    "get_cycle_id",
    "new_cycle",
    # Time
    "from_epoch",
    "lookback_window",
    "now_utc",
]
