"""
Logging setup with categories, queue-backed file handlers and cycle IDs.

Provides:
- 4 log categories: system, feed, adapter, ui
- Automatic module → category routing
- Refresh-cycle ID correlation in all logs
- JSON file logging, one file per category
- Console output (when the dashboard is disabled or in verbose mode)
- Configurable timezone for log timestamps

Categories:
- system: Startup, shutdown, config, scheduler lifecycle
- feed: CSV feed fetches, parsing, record batches, aggregation
- adapter: Quote/news API calls (Finnhub)
- ui: Textual dashboard, drill-down state, HTML snapshots
"""

from __future__ import annotations

import json
import logging
import logging.handlers
import sys
from datetime import datetime
from pathlib import Path
from queue import Queue
from typing import Dict, List, Optional
from zoneinfo import ZoneInfo

from .trace_context import get_cycle_id

# =============================================================================
# GLOBAL STATE
# =============================================================================

ROOT_LOGGER_NAME = "heatboard"

# Global timezone setting for log timestamps (None = local time)
_log_timezone: Optional[ZoneInfo] = None

# Global verbose flag (set via --verbose CLI flag)
_verbose_mode: bool = False

# Global log level override (set via --log-level CLI flag)
_log_level_override: Optional[str] = None

# Configured category loggers
_category_loggers: Dict[str, logging.Logger] = {}

# Queue listeners for non-blocking file logging (one per category)
_queue_listeners: List[logging.handlers.QueueListener] = []

# =============================================================================
# LOG CATEGORIES AND ROUTING
# =============================================================================

CATEGORIES = ["system", "feed", "adapter", "ui"]

CATEGORY_SUFFIXES = {
    "system": "sys",
    "feed": "fed",
    "adapter": "adp",
    "ui": "ui",
}

# Module path → category routing
# More specific paths should come first
MODULE_ROUTING: List[tuple[str, str]] = [
    ("src.infrastructure.adapters.finnhub", "adapter"),
    ("src.infrastructure.adapters.sheet_feed", "feed"),
    ("src.infrastructure.reporting", "ui"),
    ("src.domain.feed", "feed"),
    ("src.domain.heatmap.drilldown", "ui"),
    ("src.domain.heatmap", "feed"),
    ("src.services.heatmap_data_service", "feed"),
    ("src.services.news_service", "adapter"),
    ("src.services.index_quote_service", "adapter"),
    ("src.services.stock_search_service", "adapter"),
    ("src.tui", "ui"),
    ("src", "system"),
]


def get_category_for_module(module_name: str) -> str:
    """
    Determine the log category for a given module name.

    Args:
        module_name: Full module path (e.g., "src.domain.feed.schema").

    Returns:
        Category name (system, feed, adapter or ui).
    """
    for prefix, category in MODULE_ROUTING:
        if module_name.startswith(prefix):
            return category
    return "system"


# =============================================================================
# TIMEZONE SUPPORT
# =============================================================================

def set_log_timezone(tz: Optional[str] = None) -> None:
    """
    Set the timezone for log timestamps.

    Args:
        tz: Timezone name (e.g., "America/New_York", "UTC").
            None or "local" uses local system time.
    """
    global _log_timezone
    if tz is None or tz == "local":
        _log_timezone = None
    else:
        _log_timezone = ZoneInfo(tz)


def get_current_timestamp() -> str:
    """Current timestamp, ISO formatted, in the configured log timezone."""
    if _log_timezone is not None:
        return datetime.now(_log_timezone).isoformat()
    return datetime.now().isoformat()


# =============================================================================
# GLOBAL CONFIGURATION
# =============================================================================

def set_verbose_mode(enabled: bool) -> None:
    """Enable or disable verbose mode (DEBUG level logging)."""
    global _verbose_mode
    _verbose_mode = enabled


def set_log_level_override(level: Optional[str]) -> None:
    """Set a global log level override."""
    global _log_level_override
    _log_level_override = level.upper() if level else None


def get_effective_log_level() -> str:
    """Get the effective log level (considering verbose mode and overrides)."""
    if _verbose_mode:
        return "DEBUG"
    if _log_level_override:
        return _log_level_override
    return "INFO"


# =============================================================================
# FORMATTERS
# =============================================================================

class JSONFormatter(logging.Formatter):
    """
    Single-line JSON formatter with cycle ID.

    Fields: ts, level, cat, cycle, msg, plus exception text when present.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "ts": get_current_timestamp(),
            "level": record.levelname,
            "cat": self._get_category(record.name),
            "cycle": get_cycle_id(),
            "msg": record.getMessage(),
        }

        if hasattr(record, "data") and record.data:
            log_entry["data"] = record.data

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry)

    def _get_category(self, logger_name: str) -> str:
        if logger_name.startswith(f"{ROOT_LOGGER_NAME}."):
            parts = logger_name.split(".")
            if len(parts) >= 2 and parts[1] in CATEGORIES:
                return parts[1]
        return "system"


class ConsoleFormatter(logging.Formatter):
    """
    Console formatter with cycle ID and color support.

    Format: [LEVEL] [cycle] message
    """

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        cycle_id = get_cycle_id()
        level = record.levelname
        message = record.getMessage()
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"

        if self.use_colors:
            color = self.COLORS.get(level, "")
            return f"{color}[{level:7}]{self.RESET} [{cycle_id}] {message}"
        return f"[{level:7}] [{cycle_id}] {message}"


# =============================================================================
# LOGGER FACTORY
# =============================================================================

def get_logger(module_name: str) -> logging.Logger:
    """
    Get a logger for the given module, routed to its category logger.

    Example:
        from src.utils.logging_setup import get_logger
        logger = get_logger(__name__)
        logger.info("Refreshing feed...")
    """
    category = get_category_for_module(module_name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{category}")


# =============================================================================
# CATEGORY LOGGING SETUP
# =============================================================================

def setup_category_logging(
    env: str,
    log_dir: str = "./logs",
    level: str = "INFO",
    console: bool = False,
    verbose: bool = False,
) -> Dict[str, logging.Logger]:
    """
    Set up one JSON log file per category.

    Creates files in a date-specific subdirectory:
    - logs/{date}/heatboard_{env}_sys_{date}.log
    - logs/{date}/heatboard_{env}_fed_{date}.log
    - logs/{date}/heatboard_{env}_adp_{date}.log
    - logs/{date}/heatboard_{env}_ui_{date}.log

    Args:
        env: Environment name (dev/prod).
        log_dir: Base directory for log files.
        level: Default logging level.
        console: Enable console output (headless mode).
        verbose: Enable verbose (DEBUG) mode.

    Returns:
        Dict mapping category name to logger.
    """
    shutdown_logging()

    for category in CATEGORIES:
        logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.{category}")
        for handler in logger.handlers[:]:
            handler.close()
            logger.removeHandler(handler)

    set_verbose_mode(verbose)
    if not verbose:
        set_log_level_override(level)

    date_str = datetime.now().strftime("%Y-%m-%d")
    log_path = Path(log_dir) / date_str
    log_path.mkdir(parents=True, exist_ok=True)

    effective_level = getattr(logging, get_effective_log_level(), logging.INFO)

    for category in CATEGORIES:
        suffix = CATEGORY_SUFFIXES[category]
        filename = f"heatboard_{env}_{suffix}_{date_str}.log"

        logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.{category}")
        logger.setLevel(effective_level)
        logger.propagate = False

        file_handler = logging.FileHandler(
            filename=str(log_path / filename),
            mode="a",
            encoding="utf-8",
        )
        file_handler.setFormatter(JSONFormatter())
        file_handler.setLevel(effective_level)

        # QueueHandler keeps disk writes off the event loop
        log_queue: Queue = Queue(-1)
        logger.addHandler(logging.handlers.QueueHandler(log_queue))
        listener = logging.handlers.QueueListener(
            log_queue, file_handler, respect_handler_level=True
        )
        listener.start()
        _queue_listeners.append(listener)

        if console:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setFormatter(ConsoleFormatter(use_colors=True))
            console_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
            logger.addHandler(console_handler)

        _category_loggers[category] = logger

    return _category_loggers


def shutdown_logging() -> None:
    """Stop all queue listeners, flushing pending records to disk."""
    for listener in _queue_listeners:
        listener.stop()
    _queue_listeners.clear()
