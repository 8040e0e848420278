"""
Trace context for correlating logs across a single refresh cycle.

Every scheduled feed refresh runs inside ``new_cycle()`` so that the
fetch, parse and apply log lines of one poll share a 6-char hex ID.

Usage:
    with new_cycle():
        records = await feed.fetch_records()
        logger.info(f"{len(records)} records")

    # In any module
    from src.utils.trace_context import get_cycle_id
"""

from __future__ import annotations

import secrets
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Generator, Optional

# Context variable for the current cycle ID (async-safe)
_cycle_id: ContextVar[Optional[str]] = ContextVar("cycle_id", default=None)


def generate_cycle_id() -> str:
    """Generate a new 6-character hex cycle ID."""
    return secrets.token_hex(3)


def get_cycle_id() -> str:
    """Current cycle ID, or "------" outside a cycle."""
    cycle_id = _cycle_id.get()
    return cycle_id if cycle_id else "------"


@contextmanager
def new_cycle() -> Generator[str, None, None]:
    """
    Run the enclosed block under a fresh cycle ID.

    The previous ID (if any) is restored on exit, so nested cycles
    started from a scheduler tick do not leak into the caller.
    """
    token = _cycle_id.set(generate_cycle_id())
    try:
        yield get_cycle_id()
    finally:
        _cycle_id.reset(token)
