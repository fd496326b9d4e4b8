"""Per-call correlation ids shared by tool instrumentation and telemetry."""

from __future__ import annotations

import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional

_corr_id: ContextVar[Optional[str]] = ContextVar("figma_mcp_corr_id", default=None)


def new_corr_id() -> str:
    return uuid.uuid4().hex


def current_corr_id() -> Optional[str]:
    """Correlation id of the tool call in progress, or None outside one."""
    return _corr_id.get()


@contextmanager
def tool_call_scope(corr_id: Optional[str] = None) -> Iterator[str]:
    """Bind a correlation id for the duration of one tool call; the previous value is restored on exit."""
    cid = corr_id or new_corr_id()
    token = _corr_id.set(cid)
    try:
        yield cid
    finally:
        _corr_id.reset(token)
