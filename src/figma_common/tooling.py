from __future__ import annotations

import functools
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from pydantic import BaseModel

from figma_common.context import tool_call_scope
from figma_common.results import ToolResult
from figma_common.telemetry import REDACT_TOKEN, log_event


logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Shared helpers for MCP tool handlers
# ---------------------------------------------------------------------------


_REDACTION_KEYS = {"authorization", "token", "api_key", "apikey"}


def sanitize_args_for_log(args: dict | None) -> dict:
    """Remove obvious secrets from args (telemetry layer also redacts)."""
    out: dict[str, Any] = {}
    for k, v in (args or {}).items():
        out[str(k)] = REDACT_TOKEN if str(k).lower() in _REDACTION_KEYS else v
    return out


@dataclass(frozen=True)
class InstrumentConfig:
    kind: str
    name: str
    client_id: str
    telemetry_file: str = "mcp-telemetry.jsonl"


ToolHandler = Callable[[BaseModel], Awaitable[ToolResult]]


def instrument_tool(cfg: InstrumentConfig):
    """
    Decorator for async tool handlers.

    Every call gets a fresh correlation id and one telemetry record. Any
    exception escaping the handler becomes an error ToolResult, so nothing
    is raised across the handler boundary.
    """

    def decorator(fn: ToolHandler) -> ToolHandler:
        @functools.wraps(fn)
        async def wrapper(params: BaseModel) -> ToolResult:
            with tool_call_scope() as corr_id:
                t0 = time.perf_counter()
                args_for_log: dict[str, Any] = {"args": sanitize_args_for_log(params.model_dump())}

                try:
                    result = await fn(params)
                except Exception as e:
                    logger.exception("Tool %s failed (corr_id=%s)", cfg.name, corr_id)
                    result = ToolResult.error(f"Error in {cfg.name}: {e}")

                ms = int((time.perf_counter() - t0) * 1000)
                if result.is_error:
                    args_for_log["error"] = result.text

                log_event(
                    cfg.kind,
                    cfg.name,
                    args_for_log,
                    ok=not result.is_error,
                    ms=ms,
                    client_id=cfg.client_id,
                    corr_id=corr_id,
                    telemetry_file=cfg.telemetry_file,
                )
            return result

        return wrapper

    return decorator
