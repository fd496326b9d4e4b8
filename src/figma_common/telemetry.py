from __future__ import annotations

import datetime as _dt
import json
import logging
import os
from typing import Any

from figma_config.settings import telemetry_dir
from figma_common.context import current_corr_id


logger = logging.getLogger(__name__)

REDACT_TOKEN = "***redacted***"

_SECRET_KEYS = {"authorization", "x-figma-token", "token", "api_key", "apikey", "figma_api_key", "yapi_token"}


def telemetry_disabled() -> bool:
    return os.getenv("FIGMA_MCP_DISABLE_TELEMETRY", "0").strip().lower() in {"1", "true", "yes"}


def _redact_secrets(obj: Any) -> Any:
    if isinstance(obj, dict):
        out = {}
        for k, v in obj.items():
            if isinstance(k, str) and k.strip().lower() in _SECRET_KEYS:
                if isinstance(v, str) and v.strip().lower().startswith("bearer "):
                    out[k] = "Bearer " + REDACT_TOKEN
                else:
                    out[k] = REDACT_TOKEN
            else:
                out[k] = _redact_secrets(v)
        return out
    if isinstance(obj, list):
        return [_redact_secrets(x) for x in obj]
    return obj


def log_event(
    kind: str,
    name: str,
    args: dict | None = None,
    ok: bool = True,
    ms: int = 0,
    *,
    client_id: str | None = None,
    corr_id: str | None = None,
    telemetry_file: str = "mcp-telemetry.jsonl",
) -> None:
    """
    Append one JSONL telemetry record for a tool call.
    """
    if telemetry_disabled():
        return

    rec = {
        "ts": _dt.datetime.now(_dt.timezone.utc).isoformat().replace("+00:00", "Z"),
        "kind": kind,
        "name": name,
        "client_id": client_id,
        "corr_id": corr_id or current_corr_id(),
        "args": {} if args is None else dict(args),
        "ok": bool(ok),
        "ms": int(ms),
    }

    safe = _redact_secrets(rec)
    try:
        d = telemetry_dir()
        d.mkdir(parents=True, exist_ok=True)
        with (d / telemetry_file).open("a", encoding="utf-8") as f:
            f.write(json.dumps(safe, ensure_ascii=False) + "\n")
    except OSError as e:
        # telemetry must never break a tool call
        logger.debug("Failed to write telemetry: %s", e)
