from __future__ import annotations

import pytest
from pydantic import BaseModel

import figma_common.tooling as tooling
from figma_common.context import current_corr_id
from figma_common.results import ToolResult
from figma_common.tooling import InstrumentConfig, instrument_tool, sanitize_args_for_log


class _Params(BaseModel):
    fileKey: str
    token: str = "secret"


@pytest.mark.asyncio
async def test_instrument_tool_turns_exceptions_into_error_results(monkeypatch):
    events = []
    monkeypatch.setattr(tooling, "log_event", lambda *a, **k: events.append((a, k)))

    @instrument_tool(InstrumentConfig(kind="tool", name="get_node", client_id="C1"))
    async def fn(params):
        raise RuntimeError("boom")

    out = await fn(_Params(fileKey="abc"))

    assert out.is_error
    assert out.text == "Error in get_node: boom"
    assert len(events) == 1
    args, kwargs = events[0]
    assert args[:2] == ("tool", "get_node")
    assert kwargs["ok"] is False
    assert kwargs["client_id"] == "C1"
    assert args[2]["args"]["token"] == "***redacted***"


@pytest.mark.asyncio
async def test_instrument_tool_passes_results_through(monkeypatch):
    events = []
    monkeypatch.setattr(tooling, "log_event", lambda *a, **k: events.append((a, k)))

    @instrument_tool(InstrumentConfig(kind="tool", name="get_api_desc", client_id="C1"))
    async def fn(params):
        return ToolResult.from_text("ok")

    out = await fn(_Params(fileKey="abc"))

    assert out.text == "ok"
    assert not out.is_error
    assert events[0][1]["ok"] is True
    assert events[0][1]["corr_id"]


def test_sanitize_args_for_log():
    assert sanitize_args_for_log({"Authorization": "Bearer x", "apiId": "1"}) == {
        "Authorization": "***redacted***",
        "apiId": "1",
    }
    assert sanitize_args_for_log(None) == {}


@pytest.mark.asyncio
async def test_correlation_id_is_scoped_to_one_call(monkeypatch):
    events = []
    monkeypatch.setattr(tooling, "log_event", lambda *a, **k: events.append((a, k)))
    seen = []

    @instrument_tool(InstrumentConfig(kind="tool", name="get_node", client_id="C1"))
    async def fn(params):
        seen.append(current_corr_id())
        return ToolResult.from_text("ok")

    await fn(_Params(fileKey="a"))
    await fn(_Params(fileKey="b"))

    assert seen[0] and seen[1] and seen[0] != seen[1]
    assert [k["corr_id"] for _, k in events] == seen
    assert current_corr_id() is None
