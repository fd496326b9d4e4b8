from __future__ import annotations

import pytest
from pydantic import BaseModel

from figma_common.errors import BackendResult, DuplicateToolError
from figma_common.results import ToolResult
from figma_mcp.registry import ToolRegistry
from figma_mcp.tools import Orchestrator, register_tools
from tests.helpers.fakes import FakeFigma, FakeYApi, sample_design


class _EchoParams(BaseModel):
    text: str


def _registry(figma=None, yapi=None, **kwargs) -> tuple[ToolRegistry, FakeFigma, FakeYApi]:
    figma = figma or FakeFigma()
    yapi = yapi or FakeYApi()
    return register_tools(ToolRegistry(), Orchestrator(figma, yapi), **kwargs), figma, yapi


def test_registers_fixed_tool_set():
    registry, _, _ = _registry()
    assert registry.names() == ["get_api_desc", "get_node"]


def test_get_file_is_gated_behind_config():
    registry, _, _ = _registry(enable_get_file=True)
    assert "get_file" in registry


def test_duplicate_registration_is_fatal():
    registry, figma, yapi = _registry()
    with pytest.raises(DuplicateToolError):
        register_tools(registry, Orchestrator(figma, yapi))


def test_list_tools_exposes_json_schema():
    registry, _, _ = _registry()
    tools = {t.name: t for t in registry.list_tools()}

    schema = tools["get_node"].inputSchema
    assert set(schema["required"]) == {"fileKey", "nodeId"}
    assert "depth" in schema["properties"]
    assert tools["get_api_desc"].inputSchema["required"] == ["apiId"]


@pytest.mark.asyncio
@pytest.mark.parametrize("name", ["get_file", "delete_everything", ""])
async def test_unknown_tool_is_an_error_result_and_touches_no_backend(name):
    registry, figma, yapi = _registry()

    out = await registry.dispatch(name, {"fileKey": "F", "nodeId": "1:2"})

    assert out.is_error
    assert f"Unknown tool: {name}" in out.text
    assert figma.calls == []
    assert yapi.calls == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "name,args,field",
    [
        ("get_node", {"fileKey": "F"}, "nodeId"),
        ("get_node", {"nodeId": "1:2"}, "fileKey"),
        ("get_node", {"fileKey": "F", "nodeId": "1:2", "depth": -1}, "depth"),
        ("get_node", {"fileKey": "F", "nodeId": "1:2", "depth": "deep"}, "depth"),
        ("get_api_desc", {}, "apiId"),
        ("get_api_desc", {"apiId": 66}, "apiId"),
    ],
)
async def test_invalid_arguments_never_reach_the_handler(name, args, field):
    registry, figma, yapi = _registry(
        figma=FakeFigma(node=BackendResult.success(sample_design()), images=BackendResult.success({})),
        yapi=FakeYApi(BackendResult.success({"title": "x"})),
    )

    out = await registry.dispatch(name, args)

    assert out.is_error
    assert f"Invalid arguments for {name}" in out.text
    assert field in out.text
    assert figma.calls == []
    assert yapi.calls == []


@pytest.mark.asyncio
async def test_dispatch_returns_exactly_what_the_handler_returns():
    registry = ToolRegistry()
    expected = ToolResult.from_text("hello")

    async def handler(params: _EchoParams) -> ToolResult:
        assert params.text == "hi"
        return expected

    registry.register("echo", "Echo", _EchoParams, handler)

    assert await registry.dispatch("echo", {"text": "hi"}) is expected


@pytest.mark.asyncio
async def test_dispatch_never_raises_on_handler_exception():
    registry = ToolRegistry()

    async def boom(params: _EchoParams) -> ToolResult:
        raise RuntimeError("kaput")

    registry.register("boom", "Always fails", _EchoParams, boom)

    out = await registry.dispatch("boom", {"text": "x"})
    assert out.is_error
    assert "kaput" in out.text


@pytest.mark.asyncio
async def test_none_arguments_are_treated_as_empty():
    registry, _, yapi = _registry()
    out = await registry.dispatch("get_api_desc", None)
    assert out.is_error
    assert yapi.calls == []
