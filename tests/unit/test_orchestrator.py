from __future__ import annotations

import json

import pytest

from figma_common.errors import BackendResult
from figma_mcp.registry import ToolRegistry
from figma_mcp.tools import Orchestrator, register_tools
from tests.helpers.fakes import FakeFigma, FakeYApi, sample_design


IMAGES = {"123:4": "https://img/x.png"}

RAW_INTERFACE = {
    "markdown": "## Login\nUse it.",
    "res_body": '{"type": "object", "properties": {"token": {"type": "string"}}}',
    "res_body_type": "json",
    "req_body_form": [],
    "req_body_type": "json",
    "req_body_other": '{"type": "object"}',
    "req_headers": [{"name": "Content-Type", "value": "application/json"}],
    "req_query": [],
    "req_params": [],
    "desc": "<p>User login</p>",
    "method": "POST",
    "path": "/login",
    "title": "Login",
    "_id": 66,
}


def _registry(figma=None, yapi=None, **kwargs) -> ToolRegistry:
    return register_tools(ToolRegistry(), Orchestrator(figma or FakeFigma(), yapi or FakeYApi()), **kwargs)


# ---- get_node ---------------------------------------------------------------------


@pytest.mark.asyncio
async def test_get_node_merges_images_and_drops_thumbnail():
    figma = FakeFigma(node=BackendResult.success(sample_design()), images=BackendResult.success(dict(IMAGES)))

    out = await _registry(figma).dispatch("get_node", {"fileKey": "F1", "nodeId": "123:4", "depth": 2})

    assert not out.is_error
    payload = json.loads(out.text)
    assert "thumbnailUrl" not in payload
    assert payload["previewImages"] == IMAGES
    assert payload["nodes"][0]["id"] == "123:4"
    assert figma.calls == [("get_node", "F1", "123:4", 2), ("get_images", "F1", ["123:4"])]


@pytest.mark.asyncio
async def test_get_node_without_depth_uses_backend_default():
    figma = FakeFigma(node=BackendResult.success(sample_design()), images=BackendResult.success({}))

    await _registry(figma).dispatch("get_node", {"fileKey": "F1", "nodeId": "123:4"})

    assert figma.calls[0] == ("get_node", "F1", "123:4", None)


@pytest.mark.asyncio
async def test_get_node_image_error_fails_the_whole_call():
    figma = FakeFigma(
        node=BackendResult.success(sample_design(name="SECRET-SUBTREE")),
        images=BackendResult.failure("Render timeout"),
    )

    out = await _registry(figma).dispatch("get_node", {"fileKey": "F1", "nodeId": "123:4"})

    assert out.is_error
    assert "Error fetching node 123:4 from file F1" in out.text
    assert "Render timeout" in out.text
    assert "SECRET-SUBTREE" not in out.text
    assert "Hero" not in out.text


@pytest.mark.asyncio
async def test_get_node_backend_status_is_reported_and_images_skipped():
    figma = FakeFigma(node=BackendResult.failure("Not found", status_code=404))

    out = await _registry(figma).dispatch("get_node", {"fileKey": "F1", "nodeId": "9:9"})

    assert out.is_error
    assert "Not found" in out.text
    assert "404" in out.text
    assert [c[0] for c in figma.calls] == ["get_node"]


@pytest.mark.asyncio
async def test_get_node_does_not_mutate_backend_result():
    design = sample_design()
    figma = FakeFigma(node=BackendResult.success(design), images=BackendResult.success(dict(IMAGES)))

    await _registry(figma).dispatch("get_node", {"fileKey": "F1", "nodeId": "123:4"})

    assert design.thumbnailUrl == "https://thumb/low.png"
    assert design.previewImages is None


# ---- get_api_desc -----------------------------------------------------------------


@pytest.mark.asyncio
async def test_get_api_desc_reshapes_into_four_sections():
    yapi = FakeYApi(BackendResult.success(dict(RAW_INTERFACE)))

    out = await _registry(yapi=yapi).dispatch("get_api_desc", {"apiId": "66"})

    assert not out.is_error
    report = json.loads(out.text)
    assert list(report) == ["basic_info", "request_params", "response_info", "other_info"]
    basic = report["basic_info"]
    assert basic["title"] == "Login"
    assert basic["method"] == "POST"
    assert basic["path"] == "/login"
    assert basic["interface_id"] == 66
    assert report["request_params"]["headers"][0]["name"] == "Content-Type"
    assert report["request_params"]["body_schema"] == {"type": "object"}
    assert report["response_info"]["body"]["properties"]["token"]["type"] == "string"
    assert report["other_info"]["markdown"].startswith("## Login")
    assert yapi.calls == ["66"]


@pytest.mark.asyncio
async def test_get_api_desc_is_independent_of_field_order():
    forward = FakeYApi(BackendResult.success(dict(RAW_INTERFACE)))
    backward = FakeYApi(BackendResult.success(dict(reversed(list(RAW_INTERFACE.items())))))

    a = await _registry(yapi=forward).dispatch("get_api_desc", {"apiId": "66"})
    b = await _registry(yapi=backward).dispatch("get_api_desc", {"apiId": "66"})

    assert a.text == b.text


@pytest.mark.asyncio
async def test_get_api_desc_is_byte_identical_on_repeat():
    registry = _registry(yapi=FakeYApi(BackendResult.success(dict(RAW_INTERFACE))))

    texts = {(await registry.dispatch("get_api_desc", {"apiId": "66"})).text for _ in range(3)}

    assert len(texts) == 1


@pytest.mark.asyncio
async def test_get_api_desc_failure_names_the_interface():
    yapi = FakeYApi(BackendResult.failure("YApi error 40011: not found"))

    out = await _registry(yapi=yapi).dispatch("get_api_desc", {"apiId": "77"})

    assert out.is_error
    assert "77" in out.text
    assert "not found" in out.text
    assert yapi.calls == ["77"]


@pytest.mark.asyncio
async def test_handler_exception_becomes_error_result():
    class ExplodingYApi(FakeYApi):
        async def get_api_interface(self, api_id):
            raise RuntimeError("socket exploded")

    out = await _registry(yapi=ExplodingYApi()).dispatch("get_api_desc", {"apiId": "1"})

    assert out.is_error
    assert "socket exploded" in out.text


# ---- get_file ---------------------------------------------------------------------


@pytest.mark.asyncio
async def test_get_file_returns_metadata_and_nodes():
    figma = FakeFigma(file=BackendResult.success(sample_design()))

    out = await _registry(figma, enable_get_file=True).dispatch("get_file", {"fileKey": "F1"})

    payload = json.loads(out.text)
    assert payload["metadata"]["name"] == "Landing"
    assert "nodes" not in payload["metadata"]
    assert payload["nodes"][0]["name"] == "Hero"


@pytest.mark.asyncio
async def test_get_file_failure():
    figma = FakeFigma(file=BackendResult.failure("Forbidden", status_code=403))

    out = await _registry(figma, enable_get_file=True).dispatch("get_file", {"fileKey": "F1", "depth": 1})

    assert out.is_error
    assert out.text.startswith("Error fetching file F1")
