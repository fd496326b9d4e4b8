from __future__ import annotations

import json
import logging
import os
from typing import Any, Protocol, Sequence

from figma_common.errors import BackendResult
from figma_common.results import ToolResult
from figma_common.tooling import InstrumentConfig, instrument_tool
from figma_mcp.domain.models import GetApiDescParams, GetFileParams, GetNodeParams
from figma_mcp.registry import ToolRegistry
from figma_sources.connectors.yapi.report import build_api_report, render_api_report
from figma_sources.models import SimplifiedDesign


logger = logging.getLogger(__name__)

MCP_CLIENT_ID = os.getenv("MCP_CLIENT_ID", "figma-mcp")


class DesignBackend(Protocol):
    async def get_file(self, file_key: str, depth: int | None = None) -> BackendResult[SimplifiedDesign]:
        ...

    async def get_node(self, file_key: str, node_id: str, depth: int | None = None) -> BackendResult[SimplifiedDesign]:
        ...

    async def get_images(self, file_key: str, node_ids: Sequence[str], options: Any = None) -> BackendResult[dict]:
        ...


class DocsBackend(Protocol):
    async def get_api_interface(self, api_id: str) -> BackendResult[dict]:
        ...


def _dump_json(obj: Any) -> str:
    return json.dumps(obj, indent=2, ensure_ascii=False)


class Orchestrator:
    """Tool handler bodies: call backends, compose results, never raise."""

    def __init__(self, figma: DesignBackend, yapi: DocsBackend) -> None:
        self.figma = figma
        self.yapi = yapi

    async def get_api_desc(self, params: GetApiDescParams) -> ToolResult:
        api_id = params.apiId
        logger.info("Fetching API interface %s", api_id)

        res = await self.yapi.get_api_interface(api_id)
        if not res.ok:
            logger.error("Error fetching API interface %s: %s", api_id, res.error)
            return ToolResult.error(f"Error fetching API interface {api_id}: {res.error}")

        report = build_api_report(res.value)
        logger.info("Fetched API interface %s", report.basic_info.title or api_id)
        return ToolResult.from_text(render_api_report(report))

    async def get_node(self, params: GetNodeParams) -> ToolResult:
        file_key, node_id, depth = params.fileKey, params.nodeId, params.depth
        logger.info("Fetching node %s from file %s (depth: %s)", node_id, file_key, depth if depth is not None else "default")

        node = await self.figma.get_node(file_key, node_id, depth)
        if not node.ok:
            logger.error("Error fetching node %s from file %s: %s", node_id, file_key, node.error)
            return ToolResult.error(f"Error fetching node {node_id} from file {file_key}: {node.error}")

        # image fetch is mandatory; its failure fails the whole call
        images = await self.figma.get_images(file_key, [node_id])
        if not images.ok:
            logger.error("Error fetching image for node %s from file %s: %s", node_id, file_key, images.error)
            return ToolResult.error(f"Error fetching node {node_id} from file {file_key}: {images.error}")

        # thumbnailUrl is a low-resolution preview of the whole file
        merged = node.value.model_copy(update={"thumbnailUrl": None, "previewImages": dict(images.value)})

        logger.info("Fetched node %s (ids: %s)", merged.name, ", ".join(n.id for n in merged.nodes))
        payload = merged.model_dump(exclude_none=True, exclude={"previewImages"})
        payload["previewImages"] = merged.previewImages
        return ToolResult.from_text(_dump_json(payload))

    async def get_file(self, params: GetFileParams) -> ToolResult:
        file_key, depth = params.fileKey, params.depth
        logger.info("Fetching file %s (depth: %s)", file_key, depth if depth is not None else "default")

        res = await self.figma.get_file(file_key, depth)
        if not res.ok:
            logger.error("Error fetching file %s: %s", file_key, res.error)
            return ToolResult.error(f"Error fetching file {file_key}: {res.error}")

        design = res.value
        metadata = design.model_dump(exclude_none=True, exclude={"nodes"})
        # nodes are serialized one at a time
        nodes_json = ",".join(_dump_json(n.model_dump(exclude_none=True)) for n in design.nodes)
        logger.info("Fetched file %s", design.name)
        return ToolResult.from_text(f'{{"metadata": {_dump_json(metadata)}, "nodes": [{nodes_json}]}}')


def _cfg(tool_name: str) -> InstrumentConfig:
    return InstrumentConfig(kind="tool", name=tool_name, client_id=MCP_CLIENT_ID)


def register_tools(registry: ToolRegistry, orchestrator: Orchestrator, *, enable_get_file: bool = False) -> ToolRegistry:
    """Bind the fixed tool set to the registry. Raises DuplicateToolError on a second call."""
    registry.register(
        "get_api_desc",
        "Get the detailed description of a specific interface in YApi",
        GetApiDescParams,
        instrument_tool(_cfg("get_api_desc"))(orchestrator.get_api_desc),
    )
    registry.register(
        "get_node",
        "Get layout information about a specific node in a Figma file",
        GetNodeParams,
        instrument_tool(_cfg("get_node"))(orchestrator.get_node),
    )
    if enable_get_file:
        registry.register(
            "get_file",
            "Get layout information about an entire Figma file",
            GetFileParams,
            instrument_tool(_cfg("get_file"))(orchestrator.get_file),
        )
    return registry
