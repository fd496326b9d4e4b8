from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping

import mcp.types as types
from pydantic import BaseModel, ValidationError

from figma_common.errors import DuplicateToolError
from figma_common.results import ToolResult


logger = logging.getLogger(__name__)

Handler = Callable[[BaseModel], Awaitable[ToolResult]]


@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    params_model: type[BaseModel]
    handler: Handler

    def describe(self) -> types.Tool:
        return types.Tool(
            name=self.name,
            description=self.description,
            inputSchema=self.params_model.model_json_schema(),
        )


def _first_violation(exc: ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return str(exc)
    first = errors[0]
    loc = ".".join(str(p) for p in first.get("loc", ())) or "arguments"
    return f"{loc}: {first.get('msg', 'invalid value')}"


class ToolRegistry:
    """
    Name -> ToolSpec mapping with schema validation in front of every handler.

    dispatch() never raises: unknown tools, invalid arguments and escaped
    handler exceptions all come back as error ToolResults.
    """

    def __init__(self) -> None:
        self._tools: dict[str, ToolSpec] = {}

    def register(self, name: str, description: str, params_model: type[BaseModel], handler: Handler) -> ToolSpec:
        if name in self._tools:
            raise DuplicateToolError(f"Tool already registered: {name}")
        spec = ToolSpec(name=name, description=description, params_model=params_model, handler=handler)
        self._tools[name] = spec
        logger.debug("Registered tool %s", name)
        return spec

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def names(self) -> list[str]:
        return list(self._tools)

    def list_tools(self) -> list[types.Tool]:
        return [spec.describe() for spec in self._tools.values()]

    async def dispatch(self, name: str, raw_params: Mapping[str, Any] | None) -> ToolResult:
        spec = self._tools.get(name)
        if spec is None:
            logger.warning("Call to unknown tool %s", name)
            return ToolResult.error(f"Unknown tool: {name}")

        try:
            params = spec.params_model.model_validate(dict(raw_params or {}))
        except ValidationError as e:
            violation = _first_violation(e)
            logger.info("Rejected %s arguments: %s", name, violation)
            return ToolResult.error(f"Invalid arguments for {name}: {violation}")

        try:
            return await spec.handler(params)
        except Exception as e:
            # handlers are instrumented and should not raise; this is the last guard
            logger.exception("Unhandled error in tool %s", name)
            return ToolResult.error(f"Error in {name}: {e}")
