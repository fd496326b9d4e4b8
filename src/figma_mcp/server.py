from __future__ import annotations

import logging
import sys
from typing import Any, Sequence

import anyio
import mcp.types as types
from mcp.server.lowlevel import Server

from figma_common.errors import ConfigError
from figma_config.settings import ServerConfig, init_runtime, load_server_config, log_server_config
from figma_mcp.registry import ToolRegistry
from figma_mcp.session import TransportSessionManager
from figma_mcp.tools import DesignBackend, DocsBackend, Orchestrator, register_tools
from figma_sources.connectors.figma.client import FigmaClient
from figma_sources.connectors.yapi.client import YApiClient


logger = logging.getLogger(__name__)

SERVER_NAME = "Figma MCP Server"
SERVER_VERSION = "0.1.4"


class FigmaMcpServer:
    """Wires backends, tool registry and the MCP protocol server together."""

    def __init__(
        self,
        config: ServerConfig,
        *,
        figma: DesignBackend | None = None,
        yapi: DocsBackend | None = None,
    ) -> None:
        self.config = config
        self.figma = figma or FigmaClient(config.figma_api_key)
        self.yapi = yapi or YApiClient(config.yapi_base_url, config.yapi_token)

        self.registry = register_tools(
            ToolRegistry(),
            Orchestrator(self.figma, self.yapi),
            enable_get_file=config.enable_get_file,
        )
        self.server: Server = Server(SERVER_NAME, version=SERVER_VERSION)
        self._wire_protocol()
        self.sessions = TransportSessionManager(self.server)

    def _wire_protocol(self) -> None:
        registry = self.registry

        @self.server.list_tools()
        async def _list_tools() -> list[types.Tool]:
            return registry.list_tools()

        # the registry is the single validation point
        @self.server.call_tool(validate_input=False)
        async def _call_tool(name: str, arguments: dict[str, Any] | None) -> list[types.TextContent]:
            result = await registry.dispatch(name, arguments)
            return [types.TextContent(type="text", text=block.text) for block in result.content]

    def run(self) -> None:
        if self.config.stdio:
            logger.info("Initializing %s in stdio mode...", SERVER_NAME)
            anyio.run(self.sessions.run_stdio)
        else:
            logger.info("Initializing %s in HTTP mode on port %s...", SERVER_NAME, self.config.port)
            self.sessions.run_http(self.config.port)


def main(argv: Sequence[str] | None = None) -> None:
    # Entry points (console_scripts) call main() directly, so we must perform
    # runtime initialization here (dotenv + logging).
    init_runtime()
    try:
        config = load_server_config(argv)
    except ConfigError as e:
        logger.error("%s", e)
        sys.exit(1)

    log_server_config(config)
    server = FigmaMcpServer(config)
    logger.info("Available tools: %s", ", ".join(server.registry.names()))
    server.run()


if __name__ == "__main__":
    main()
