"""
Smoke script for the Figma MCP server over stdio.

It performs:
 1) spawns the server module with the stdio transport
 2) lists the registered tools
 3) calls get_node when FIGMA_SMOKE_FILE_KEY and FIGMA_SMOKE_NODE_ID are set
 4) calls get_api_desc when YAPI_SMOKE_API_ID is set

Credentials come from the usual FIGMA_API_KEY / YAPI_* variables or .env.
"""

from __future__ import annotations

import asyncio
import json
import os
import sys
from pathlib import Path
from typing import Any

from mcp import ClientSession
from mcp.client.stdio import StdioServerParameters, stdio_client

_REPO_ROOT = Path(__file__).resolve().parents[1]


def _pretty(text: str, limit: int = 2000) -> str:
    s = text.strip()
    if s.startswith("{") or s.startswith("["):
        try:
            s = json.dumps(json.loads(s), indent=2, ensure_ascii=False)
        except ValueError:
            pass
    return s if len(s) <= limit else s[:limit] + "\n... (truncated)"


def _unwrap_tool_result(res: Any) -> str:
    content = getattr(res, "content", None) or []
    return "\n".join(getattr(c, "text", "") for c in content)


async def _call(session: ClientSession, name: str, args: dict[str, Any]) -> bool:
    try:
        res = await session.call_tool(name, args)
    except Exception as e:
        print(f"[smoke] ERROR: {name} failed: {e}")
        return False
    text = _unwrap_tool_result(res)
    print(f"\n[smoke] CALL {name}({args}):")
    print(_pretty(text))
    # tool failures come back as plain text rather than JSON
    return text.lstrip().startswith("{")


async def main() -> int:
    module = os.getenv("FIGMA_MCP_SERVER_MODULE", "figma_mcp.server")
    python_cmd = os.getenv("MCP_PYTHON") or sys.executable

    print(f"[smoke] Repo root: {_REPO_ROOT}")
    print(f"[smoke] Server module: {module}")
    print(f"[smoke] Python: {python_cmd}")

    env = dict(os.environ, MCP_TRANSPORT="stdio")
    env["PYTHONPATH"] = os.pathsep.join(p for p in (str(_REPO_ROOT / "src"), env.get("PYTHONPATH")) if p)
    server = StdioServerParameters(command=python_cmd, args=["-m", module, "--stdio"], env=env)

    ok = True
    async with stdio_client(server) as (read, write):
        async with ClientSession(read, write) as session:
            await session.initialize()

            tools = await session.list_tools()
            print("\n[smoke] TOOLS:")
            for t in tools.tools:
                print(f" - {t.name}")

            file_key = os.getenv("FIGMA_SMOKE_FILE_KEY")
            node_id = os.getenv("FIGMA_SMOKE_NODE_ID")
            if file_key and node_id:
                ok = await _call(session, "get_node", {"fileKey": file_key, "nodeId": node_id}) and ok
            else:
                print("\n[smoke] SKIP get_node (set FIGMA_SMOKE_FILE_KEY and FIGMA_SMOKE_NODE_ID)")

            api_id = os.getenv("YAPI_SMOKE_API_ID")
            if api_id:
                ok = await _call(session, "get_api_desc", {"apiId": api_id}) and ok
            else:
                print("[smoke] SKIP get_api_desc (set YAPI_SMOKE_API_ID)")

    print("\n[smoke] OK" if ok else "\n[smoke] Completed with warnings")
    return 0 if ok else 1


if __name__ == "__main__":
    raise SystemExit(asyncio.run(main()))
