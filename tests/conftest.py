from __future__ import annotations

import pytest

from tests.helpers.mcp_runtime import build_test_env, mcp_stdio_session


@pytest.fixture(autouse=True)
def _isolate_runtime(monkeypatch, tmp_path):
    """Keep telemetry and dev-mode dumps out of the repo during tests."""
    monkeypatch.setenv("FIGMA_MCP_DISABLE_TELEMETRY", "1")
    monkeypatch.setenv("FIGMA_MCP_TELEMETRY_DIR", str(tmp_path / "telemetry"))
    monkeypatch.delenv("FIGMA_MCP_ENV", raising=False)
    monkeypatch.delenv("NODE_ENV", raising=False)


@pytest.fixture
async def stdio_session(tmp_path):
    """Initialized session for the server spawned over stdio (no backend is reachable)."""
    env = build_test_env(tmp_path)
    async with mcp_stdio_session("figma_mcp.server", env=env, args=["--stdio"]) as session:
        yield session
