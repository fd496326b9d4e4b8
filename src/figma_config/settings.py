from __future__ import annotations

import argparse
import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Optional, Sequence

from dotenv import load_dotenv

from figma_common.errors import ConfigError


logger = logging.getLogger(__name__)

DEFAULT_YAPI_BASE_URL = "http://localhost:3000"
DEFAULT_PORT = 3333


def _find_repo_root(start: Path) -> Optional[Path]:
    """
    Walk upward until we find pyproject.toml or .git.
    """
    start = start.resolve()
    for p in (start, *start.parents):
        if (p / "pyproject.toml").exists() or (p / ".git").exists():
            return p
    return None


@lru_cache(maxsize=1)
def repo_root() -> Path:
    """Best-effort repository root discovery.

    Order of precedence:
      1) FIGMA_MCP_REPO_ROOT (explicit override)
      2) walk upward from current working directory
      3) walk upward from this module file's directory
    """
    explicit = os.getenv("FIGMA_MCP_REPO_ROOT")
    if explicit:
        p = Path(explicit).expanduser().resolve()
        if not p.is_dir():
            raise ConfigError(f"FIGMA_MCP_REPO_ROOT does not exist or is not a directory: {p}")
        return p

    root = _find_repo_root(Path.cwd())
    if root:
        return root

    here_dir = Path(__file__).resolve().parent
    root = _find_repo_root(here_dir)
    if root:
        return root

    # Fallback: typical layout (repo/src/figma_config/settings.py)
    if len(here_dir.parents) >= 2:
        return here_dir.parents[1]

    return Path.cwd().resolve()


@lru_cache(maxsize=1)
def load_env_once() -> Optional[Path]:
    """
    Load dotenv exactly once. Precedence:
      1) FIGMA_MCP_ENV_FILE (explicit path)
      2) repo-root/.env
    """
    explicit = os.getenv("FIGMA_MCP_ENV_FILE")
    candidates = []

    if explicit:
        candidates.append(Path(explicit).expanduser())
    candidates.append(repo_root() / ".env")

    for p in candidates:
        p = p.resolve()
        if p.is_file():
            # Do NOT override already-set environment variables
            load_dotenv(dotenv_path=str(p), override=False)
            return p

    return None


def telemetry_dir() -> Path:
    """
    Default telemetry dir. Override with FIGMA_MCP_TELEMETRY_DIR.
    """
    p = os.getenv("FIGMA_MCP_TELEMETRY_DIR")
    if p:
        return Path(p).expanduser().resolve()
    return (repo_root() / "artifacts" / "telemetry").resolve()


def dev_mode() -> bool:
    """True when payload dumps to ./logs are wanted."""
    env = os.getenv("FIGMA_MCP_ENV") or os.getenv("NODE_ENV") or ""
    return env.strip().lower() == "development"


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in {"1", "true", "yes", "on"}


def mask_api_key(key: str) -> str:
    if len(key) <= 4:
        return "****"
    return f"****{key[-4:]}"


@dataclass(frozen=True)
class ServerConfig:
    """Opaque values handed to the server core at construction."""

    figma_api_key: str
    yapi_base_url: str = DEFAULT_YAPI_BASE_URL
    yapi_token: str = ""
    port: int = DEFAULT_PORT
    stdio: bool = False
    enable_get_file: bool = False
    sources: dict[str, str] = field(default_factory=dict, compare=False)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="figma-mcp", description="Figma + YApi MCP server")
    parser.add_argument("--figma-api-key", help="Figma API key")
    parser.add_argument("--yapi-base-url", help="YApi server base URL")
    parser.add_argument("--yapi-token", help="YApi access token")
    parser.add_argument("--port", type=int, help="Port to run the HTTP server on")
    parser.add_argument("--stdio", action="store_true", help="Serve MCP over stdio instead of HTTP/SSE")
    parser.add_argument("--enable-get-file", action="store_true", help="Register the get_file tool")
    return parser


def load_server_config(argv: Sequence[str] | None = None) -> ServerConfig:
    """
    Resolve configuration from CLI args, then environment, then defaults.
    Raises ConfigError when the Figma API key is missing.
    """
    args = _build_parser().parse_args(argv)
    sources: dict[str, str] = {}

    def pick(cli_value, env_name: str, default, key: str):
        if cli_value:
            sources[key] = "cli"
            return cli_value
        env_value = os.getenv(env_name)
        if env_value:
            sources[key] = "env"
            return env_value
        sources[key] = "default"
        return default

    figma_api_key = pick(args.figma_api_key, "FIGMA_API_KEY", "", "figma_api_key")
    yapi_base_url = pick(args.yapi_base_url, "YAPI_BASE_URL", DEFAULT_YAPI_BASE_URL, "yapi_base_url")
    yapi_token = pick(args.yapi_token, "YAPI_TOKEN", "", "yapi_token")
    port_raw = pick(args.port, "PORT", DEFAULT_PORT, "port")

    try:
        port = int(port_raw)
    except (TypeError, ValueError):
        raise ConfigError(f"PORT must be an integer, got {port_raw!r}") from None

    if not figma_api_key:
        raise ConfigError("FIGMA_API_KEY is required (via CLI argument --figma-api-key or .env file)")

    transport = os.getenv("MCP_TRANSPORT", "").strip().lower()
    stdio = bool(args.stdio) or transport == "stdio" or os.getenv("NODE_ENV") == "cli"

    return ServerConfig(
        figma_api_key=figma_api_key,
        yapi_base_url=yapi_base_url.rstrip("/"),
        yapi_token=yapi_token,
        port=port,
        stdio=stdio,
        enable_get_file=bool(args.enable_get_file) or _env_flag("FIGMA_MCP_ENABLE_GET_FILE"),
        sources=sources,
    )


def log_server_config(config: ServerConfig) -> None:
    src = config.sources
    logger.info("Configuration:")
    logger.info("- FIGMA_API_KEY: %s (source: %s)", mask_api_key(config.figma_api_key), src.get("figma_api_key", "?"))
    logger.info("- YAPI_BASE_URL: %s (source: %s)", config.yapi_base_url, src.get("yapi_base_url", "?"))
    logger.info(
        "- YAPI_TOKEN: %s (source: %s)",
        mask_api_key(config.yapi_token) if config.yapi_token else "not configured",
        src.get("yapi_token", "?"),
    )
    logger.info("- PORT: %s (source: %s)", config.port, src.get("port", "?"))


def configure_logging() -> None:
    """
    Configure logging explicitly. No import-time side effects.
    Idempotent: if logging is already configured, do nothing.
    """
    root = logging.getLogger()
    if root.handlers:
        return

    level_name = os.getenv("FIGMA_MCP_LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = os.getenv(
        "FIGMA_MCP_LOG_FORMAT",
        "%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # basicConfig logs to stderr, which keeps the stdio transport clean
    logging.basicConfig(level=level, format=fmt)


def init_runtime(*, configure_logs: bool = True, load_env: bool = True) -> None:
    """
    Call this from entrypoints only (servers, scripts).
    """
    if load_env:
        load_env_once()
    if configure_logs:
        configure_logging()
