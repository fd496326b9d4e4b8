"""
Shared HTTP client for the Figma and YApi backends.

Centralizes timeouts, optional retries and failure logging on top of
`requests`. Callers get a Response for 2xx answers; everything else is
raised as a `requests.RequestException` after being logged here.
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from typing import Any, Mapping

import requests
from requests import Response
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry


logger = logging.getLogger(__name__)


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


DEFAULT_CONNECT_TIMEOUT_S = _env_float("FIGMA_MCP_HTTP_CONNECT_TIMEOUT", 3.05)
DEFAULT_READ_TIMEOUT_S = _env_float("FIGMA_MCP_HTTP_READ_TIMEOUT", 60.0)
DEFAULT_TIMEOUT = (DEFAULT_CONNECT_TIMEOUT_S, DEFAULT_READ_TIMEOUT_S)

# Tool calls are never retried unless explicitly configured.
DEFAULT_RETRIES = _env_int("FIGMA_MCP_HTTP_RETRIES", 0)
DEFAULT_BACKOFF = _env_float("FIGMA_MCP_HTTP_BACKOFF", 0.4)
DEFAULT_RETRY_STATUS = (429, 500, 502, 503, 504)


@dataclass(frozen=True)
class HttpClientConfig:
    timeout: tuple[float, float] = DEFAULT_TIMEOUT
    retries: int = DEFAULT_RETRIES
    backoff: float = DEFAULT_BACKOFF
    retry_statuses: tuple[int, ...] = DEFAULT_RETRY_STATUS
    user_agent: str = os.getenv("FIGMA_MCP_HTTP_USER_AGENT", "figma-yapi-mcp/0.1")


class HttpClient:
    """A small wrapper around `requests.Session` with sane defaults."""

    def __init__(self, *, config: HttpClientConfig | None = None, session: requests.Session | None = None) -> None:
        self.config = config or HttpClientConfig()
        self.session = session or requests.Session()
        self._configure_session(self.session, self.config)

    @staticmethod
    def _configure_session(session: requests.Session, config: HttpClientConfig) -> None:
        session.headers.setdefault("User-Agent", config.user_agent)

        if config.retries <= 0:
            return

        retry = Retry(
            total=config.retries,
            connect=config.retries,
            read=config.retries,
            status=config.retries,
            backoff_factor=config.backoff,
            status_forcelist=config.retry_statuses,
            allowed_methods=frozenset(["HEAD", "GET", "OPTIONS"]),
            respect_retry_after_header=True,
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry, pool_connections=10, pool_maxsize=10)
        session.mount("https://", adapter)
        session.mount("http://", adapter)

    def request(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, Any] | None = None,
        timeout: tuple[float, float] | float | None = None,
        **kwargs: Any,
    ) -> Response:
        """Perform an HTTP request and raise for non-2xx responses."""
        t0 = time.perf_counter()
        try:
            resp = self.session.request(
                method=method,
                url=url,
                headers=dict(headers) if headers else None,
                params=dict(params) if params else None,
                timeout=timeout or self.config.timeout,
                **kwargs,
            )
            resp.raise_for_status()
            return resp
        except requests.RequestException as e:
            ms = int((time.perf_counter() - t0) * 1000)
            status = getattr(getattr(e, "response", None), "status_code", None)
            logger.warning(
                "HTTP %s %s failed (status=%s, ms=%s): %s",
                method.upper(),
                url,
                status,
                ms,
                str(e),
            )
            raise

    def get(
        self,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, Any] | None = None,
        timeout: tuple[float, float] | float | None = None,
        **kwargs: Any,
    ) -> Response:
        return self.request("GET", url, headers=headers, params=params, timeout=timeout, **kwargs)

    def get_json(
        self,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, Any] | None = None,
        timeout: tuple[float, float] | float | None = None,
        **kwargs: Any,
    ) -> Any:
        """GET and decode JSON; a malformed body raises `requests.JSONDecodeError`."""
        resp = self.get(url, headers=headers, params=params, timeout=timeout, **kwargs)
        return resp.json()


DEFAULT_HTTP_CLIENT = HttpClient()
