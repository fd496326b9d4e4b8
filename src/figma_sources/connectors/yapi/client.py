from __future__ import annotations

import logging
from typing import Any, Dict

import anyio.to_thread
import requests

from figma_common.errors import BackendResult
from figma_sources.core_infrastructure.http_client import DEFAULT_HTTP_CLIENT, HttpClient


logger = logging.getLogger(__name__)

INTERFACE_ENDPOINT = "/api/interface/get"
MALFORMED_RESPONSE = "Malformed response from YApi"


def _auth_headers(token: str | None) -> dict[str, str]:
    if not token:
        return {}
    t = str(token).strip()
    if not t.lower().startswith("bearer "):
        t = f"Bearer {t}"
    return {"Authorization": t}


class YApiClient:
    """YApi open API client; one GET per interface lookup."""

    def __init__(self, base_url: str, token: str = "", *, http: HttpClient | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        self._token = token
        self._http = http or DEFAULT_HTTP_CLIENT

    def _get_api_interface(self, api_id: str) -> BackendResult[Dict[str, Any]]:
        url = f"{self.base_url}{INTERFACE_ENDPOINT}"
        params = {"id": api_id}
        if self._token:
            params["token"] = self._token

        try:
            envelope = self._http.get_json(url, headers=_auth_headers(self._token), params=params)
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            logger.error("YApi HTTP error for interface %s: %s", api_id, e)
            return BackendResult.failure(f"YApi request failed: {e}", status_code=status)
        except requests.RequestException as e:
            # network, timeout, undecodable body
            logger.error("YApi transport error for interface %s: %s", api_id, e)
            return BackendResult.failure(f"YApi request failed: {e}")

        if not isinstance(envelope, dict):
            logger.warning("YApi returned a non-object payload for interface %s", api_id)
            return BackendResult.failure(MALFORMED_RESPONSE)

        errcode = envelope.get("errcode", 0)
        if errcode:
            msg = envelope.get("errmsg") or "Unknown error"
            logger.warning("YApi logical error for interface %s: errcode=%s errmsg=%s", api_id, errcode, msg)
            return BackendResult.failure(f"YApi error {errcode}: {msg}")

        data = envelope.get("data")
        if not isinstance(data, dict):
            logger.warning("YApi response for interface %s has no data object", api_id)
            return BackendResult.failure(MALFORMED_RESPONSE)

        return BackendResult.success(data)

    async def get_api_interface(self, api_id: str) -> BackendResult[Dict[str, Any]]:
        return await anyio.to_thread.run_sync(self._get_api_interface, api_id)
