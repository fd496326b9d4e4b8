from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Literal, Optional, Sequence

import anyio.to_thread
import requests

from figma_common.errors import BackendResult
from figma_sources.connectors.figma.simplify import parse_file_response, parse_nodes_response
from figma_sources.core_infrastructure.dev_logs import write_dev_log
from figma_sources.core_infrastructure.http_client import DEFAULT_HTTP_CLIENT, HttpClient
from figma_sources.models import SimplifiedDesign


logger = logging.getLogger(__name__)

FIGMA_BASE_URL = "https://api.figma.com/v1"
DEFAULT_IMAGE_SCALE = 0.8
GENERIC_FAILURE = "Failed to make request to Figma API"

ImageMap = Dict[str, Optional[str]]


@dataclass(frozen=True)
class ImageOptions:
    """Render options for the images endpoint (https://www.figma.com/developers/api#get-images-endpoint)."""

    format: Literal["jpg", "png", "svg", "pdf"] = "png"
    scale: float = DEFAULT_IMAGE_SCALE
    svg_include_id: Optional[bool] = None
    svg_simplify_stroke: Optional[bool] = None
    use_absolute_bounds: Optional[bool] = None

    def to_params(self) -> dict[str, str]:
        params = {"format": self.format, "scale": str(self.scale or DEFAULT_IMAGE_SCALE)}
        if self.svg_include_id is not None:
            params["svg_include_id"] = str(self.svg_include_id).lower()
        if self.svg_simplify_stroke is not None:
            params["svg_simplify_stroke"] = str(self.svg_simplify_stroke).lower()
        if self.use_absolute_bounds is not None:
            params["use_absolute_bounds"] = str(self.use_absolute_bounds).lower()
        return params


class FigmaClient:
    """
    Figma REST API client.

    Every public operation is async (the blocking HTTP call runs in a worker
    thread) and returns a BackendResult instead of raising.
    """

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = FIGMA_BASE_URL,
        http: HttpClient | None = None,
    ) -> None:
        self._api_key = api_key
        self.base_url = base_url.rstrip("/")
        self._http = http or DEFAULT_HTTP_CLIENT

    def _request(self, endpoint: str, params: dict[str, Any] | None = None) -> BackendResult[Any]:
        url = f"{self.base_url}{endpoint}"
        logger.info("Calling %s", url)
        try:
            data = self._http.get_json(url, headers={"X-Figma-Token": self._api_key}, params=params)
        except requests.HTTPError as e:
            resp = e.response
            if resp is None:
                return BackendResult.failure(GENERIC_FAILURE)
            try:
                body = resp.json()
            except ValueError:
                body = {}
            err = body.get("err") if isinstance(body, dict) else None
            return BackendResult.failure(err or "Unknown error", status_code=resp.status_code)
        except (requests.RequestException, ValueError) as e:
            logger.error("Request to %s failed: %s", url, e)
            return BackendResult.failure(GENERIC_FAILURE)

        if not isinstance(data, dict):
            logger.error("Unexpected payload from %s: %r", url, type(data))
            return BackendResult.failure(GENERIC_FAILURE)
        return BackendResult.success(data)

    # ---- sync bodies (run in a worker thread) --------------------------------

    def _get_file(self, file_key: str, depth: int | None) -> BackendResult[SimplifiedDesign]:
        params = {"depth": depth} if depth else None
        raw = self._request(f"/files/{file_key}", params)
        if not raw.ok:
            logger.error("Failed to get file %s: %s", file_key, raw.error)
            return BackendResult(error=raw.error)

        write_dev_log("figma-raw.json", raw.value)
        simplified = parse_file_response(raw.value)
        write_dev_log("figma-simplified.json", simplified)
        return BackendResult.success(simplified)

    def _get_node(self, file_key: str, node_id: str, depth: int | None) -> BackendResult[SimplifiedDesign]:
        params: dict[str, Any] = {"ids": node_id}
        if depth:
            params["depth"] = depth
        raw = self._request(f"/files/{file_key}/nodes", params)
        if not raw.ok:
            return BackendResult(error=raw.error)

        write_dev_log("figma-raw.json", raw.value)
        simplified = parse_nodes_response(raw.value)
        write_dev_log("figma-simplified.json", simplified)
        return BackendResult.success(simplified)

    def _get_images(self, file_key: str, node_ids: Sequence[str], options: ImageOptions) -> BackendResult[ImageMap]:
        params = {"ids": ",".join(node_ids), **options.to_params()}
        raw = self._request(f"/images/{file_key}", params)
        if not raw.ok:
            logger.error("Failed to get images for %s: %s", file_key, raw.error)
            return BackendResult(error=raw.error)

        write_dev_log("figma-images.json", raw.value)

        # A 200 answer can still carry a logical error
        err = raw.value.get("err")
        if err:
            logger.error("Figma images endpoint returned err=%s for %s", err, file_key)
            return BackendResult.failure(str(err))

        images = raw.value.get("images")
        if not isinstance(images, dict):
            return BackendResult.failure(GENERIC_FAILURE)
        return BackendResult.success(images)

    # ---- public API ---------------------------------------------------------------

    async def get_file(self, file_key: str, depth: int | None = None) -> BackendResult[SimplifiedDesign]:
        return await anyio.to_thread.run_sync(self._get_file, file_key, depth)

    async def get_node(self, file_key: str, node_id: str, depth: int | None = None) -> BackendResult[SimplifiedDesign]:
        return await anyio.to_thread.run_sync(self._get_node, file_key, node_id, depth)

    async def get_images(
        self,
        file_key: str,
        node_ids: Sequence[str],
        options: ImageOptions | None = None,
    ) -> BackendResult[ImageMap]:
        return await anyio.to_thread.run_sync(self._get_images, file_key, list(node_ids), options or ImageOptions())
