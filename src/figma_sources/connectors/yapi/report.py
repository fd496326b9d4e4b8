from __future__ import annotations

import json
from typing import Any, Dict, List

from figma_sources.models import (
    ApiBasicInfo,
    ApiDescReport,
    ApiOtherInfo,
    ApiRequestParams,
    ApiResponseInfo,
)


def _as_list(value: Any) -> List[Dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [v for v in value if isinstance(v, dict)]


def _maybe_json(value: Any) -> Any:
    """YApi stores JSON bodies as strings; decode them when they parse."""
    if isinstance(value, str):
        s = value.strip()
        if s and s[0] in "{[":
            try:
                return json.loads(s)
            except ValueError:
                return value
    return value


def build_api_report(raw: Dict[str, Any]) -> ApiDescReport:
    """Reshape a raw YApi interface record into the four-section report."""
    return ApiDescReport(
        basic_info=ApiBasicInfo(
            interface_id=raw.get("_id"),
            title=raw.get("title"),
            path=raw.get("path"),
            method=raw.get("method"),
            description=raw.get("desc"),
        ),
        request_params=ApiRequestParams(
            url_params=_as_list(raw.get("req_params")),
            query_params=_as_list(raw.get("req_query")),
            headers=_as_list(raw.get("req_headers")),
            body_type=raw.get("req_body_type"),
            body_form=_as_list(raw.get("req_body_form")),
            body_schema=_maybe_json(raw.get("req_body_other")),
        ),
        response_info=ApiResponseInfo(
            body_type=raw.get("res_body_type"),
            body=_maybe_json(raw.get("res_body")),
        ),
        other_info=ApiOtherInfo(markdown=raw.get("markdown")),
    )


def render_api_report(report: ApiDescReport) -> str:
    """Deterministic JSON text for a report (field order fixed by the model)."""
    return json.dumps(report.model_dump(), indent=2, ensure_ascii=False)
