from __future__ import annotations

import json

from figma_sources.connectors.yapi.report import build_api_report, render_api_report


def test_report_sections_and_json_bodies():
    report = build_api_report(
        {
            "_id": 42,
            "title": "Create order",
            "path": "/api/orders",
            "method": "POST",
            "req_headers": [{"name": "Content-Type", "value": "application/json"}, "junk"],
            "req_body_type": "json",
            "req_body_other": '{"type": "object"}',
            "res_body_type": "json",
            "res_body": "not json at all",
        }
    )

    assert report.basic_info.interface_id == 42
    assert report.basic_info.method == "POST"
    assert report.request_params.headers == [{"name": "Content-Type", "value": "application/json"}]
    assert report.request_params.body_schema == {"type": "object"}
    assert report.response_info.body == "not json at all"
    assert report.other_info.markdown is None


def test_rendered_report_keeps_section_order():
    text = render_api_report(build_api_report({"title": "登录"}))

    assert list(json.loads(text)) == ["basic_info", "request_params", "response_info", "other_info"]
    assert "登录" in text


def test_broken_json_string_stays_a_string():
    report = build_api_report({"req_body_other": "{oops"})
    assert report.request_params.body_schema == "{oops"
