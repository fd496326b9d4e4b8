"""
Normalize raw Figma REST payloads into `SimplifiedDesign`.

Pure functions only: no I/O, no caching. Invisible nodes and invisible
paints are dropped; solid colors collapse to hex strings; auto-layout frames
get a flex-like `layout` block.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from figma_sources.models import (
    BoundingBox,
    ComponentInfo,
    Layout,
    Paint,
    SimplifiedDesign,
    SimplifiedNode,
    TextStyle,
)


logger = logging.getLogger(__name__)

_ALIGN = {
    "MIN": "flex-start",
    "MAX": "flex-end",
    "CENTER": "center",
    "SPACE_BETWEEN": "space-between",
    "BASELINE": "baseline",
}


def rgba_to_hex(color: Dict[str, Any], opacity: float = 1.0) -> str:
    """Convert a Figma RGBA dict (0-1 floats) to #rrggbb or #rrggbbaa."""
    r = round(float(color.get("r", 0)) * 255)
    g = round(float(color.get("g", 0)) * 255)
    b = round(float(color.get("b", 0)) * 255)
    a = round(float(color.get("a", 1)) * float(opacity) * 255)

    out = f"#{r:02x}{g:02x}{b:02x}"
    if a != 255:
        out += f"{a:02x}"
    return out


def _simplify_paint(paint: Dict[str, Any]) -> Optional[Paint]:
    if paint.get("visible") is False:
        return None

    ptype = paint.get("type")
    opacity = paint.get("opacity", 1.0)
    if ptype == "SOLID" and isinstance(paint.get("color"), dict):
        return rgba_to_hex(paint["color"], opacity)

    if ptype == "IMAGE":
        return {"type": "IMAGE", "imageRef": paint.get("imageRef"), "scaleMode": paint.get("scaleMode")}

    if isinstance(ptype, str) and ptype.startswith("GRADIENT_"):
        stops = [
            {"position": s.get("position"), "color": rgba_to_hex(s.get("color") or {})}
            for s in paint.get("gradientStops") or []
        ]
        return {"type": ptype, "gradientStops": stops}

    return {"type": ptype}


def _simplify_paints(paints: Any) -> Optional[List[Paint]]:
    if not isinstance(paints, list) or not paints:
        return None
    out = [p for p in (_simplify_paint(x) for x in paints if isinstance(x, dict)) if p is not None]
    return out or None


def _padding(node: Dict[str, Any]) -> Optional[str]:
    top = node.get("paddingTop", 0) or 0
    right = node.get("paddingRight", 0) or 0
    bottom = node.get("paddingBottom", 0) or 0
    left = node.get("paddingLeft", 0) or 0
    if not any((top, right, bottom, left)):
        return None
    if top == bottom and left == right:
        if top == left:
            return f"{top}px"
        return f"{top}px {right}px"
    return f"{top}px {right}px {bottom}px {left}px"


def _layout(node: Dict[str, Any]) -> Optional[Layout]:
    mode = node.get("layoutMode")
    if mode not in ("HORIZONTAL", "VERTICAL"):
        return None
    return Layout(
        mode="row" if mode == "HORIZONTAL" else "column",
        gap=node.get("itemSpacing") or None,
        padding=_padding(node),
        justifyContent=_ALIGN.get(node.get("primaryAxisAlignItems", "")),
        alignItems=_ALIGN.get(node.get("counterAxisAlignItems", "")),
        wrap=True if node.get("layoutWrap") == "WRAP" else None,
    )


def _border_radius(node: Dict[str, Any]) -> Optional[str]:
    radii = node.get("rectangleCornerRadii")
    if isinstance(radii, list) and len(radii) == 4 and len(set(radii)) > 1:
        return " ".join(f"{r}px" for r in radii)
    radius = node.get("cornerRadius")
    if radius:
        return f"{radius}px"
    return None


def _text_style(style: Any) -> Optional[TextStyle]:
    if not isinstance(style, dict):
        return None
    return TextStyle(
        fontFamily=style.get("fontFamily"),
        fontWeight=style.get("fontWeight"),
        fontSize=style.get("fontSize"),
        lineHeightPx=style.get("lineHeightPx"),
        letterSpacing=style.get("letterSpacing") or None,
        textAlignHorizontal=style.get("textAlignHorizontal"),
    )


def simplify_node(node: Dict[str, Any]) -> Optional[SimplifiedNode]:
    """Project one raw node (and its subtree). Returns None for invisible nodes."""
    if not isinstance(node, dict) or node.get("visible") is False:
        return None

    bbox = node.get("absoluteBoundingBox")
    opacity = node.get("opacity")

    out = SimplifiedNode(
        id=str(node.get("id", "")),
        name=node.get("name", ""),
        type=node.get("type", "UNKNOWN"),
        boundingBox=BoundingBox(**bbox) if isinstance(bbox, dict) else None,
        layout=_layout(node),
        fills=_simplify_paints(node.get("fills")),
        strokes=_simplify_paints(node.get("strokes")),
        strokeWeight=node.get("strokeWeight") if node.get("strokes") else None,
        opacity=opacity if opacity is not None and opacity != 1 else None,
        borderRadius=_border_radius(node),
        componentId=node.get("componentId"),
    )

    if out.type == "TEXT":
        out.text = node.get("characters")
        out.textStyle = _text_style(node.get("style"))

    children = node.get("children")
    if isinstance(children, list) and children:
        simplified = [c for c in (simplify_node(ch) for ch in children) if c is not None]
        out.children = simplified or None

    return out


def _components(raw: Any) -> Dict[str, ComponentInfo]:
    out: Dict[str, ComponentInfo] = {}
    if not isinstance(raw, dict):
        return out
    for cid, comp in raw.items():
        if not isinstance(comp, dict):
            continue
        out[cid] = ComponentInfo(
            id=cid,
            key=comp.get("key"),
            name=comp.get("name", ""),
            description=comp.get("description") or None,
            componentSetId=comp.get("componentSetId"),
        )
    return out


def parse_file_response(raw: Dict[str, Any]) -> SimplifiedDesign:
    """GET /files/:key -> SimplifiedDesign with one entry per top-level page."""
    document = raw.get("document") or {}
    pages = document.get("children") or []
    nodes = [n for n in (simplify_node(p) for p in pages) if n is not None]
    return SimplifiedDesign(
        name=raw.get("name", ""),
        lastModified=raw.get("lastModified"),
        thumbnailUrl=raw.get("thumbnailUrl"),
        nodes=nodes,
        components=_components(raw.get("components")),
    )


def parse_nodes_response(raw: Dict[str, Any]) -> SimplifiedDesign:
    """GET /files/:key/nodes -> SimplifiedDesign with one entry per requested node."""
    nodes: List[SimplifiedNode] = []
    components: Dict[str, ComponentInfo] = {}

    for node_id, entry in (raw.get("nodes") or {}).items():
        if not isinstance(entry, dict):
            # Figma answers null for ids it does not know
            logger.warning("Node %s not found in response", node_id)
            continue
        simplified = simplify_node(entry.get("document") or {})
        if simplified is not None:
            nodes.append(simplified)
        components.update(_components(entry.get("components")))

    return SimplifiedDesign(
        name=raw.get("name", ""),
        lastModified=raw.get("lastModified"),
        thumbnailUrl=raw.get("thumbnailUrl"),
        nodes=nodes,
        components=components,
    )
