from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


# ---- Figma --------------------------------------------------------------------


class BoundingBox(BaseModel):
    x: float = 0
    y: float = 0
    width: float = 0
    height: float = 0


class Layout(BaseModel):
    mode: str  # "row" | "column"
    gap: Optional[float] = None
    padding: Optional[str] = None  # CSS shorthand, e.g. "8px 16px"
    justifyContent: Optional[str] = None
    alignItems: Optional[str] = None
    wrap: Optional[bool] = None


class TextStyle(BaseModel):
    fontFamily: Optional[str] = None
    fontWeight: Optional[float] = None
    fontSize: Optional[float] = None
    lineHeightPx: Optional[float] = None
    letterSpacing: Optional[float] = None
    textAlignHorizontal: Optional[str] = None


# Solid paints collapse to a hex string; everything else keeps a small dict.
Paint = Union[str, Dict[str, Any]]


class SimplifiedNode(BaseModel):
    id: str
    name: str = ""
    type: str
    boundingBox: Optional[BoundingBox] = None
    layout: Optional[Layout] = None
    fills: Optional[List[Paint]] = None
    strokes: Optional[List[Paint]] = None
    strokeWeight: Optional[float] = None
    opacity: Optional[float] = None
    borderRadius: Optional[str] = None
    text: Optional[str] = None
    textStyle: Optional[TextStyle] = None
    componentId: Optional[str] = None
    children: Optional[List["SimplifiedNode"]] = None


class ComponentInfo(BaseModel):
    id: str
    key: Optional[str] = None
    name: str = ""
    description: Optional[str] = None
    componentSetId: Optional[str] = None


class SimplifiedDesign(BaseModel):
    """
    Simplified projection of a Figma file or node response.

    previewImages is only filled in by the get_node tool (node id -> image url).
    """

    name: str = ""
    lastModified: Optional[str] = None
    thumbnailUrl: Optional[str] = None
    nodes: List[SimplifiedNode] = Field(default_factory=list)
    components: Dict[str, ComponentInfo] = Field(default_factory=dict)
    previewImages: Optional[Dict[str, Optional[str]]] = None


# ---- YApi ---------------------------------------------------------------------


class ApiBasicInfo(BaseModel):
    interface_id: Optional[Union[int, str]] = None
    title: Optional[str] = None
    path: Optional[str] = None
    method: Optional[str] = None
    description: Optional[str] = None


class ApiRequestParams(BaseModel):
    url_params: List[Dict[str, Any]] = Field(default_factory=list)
    query_params: List[Dict[str, Any]] = Field(default_factory=list)
    headers: List[Dict[str, Any]] = Field(default_factory=list)
    body_type: Optional[str] = None
    body_form: List[Dict[str, Any]] = Field(default_factory=list)
    body_schema: Optional[Any] = None


class ApiResponseInfo(BaseModel):
    body_type: Optional[str] = None
    body: Optional[Any] = None


class ApiOtherInfo(BaseModel):
    markdown: Optional[str] = None


class ApiDescReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    basic_info: ApiBasicInfo
    request_params: ApiRequestParams
    response_info: ApiResponseInfo
    other_info: ApiOtherInfo
