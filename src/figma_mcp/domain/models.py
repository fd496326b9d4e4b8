from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class GetApiDescParams(BaseModel):
    apiId: str = Field(
        description="YApi interface id; for a link like /project/1/interface/api/66 the id is 66",
    )


class GetNodeParams(BaseModel):
    fileKey: str = Field(description="The key of the Figma file containing the node")
    nodeId: str = Field(description="The ID of the node to fetch")
    depth: Optional[int] = Field(
        default=None,
        ge=0,
        description="How many levels deep to traverse the node tree",
    )


class GetFileParams(BaseModel):
    fileKey: str = Field(description="The key of the Figma file to fetch")
    depth: Optional[int] = Field(
        default=None,
        ge=0,
        description="How many levels deep to traverse the node tree",
    )
