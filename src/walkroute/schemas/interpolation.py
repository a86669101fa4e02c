"""Interpolation control request/response schemas."""

from __future__ import annotations

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from .routing import LayerModel


class PositionRequest(BaseModel):
    position: int = Field(..., ge=0)


class VariantRequest(BaseModel):
    variant: Literal["1", "2"]


class PositionResponse(BaseModel):
    applied: bool
    layer: Optional[LayerModel] = None


class EdgeModel(BaseModel):
    edge_id: str
    max_position: int
    directories: Dict[str, str]


class SliderPositionModel(BaseModel):
    edge_id: str
    variant: str
    position: int


class InterpolationStateResponse(BaseModel):
    active_variant: str
    edges: List[EdgeModel]
    positions: List[SliderPositionModel]
    displayed: List[str]


class VariantResponse(BaseModel):
    active_variant: str
    removed: List[str]
