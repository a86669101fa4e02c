"""Route search request/response schemas."""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

DEFAULT_WEIGHTS = [0.0, 0.0, 100.0, -100.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0]


class RouteSearchRequest(BaseModel):
    weights: List[float] = Field(
        default_factory=lambda: list(DEFAULT_WEIGHTS),
        min_length=13,
        max_length=13,
        description="Edge-attribute weights passed to the cost generator, in attribute order.",
    )
    start_node: int = Field(1, ge=0)
    end_node: int = Field(246, ge=0)
    walking_speed: Optional[float] = Field(default=None, gt=0, description="Metres per minute.")


class RouteSummaryModel(BaseModel):
    total_distance: float
    total_time: float
    total_wait_time: float
    tier: Optional[str] = None
    segment_count: int
    has_signal: Optional[bool] = None
    signal_edge_index: Optional[int] = None


class LayerModel(BaseModel):
    id: str
    kind: str
    style: dict
    feature_count: int
    missing: List[str]
    bounds: Optional[List[float]] = None
    geojson: dict
    routes: List[RouteSummaryModel] = Field(default_factory=list)
    tier: Optional[str] = None
    edge_id: Optional[str] = None
    variant: Optional[str] = None
    position: Optional[int] = None


class RouteSearchResponse(BaseModel):
    routes_found: int
    all_enumerated_count: int
    duplicates_dropped: int
    summaries: Dict[str, Optional[RouteSummaryModel]]
    layers: List[LayerModel]


class LayersResponse(BaseModel):
    layers: List[LayerModel]
