"""Slider endpoints for the interpolated edges."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from ...schemas.interpolation import (
    EdgeModel,
    InterpolationStateResponse,
    PositionRequest,
    PositionResponse,
    SliderPositionModel,
    VariantRequest,
    VariantResponse,
)
from ...schemas.routing import LayerModel
from ...services.export.geojson import key_id, layer_to_payload
from ...services.interpolation.edges import EDGE_TABLE
from ...services.session import get_session

router = APIRouter(prefix="/interpolation", tags=["interpolation"])


@router.get("", response_model=InterpolationStateResponse, status_code=status.HTTP_200_OK)
def get_state() -> InterpolationStateResponse:
    engine = get_session().interpolation
    state = engine.state
    return InterpolationStateResponse(
        active_variant=state.active_variant,
        edges=[
            EdgeModel(edge_id=config.edge_id, max_position=config.max_position, directories=dict(config.directories))
            for config in EDGE_TABLE.values()
        ],
        positions=[
            SliderPositionModel(edge_id=key.edge_id, variant=key.variant, position=position)
            for key, position in sorted(state.positions.items())
        ],
        displayed=[key_id(layer.key) for layer in engine.displayed()],
    )


@router.put("/{edge_id}/{variant}", response_model=PositionResponse, status_code=status.HTTP_200_OK)
def set_position(edge_id: str, variant: str, payload: PositionRequest) -> PositionResponse:
    """Move one slider. Edges outside the interpolated set are ignored."""
    config = EDGE_TABLE.get(edge_id)
    if config is not None and payload.position > config.max_position:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Position {payload.position} out of range for edge {edge_id} (0-{config.max_position})",
        )
    layer = get_session().interpolation.set_position(edge_id, variant, payload.position)
    if layer is None:
        return PositionResponse(applied=False)
    return PositionResponse(applied=True, layer=LayerModel(**layer_to_payload(layer)))


@router.post("/variant", response_model=VariantResponse, status_code=status.HTTP_200_OK)
def switch_variant(payload: VariantRequest) -> VariantResponse:
    engine = get_session().interpolation
    removed = engine.switch_variant(payload.variant)
    return VariantResponse(active_variant=engine.state.active_variant, removed=[key_id(key) for key in removed])


@router.delete("", status_code=status.HTTP_200_OK)
def clear() -> dict:
    removed = get_session().interpolation.clear()
    return {"success": True, "removed": [key_id(key) for key in removed]}
