"""Route search and tier layer endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status

from ...models.domain import SINGLETON_TIERS
from ...schemas.routing import LayerModel, LayersResponse, RouteSearchRequest, RouteSearchResponse
from ...services.export.geojson import key_id, layer_to_payload, route_summary
from ...services.routing.search_client import UpstreamUnavailable
from ...services.session import get_session

router = APIRouter(prefix="/routes", tags=["routes"])
layers_router = APIRouter(tags=["layers"])


@router.post("/search", response_model=RouteSearchResponse, status_code=status.HTTP_200_OK)
def search(payload: RouteSearchRequest) -> RouteSearchResponse:
    session = get_session()
    try:
        layers = session.routes.search(
            payload.weights,
            payload.start_node,
            payload.end_node,
            payload.walking_speed,
        )
    except UpstreamUnavailable as exc:
        logging.error(f"Route search failed: {exc}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Route search failed: {exc}",
        ) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    classification = session.routes.classification
    summaries = {
        tier.label: route_summary(classification.representative(tier)) if classification else None
        for tier in SINGLETON_TIERS
    }
    return RouteSearchResponse(
        routes_found=classification.total if classification else 0,
        all_enumerated_count=len(classification.all_enumerated) if classification else 0,
        duplicates_dropped=classification.discarded if classification else 0,
        summaries=summaries,
        layers=[LayerModel(**layer_to_payload(layer)) for layer in layers],
    )


@router.post("/all-enumerated", response_model=LayerModel, status_code=status.HTTP_200_OK)
def show_all_enumerated() -> LayerModel:
    """Draw every all-enumerated route from the current search on top of the tiers."""
    session = get_session()
    try:
        layer = session.routes.show_all_enumerated()
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    if layer is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Superseded by a newer search before it could be displayed.",
        )
    return LayerModel(**layer_to_payload(layer))


@router.delete("", status_code=status.HTTP_200_OK)
def clear_routes() -> dict:
    removed = get_session().routes.clear()
    return {"success": True, "removed": [key_id(key) for key in removed]}


@layers_router.get("/layers", response_model=LayersResponse, status_code=status.HTTP_200_OK)
def list_layers() -> LayersResponse:
    """All layers currently handed to the renderer, tiers and interpolated edges alike."""
    session = get_session()
    return LayersResponse(layers=[LayerModel(**layer_to_payload(layer)) for layer in session.registry])
