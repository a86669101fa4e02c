"""GeoJSON export of displayed layers for the map renderer."""

from __future__ import annotations

from typing import Any, Dict, Hashable, Optional

from ...models.domain import DisplayLayer, InterpolationKey, RouteCandidate, Tier
from ..geometry.fetcher import features_bounds


def key_id(key: Hashable) -> str:
    """Stable identifier for the renderer: ``tier:<name>`` or ``edge:<edge>:<variant>``."""
    if isinstance(key, Tier):
        return f"tier:{key.label}"
    if isinstance(key, InterpolationKey):
        return f"edge:{key.edge_id}:{key.variant}"
    raise ValueError(f"Unsupported layer key {key!r}")


def layer_id(layer: DisplayLayer) -> str:
    return key_id(layer.key)


def route_summary(route: Optional[RouteCandidate]) -> Optional[Dict[str, Any]]:
    if route is None:
        return None
    return {
        "total_distance": route.total_distance,
        "total_time": route.total_time,
        "total_wait_time": route.total_wait_time or 0.0,
        "tier": route.tier.label if route.tier is not None else None,
        "segment_count": len(route.segment_refs),
        "has_signal": route.has_signal,
        "signal_edge_index": route.signal_edge_index,
    }


def layer_to_feature_collection(layer: DisplayLayer) -> Dict[str, Any]:
    """Wrap a layer's features in a FeatureCollection carrying its style.

    Features are emitted in composition order; each gets the layer id and
    style merged into its properties so a plain GeoJSON renderer can draw it.
    """
    style = layer.style.as_dict()
    lid = layer_id(layer)
    features = []
    for feature in layer.geometry.features:
        properties = dict(feature.get("properties") or {})
        properties.update({"layer": lid, "style": style})
        features.append({**feature, "properties": properties})
    return {
        "type": "FeatureCollection",
        "features": features,
        "properties": {"layer": lid, "style": style},
    }


def layer_to_payload(layer: DisplayLayer) -> Dict[str, Any]:
    key = layer.key
    payload: Dict[str, Any] = {
        "id": layer_id(layer),
        "kind": "tier" if isinstance(key, Tier) else "interpolation",
        "style": layer.style.as_dict(),
        "feature_count": len(layer.geometry),
        "missing": list(layer.geometry.missing),
        "bounds": features_bounds(layer.geometry.features),
        "geojson": layer_to_feature_collection(layer),
        "routes": [route_summary(route) for route in layer.routes],
    }
    if isinstance(key, Tier):
        payload["tier"] = key.label
    if isinstance(key, InterpolationKey):
        payload.update({"edge_id": key.edge_id, "variant": key.variant, "position": layer.position})
    return payload
