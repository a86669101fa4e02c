"""Export services."""

from .geojson import key_id, layer_id, layer_to_feature_collection, layer_to_payload, route_summary

__all__ = [
    "key_id",
    "layer_id",
    "layer_to_feature_collection",
    "layer_to_payload",
    "route_summary",
]
