"""Fetch a single named geometry resource and normalise it to GeoJSON features."""

from __future__ import annotations

import json
from typing import Any, Sequence

from shapely.errors import ShapelyError
from shapely.geometry import shape
from shapely.geometry.base import BaseGeometry

from .store import GeometryStore, ResourceMissing

GEOMETRY_TYPES = frozenset(
    {
        "Point",
        "MultiPoint",
        "LineString",
        "MultiLineString",
        "Polygon",
        "MultiPolygon",
        "GeometryCollection",
    }
)


def _validate_geometry(geometry: Any) -> None:
    if geometry is None:
        return
    if not isinstance(geometry, dict) or geometry.get("type") not in GEOMETRY_TYPES:
        raise ValueError("feature geometry is not a GeoJSON geometry object")
    # shape() rejects wrong coordinate nesting
    shape(geometry)


def _as_feature(obj: Any) -> dict:
    if not isinstance(obj, dict):
        raise ValueError("expected a GeoJSON object")
    kind = obj.get("type")
    if kind == "Feature":
        _validate_geometry(obj.get("geometry"))
        return obj
    if kind in GEOMETRY_TYPES:
        _validate_geometry(obj)
        return {"type": "Feature", "geometry": obj, "properties": {}}
    raise ValueError(f"unsupported GeoJSON type {kind!r}")


def parse_geojson(payload: Any) -> list[dict]:
    """Flatten a GeoJSON payload into a list of features.

    A FeatureCollection contributes each member feature (one level only);
    a Feature or a bare geometry contributes a single feature.
    """
    if isinstance(payload, dict) and payload.get("type") == "FeatureCollection":
        members = payload.get("features")
        if not isinstance(members, list):
            raise ValueError("FeatureCollection without a features array")
        return [_as_feature(member) for member in members]
    return [_as_feature(payload)]


def parse_reference_list(text: str, suffix: str | None = None) -> list[str]:
    """Split a newline-delimited reference list, dropping blank lines."""
    names = [line.strip() for line in text.splitlines()]
    names = [name for name in names if name]
    if suffix:
        names = [name for name in names if name.endswith(suffix)]
    return names


def features_bounds(features: Sequence[dict]) -> list[float] | None:
    """Bounding box ``[min_x, min_y, max_x, max_y]`` over the features' geometries."""
    geometries: list[BaseGeometry] = [
        shape(feature["geometry"]) for feature in features if feature.get("geometry")
    ]
    geometries = [geometry for geometry in geometries if not geometry.is_empty]
    if not geometries:
        return None
    xs_min, ys_min, xs_max, ys_max = zip(*(geometry.bounds for geometry in geometries))
    return [min(xs_min), min(ys_min), max(xs_max), max(ys_max)]


class GeometryFetcher:
    """Loads geometry and reference-list resources from a store."""

    def __init__(self, store: GeometryStore) -> None:
        self.store = store

    def fetch(self, category: str, name: str) -> list[dict]:
        text = self.store.read_text(category, name)
        try:
            payload = json.loads(text)
            return parse_geojson(payload)
        except (ValueError, TypeError, AttributeError, ShapelyError) as exc:
            raise ResourceMissing(category, name, f"malformed geometry ({exc})") from exc

    def fetch_reference_list(self, category: str, name: str, suffix: str | None = None) -> list[str]:
        return parse_reference_list(self.store.read_text(category, name), suffix=suffix)

