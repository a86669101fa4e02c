"""Per-process display session wiring."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from .geometry.fetcher import GeometryFetcher
from .geometry.resolver import SegmentResolver
from .geometry.store import GeometryStore, build_store
from .interpolation.engine import InterpolationEngine
from .layers.registry import LayerRegistry
from .routing.service import RouteDisplayService


@dataclass(slots=True)
class DisplaySession:
    store: GeometryStore
    registry: LayerRegistry
    routes: RouteDisplayService
    interpolation: InterpolationEngine


def build_session(store: GeometryStore | None = None) -> DisplaySession:
    store = store or build_store()
    fetcher = GeometryFetcher(store)
    resolver = SegmentResolver(fetcher)
    registry = LayerRegistry()
    return DisplaySession(
        store=store,
        registry=registry,
        routes=RouteDisplayService(resolver, registry),
        interpolation=InterpolationEngine(fetcher, resolver, registry),
    )


@lru_cache()
def get_session() -> DisplaySession:
    return build_session()
