"""Map slider positions on the fixed edges to precomputed geometry snapshots."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Hashable, Optional

from ...models.domain import DisplayLayer, InterpolationKey, LayerStyle
from ..geometry.fetcher import GeometryFetcher
from ..geometry.resolver import SegmentResolver
from ..geometry.store import ResourceMissing
from ..layers.registry import LayerRegistry
from .edges import EDGE_TABLE, VARIANTS, file_index, snapshot_name

logger = logging.getLogger(__name__)

VARIANT_STYLES: dict[str, LayerStyle] = {
    "1": LayerStyle(color="#22c55e"),
    "2": LayerStyle(color="#ef4444"),
}


def _is_interpolated(key: Hashable, _layer: Optional[DisplayLayer] = None) -> bool:
    return isinstance(key, InterpolationKey)


@dataclass(slots=True)
class SliderState:
    """Positions per (edge, variant) and the globally selected variant."""

    active_variant: str = VARIANTS[0]
    positions: dict[InterpolationKey, int] = field(default_factory=dict)

    def position(self, edge_id: str, variant: str) -> Optional[int]:
        return self.positions.get(InterpolationKey(edge_id, variant))


class InterpolationEngine:
    """Owns slider state and the interpolated layers in the registry.

    At most one interpolated layer per edge is displayed: installing a
    composition evicts every layer tagged with the same edge, whatever its
    variant, under the registry lock.
    """

    def __init__(
        self,
        fetcher: GeometryFetcher,
        resolver: SegmentResolver,
        registry: LayerRegistry,
    ) -> None:
        self.fetcher = fetcher
        self.resolver = resolver
        self.registry = registry
        self.state = SliderState()
        self._state_lock = threading.Lock()

    def _load_snapshot(self, directory: str, index: int) -> list[str]:
        name = snapshot_name(index)
        try:
            return self.fetcher.fetch_reference_list(directory, name, suffix=".geojson")
        except ResourceMissing as exc:
            logger.warning(f"Snapshot list unavailable, drawing nothing: {exc}")
            return []

    def set_position(self, edge_id: str, variant: str, position: int) -> Optional[DisplayLayer]:
        """Compose and install the snapshot for ``position``.

        Returns None for edges outside the fixed set, for unknown variants,
        and when a newer position for the same key finished first.
        """
        config = EDGE_TABLE.get(edge_id)
        directory = config.directory(variant) if config else None
        if config is None or directory is None:
            logger.debug(f"Ignoring slider change for unsupported target {edge_id!r}/{variant!r}")
            return None

        key = InterpolationKey(edge_id, variant)
        with self.registry.lock:
            with self._state_lock:
                self.state.positions[key] = int(position)
            generation = self.registry.begin(key)

        index = file_index(edge_id, position)
        names = self._load_snapshot(directory, index)
        geometry = self.resolver.resolve(names, category=directory)
        layer = DisplayLayer(
            key=key,
            geometry=geometry,
            style=VARIANT_STYLES[variant],
            position=int(position),
        )

        installed = self.registry.install(
            key,
            generation,
            layer,
            evict=lambda existing, _layer: _is_interpolated(existing) and existing.edge_id == edge_id,
        )
        if not installed:
            return None
        logger.info(f"Edge {edge_id} variant {variant}: position {position} -> {directory}/{snapshot_name(index)}")
        return layer

    def _drop_all_layers(self) -> list[Hashable]:
        with self.registry.lock:
            self.registry.invalidate(_is_interpolated)
            return self.registry.remove_all(_is_interpolated)

    def switch_variant(self, variant: str) -> list[Hashable]:
        """Select ``variant`` for every edge; nothing is redrawn until a slider moves."""
        if variant not in VARIANTS:
            raise ValueError(f"Unknown variant {variant!r}; expected one of {', '.join(VARIANTS)}.")
        with self.registry.lock:
            removed = self._drop_all_layers()
            with self._state_lock:
                self.state.active_variant = variant
        return removed

    def clear(self) -> list[Hashable]:
        with self.registry.lock:
            removed = self._drop_all_layers()
            with self._state_lock:
                self.state = SliderState()
        return removed

    def displayed(self) -> list[DisplayLayer]:
        return [layer for key, layer in self.registry.items() if _is_interpolated(key)]
