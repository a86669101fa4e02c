"""Route search orchestration: search, classify, compose and install tier layers."""

from __future__ import annotations

import logging
import threading
from typing import Hashable, Optional, Sequence

from ...models.domain import SINGLETON_TIERS, DisplayLayer, LayerStyle, RouteCandidate, Tier
from ..geometry.resolver import SegmentResolver
from ..layers.registry import LayerRegistry
from .classifier import Classification, classify
from .search_client import SearchClient

logger = logging.getLogger(__name__)

TIER_STYLES: dict[Tier, LayerStyle] = {
    Tier.BASELINE_1: LayerStyle(color="#2ed573", weight=8, opacity=0.8),
    Tier.BASELINE_2: LayerStyle(color="#3742fa", weight=8, opacity=0.8),
    Tier.BEST_ENUMERATED: LayerStyle(color="#ff4757", weight=8, opacity=0.8),
    Tier.ALL_ENUMERATED: LayerStyle(color="#ffd700", weight=6, opacity=0.7),
}


def _is_tier(key: Hashable, _layer: Optional[DisplayLayer] = None) -> bool:
    return isinstance(key, Tier)


class RouteDisplayService:
    """Holds the current classification and the tier layers derived from it."""

    def __init__(self, resolver: SegmentResolver, registry: LayerRegistry) -> None:
        self.resolver = resolver
        self.registry = registry
        self._classification: Optional[Classification] = None
        self._lock = threading.Lock()

    @property
    def classification(self) -> Optional[Classification]:
        with self._lock:
            return self._classification

    def search(
        self,
        weights: Sequence[float],
        start_node: int,
        end_node: int,
        walking_speed: float | None = None,
    ) -> list[DisplayLayer]:
        """Run the path search and display its classified routes.

        Raises UpstreamUnavailable when the search fails; the current display
        is left untouched in that case.
        """
        routes = SearchClient().search(weights, start_node, end_node, walking_speed)
        return self.display(routes)

    def _compose(self, tier: Tier, routes: Sequence[RouteCandidate]) -> DisplayLayer:
        refs: list[str] = []
        for route in routes:
            refs.extend(route.segment_refs)
        geometry = self.resolver.resolve(refs)
        return DisplayLayer(key=tier, geometry=geometry, style=TIER_STYLES[tier], routes=tuple(routes))

    def display(self, routes: Sequence[RouteCandidate]) -> list[DisplayLayer]:
        """Replace the classification and every tier layer with ones built from ``routes``."""
        classification = classify(routes)
        with self.registry.lock:
            generations = {tier: self.registry.begin(tier) for tier in Tier}
            self.registry.remove_all(_is_tier)
            with self._lock:
                self._classification = classification

        logger.info(
            f"Classified {len(routes)} routes: "
            f"{', '.join(tier.label for tier in SINGLETON_TIERS if classification.representative(tier))} "
            f"+ {len(classification.all_enumerated)} enumerated, {classification.discarded} duplicates dropped"
        )

        installed: list[DisplayLayer] = []
        for tier in SINGLETON_TIERS:
            route = classification.representative(tier)
            if route is None:
                continue
            layer = self._compose(tier, [route])
            if self.registry.install(tier, generations[tier], layer):
                installed.append(layer)
        return installed

    def show_all_enumerated(self) -> Optional[DisplayLayer]:
        """Draw every retained all-enumerated route on top of the tier layers."""
        with self.registry.lock:
            with self._lock:
                classification = self._classification
            if classification is None:
                raise ValueError("No search result to display; run a route search first.")
            if not classification.all_enumerated:
                raise ValueError("No all-enumerated routes in the current search result.")
            # a later display() bumps this stamp, so its routes win over these
            generation = self.registry.begin(Tier.ALL_ENUMERATED)

        layer = self._compose(Tier.ALL_ENUMERATED, classification.all_enumerated)
        if not self.registry.install(Tier.ALL_ENUMERATED, generation, layer):
            return None
        return layer

    def clear(self) -> list[Hashable]:
        with self.registry.lock:
            self.registry.invalidate(_is_tier)
            removed = self.registry.remove_all(_is_tier)
            with self._lock:
                self._classification = None
        return removed

    def displayed(self) -> list[DisplayLayer]:
        return [layer for key, layer in self.registry.items() if _is_tier(key)]
