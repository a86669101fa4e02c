"""Assign ranked candidate routes to display tiers.

A single ordered pass with one shared seen-set: a route whose segment
sequence was already seen under *any* tier is dropped, even if it would
otherwise have become the representative of its own tier.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional, Sequence

from ...models.domain import SINGLETON_TIERS, RouteCandidate, Tier


@dataclass(slots=True, frozen=True)
class Classification:
    representatives: Mapping[Tier, RouteCandidate]
    all_enumerated: tuple[RouteCandidate, ...]
    total: int = 0
    discarded: int = 0

    def representative(self, tier: Tier) -> Optional[RouteCandidate]:
        return self.representatives.get(tier)

    def routes_for(self, tier: Tier) -> tuple[RouteCandidate, ...]:
        if tier is Tier.ALL_ENUMERATED:
            return self.all_enumerated
        route = self.representatives.get(tier)
        return (route,) if route is not None else ()

    def retained(self) -> list[RouteCandidate]:
        ordered = [self.representatives[tier] for tier in SINGLETON_TIERS if tier in self.representatives]
        return ordered + list(self.all_enumerated)


def classify(routes: Sequence[RouteCandidate]) -> Classification:
    seen: set[str] = set()
    representatives: dict[Tier, RouteCandidate] = {}
    all_enumerated: list[RouteCandidate] = []
    discarded = 0

    for route in routes:
        key = route.distinctness_key
        if key in seen:
            discarded += 1
            continue
        seen.add(key)

        if route.tier is None:
            continue
        if route.tier is Tier.ALL_ENUMERATED:
            all_enumerated.append(route)
        elif route.tier not in representatives:
            representatives[route.tier] = route

    return Classification(
        representatives=MappingProxyType(representatives),
        all_enumerated=tuple(all_enumerated),
        total=len(routes),
        discarded=discarded,
    )
