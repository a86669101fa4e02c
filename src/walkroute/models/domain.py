"""Domain models for candidate routes and composed map geometry."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, NamedTuple, Optional


class Tier(IntEnum):
    """Display tier of a candidate route, valued by the search binary's tag."""

    BASELINE_2 = 0
    BASELINE_1 = 1
    BEST_ENUMERATED = 2
    ALL_ENUMERATED = 3

    @property
    def label(self) -> str:
        return self.name.lower()


SINGLETON_TIERS: tuple[Tier, ...] = (Tier.BASELINE_1, Tier.BASELINE_2, Tier.BEST_ENUMERATED)


@dataclass(slots=True, frozen=True)
class RouteCandidate:
    """One ranked route returned by the path search."""

    total_distance: float
    total_time: float
    total_wait_time: float
    segment_refs: tuple[str, ...]
    # None for a tag outside the known tiers; such a route still occupies its segment sequence
    tier: Optional[Tier]
    has_signal: Optional[bool] = None
    signal_edge_index: Optional[int] = None

    @property
    def distinctness_key(self) -> str:
        return "\n".join(self.segment_refs)


@dataclass(slots=True, frozen=True)
class LayerStyle:
    color: str
    weight: int = 8
    opacity: float = 0.8

    def as_dict(self) -> dict[str, Any]:
        return {"color": self.color, "weight": self.weight, "opacity": self.opacity}


@dataclass(slots=True, frozen=True)
class ComposedGeometry:
    """Ordered GeoJSON features making up one displayable route or segment."""

    features: tuple[dict, ...] = ()
    missing: tuple[str, ...] = field(default=())

    def __len__(self) -> int:
        return len(self.features)

    @property
    def is_empty(self) -> bool:
        return not self.features


class InterpolationKey(NamedTuple):
    edge_id: str
    variant: str


@dataclass(slots=True, frozen=True)
class DisplayLayer:
    """A composed geometry paired with its style, as handed to the renderer."""

    key: Tier | InterpolationKey
    geometry: ComposedGeometry
    style: LayerStyle
    routes: tuple[RouteCandidate, ...] = ()
    position: Optional[int] = None
