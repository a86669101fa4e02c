"""Fixed table of the road edges that support discretized interpolation.

The maxima and directory names are survey facts about the precomputed
snapshot sets, not derived from any rule; keep them literal.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional

VARIANTS: tuple[str, ...] = ("1", "2")


@dataclass(slots=True, frozen=True)
class EdgeConfig:
    edge_id: str
    max_position: int
    directories: Mapping[str, str]

    def directory(self, variant: str) -> Optional[str]:
        return self.directories.get(variant)


def _edge(edge_id: str, max_position: int, green_dir: str, red_dir: str) -> EdgeConfig:
    return EdgeConfig(
        edge_id=edge_id,
        max_position=max_position,
        directories=MappingProxyType({"1": green_dir, "2": red_dir}),
    )


EDGE_TABLE: Mapping[str, EdgeConfig] = MappingProxyType(
    {
        config.edge_id: config
        for config in (
            _edge("194-195", 47, "194-195_green", "194-195_red"),
            _edge("25-195", 49, "25-195_green", "25-195_red"),
            _edge("120-121", 130, "120-121_green", "120-121_red"),
            _edge("121-136", 131, "121-136_green", "121-136_red"),
            _edge("57-58", 190, "57-58_green", "57-58_red"),
            _edge("58-246", 191, "58-246_green", "58-246_red"),
        )
    }
)


def max_for_edge(edge_id: str) -> int:
    return EDGE_TABLE[edge_id].max_position


def file_index(edge_id: str, position: float) -> int:
    """Snapshot number for a control position.

    Position 0 selects the highest-numbered snapshot (``max + 1``) and the
    maximum position selects snapshot 1.
    """
    return max_for_edge(edge_id) + 1 - math.floor(position)


def snapshot_name(index: int) -> str:
    return f"{index}.txt"
