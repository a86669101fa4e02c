from .edges import EDGE_TABLE, VARIANTS, EdgeConfig, file_index, max_for_edge
from .engine import InterpolationEngine, SliderState

__all__ = [
    "EDGE_TABLE",
    "VARIANTS",
    "EdgeConfig",
    "file_index",
    "max_for_edge",
    "InterpolationEngine",
    "SliderState",
]
