from .registry import LayerRegistry

__all__ = ["LayerRegistry"]
