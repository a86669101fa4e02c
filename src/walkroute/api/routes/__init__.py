"""Route group exports."""

from . import health, interpolation, routes, static

__all__ = ["routes", "interpolation", "health", "static"]
