"""Keyed store of the layers currently handed to the renderer."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Hashable, Iterator

from ...models.domain import DisplayLayer

logger = logging.getLogger(__name__)

KeyPredicate = Callable[[Hashable, DisplayLayer], bool]


class LayerRegistry:
    """Maps a stable key to the displayed layer.

    The registry does not deduplicate by itself: callers remove what must go
    before they ``put``. Compositions run outside the lock, so each key carries
    a generation stamp; a composition installs only if its stamp is still the
    latest one issued for that key.
    """

    def __init__(self) -> None:
        self._layers: dict[Hashable, DisplayLayer] = {}
        self._generations: dict[Hashable, int] = {}
        self._lock = threading.RLock()

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    def put(self, key: Hashable, layer: DisplayLayer) -> None:
        with self._lock:
            self._layers[key] = layer

    def get(self, key: Hashable) -> DisplayLayer | None:
        with self._lock:
            return self._layers.get(key)

    def remove_all(self, predicate: KeyPredicate) -> list[Hashable]:
        with self._lock:
            doomed = [key for key, layer in self._layers.items() if predicate(key, layer)]
            for key in doomed:
                del self._layers[key]
        return doomed

    def begin(self, key: Hashable) -> int:
        """Issue a new generation stamp for ``key``, superseding any in flight."""
        with self._lock:
            generation = self._generations.get(key, 0) + 1
            self._generations[key] = generation
            return generation

    def invalidate(self, predicate: Callable[[Hashable], bool]) -> None:
        """Bump the stamp of every matching key so in-flight work is discarded."""
        with self._lock:
            for key in list(self._generations):
                if predicate(key):
                    self._generations[key] += 1

    def is_current(self, key: Hashable, generation: int) -> bool:
        with self._lock:
            return self._generations.get(key, 0) == generation

    def install(
        self,
        key: Hashable,
        generation: int,
        layer: DisplayLayer,
        evict: KeyPredicate | None = None,
    ) -> bool:
        """Remove whatever ``evict`` matches (and ``key`` itself), then put ``layer``.

        Returns False without touching the registry when ``generation`` has
        been superseded.
        """
        with self._lock:
            if not self.is_current(key, generation):
                logger.debug(f"Discarding stale layer for {key!r} (generation {generation})")
                return False
            self.remove_all(lambda existing, _layer: existing == key or (evict is not None and evict(existing, _layer)))
            self._layers[key] = layer
            return True

    def items(self) -> list[tuple[Hashable, DisplayLayer]]:
        with self._lock:
            return list(self._layers.items())

    def keys(self) -> list[Hashable]:
        with self._lock:
            return list(self._layers)

    def __iter__(self) -> Iterator[DisplayLayer]:
        with self._lock:
            return iter(list(self._layers.values()))

    def __len__(self) -> int:
        with self._lock:
            return len(self._layers)

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._layers
