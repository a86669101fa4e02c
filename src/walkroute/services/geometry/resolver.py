"""Compose a route's geometry from its ordered segment references."""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Sequence

from ...config import settings
from ...models.domain import ComposedGeometry
from .fetcher import GeometryFetcher, parse_reference_list
from .store import ResourceMissing

logger = logging.getLogger(__name__)


def split_references(refs: str | Sequence[str]) -> list[str]:
    """Accept either the raw newline-delimited blob or an already split sequence."""
    if isinstance(refs, str):
        return parse_reference_list(refs)
    return [name.strip() for name in refs if name and name.strip()]


class SegmentResolver:
    """Fetches every referenced resource concurrently and concatenates the shapes.

    Fetches complete in any order; features are laid out in reference order.
    A reference that cannot be fetched or parsed is omitted and logged.
    """

    def __init__(
        self,
        fetcher: GeometryFetcher,
        category: str | None = None,
        max_parallel_fetches: int | None = None,
    ) -> None:
        self.fetcher = fetcher
        self.category = category or settings.route_category
        self.max_parallel_fetches = max_parallel_fetches or settings.max_parallel_fetches

    def _fetch_one(self, index: int, category: str, name: str) -> tuple[int, list[dict] | None]:
        try:
            return index, self.fetcher.fetch(category, name)
        except ResourceMissing as exc:
            logger.warning(f"Omitting segment {exc}")
            return index, None

    def resolve(self, refs: str | Sequence[str], category: str | None = None) -> ComposedGeometry:
        names = split_references(refs)
        if not names:
            return ComposedGeometry()
        category = category or self.category

        start_time = time.time()
        results: list[list[dict] | None] = [None] * len(names)
        workers = min(self.max_parallel_fetches, len(names))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [
                executor.submit(self._fetch_one, index, category, name)
                for index, name in enumerate(names)
            ]
            for future in as_completed(futures):
                index, features = future.result()
                results[index] = features

        features: list[dict] = []
        missing: list[str] = []
        for name, loaded in zip(names, results):
            if loaded is None:
                missing.append(name)
                continue
            features.extend(loaded)

        elapsed = time.time() - start_time
        if missing:
            logger.warning(
                f"Partial geometry for {category}: {len(missing)}/{len(names)} references missing "
                f"({', '.join(missing[:5])}{'...' if len(missing) > 5 else ''})"
            )
        logger.info(f"Resolved {len(names)} references into {len(features)} features in {elapsed:.2f}s")
        return ComposedGeometry(features=tuple(features), missing=tuple(missing))
