"""Backends for the geometry resource store.

Resources are addressed as ``{category}/{name}``. Absence is an expected
outcome: not every segment reference has a precomputed geometry, so stores
raise :class:`ResourceMissing` and leave the decision to the caller.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Protocol

import httpx

from ...config import settings

logger = logging.getLogger(__name__)


class ResourceMissing(LookupError):
    """A geometry or reference-list resource could not be obtained."""

    def __init__(self, category: str, name: str, reason: str = "not found") -> None:
        super().__init__(f"{category}/{name}: {reason}")
        self.category = category
        self.name = name
        self.reason = reason


class GeometryStore(Protocol):
    def read_text(self, category: str, name: str) -> str:
        ...


class FileGeometryStore:
    """Reads resources from ``root/category/name`` on the local filesystem."""

    def __init__(self, root: Path | None = None) -> None:
        self.root = (root or settings.geometry_root).resolve()

    def resolve_path(self, category: str, name: str) -> Path:
        parts = [part for part in f"{category}/{name}".split("/") if part]
        path = self.root.joinpath(*parts).resolve()
        if path != self.root and self.root not in path.parents:
            raise PermissionError(f"Resource path escapes geometry root: {category}/{name}")
        return path

    def read_text(self, category: str, name: str) -> str:
        try:
            path = self.resolve_path(category, name)
        except PermissionError as exc:
            raise ResourceMissing(category, name, str(exc)) from exc
        if not path.is_file():
            raise ResourceMissing(category, name)
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise ResourceMissing(category, name, f"unreadable ({exc})") from exc


class HttpGeometryStore:
    """Fetches resources from a static file server.

    A 404 is final; timeouts, network errors and 5xx responses are retried
    with exponential backoff before giving up as a miss.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
    ) -> None:
        self.base_url = (base_url or settings.geometry_base_url or "").rstrip("/")
        if not self.base_url:
            raise ValueError("Geometry base URL is not configured.")
        self.timeout = timeout if timeout is not None else settings.fetch_timeout_seconds
        self.max_retries = max_retries if max_retries is not None else settings.fetch_max_retries
        self.backoff_seconds = backoff_seconds if backoff_seconds is not None else settings.fetch_backoff_seconds

    def _get_client(self) -> httpx.Client:
        # One client per call; fetches run on worker threads.
        return httpx.Client(timeout=httpx.Timeout(self.timeout, connect=min(self.timeout, 5.0)))

    def read_text(self, category: str, name: str) -> str:
        url = f"{self.base_url}/{category.strip('/')}/{name.lstrip('/')}"
        client = self._get_client()
        try:
            attempt = 0
            while True:
                try:
                    response = client.get(url)
                    if response.status_code == 404:
                        raise ResourceMissing(category, name)
                    response.raise_for_status()
                    return response.text
                except httpx.HTTPStatusError as exc:
                    if exc.response.status_code < 500:
                        raise ResourceMissing(category, name, f"HTTP {exc.response.status_code}") from exc
                    attempt += 1
                    if attempt > self.max_retries:
                        raise ResourceMissing(category, name, f"HTTP {exc.response.status_code}") from exc
                    time.sleep(self.backoff_seconds * attempt)
                except (httpx.TimeoutException, httpx.NetworkError) as exc:
                    attempt += 1
                    if attempt > self.max_retries:
                        raise ResourceMissing(category, name, f"unreachable ({exc})") from exc
                    wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                    logger.debug(f"Geometry fetch {url} failed, retrying in {wait_time:.1f}s (attempt {attempt}/{self.max_retries})")
                    time.sleep(wait_time)
        finally:
            client.close()


def build_store() -> GeometryStore:
    """Return the HTTP store when a base URL is configured, else the file store."""
    if settings.geometry_base_url:
        return HttpGeometryStore()
    return FileGeometryStore()
