import json
import threading
import time
from pathlib import Path

import pytest

from walkroute.services.geometry.store import ResourceMissing


def line_feature(name: str, x: float = 139.64, y: float = 35.95) -> dict:
    return {
        "type": "Feature",
        "geometry": {"type": "LineString", "coordinates": [[x, y], [x + 0.001, y + 0.001]]},
        "properties": {"name": name},
    }


class FakeStore:
    """In-memory store; ``delays`` holds per-name sleep seconds, ``gates`` per-name events to wait on."""

    def __init__(self, resources: dict[str, str] | None = None) -> None:
        self.resources = dict(resources or {})
        self.delays: dict[str, float] = {}
        self.gates: dict[str, threading.Event] = {}
        self.calls: list[str] = []
        self._lock = threading.Lock()

    def add_feature(self, category: str, name: str) -> None:
        self.resources[f"{category}/{name}"] = json.dumps(line_feature(name))

    def read_text(self, category: str, name: str) -> str:
        key = f"{category}/{name}"
        with self._lock:
            self.calls.append(key)
        gate = self.gates.get(key)
        if gate is not None:
            gate.wait(timeout=5)
        delay = self.delays.get(key)
        if delay:
            time.sleep(delay)
        if key not in self.resources:
            raise ResourceMissing(category, name)
        return self.resources[key]


@pytest.fixture
def fake_store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def feature_factory():
    return line_feature


@pytest.fixture
def geometry_root(tmp_path: Path) -> Path:
    root = tmp_path / "geometry"
    root.mkdir()
    return root
