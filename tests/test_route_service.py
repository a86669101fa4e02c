import threading
import time

import pytest

from walkroute.models.domain import InterpolationKey, RouteCandidate, Tier
from walkroute.services.geometry.fetcher import GeometryFetcher
from walkroute.services.geometry.resolver import SegmentResolver
from walkroute.services.layers.registry import LayerRegistry
from walkroute.services.routing import service as routing_service
from walkroute.services.routing.search_client import UpstreamUnavailable


def _route(refs: str, tier: Tier) -> RouteCandidate:
    return RouteCandidate(
        total_distance=500.0,
        total_time=6.25,
        total_wait_time=0.5,
        segment_refs=tuple(refs.split()),
        tier=tier,
    )


@pytest.fixture
def service(fake_store):
    for name in ("a", "b", "c", "d", "x", "y"):
        fake_store.add_feature("oomiya_line", f"{name}.geojson")
    fetcher = GeometryFetcher(fake_store)
    registry = LayerRegistry()
    return routing_service.RouteDisplayService(SegmentResolver(fetcher, category="oomiya_line"), registry)


def test_display_installs_one_layer_per_present_singleton_tier(service):
    routes = [
        _route("a.geojson b.geojson", Tier.BASELINE_2),
        _route("x.geojson y.geojson", Tier.ALL_ENUMERATED),
        _route("c.geojson", Tier.BEST_ENUMERATED),
        _route("x.geojson y.geojson", Tier.BEST_ENUMERATED),
    ]

    layers = service.display(routes)

    assert [layer.key for layer in layers] == [Tier.BASELINE_2, Tier.BEST_ENUMERATED]
    assert layers[0].style.color == "#3742fa"
    assert layers[1].style.color == "#ff4757"
    assert [f["properties"]["name"] for f in layers[0].geometry.features] == ["a.geojson", "b.geojson"]
    assert service.registry.get(Tier.BASELINE_1) is None
    assert service.registry.get(Tier.ALL_ENUMERATED) is None


def test_new_display_fully_replaces_previous_tiers_but_keeps_interpolation(service):
    service.display([_route("a.geojson", Tier.BASELINE_1), _route("b.geojson", Tier.BASELINE_2)])
    edge_key = InterpolationKey("194-195", "1")
    service.registry.put(edge_key, service.registry.get(Tier.BASELINE_1))

    service.display([_route("c.geojson", Tier.BEST_ENUMERATED)])

    assert {layer.key for layer in service.displayed()} == {Tier.BEST_ENUMERATED}
    assert edge_key in service.registry


def test_show_all_enumerated_draws_every_member_in_yellow(service):
    service.display(
        [
            _route("a.geojson", Tier.BASELINE_1),
            _route("x.geojson", Tier.ALL_ENUMERATED),
            _route("y.geojson d.geojson", Tier.ALL_ENUMERATED),
        ]
    )

    layer = service.show_all_enumerated()

    assert layer.style.color == "#ffd700"
    assert layer.style.weight == 6
    assert len(layer.routes) == 2
    assert [f["properties"]["name"] for f in layer.geometry.features] == ["x.geojson", "y.geojson", "d.geojson"]
    assert service.registry.get(Tier.BASELINE_1) is not None


def test_show_all_enumerated_requires_a_search(service):
    with pytest.raises(ValueError):
        service.show_all_enumerated()

    service.display([_route("a.geojson", Tier.BASELINE_1)])
    with pytest.raises(ValueError):
        service.show_all_enumerated()


def test_failed_search_leaves_display_untouched(service, monkeypatch):
    service.display([_route("a.geojson", Tier.BASELINE_1)])

    class FailingSearch:
        def search(self, *args, **kwargs):
            raise UpstreamUnavailable("yens_algorithm exited with status 1")

    monkeypatch.setattr(routing_service, "SearchClient", lambda: FailingSearch())

    with pytest.raises(UpstreamUnavailable):
        service.search([0] * 13, 1, 246)

    assert service.registry.get(Tier.BASELINE_1) is not None
    assert service.classification.representative(Tier.BASELINE_1) is not None


def test_search_feeds_display(service, monkeypatch):
    class DummySearch:
        def search(self, weights, start_node, end_node, walking_speed=None):
            assert (start_node, end_node) == (1, 246)
            return [_route("a.geojson", Tier.BASELINE_1), _route("a.geojson", Tier.BASELINE_2)]

    monkeypatch.setattr(routing_service, "SearchClient", lambda: DummySearch())

    layers = service.search([0] * 13, 1, 246)

    assert [layer.key for layer in layers] == [Tier.BASELINE_1]
    assert service.classification.discarded == 1


def test_clear_removes_tier_layers(service):
    service.display([_route("a.geojson", Tier.BASELINE_1)])

    removed = service.clear()

    assert removed == [Tier.BASELINE_1]
    assert service.classification is None
    assert service.displayed() == []


def _wait_for_call(fake_store, key: str, timeout: float = 5.0) -> None:
    deadline = time.monotonic() + timeout
    while key not in fake_store.calls:
        assert time.monotonic() < deadline, f"{key} was never fetched"
        time.sleep(0.01)


def test_slow_display_is_discarded_when_a_newer_display_lands_first(service, fake_store):
    fake_store.add_feature("oomiya_line", "old.geojson")
    gate = threading.Event()
    fake_store.gates["oomiya_line/old.geojson"] = gate
    results = {}

    worker = threading.Thread(
        target=lambda: results.setdefault("old", service.display([_route("old.geojson", Tier.BASELINE_1)]))
    )
    worker.start()
    try:
        _wait_for_call(fake_store, "oomiya_line/old.geojson")
        newer = service.display([_route("b.geojson", Tier.BASELINE_2)])
    finally:
        gate.set()
        worker.join(timeout=5)

    assert [layer.key for layer in newer] == [Tier.BASELINE_2]
    assert results["old"] == []
    assert service.registry.keys() == [Tier.BASELINE_2]
    assert [route.segment_refs for route in service.classification.retained()] == [("b.geojson",)]


def test_show_all_enumerated_loses_to_a_display_that_lands_after_it_starts(service, fake_store, monkeypatch):
    fake_store.add_feature("oomiya_line", "old.geojson")
    fake_store.add_feature("oomiya_line", "new.geojson")
    service.display([_route("old.geojson", Tier.ALL_ENUMERATED)])

    gate = threading.Event()
    fake_store.gates["oomiya_line/old.geojson"] = gate
    registry = service.registry
    original_begin = registry.begin
    worker = threading.Thread(
        target=lambda: (service.display([_route("new.geojson", Tier.BASELINE_1)]), gate.set())
    )

    def begin_with_competing_display(key):
        # the competing display runs while show_all_enumerated is taking its stamp
        if key is Tier.ALL_ENUMERATED and worker.ident is None:
            worker.start()
            worker.join(timeout=0.2)
        return original_begin(key)

    monkeypatch.setattr(registry, "begin", begin_with_competing_display)
    try:
        layer = service.show_all_enumerated()
    finally:
        gate.set()
        worker.join(timeout=5)

    assert layer is None
    assert Tier.ALL_ENUMERATED not in registry
    assert registry.keys() == [Tier.BASELINE_1]
    assert service.classification.all_enumerated == ()
