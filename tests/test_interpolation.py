import threading
import time

import pytest

from walkroute.models.domain import ComposedGeometry, DisplayLayer, InterpolationKey, LayerStyle, Tier
from walkroute.services.geometry.fetcher import GeometryFetcher
from walkroute.services.geometry.resolver import SegmentResolver
from walkroute.services.interpolation.edges import EDGE_TABLE, file_index, max_for_edge
from walkroute.services.interpolation.engine import InterpolationEngine
from walkroute.services.layers.registry import LayerRegistry


def _engine(store) -> tuple[InterpolationEngine, LayerRegistry]:
    fetcher = GeometryFetcher(store)
    registry = LayerRegistry()
    return InterpolationEngine(fetcher, SegmentResolver(fetcher, max_parallel_fetches=4), registry), registry


def _add_snapshot(store, edge_id: str, variant: str, position: int, *names: str) -> str:
    directory = EDGE_TABLE[edge_id].directory(variant)
    index = file_index(edge_id, position)
    store.resources[f"{directory}/{index}.txt"] = "\n".join(names) + "\n"
    for name in names:
        if name.endswith(".geojson"):
            store.add_feature(directory, name)
    return directory


def _feature_names(layer) -> list[str]:
    return [feature["properties"]["name"] for feature in layer.geometry.features]


def test_edge_table_matches_fixed_maxima():
    assert sorted(config.max_position for config in EDGE_TABLE.values()) == [47, 49, 130, 131, 190, 191]
    for config in EDGE_TABLE.values():
        assert set(config.directories) == {"1", "2"}
        assert config.directory("1") != config.directory("2")


def test_file_index_inverts_position_for_every_edge():
    for edge_id in EDGE_TABLE:
        maximum = max_for_edge(edge_id)
        for position in range(maximum + 1):
            assert file_index(edge_id, position) + position == maximum + 1
        assert file_index(edge_id, 0) == maximum + 1
        assert file_index(edge_id, maximum) == 1


def test_file_index_floors_fractional_positions():
    assert file_index("194-195", 3.7) == 47 + 1 - 3


def test_set_position_loads_snapshot_list_and_filters_geojson(fake_store):
    directory = _add_snapshot(fake_store, "194-195", "1", 10, "s1.geojson", "readme.csv", "", "s2.geojson")
    engine, registry = _engine(fake_store)

    layer = engine.set_position("194-195", "1", 10)

    assert layer is not None
    assert f"{directory}/38.txt" in fake_store.calls
    assert _feature_names(layer) == ["s1.geojson", "s2.geojson"]
    assert registry.get(InterpolationKey("194-195", "1")) is layer
    assert engine.state.position("194-195", "1") == 10


def test_unknown_edge_is_a_no_op(fake_store):
    engine, registry = _engine(fake_store)

    assert engine.set_position("1-2", "1", 3) is None
    assert engine.set_position("194-195", "3", 3) is None
    assert len(registry) == 0
    assert fake_store.calls == []
    assert engine.state.positions == {}


def test_repeated_positions_leave_exactly_one_layer(fake_store):
    _add_snapshot(fake_store, "57-58", "2", 5, "p5.geojson")
    _add_snapshot(fake_store, "57-58", "2", 6, "p6.geojson")
    engine, registry = _engine(fake_store)

    engine.set_position("57-58", "2", 5)
    engine.set_position("57-58", "2", 6)

    layers = engine.displayed()
    assert len(layers) == 1
    assert layers[0].position == 6
    assert _feature_names(layers[0]) == ["p6.geojson"]


def test_stale_composition_does_not_overwrite_newer_one(fake_store):
    slow_dir = _add_snapshot(fake_store, "25-195", "1", 1, "slow.geojson")
    _add_snapshot(fake_store, "25-195", "1", 2, "fast.geojson")
    gate = threading.Event()
    fake_store.gates[f"{slow_dir}/{file_index('25-195', 1)}.txt"] = gate
    engine, registry = _engine(fake_store)

    results = {}
    worker = threading.Thread(target=lambda: results.setdefault("slow", engine.set_position("25-195", "1", 1)))
    worker.start()
    # the snapshot read happens after the generation stamp is taken
    slow_key = f"{slow_dir}/{file_index('25-195', 1)}.txt"
    for _ in range(200):
        if slow_key in fake_store.calls:
            break
        time.sleep(0.01)

    fast = engine.set_position("25-195", "1", 2)
    gate.set()
    worker.join(timeout=5)

    assert fast is not None
    assert results["slow"] is None
    assert [layer.position for layer in engine.displayed()] == [2]


def test_installing_one_variant_evicts_the_other_on_same_edge(fake_store):
    _add_snapshot(fake_store, "120-121", "1", 4, "green.geojson")
    _add_snapshot(fake_store, "120-121", "2", 4, "red.geojson")
    _add_snapshot(fake_store, "58-246", "1", 4, "other.geojson")
    engine, registry = _engine(fake_store)

    engine.set_position("58-246", "1", 4)
    engine.set_position("120-121", "1", 4)
    engine.set_position("120-121", "2", 4)

    keys = sorted(layer.key for layer in engine.displayed())
    assert keys == [InterpolationKey("120-121", "2"), InterpolationKey("58-246", "1")]


def test_switch_variant_removes_all_interpolated_layers_without_redrawing(fake_store):
    _add_snapshot(fake_store, "194-195", "1", 0, "a.geojson")
    _add_snapshot(fake_store, "121-136", "1", 0, "b.geojson")
    engine, registry = _engine(fake_store)
    tier_layer = DisplayLayer(key=Tier.BASELINE_1, geometry=ComposedGeometry(), style=LayerStyle(color="#2ed573"))
    registry.put(Tier.BASELINE_1, tier_layer)

    engine.set_position("194-195", "1", 0)
    engine.set_position("121-136", "1", 0)
    calls_before = len(fake_store.calls)

    removed = engine.switch_variant("2")

    assert sorted(removed) == [InterpolationKey("121-136", "1"), InterpolationKey("194-195", "1")]
    assert engine.displayed() == []
    assert engine.state.active_variant == "2"
    assert registry.get(Tier.BASELINE_1) is tier_layer
    assert len(fake_store.calls) == calls_before


def test_switch_variant_rejects_unknown_variant(fake_store):
    engine, _ = _engine(fake_store)

    with pytest.raises(ValueError):
        engine.switch_variant("green")


def test_missing_snapshot_replaces_previous_layer_with_empty_one(fake_store):
    _add_snapshot(fake_store, "194-195", "2", 1, "one.geojson")
    engine, registry = _engine(fake_store)

    engine.set_position("194-195", "2", 1)
    layer = engine.set_position("194-195", "2", 2)

    assert layer is not None
    assert layer.geometry.is_empty
    assert len(engine.displayed()) == 1


def test_clear_resets_positions_and_layers(fake_store):
    _add_snapshot(fake_store, "194-195", "1", 3, "x.geojson")
    engine, registry = _engine(fake_store)
    engine.set_position("194-195", "1", 3)
    engine.switch_variant("2")
    engine.set_position("194-195", "1", 3)

    engine.clear()

    assert engine.displayed() == []
    assert engine.state.positions == {}
    assert engine.state.active_variant == "1"


def test_clear_racing_a_slider_change_leaves_nothing_behind(fake_store, monkeypatch):
    directory = _add_snapshot(fake_store, "57-58", "1", 5, "late.geojson")
    gate = threading.Event()
    fake_store.gates[f"{directory}/{file_index('57-58', 5)}.txt"] = gate
    engine, registry = _engine(fake_store)
    original_begin = registry.begin
    worker = threading.Thread(target=lambda: (engine.clear(), gate.set()))

    def begin_with_competing_clear(key):
        # clear() arrives while the slider change is taking its stamp
        if worker.ident is None:
            worker.start()
            worker.join(timeout=0.2)
        return original_begin(key)

    monkeypatch.setattr(registry, "begin", begin_with_competing_clear)
    try:
        layer = engine.set_position("57-58", "1", 5)
    finally:
        gate.set()
        worker.join(timeout=5)

    assert layer is None
    assert engine.displayed() == []
    assert engine.state.positions == {}
