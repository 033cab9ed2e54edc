"""Tests for elevation sampling and caching."""

import asyncio
import json
import threading

import numpy as np
import pytest

from py_flowfield.core.elevation import (
    ConstantScalarField, RasterScalarField, apply_elevation, decode_elevations,
    encode_elevations, populate_elevation, rgb_to_shade
)
from py_flowfield.db.cache import InMemoryElevationCache


class CountingField:
    """Scalar field recording every lookup."""
    name = "counting"

    def __init__(self, value=0.5):
        self.value = value
        self.calls = 0
        self._lock = threading.Lock()

    def sample(self, u, v):
        with self._lock:
            self.calls += 1
        return self.value


class TrackingCache(InMemoryElevationCache):
    """In-memory cache that records deletions and writes."""

    def __init__(self, entries=None):
        super().__init__(entries)
        self.deleted = []
        self.writes = 0
        self.threads = set()

    def get(self, key):
        self.threads.add(threading.get_ident())
        return super().get(key)

    def set(self, key, payload):
        self.threads.add(threading.get_ident())
        self.writes += 1
        super().set(key, payload)

    def delete(self, key):
        self.threads.add(threading.get_ident())
        self.deleted.append(key)
        super().delete(key)


class TestShade:
    """Test pixel to shade conversion."""

    def test_rgb(self):
        assert rgb_to_shade([255, 255, 255]) == 1.0
        assert rgb_to_shade([0, 0, 0]) == 0.0
        assert rgb_to_shade([255, 0, 0]) == pytest.approx(1 / 3)

    def test_alpha_ignored(self):
        assert rgb_to_shade([51, 51, 51, 0]) == pytest.approx(0.2)

    def test_grayscale(self):
        assert rgb_to_shade(102) == pytest.approx(0.4)


class TestRasterScalarField:
    """Test raster sampling."""

    def test_grayscale_raster(self):
        raster = np.array([[0, 255], [128, 64]], dtype=np.uint8)
        field = RasterScalarField(raster)

        assert field.sample(0.1, 0.1) == 0.0
        assert field.sample(0.9, 0.1) == 1.0
        assert field.sample(0.1, 0.9) == pytest.approx(128 / 255)

    def test_rgb_raster(self):
        raster = np.zeros((4, 4, 3), dtype=np.uint8)
        raster[3, 3] = [30, 60, 90]
        field = RasterScalarField(raster)

        assert field.sample(0.99, 0.99) == pytest.approx(60 / 255)

    def test_float_raster_clipped(self):
        raster = np.array([[1.5, -0.5]])
        field = RasterScalarField(raster)

        assert field.sample(0.0, 0.0) == 1.0
        assert field.sample(0.9, 0.0) == 0.0

    def test_float_rgba_alpha_ignored(self):
        raster = np.array([[[0.0, 0.0, 0.0, 1.0], [0.3, 0.6, 0.9, 0.0]]])
        field = RasterScalarField(raster)

        assert field.sample(0.0, 0.0) == 0.0
        assert field.sample(0.9, 0.0) == pytest.approx(0.6)
        assert field.sample(0.0, 0.0) == RasterScalarField((raster * 255).astype(np.uint8)).sample(0.0, 0.0)

    def test_edge_coordinates_clamped(self):
        raster = np.arange(9, dtype=np.uint8).reshape(3, 3)
        field = RasterScalarField(raster)

        assert field.sample(1.0, 1.0) == pytest.approx(8 / 255)
        assert field.sample(-0.5, -0.5) == 0.0

    def test_load(self, tmp_path):
        path = tmp_path / "elevation.npy"
        np.save(path, np.full((2, 2), 255, dtype=np.uint8))

        field = RasterScalarField.load(path)

        assert field.name.startswith(str(path.resolve()) + "@")
        assert field.sample(0.5, 0.5) == 1.0

    def test_invalid_raster(self):
        with pytest.raises(ValueError):
            RasterScalarField(np.zeros(5))

    def test_constant_field_range(self):
        with pytest.raises(ValueError):
            ConstantScalarField(1.5)


class TestPayload:
    """Test cache payload encoding and validation."""

    def test_round_trip(self, graph_factory):
        graph = graph_factory([(0, 0), (1, 0)], {})
        payload = encode_elevations({0: 0.1, 1: 0.9})

        assert json.loads(payload) == {"0": 0.1, "1": 0.9}
        assert decode_elevations(payload, graph) == {0: 0.1, 1: 0.9}

    @pytest.mark.parametrize("payload", [
        "not json",
        "[0.1, 0.2]",
        '{"0": "high", "1": 0.5}',
        '{"0": 1.5, "1": 0.5}',
        '{"0": 0.5}',
    ])
    def test_malformed(self, graph_factory, payload):
        graph = graph_factory([(0, 0), (1, 0)], {})

        with pytest.raises(ValueError):
            decode_elevations(payload, graph)


class TestPopulate:
    """Test concurrent population with caching."""

    def test_every_cell_sampled_once(self, sampled_navigation_graph):
        graph = sampled_navigation_graph.graph
        field = CountingField(0.3)

        elevations = apply_elevation(graph, field, 200, 200)

        assert field.calls == len(graph)
        assert set(elevations) == {c.index for c in graph}
        assert all(c.attributes.elevation == 0.3 for c in graph)

    def test_normalized_coordinates(self, graph_factory):
        class EchoField:
            def sample(self, u, v):
                return u

        graph = graph_factory([(50, 10), (150, 90)], {})
        apply_elevation(graph, EchoField(), 200, 100)

        assert graph.elevations() == {0: 0.25, 1: 0.75}

    def test_results_cached(self, graph_factory):
        cache = TrackingCache()
        graph = graph_factory([(0, 0), (1, 0)], {})

        apply_elevation(graph, CountingField(0.4), 10, 10, cache=cache, cache_key="k")

        assert cache.writes == 1
        assert json.loads(cache.get("k")) == {"0": 0.4, "1": 0.4}

    def test_cache_hit_skips_lookups(self, graph_factory):
        cache = TrackingCache({"k": encode_elevations({0: 0.2, 1: 0.6})})
        graph = graph_factory([(0, 0), (1, 0)], {})
        field = CountingField()

        apply_elevation(graph, field, 10, 10, cache=cache, cache_key="k")

        assert field.calls == 0
        assert graph.elevations() == {0: 0.2, 1: 0.6}
        assert cache.writes == 0

    @pytest.mark.parametrize("payload", ["{broken", '{"0": 0.5}', '{"0": 2, "1": 0.1}'])
    def test_malformed_cache_discarded_once(self, graph_factory, payload):
        cache = TrackingCache({"k": payload})
        graph = graph_factory([(0, 0), (1, 0)], {})
        field = CountingField(0.7)

        apply_elevation(graph, field, 10, 10, cache=cache, cache_key="k")

        assert cache.deleted == ["k"]
        assert field.calls == 2
        assert cache.writes == 1
        assert decode_elevations(cache.get("k"), graph) == {0: 0.7, 1: 0.7}
        assert graph.elevations() == {0: 0.7, 1: 0.7}

    def test_cache_calls_run_off_event_loop(self, graph_factory):
        cache = TrackingCache({"k": "{broken"})
        graph = graph_factory([(0, 0), (1, 0)], {})

        apply_elevation(graph, CountingField(), 10, 10, cache=cache, cache_key="k")

        assert cache.deleted == ["k"]
        assert cache.writes == 1
        assert threading.get_ident() not in cache.threads

    def test_no_key_no_cache(self, graph_factory):
        cache = TrackingCache()
        graph = graph_factory([(0, 0)], {})

        apply_elevation(graph, CountingField(), 10, 10, cache=cache, cache_key=None)

        assert cache.entries == {}

    def test_async_population(self, graph_factory):
        graph = graph_factory([(0, 0), (5, 5), (9, 9)], {})
        field = CountingField(0.9)

        elevations = asyncio.run(populate_elevation(graph, field, 10, 10, max_concurrency=1))

        assert elevations == {0: 0.9, 1: 0.9, 2: 0.9}
        assert graph.elevation_applied
