"""Tests for the HTTP query API."""

import pytest
from fastapi.testclient import TestClient

from py_flowfield.api.main import app, get_navigation_graph
from py_flowfield.core import GraphConfig, NavigationGraph
from py_flowfield.core.cell_graph import CellGraph, WorldCell
from py_flowfield.core.elevation import apply_elevation
from py_flowfield.core.geometry import Point


class SlopeField:
    name = "slope"

    def sample(self, u, v):
        return (u + v) / 2


@pytest.fixture(scope="module")
def navigation_graph():
    config = GraphConfig(width=200, height=200, min_spacing=20, attempts_per_point=10, seed="api")
    nav = NavigationGraph.build(config)
    apply_elevation(nav.graph, SlopeField(), config.width, config.height)
    return nav


@pytest.fixture
def client(navigation_graph):
    app.dependency_overrides[get_navigation_graph] = lambda: navigation_graph
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestCells:
    """Test the cell endpoints."""

    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["status"] == "running"

    def test_health(self, client, navigation_graph):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["cells"] == len(navigation_graph.cells)

    def test_list_cells(self, client, navigation_graph):
        response = client.get("/cells")

        assert response.status_code == 200
        data = response.json()
        assert len(data) == len(navigation_graph.cells)

        cell = data[0]
        required_fields = ["index", "site", "boundary", "neighbors", "elevation", "area", "degenerate"]
        for field in required_fields:
            assert field in cell
        assert cell["index"] == 0
        assert cell["neighbors"] == navigation_graph.cells[0].neighbor_ids

    def test_get_cell(self, client, navigation_graph):
        response = client.get("/cells/3")

        assert response.status_code == 200
        assert response.json()["site"] == {
            "x": navigation_graph.cells[3].site.x,
            "y": navigation_graph.cells[3].site.y,
        }

    def test_get_missing_cell(self, client):
        assert client.get("/cells/99999").status_code == 404

    def test_nearest(self, client, navigation_graph):
        target = navigation_graph.cells[4]
        response = client.get("/cells/nearest", params={"x": target.site.x + 1, "y": target.site.y - 1})

        assert response.status_code == 200
        assert response.json()["index"] == 4


class TestFlowAndPath:
    """Test the flow field and path endpoints."""

    def test_flow(self, client, navigation_graph):
        response = client.post("/flow", json={"source": 0})

        assert response.status_code == 200
        data = response.json()
        assert data["source"] == 0
        assert data["costs"][0] == 0
        assert data["came_from"][0] is None
        assert data["directions"][0] is None
        assert data["reachable"] == len(navigation_graph.cells)
        assert all(c is not None for c in data["costs"])

    def test_flow_unknown_source(self, client):
        assert client.post("/flow", json={"source": 99999}).status_code == 404

    def test_path(self, client, navigation_graph):
        last = len(navigation_graph.cells) - 1
        response = client.get("/path", params={"source": 0, "destination": last})

        assert response.status_code == 200
        data = response.json()
        assert data["reachable"] is True
        assert data["cells"][0] == 0
        assert data["cells"][-1] == last
        assert len(data["points"]) == len(data["cells"])

        flow = client.post("/flow", json={"source": 0}).json()
        assert data["cost"] == pytest.approx(flow["costs"][last])

    def test_path_to_self(self, client):
        data = client.get("/path", params={"source": 2, "destination": 2}).json()

        assert data["cells"] == [2]
        assert data["cost"] == 0

    def test_path_scale_changes_cost(self, client):
        params = {"source": 0, "destination": 5}
        flat = client.get("/path", params={**params, "elevation_scale": 0}).json()
        steep = client.get("/path", params={**params, "elevation_scale": 200}).json()

        assert flat["cost"] == len(flat["cells"]) - 1
        assert steep["cost"] >= flat["cost"]


class TestUnreachable:
    """Test path queries on a disconnected graph."""

    def test_unreachable_path(self):
        cells = [WorldCell(index=i, site=Point(10 * i, 0)) for i in range(3)]
        cells[0].neighbor_ids = [1]
        cells[1].neighbor_ids = [0]
        nav = NavigationGraph(CellGraph(cells))

        app.dependency_overrides[get_navigation_graph] = lambda: nav
        try:
            data = TestClient(app).get("/path", params={"source": 0, "destination": 2}).json()
        finally:
            app.dependency_overrides.clear()

        assert data["reachable"] is False
        assert data["cells"] == [2]
        assert data["cost"] is None


def test_graph_not_ready():
    """Without a built graph the API reports unavailability."""
    response = TestClient(app).get("/cells")

    assert response.status_code == 503
