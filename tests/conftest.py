"""Shared graph fixtures."""

import pytest

from py_flowfield.core.cell_graph import CellGraph, WorldCell
from py_flowfield.core.geometry import Point
from py_flowfield.core.navigation_graph import GraphConfig, NavigationGraph


def make_graph(positions, adjacency, elevations=None):
    """
    Build a CellGraph by hand.

    Args:
        positions: List of (x, y) site coordinates, one per cell
        adjacency: Dict of cell index -> list of neighbor indices
        elevations: Optional list of elevations per cell
    """
    cells = []
    for index, (x, y) in enumerate(positions):
        cell = WorldCell(index=index, site=Point(x, y),
                         neighbor_ids=list(adjacency.get(index, [])))
        if elevations is not None:
            cell.attributes.elevation = elevations[index]
        cells.append(cell)
    return CellGraph(cells)


@pytest.fixture
def graph_factory():
    """Factory building small hand-made graphs."""
    return make_graph


@pytest.fixture
def square_graph():
    """Four cells on a unit square, each adjacent to its two edge neighbors.

    Cell 2 is diagonally opposite cell 0.
    """
    return make_graph(
        [(0, 0), (1, 0), (1, 1), (0, 1)],
        {0: [1, 3], 1: [0, 2], 2: [1, 3], 3: [0, 2]},
    )


@pytest.fixture
def sampled_config():
    return GraphConfig(width=200, height=200, min_spacing=20, attempts_per_point=10, seed="test_seed")


@pytest.fixture
def sampled_navigation_graph(sampled_config):
    return NavigationGraph.build(sampled_config)
