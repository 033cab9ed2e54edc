"""
Cost propagation and path reconstruction over a cell graph.

``propagate`` computes a flow field: for every cell reachable from a source,
the cheapest cumulative cost and the predecessor on a cheapest path.
``reconstruct`` walks those predecessors back from a destination.

The flow field is returned as a separate object rather than written onto
the cells, so several queries can run against one graph at the same time.
"""

import math
from collections import deque
from dataclasses import dataclass
from typing import Callable, List, Optional

import structlog

from .cell_graph import CellGraph, WorldCell
from .geometry import angle_between

logger = structlog.get_logger()

EdgeCost = Callable[[WorldCell, WorldCell], float]
RelaxObserver = Callable[[int, Optional[float], float], None]


@dataclass
class FlowField:
    """
    Result of one propagation run.

    Attributes:
        source: Index of the source cell
        costs: Cheapest cumulative cost per cell index; None when unreachable
        came_from: Predecessor index per cell; None for the source and unreachable cells
        relaxations: Number of cost updates performed
    """
    source: int
    costs: List[Optional[float]]
    came_from: List[Optional[int]]
    relaxations: int = 0

    @classmethod
    def empty(cls, source: int, size: int) -> "FlowField":
        return cls(source=source, costs=[None] * size, came_from=[None] * size)

    def cost(self, cell: WorldCell) -> Optional[float]:
        return self.costs[cell.index]

    def is_reachable(self, cell: WorldCell) -> bool:
        return self.costs[cell.index] is not None

    def reachable_count(self) -> int:
        return sum(1 for c in self.costs if c is not None)


def uniform_cost(cost: float = 1.0) -> EdgeCost:
    """Edge cost that ignores the cells and always returns ``cost``."""
    def calculate(a: WorldCell, b: WorldCell) -> float:
        return cost
    return calculate


def elevation_traversal_cost(scale: float = 50.0) -> EdgeCost:
    """
    Directional elevation cost: ``max(1, 1 + scale * (elev(b) - elev(a)))``.

    Climbing costs more than descending; every step costs at least 1.
    """
    def calculate(a: WorldCell, b: WorldCell) -> float:
        return max(1.0, 1.0 + (b.attributes.elevation - a.attributes.elevation) * scale)
    return calculate


def propagate(graph: CellGraph, source: WorldCell, edge_cost: EdgeCost,
              on_relax: Optional[RelaxObserver] = None) -> FlowField:
    """
    Compute the cheapest cost from ``source`` to every reachable cell.

    Uses FIFO label-correcting relaxation: a neighbour whose cost improves
    is queued again even if it is already waiting, so the final costs are
    the true minima for any non-negative, asymmetric edge costs.

    Args:
        graph: Cell graph to traverse
        source: Starting cell
        edge_cost: Cost of stepping from one cell to an adjacent cell
        on_relax: Optional observer called as ``(index, previous_cost, new_cost)``
            every time a cell's cost is set or lowered

    Returns:
        FlowField with per-cell costs and predecessors
    """
    if not 0 <= source.index < len(graph) or graph[source.index] is not source:
        raise ValueError(f"Source cell {source.index} does not belong to this graph")

    flow = FlowField.empty(source.index, len(graph))
    flow.costs[source.index] = 0.0
    queue = deque([source])

    while queue:
        current = queue.popleft()
        current_cost = flow.costs[current.index]

        for neighbor in graph.neighbors(current):
            step = edge_cost(current, neighbor)
            if math.isnan(step) or step < 0 or math.isinf(step):
                raise ValueError(
                    f"Edge cost from {current.index} to {neighbor.index} must be finite "
                    f"and non-negative, got {step}"
                )

            candidate = current_cost + step
            previous = flow.costs[neighbor.index]
            if previous is None or candidate < previous:
                flow.costs[neighbor.index] = candidate
                flow.came_from[neighbor.index] = current.index
                flow.relaxations += 1
                if on_relax is not None:
                    on_relax(neighbor.index, previous, candidate)
                queue.append(neighbor)

    logger.debug("Flow field computed", source=source.index,
                 reachable=flow.reachable_count(), relaxations=flow.relaxations)
    return flow


def reconstruct(graph: CellGraph, flow: FlowField, source: WorldCell,
                destination: WorldCell) -> List[WorldCell]:
    """
    Walk predecessors from ``destination`` back to ``source``.

    When the destination is unreachable the walk stops at the first cell
    without a predecessor, so the returned path does not start at the
    source. Callers check ``path[0] is source`` to detect that case.

    Returns:
        Cells in source-to-destination order
    """
    if flow.source != source.index:
        raise ValueError(
            f"Flow field was computed from cell {flow.source}, not {source.index}"
        )

    path: List[WorldCell] = []
    current = destination
    # Predecessor chains are acyclic; the bound only guards corrupted input
    for _ in range(len(graph) + 1):
        path.append(current)
        if current is source:
            break
        previous = flow.came_from[current.index]
        if previous is None:
            break
        current = graph[previous]

    path.reverse()
    return path


def path_cost(path: List[WorldCell], edge_cost: EdgeCost) -> float:
    """Sum of edge costs along consecutive cells of a path."""
    return sum(edge_cost(a, b) for a, b in zip(path, path[1:]))


def flow_direction(graph: CellGraph, flow: FlowField, cell: WorldCell) -> Optional[float]:
    """
    Angle in degrees from a cell's site towards its predecessor.

    None for the source and for unreachable cells.
    """
    previous = flow.came_from[cell.index]
    if previous is None:
        return None
    return angle_between(graph[previous].site, cell.site)
