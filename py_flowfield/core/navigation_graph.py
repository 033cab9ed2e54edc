"""
Navigation graph: sampled sites, their Voronoi cells and flow-field queries.

This is the entry point callers (a renderer, the HTTP API) work with. It
owns one CellGraph and remembers the most recent flow field so a path can
be pulled for any destination without propagating again.
"""

from typing import List, NamedTuple, Optional

import structlog

from .cell_graph import CellGraph, WorldCell, build_cell_graph
from .elevation import ScalarField, populate_elevation, apply_elevation
from .flow_field import EdgeCost, FlowField, flow_direction, propagate, reconstruct
from .geometry import Site
from .point_sampler import sample_points
from .tessellation import compute_tessellation

logger = structlog.get_logger()


class GraphConfig(NamedTuple):
    """Parameters that fully determine a generated cell graph."""
    width: float = 800
    height: float = 800
    min_spacing: float = 15
    attempts_per_point: int = 10
    seed: Optional[str] = None


def graph_cache_key(config: GraphConfig, field_name: str) -> Optional[str]:
    """
    Cache key for a graph's elevations.

    Unseeded graphs produce different sites on every run, so they get no key.
    """
    if config.seed is None:
        return None
    return (f"elevation:{config.width}x{config.height}:spacing={config.min_spacing}:"
            f"attempts={config.attempts_per_point}:seed={config.seed}:field={field_name}")


def build_sites(config: GraphConfig) -> List[Site]:
    points = sample_points(config.width, config.height, config.min_spacing,
                           config.attempts_per_point, config.seed)
    return [Site(i, p.x, p.y) for i, p in enumerate(points)]


class NavigationGraph:
    """
    Cell graph plus the flow field of the latest propagation.

    ``propagate`` is not re-entrant on one instance: starting a propagation
    from inside an edge-cost callback of another raises RuntimeError. For
    concurrent queries use ``flow_field.propagate`` directly, which returns
    an independent FlowField per call.
    """

    def __init__(self, graph: CellGraph, config: Optional[GraphConfig] = None):
        self.graph = graph
        self.config = config
        self.flow: Optional[FlowField] = None
        self._propagating = False

    @classmethod
    def build(cls, config: GraphConfig) -> "NavigationGraph":
        """Sample sites, tessellate them and wrap the result; elevation stays at 0."""
        sites = build_sites(config)
        tessellation = compute_tessellation(sites, config.width, config.height)
        return cls(build_cell_graph(sites, tessellation), config)

    @classmethod
    def generate(cls, config: GraphConfig, scalar_field: Optional[ScalarField] = None,
                 cache=None, max_concurrency: int = 64) -> "NavigationGraph":
        """
        Build a graph and populate its elevation.

        Runs its own event loop; inside async code use ``agenerate``.
        """
        nav = cls.build(config)
        if scalar_field is not None:
            apply_elevation(nav.graph, scalar_field, config.width, config.height,
                            cache=cache, cache_key=nav._cache_key(scalar_field),
                            max_concurrency=max_concurrency)
        return nav

    @classmethod
    async def agenerate(cls, config: GraphConfig, scalar_field: Optional[ScalarField] = None,
                        cache=None, max_concurrency: int = 64) -> "NavigationGraph":
        """Async variant of ``generate``."""
        nav = cls.build(config)
        if scalar_field is not None:
            await populate_elevation(nav.graph, scalar_field, config.width, config.height,
                                     cache=cache, cache_key=nav._cache_key(scalar_field),
                                     max_concurrency=max_concurrency)
        return nav

    def _cache_key(self, scalar_field) -> Optional[str]:
        name = getattr(scalar_field, "name", type(scalar_field).__name__)
        return graph_cache_key(self.config, name)

    @property
    def cells(self) -> List[WorldCell]:
        return self.graph.cells

    def nearest_cell(self, point) -> WorldCell:
        return self.graph.nearest_cell(point)

    def propagate(self, source: WorldCell, edge_cost: EdgeCost) -> FlowField:
        """Compute and keep the flow field from ``source``."""
        if self._propagating:
            raise RuntimeError("Propagation already in progress on this graph")

        self._propagating = True
        self.flow = None
        try:
            self.flow = propagate(self.graph, source, edge_cost)
        finally:
            self._propagating = False
        return self.flow

    def reconstruct(self, source: WorldCell, destination: WorldCell) -> List[WorldCell]:
        """Path from ``source`` to ``destination`` using the kept flow field."""
        if self.flow is None:
            raise RuntimeError("No flow field computed; call propagate() first")
        return reconstruct(self.graph, self.flow, source, destination)

    def flow_direction(self, cell: WorldCell) -> Optional[float]:
        if self.flow is None:
            return None
        return flow_direction(self.graph, self.flow, cell)

    def reset_flow(self) -> None:
        self.flow = None
