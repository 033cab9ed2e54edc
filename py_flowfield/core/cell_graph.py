"""
Cell graph built from a Voronoi tessellation.

Each site becomes a WorldCell holding its polygon, the indices of the
cells across its edges and its attributes. Cells live in one flat list
owned by the graph; adjacency is stored as indices into that list, so the
cyclic neighbour relationship never turns into owning references.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Sequence

import structlog

from .geometry import Point, Site, distance, polygon_area, sort_by_angle, unique_points
from .tessellation import TessellationCell

logger = structlog.get_logger()


@dataclass
class CellAttributes:
    """Per-cell scalar attributes sampled from external fields."""
    elevation: float = 0.0


@dataclass(eq=False)
class WorldCell:
    """
    A graph vertex: one tessellation cell.

    Attributes:
        index: Dense position of the cell in the graph, equal to the site ID
        site: The cell's generating point
        boundary: Deduplicated polygon vertices sorted by angle to the site
        neighbor_ids: Indices of adjacent cells as reported by the tessellation
        attributes: Sampled attributes (elevation)
    """
    index: int
    site: Point
    boundary: List[Point] = field(default_factory=list)
    neighbor_ids: List[int] = field(default_factory=list)
    attributes: CellAttributes = field(default_factory=CellAttributes)

    @property
    def is_degenerate(self) -> bool:
        """Fewer than three distinct boundary vertices; not drawable."""
        return len(self.boundary) < 3

    @property
    def area(self) -> float:
        return abs(polygon_area(self.boundary))

    def __repr__(self) -> str:
        return f"WorldCell(index={self.index}, site=({self.site.x}, {self.site.y}))"


def build_boundary(tess_cell: TessellationCell) -> List[Point]:
    """Collect half-edge endpoints, drop repeats and sort them around the site."""
    endpoints = []
    for halfedge in tess_cell.halfedges:
        endpoints.append(halfedge.va)
        endpoints.append(halfedge.vb)
    return sort_by_angle(unique_points(endpoints), tess_cell.site)


class CellGraph:
    """Queryable graph with one WorldCell per site."""

    def __init__(self, cells: List[WorldCell]):
        for position, cell in enumerate(cells):
            if cell.index != position:
                raise ValueError(f"Cell at position {position} has index {cell.index}")
            for neighbor_id in cell.neighbor_ids:
                if not 0 <= neighbor_id < len(cells):
                    raise ValueError(f"Cell {cell.index} references unknown neighbor {neighbor_id}")

        self.cells = cells
        self.elevation_applied = False

    @classmethod
    def build(cls, sites: Sequence[Site], tessellation: Iterable[TessellationCell]) -> "CellGraph":
        """
        Wrap tessellation output into a cell graph.

        Args:
            sites: Sites with IDs forming the range 0..N-1
            tessellation: One TessellationCell per site, in any order

        Returns:
            CellGraph whose ``cells[i].index == i``
        """
        by_id: Dict[int, TessellationCell] = {}
        for tess_cell in tessellation:
            by_id[tess_cell.site_id] = tess_cell

        if set(by_id) != {s.id for s in sites} or set(by_id) != set(range(len(sites))):
            raise ValueError("Tessellation cells must match sites with IDs 0..N-1")

        cells = []
        for index in range(len(sites)):
            tess_cell = by_id[index]
            cells.append(WorldCell(
                index=index,
                site=tess_cell.site.point,
                boundary=build_boundary(tess_cell),
                neighbor_ids=list(tess_cell.neighbor_ids),
            ))

        graph = cls(cells)
        degenerate = sum(1 for c in cells if c.is_degenerate)
        logger.info("Cell graph built", cells=len(cells), degenerate=degenerate)
        return graph

    def __len__(self) -> int:
        return len(self.cells)

    def __getitem__(self, index: int) -> WorldCell:
        return self.cells[index]

    def __iter__(self):
        return iter(self.cells)

    def neighbors(self, cell: WorldCell) -> List[WorldCell]:
        """Resolve a cell's neighbor indices to cells."""
        return [self.cells[i] for i in cell.neighbor_ids]

    def nearest_cell(self, point) -> WorldCell:
        """Cell whose site is closest to ``point`` (linear scan)."""
        if not self.cells:
            raise ValueError("Cannot query an empty cell graph")
        return min(self.cells, key=lambda c: distance(point, c.site))

    def elevations(self) -> Dict[int, float]:
        return {c.index: c.attributes.elevation for c in self.cells}

    def apply_elevations(self, elevations: Mapping[int, float]) -> None:
        """
        Set every cell's elevation once.

        Elevations are fixed for the lifetime of the graph, so a second
        call raises RuntimeError.
        """
        if self.elevation_applied:
            raise RuntimeError("Elevation has already been applied to this graph")

        missing = [c.index for c in self.cells if c.index not in elevations]
        if missing:
            raise ValueError(f"Missing elevation for {len(missing)} cells")

        for cell in self.cells:
            cell.attributes.elevation = float(elevations[cell.index])
        self.elevation_applied = True


def build_cell_graph(sites: Sequence[Site], tessellation: Iterable[TessellationCell]) -> CellGraph:
    """Convenience wrapper around CellGraph.build."""
    return CellGraph.build(sites, tessellation)
