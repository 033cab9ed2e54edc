"""
Voronoi tessellation adapter.

Wraps scipy.spatial.Voronoi and converts its ridge-centric output into the
per-site structure the cell graph consumes: for each site, the directed
half-edges bounding its cell and the IDs of the sites across those edges.

Cells are clipped to the bounding box by reflecting every site across the
four box edges before running Qhull. Points inside the box are always closer
to a real site than to any reflection, so each real site's region is exactly
its Voronoi cell intersected with the box, and no region is unbounded.
"""

from dataclasses import dataclass, field
from typing import List, Sequence

import numpy as np
import structlog
from scipy.spatial import Voronoi

from .geometry import Point, Site, angle_between

logger = structlog.get_logger()


@dataclass(frozen=True)
class HalfEdge:
    """A cell boundary edge, directed counter-clockwise around ``site_id``."""
    site_id: int
    va: Point
    vb: Point

    @property
    def midpoint(self) -> Point:
        return Point((self.va.x + self.vb.x) / 2, (self.va.y + self.vb.y) / 2)


@dataclass
class TessellationCell:
    """Tessellation output for one site."""
    site: Site
    halfedges: List[HalfEdge] = field(default_factory=list)
    neighbor_ids: List[int] = field(default_factory=list)

    @property
    def site_id(self) -> int:
        return self.site.id


def mirror_sites(coords: np.ndarray, width: float, height: float) -> np.ndarray:
    """
    Reflect points across the four edges of the bounding box.

    Args:
        coords: Array of [x, y] site coordinates
        width: Box width
        height: Box height

    Returns:
        Array of 4 * len(coords) reflected points (left, right, top, bottom)
    """
    x = coords[:, 0]
    y = coords[:, 1]
    left = np.column_stack([-x, y])
    right = np.column_stack([2 * width - x, y])
    top = np.column_stack([x, -y])
    bottom = np.column_stack([x, 2 * height - y])
    return np.vstack([left, right, top, bottom])


def _oriented_halfedge(site: Site, va: Point, vb: Point) -> HalfEdge:
    """Direct an edge so the site lies on its left."""
    cross = (va.x - site.x) * (vb.y - site.y) - (va.y - site.y) * (vb.x - site.x)
    if cross < 0:
        va, vb = vb, va
    return HalfEdge(site.id, va, vb)


def compute_tessellation(sites: Sequence[Site], width: float, height: float) -> List[TessellationCell]:
    """
    Partition the bounding box into one Voronoi cell per site.

    Args:
        sites: Sites with dense IDs; coordinates must lie inside the box
        width: Box width
        height: Box height

    Returns:
        One TessellationCell per site, in the order of ``sites``
    """
    if not sites:
        return []

    coords = np.array([[s.x, s.y] for s in sites], dtype=float)
    if len({(s.x, s.y) for s in sites}) != len(sites):
        raise ValueError("Sites must have distinct coordinates")
    if not (np.all((coords[:, 0] > 0) & (coords[:, 0] < width))
            and np.all((coords[:, 1] > 0) & (coords[:, 1] < height))):
        raise ValueError("Sites must lie strictly inside the bounding box")

    n_sites = len(sites)
    all_points = np.vstack([coords, mirror_sites(coords, width, height)])

    logger.info("Computing Voronoi tessellation", sites=n_sites, width=width, height=height)
    vor = Voronoi(all_points)

    # Clamp vertices that land a hair outside the box through rounding
    vertices = vor.vertices.copy()
    vertices[:, 0] = np.clip(vertices[:, 0], 0, width)
    vertices[:, 1] = np.clip(vertices[:, 1], 0, height)

    cells = [TessellationCell(site=s) for s in sites]

    for (p1, p2), ridge_vertices in zip(vor.ridge_points, vor.ridge_vertices):
        if p1 >= n_sites and p2 >= n_sites:
            continue
        if -1 in ridge_vertices:  # Only reflection-reflection ridges are infinite
            continue

        va = Point(*map(float, vertices[ridge_vertices[0]]))
        vb = Point(*map(float, vertices[ridge_vertices[1]]))

        for own, other in ((p1, p2), (p2, p1)):
            if own >= n_sites:
                continue
            cells[own].halfedges.append(_oriented_halfedge(sites[own], va, vb))
            if other < n_sites:
                cells[own].neighbor_ids.append(sites[other].id)

    for cell in cells:
        cell.halfedges.sort(key=lambda h: angle_between(h.midpoint, cell.site))
        cell.neighbor_ids = sorted(set(cell.neighbor_ids))

    logger.info("Voronoi tessellation computed",
                vertices=len(vor.vertices), ridges=len(vor.ridge_points))
    return cells
