"""Planar geometry helpers shared by the sampler, tessellation and cell graph."""

import math
from typing import Iterable, List, NamedTuple

# Coordinates closer than this are treated as the same vertex
POINT_EPSILON = 1e-6


class Point(NamedTuple):
    """A location on the plane."""
    x: float
    y: float


class Site(NamedTuple):
    """A sampled location with a stable integer identity."""
    id: int
    x: float
    y: float

    @property
    def point(self) -> Point:
        return Point(self.x, self.y)


def distance(a, b) -> float:
    """Euclidean distance between two objects exposing ``x`` and ``y``."""
    return math.hypot(a.x - b.x, a.y - b.y)


def angle_between(a, b) -> float:
    """
    Angle in degrees of the vector from ``b`` to ``a``.

    Returns a value in (-180, 180], measured from the positive x axis.
    """
    return math.degrees(math.atan2(a.y - b.y, a.x - b.x))


def compare_points(a, b, epsilon: float = POINT_EPSILON) -> bool:
    """Check whether two points coincide within ``epsilon``."""
    return abs(a.x - b.x) <= epsilon and abs(a.y - b.y) <= epsilon


def unique_points(points: Iterable[Point], epsilon: float = POINT_EPSILON) -> List[Point]:
    """Drop repeated vertices, keeping the first occurrence of each."""
    result: List[Point] = []
    for p in points:
        if not any(compare_points(p, q, epsilon) for q in result):
            result.append(p)
    return result


def sort_by_angle(points: Iterable[Point], center) -> List[Point]:
    """
    Order points counter-clockwise around ``center``.

    Ties on angle are broken by x then y so the ordering is stable.
    """
    return sorted(points, key=lambda p: (angle_between(p, center), p.x, p.y))


def polygon_area(vertices: List[Point]) -> float:
    """Signed area of a polygon (shoelace formula), positive when counter-clockwise."""
    n = len(vertices)
    if n < 3:
        return 0.0

    area = 0.0
    for i in range(n):
        j = (i + 1) % n
        area += vertices[i].x * vertices[j].y - vertices[j].x * vertices[i].y
    return area * 0.5
