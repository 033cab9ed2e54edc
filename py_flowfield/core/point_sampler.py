"""
Poisson-disk point sampling.

Fills a rectangle with points no closer than a given spacing by throwing
darts around previously accepted points. The result is a blue-noise site
set: evenly spread, without the row/column artifacts of a jittered grid.
"""

import math
from collections import deque
from typing import Dict, List, Optional, Tuple

import structlog

from .alea_prng import AleaPRNG, new_seed
from .geometry import Point, distance

logger = structlog.get_logger()


class _SpacingGrid:
    """Bucket accepted points so spacing checks only scan nearby buckets."""

    def __init__(self, cell_size: float):
        self.cell_size = cell_size
        self.buckets: Dict[Tuple[int, int], List[Point]] = {}

    def _key(self, p: Point) -> Tuple[int, int]:
        return int(math.floor(p.x / self.cell_size)), int(math.floor(p.y / self.cell_size))

    def add(self, p: Point) -> None:
        self.buckets.setdefault(self._key(p), []).append(p)

    def has_neighbor_within(self, p: Point, radius: float) -> bool:
        """True if an accepted point lies closer than ``radius`` to ``p``."""
        gx, gy = self._key(p)
        for dx in (-1, 0, 1):
            for dy in (-1, 0, 1):
                for q in self.buckets.get((gx + dx, gy + dy), ()):
                    if distance(p, q) < radius:
                        return True
        return False


def sample_points(width: float, height: float, min_spacing: float,
                  attempts_per_point: int, seed: Optional[str] = None) -> List[Point]:
    """
    Generate a Poisson-disk point set over ``(0, width) x (0, height)``.

    A FIFO queue starts with the centre of the bounds. Each popped point
    spawns ``attempts_per_point`` candidates at a random angle and a random
    radius in [min_spacing, 2 * min_spacing). A candidate, rounded to integer
    coordinates, is kept when it lies strictly inside the bounds and no kept
    point is closer than ``min_spacing``. Kept points join the queue, and
    sampling stops once the queue drains.

    Args:
        width: Bounds width
        height: Bounds height
        min_spacing: Minimum distance between any two returned points
        attempts_per_point: Candidates tried around each queued point
        seed: Seed string for reproducibility; a random one is used if omitted

    Returns:
        Accepted points in acceptance order
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Bounds must be positive, got {width}x{height}")
    if min_spacing <= 0:
        raise ValueError(f"min_spacing must be positive, got {min_spacing}")
    if attempts_per_point < 0:
        raise ValueError(f"attempts_per_point must be non-negative, got {attempts_per_point}")

    if seed is None:
        seed = new_seed()
    prng = AleaPRNG(seed)

    logger.info("Sampling points", width=width, height=height,
                min_spacing=min_spacing, attempts=attempts_per_point, seed=seed)

    points: List[Point] = []
    grid = _SpacingGrid(min_spacing)
    queue = deque([Point(width / 2, height / 2)])

    while queue:
        origin = queue.popleft()

        for _ in range(attempts_per_point):
            radians = math.radians(prng.uniform(0, 360))
            radius = prng.uniform(min_spacing, min_spacing * 2)
            candidate = Point(
                float(round(origin.x + radius * math.cos(radians))),
                float(round(origin.y + radius * math.sin(radians))),
            )

            if not (0 < candidate.x < width and 0 < candidate.y < height):
                continue
            if grid.has_neighbor_within(candidate, min_spacing):
                continue

            points.append(candidate)
            grid.add(candidate)
            queue.append(candidate)

    logger.info("Points sampled", count=len(points), seed=seed, draws=prng.draws)
    return points
