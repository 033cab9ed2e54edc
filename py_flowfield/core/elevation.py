"""
Elevation sampling for cell graphs.

Elevation comes from an external scalar field (typically a decoded raster
image) sampled at each cell's site. Lookups are independent per cell, so
they fan out concurrently and are joined before the graph is updated.
Results are stored in an elevation cache keyed by the graph configuration
so identical graphs skip sampling on later runs.
"""

import asyncio
import hashlib
import json
from pathlib import Path
from typing import Dict, Optional, Protocol, Union

import numpy as np
import structlog
from pydantic import TypeAdapter, confloat

from .cell_graph import CellGraph

logger = structlog.get_logger()

ElevationMap = TypeAdapter(Dict[int, confloat(ge=0.0, le=1.0)])


class ScalarField(Protocol):
    """Read-only field returning a value in [0, 1] for normalized coordinates."""

    def sample(self, u: float, v: float) -> float:
        ...


def rgb_to_shade(pixel) -> float:
    """Convert an 8-bit grayscale, RGB or RGBA pixel to a shade in [0, 1]."""
    values = np.atleast_1d(np.asarray(pixel, dtype=float))
    if values.size >= 3:
        values = values[:3]
    return float(np.clip(values.mean() / 255.0, 0.0, 1.0))


class RasterScalarField:
    """
    Scalar field backed by a decoded raster.

    Integer rasters are read as 8-bit pixel values and converted with
    rgb_to_shade. Float rasters are taken as shades already and clipped
    to [0, 1].
    """

    def __init__(self, raster: np.ndarray, name: str = "raster"):
        raster = np.asarray(raster)
        if raster.ndim not in (2, 3) or raster.shape[0] == 0 or raster.shape[1] == 0:
            raise ValueError(f"Raster must be a non-empty 2D or 3D array, got shape {raster.shape}")
        self.raster = raster
        self.name = name

    @classmethod
    def load(cls, path: Union[str, Path]) -> "RasterScalarField":
        """
        Load a raster saved with numpy.save.

        The field name combines the resolved path with a digest of the pixel
        data, so same-named or rewritten rasters get distinct cache keys.
        """
        path = Path(path).resolve()
        raster = np.load(path)
        digest = hashlib.sha1(f"{raster.dtype}{raster.shape}".encode())
        digest.update(np.ascontiguousarray(raster).tobytes())
        return cls(raster, name=f"{path}@{digest.hexdigest()[:12]}")

    @property
    def height(self) -> int:
        return self.raster.shape[0]

    @property
    def width(self) -> int:
        return self.raster.shape[1]

    def sample(self, u: float, v: float) -> float:
        x = min(max(int(u * self.width), 0), self.width - 1)
        y = min(max(int(v * self.height), 0), self.height - 1)
        pixel = self.raster[y, x]

        if np.issubdtype(self.raster.dtype, np.floating):
            values = np.atleast_1d(pixel)
            if values.size >= 3:
                values = values[:3]
            return float(np.clip(np.mean(values), 0.0, 1.0))
        return rgb_to_shade(pixel)


class ConstantScalarField:
    """Field with the same value everywhere (flat terrain)."""

    def __init__(self, value: float = 0.0):
        if not 0.0 <= value <= 1.0:
            raise ValueError(f"Value must be in [0, 1], got {value}")
        self.value = value
        self.name = f"constant-{value}"

    def sample(self, u: float, v: float) -> float:
        return self.value


def decode_elevations(payload: str, graph: CellGraph) -> Dict[int, float]:
    """
    Parse a cached elevation payload.

    Raises:
        ValidationError: If the payload is not valid JSON or has values
            outside [0, 1]
        ValueError: If the payload does not cover every cell of the graph
    """
    elevations = ElevationMap.validate_json(payload)
    missing = [c.index for c in graph.cells if c.index not in elevations]
    if missing:
        raise ValueError(f"Cached elevations missing for {len(missing)} cells")
    return elevations


def encode_elevations(elevations: Dict[int, float]) -> str:
    return json.dumps({str(k): v for k, v in sorted(elevations.items())})


async def sample_elevations(graph: CellGraph, field: ScalarField, width: float, height: float,
                            max_concurrency: int = 64) -> Dict[int, float]:
    """
    Sample ``field`` at every cell site concurrently.

    Args:
        graph: Cell graph whose sites are sampled
        field: Scalar field to query
        width: Width of the area the sites were sampled in
        height: Height of the area the sites were sampled in
        max_concurrency: Maximum number of lookups in flight

    Returns:
        Mapping of cell index to elevation
    """
    semaphore = asyncio.Semaphore(max(1, max_concurrency))

    async def lookup(cell):
        async with semaphore:
            value = await asyncio.to_thread(field.sample, cell.site.x / width, cell.site.y / height)
        return cell.index, float(value)

    results = await asyncio.gather(*(lookup(c) for c in graph.cells))
    return dict(results)


async def populate_elevation(graph: CellGraph, field: ScalarField, width: float, height: float,
                             cache=None, cache_key: Optional[str] = None,
                             max_concurrency: int = 64) -> Dict[int, float]:
    """
    Fill in every cell's elevation, using the cache when possible.

    A cached payload that fails validation is deleted and the elevations are
    sampled afresh; the new values then replace the bad entry.

    Returns:
        The applied mapping of cell index to elevation
    """
    use_cache = cache is not None and cache_key is not None

    if use_cache:
        payload = await asyncio.to_thread(cache.get, cache_key)
        if payload is not None:
            try:
                elevations = decode_elevations(payload, graph)
            except ValueError as e:
                # pydantic ValidationError is a ValueError subclass
                logger.warning("Discarding malformed elevation cache entry",
                               key=cache_key, error=str(e))
                await asyncio.to_thread(cache.delete, cache_key)
            else:
                graph.apply_elevations(elevations)
                logger.info("Elevation loaded from cache", key=cache_key, cells=len(elevations))
                return elevations

    logger.info("Sampling elevation", cells=len(graph), max_concurrency=max_concurrency)
    elevations = await sample_elevations(graph, field, width, height, max_concurrency)
    graph.apply_elevations(elevations)

    if use_cache:
        await asyncio.to_thread(cache.set, cache_key, encode_elevations(elevations))
        logger.info("Elevation cached", key=cache_key, cells=len(elevations))

    return elevations


def apply_elevation(graph: CellGraph, field: ScalarField, width: float, height: float,
                    cache=None, cache_key: Optional[str] = None,
                    max_concurrency: int = 64) -> Dict[int, float]:
    """Synchronous wrapper around populate_elevation for use outside an event loop."""
    return asyncio.run(populate_elevation(graph, field, width, height, cache=cache,
                                          cache_key=cache_key, max_concurrency=max_concurrency))
