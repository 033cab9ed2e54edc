"""FastAPI main application."""

from typing import List, Optional

import structlog
from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from ..config import configure_logging, settings
from ..core.cell_graph import WorldCell
from ..core.elevation import ConstantScalarField, RasterScalarField
from ..core.flow_field import (elevation_traversal_cost, flow_direction, path_cost,
                               propagate, reconstruct)
from ..core.geometry import Point
from ..core.navigation_graph import GraphConfig, NavigationGraph
from ..db.cache import SqlElevationCache
from ..db.connection import db

configure_logging(settings.log_level, settings.log_format)

logger = structlog.get_logger()

# Initialize FastAPI app
app = FastAPI(
    title="Flow Field Navigation API",
    description="Voronoi navigation graph with elevation-aware flow fields",
    version="0.1.0"
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_navigation_graph: Optional[NavigationGraph] = None


# Request/Response models
class PointModel(BaseModel):
    x: float
    y: float


class CellResponse(BaseModel):
    """One cell of the navigation graph."""

    index: int
    site: PointModel
    boundary: List[PointModel]
    neighbors: List[int]
    elevation: float
    area: float
    degenerate: bool


class FlowRequest(BaseModel):
    """Request to compute a flow field."""

    source: int = Field(..., ge=0, description="Index of the source cell")
    elevation_scale: Optional[float] = Field(None, description="Climb penalty; defaults to settings")


class FlowResponse(BaseModel):
    """Per-cell cheapest costs and predecessors from one source."""

    source: int
    costs: List[Optional[float]]
    came_from: List[Optional[int]]
    directions: List[Optional[float]]
    reachable: int
    relaxations: int


class PathResponse(BaseModel):
    """Cheapest path between two cells."""

    source: int
    destination: int
    cells: List[int]
    points: List[PointModel]
    reachable: bool
    cost: Optional[float]


def cell_to_response(cell: WorldCell) -> CellResponse:
    return CellResponse(
        index=cell.index,
        site=PointModel(x=cell.site.x, y=cell.site.y),
        boundary=[PointModel(x=p.x, y=p.y) for p in cell.boundary],
        neighbors=list(cell.neighbor_ids),
        elevation=cell.attributes.elevation,
        area=cell.area,
        degenerate=cell.is_degenerate,
    )


def get_navigation_graph() -> NavigationGraph:
    """Dependency providing the shared navigation graph."""
    if _navigation_graph is None:
        raise HTTPException(status_code=503, detail="Navigation graph not ready")
    return _navigation_graph


def get_cell(nav: NavigationGraph, index: int) -> WorldCell:
    if not 0 <= index < len(nav.cells):
        raise HTTPException(status_code=404, detail=f"Cell {index} not found")
    return nav.cells[index]


def graph_config_from_settings() -> GraphConfig:
    return GraphConfig(
        width=settings.map_width,
        height=settings.map_height,
        min_spacing=settings.min_spacing,
        attempts_per_point=settings.attempts_per_point,
        seed=settings.seed,
    )


# Event handlers
@app.on_event("startup")
async def startup_event():
    """Build the navigation graph on startup."""
    global _navigation_graph

    logger.info("Starting Flow Field Navigation API")

    if settings.elevation_raster_path:
        scalar_field = RasterScalarField.load(settings.elevation_raster_path)
    else:
        scalar_field = ConstantScalarField(0.0)

    cache = None
    if settings.cache_enabled:
        db.initialize()
        cache = SqlElevationCache(db)

    _navigation_graph = await NavigationGraph.agenerate(
        graph_config_from_settings(), scalar_field, cache=cache,
        max_concurrency=settings.max_concurrent_lookups,
    )
    logger.info("API startup complete", cells=len(_navigation_graph.cells))


@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on shutdown."""
    logger.info("Shutting down Flow Field Navigation API")


# API endpoints
@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Flow Field Navigation API",
        "version": "0.1.0",
        "status": "running"
    }


@app.get("/health")
async def health_check(nav: NavigationGraph = Depends(get_navigation_graph)):
    """Health check endpoint."""
    return {"status": "healthy", "cells": len(nav.cells)}


@app.get("/cells", response_model=List[CellResponse])
async def list_cells(nav: NavigationGraph = Depends(get_navigation_graph)):
    """All cells with geometry, adjacency and elevation."""
    return [cell_to_response(c) for c in nav.cells]


@app.get("/cells/nearest", response_model=CellResponse)
async def nearest_cell(x: float = Query(...), y: float = Query(...),
                       nav: NavigationGraph = Depends(get_navigation_graph)):
    """Cell whose site is closest to (x, y)."""
    try:
        cell = nav.nearest_cell(Point(x, y))
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return cell_to_response(cell)


@app.get("/cells/{index}", response_model=CellResponse)
async def get_cell_by_index(index: int, nav: NavigationGraph = Depends(get_navigation_graph)):
    """Single cell by index."""
    return cell_to_response(get_cell(nav, index))


@app.post("/flow", response_model=FlowResponse)
async def compute_flow(request: FlowRequest, nav: NavigationGraph = Depends(get_navigation_graph)):
    """
    Compute the flow field from a source cell.

    Each request gets its own flow field, so concurrent requests never
    share propagation state.
    """
    source = get_cell(nav, request.source)
    scale = request.elevation_scale if request.elevation_scale is not None else settings.elevation_scale

    try:
        flow = propagate(nav.graph, source, elevation_traversal_cost(scale))
    except ValueError as e:
        logger.error("Flow computation failed", source=request.source, error=str(e))
        raise HTTPException(status_code=400, detail=str(e))

    return FlowResponse(
        source=flow.source,
        costs=flow.costs,
        came_from=flow.came_from,
        directions=[flow_direction(nav.graph, flow, c) for c in nav.cells],
        reachable=flow.reachable_count(),
        relaxations=flow.relaxations,
    )


@app.get("/path", response_model=PathResponse)
async def compute_path(source: int = Query(..., ge=0), destination: int = Query(..., ge=0),
                       elevation_scale: Optional[float] = Query(None),
                       nav: NavigationGraph = Depends(get_navigation_graph)):
    """Cheapest path from source to destination."""
    start = get_cell(nav, source)
    end = get_cell(nav, destination)
    scale = elevation_scale if elevation_scale is not None else settings.elevation_scale
    edge_cost = elevation_traversal_cost(scale)

    try:
        flow = propagate(nav.graph, start, edge_cost)
    except ValueError as e:
        logger.error("Path computation failed", source=source, error=str(e))
        raise HTTPException(status_code=400, detail=str(e))

    path = reconstruct(nav.graph, flow, start, end)
    reachable = bool(path) and path[0] is start

    return PathResponse(
        source=source,
        destination=destination,
        cells=[c.index for c in path],
        points=[PointModel(x=c.site.x, y=c.site.y) for c in path],
        reachable=reachable,
        cost=path_cost(path, edge_cost) if reachable else None,
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
