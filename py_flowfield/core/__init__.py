"""
Core navigation graph functionality.
"""

from .geometry import Point, Site
from .point_sampler import sample_points
from .tessellation import HalfEdge, TessellationCell, compute_tessellation
from .cell_graph import CellGraph, WorldCell, build_cell_graph
from .flow_field import (FlowField, propagate, reconstruct, uniform_cost,
                         elevation_traversal_cost)
from .elevation import RasterScalarField, ConstantScalarField, populate_elevation, apply_elevation
from .navigation_graph import GraphConfig, NavigationGraph, graph_cache_key

__all__ = ['Point', 'Site', 'sample_points',
           'HalfEdge', 'TessellationCell', 'compute_tessellation',
           'CellGraph', 'WorldCell', 'build_cell_graph',
           'FlowField', 'propagate', 'reconstruct', 'uniform_cost', 'elevation_traversal_cost',
           'RasterScalarField', 'ConstantScalarField', 'populate_elevation', 'apply_elevation',
           'GraphConfig', 'NavigationGraph', 'graph_cache_key']
