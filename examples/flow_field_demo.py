#!/usr/bin/env python3
"""
Simple demo script showing flow field path finding over a Voronoi graph.
"""

import numpy as np
from py_flowfield.core import (
    GraphConfig, NavigationGraph, RasterScalarField, elevation_traversal_cost, uniform_cost
)
from py_flowfield.core.geometry import Point


def make_hill_raster(size=256):
    """Grayscale raster with a single bright hill in the middle."""
    ys, xs = np.mgrid[0:size, 0:size]
    center = size / 2
    dist = np.sqrt((xs - center) ** 2 + (ys - center) ** 2)
    hill = np.clip(1 - dist / (size * 0.4), 0, 1)
    return (hill * 255).astype(np.uint8)


def main():
    """Demonstrate flow field generation and path reconstruction."""
    print("Py-FlowField Demo")
    print("=" * 40)

    config = GraphConfig(width=400, height=400, min_spacing=15, attempts_per_point=10, seed="demo123")
    field = RasterScalarField(make_hill_raster(), name="hill")

    print(f"\nGenerating navigation graph (spacing {config.min_spacing})...")
    nav = NavigationGraph.generate(config, field)
    elevations = np.array([c.attributes.elevation for c in nav.cells])
    print(f"Generated {len(nav.cells)} cells")
    print(f"Elevation range: {elevations.min():.2f}-{elevations.max():.2f}")

    start = nav.nearest_cell(Point(20, 200))
    end = nav.nearest_cell(Point(380, 200))
    print(f"\nStart cell {start.index} at {tuple(start.site)}")
    print(f"End cell {end.index} at {tuple(end.site)}")

    for label, edge_cost in [("Flat", uniform_cost(1)), ("Elevation-aware", elevation_traversal_cost(50))]:
        flow = nav.propagate(start, edge_cost)
        path = nav.reconstruct(start, end)
        peak = max(c.attributes.elevation for c in path)

        print(f"\n{label} path:")
        print("-" * 30)
        print(f"  Steps: {len(path) - 1}")
        print(f"  Cost: {flow.cost(end):.1f}")
        print(f"  Highest elevation crossed: {peak:.2f}")
        print(f"  Relaxations: {flow.relaxations}")

    print("\nDemo completed!")


if __name__ == "__main__":
    main()
