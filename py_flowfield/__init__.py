"""
py-flowfield: Voronoi navigation graphs with elevation-aware flow fields.
"""

__version__ = "0.1.0"
