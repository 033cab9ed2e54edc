"""
Database utilities and models.

This package provides:
- SQLAlchemy model for cached elevation maps
- Database connection management
- Elevation cache backends
"""

from .connection import Database, db
from .cache import ElevationCache, InMemoryElevationCache, SqlElevationCache
from .models import Base, ElevationCacheEntry

__all__ = [
    'Database', 'db',
    'ElevationCache', 'InMemoryElevationCache', 'SqlElevationCache',
    'Base', 'ElevationCacheEntry',
]
