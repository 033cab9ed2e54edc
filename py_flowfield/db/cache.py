"""
Elevation cache backends.

Both backends store opaque serialized payloads by key; interpreting the
payload (and rejecting malformed ones) is up to the caller.
"""

from typing import Dict, Optional, Protocol

import structlog

from .connection import Database
from .models import ElevationCacheEntry

logger = structlog.get_logger()


class ElevationCache(Protocol):
    """Key-value store for serialized elevation maps."""

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, payload: str) -> None:
        ...

    def delete(self, key: str) -> None:
        ...


class InMemoryElevationCache:
    """Process-local cache, mainly for tests and one-off runs."""

    def __init__(self, entries: Optional[Dict[str, str]] = None):
        self.entries: Dict[str, str] = dict(entries or {})

    def get(self, key: str) -> Optional[str]:
        return self.entries.get(key)

    def set(self, key: str, payload: str) -> None:
        self.entries[key] = payload

    def delete(self, key: str) -> None:
        self.entries.pop(key, None)


class SqlElevationCache:
    """Cache persisted in the elevation_cache table."""

    def __init__(self, database: Database):
        self.database = database

    def get(self, key: str) -> Optional[str]:
        with self.database.get_session() as session:
            entry = session.get(ElevationCacheEntry, key)
            return entry.payload if entry is not None else None

    def set(self, key: str, payload: str) -> None:
        with self.database.get_session() as session:
            entry = session.get(ElevationCacheEntry, key)
            if entry is None:
                session.add(ElevationCacheEntry(key=key, payload=payload))
            else:
                entry.payload = payload
        logger.debug("Elevation cache entry stored", key=key, size=len(payload))

    def delete(self, key: str) -> None:
        with self.database.get_session() as session:
            entry = session.get(ElevationCacheEntry, key)
            if entry is not None:
                session.delete(entry)
        logger.debug("Elevation cache entry deleted", key=key)
