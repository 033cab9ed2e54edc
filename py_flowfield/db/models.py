"""Database models for cached graph data."""

from datetime import datetime

from sqlalchemy import Column, DateTime, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class ElevationCacheEntry(Base):
    """Serialized index -> elevation map for one graph configuration."""

    __tablename__ = "elevation_cache"

    key = Column(String(1024), primary_key=True)
    payload = Column(Text, nullable=False)  # JSON object keyed by cell index
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
