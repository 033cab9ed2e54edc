from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings pulled from environment variables."""

    # Graph Generation Configuration
    map_width: int = Field(default=800, gt=0, description="Width of the sampled area")
    map_height: int = Field(default=800, gt=0, description="Height of the sampled area")
    min_spacing: float = Field(default=15.0, gt=0, description="Minimum distance between sites")
    attempts_per_point: int = Field(default=10, ge=0, description="Candidates tried around each site")
    seed: Optional[str] = Field(default="flowfield", description="Sampling seed; unset for a random graph")

    # Elevation Configuration
    elevation_raster_path: Optional[str] = Field(default=None, description="Path to a .npy elevation raster")
    elevation_scale: float = Field(default=50.0, description="Climb penalty multiplier for traversal costs")
    max_concurrent_lookups: int = Field(default=64, gt=0, description="Max elevation lookups in flight")

    # Cache Configuration
    cache_enabled: bool = Field(default=True, description="Persist sampled elevations")
    cache_database_url: str = Field(default="sqlite:///./flowfield_cache.db", description="Elevation cache database URL")

    # API Configuration
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, description="API port")
    debug: bool = Field(default=False, description="Enable debug mode")

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Logging format (plain or json)")

    class Config:
        env_prefix = "FLOWFIELD_"
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


# Instantiate singleton settings object
settings = Settings()
