from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import List


_SHEET_BASE = (
    "https://docs.google.com/spreadsheets/d/e/"
    "2PACX-1vQw8Xy3qL1mquvQYPO3D9ik39Izfb2w92Gv70-9mwttU0UUp5k-gmXDjojkYdvhvlAiWBX9t4kST86v/pub"
)


class Settings(BaseSettings):
    """Application settings from environment variables."""

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./bearing_guesser.db"

    # Logging
    LOG_LEVEL: str = "INFO"

    # CORS
    CORS_ORIGINS: List[str] = ["*"]

    # Location datasets (CSV: name,lat,lon,type,country,population)
    DATASET_TIMEOUT_S: float = 30.0
    GLOBAL_DATASET_URL: str = f"{_SHEET_BASE}?gid=1827066601&single=true&output=csv"
    CAPITALS_DATASET_URL: str = f"{_SHEET_BASE}?gid=0&single=true&output=csv"
    GERMANY_DATASET_URL: str = f"{_SHEET_BASE}?gid=1604396001&single=true&output=csv"
    BREMEN_DATASET_URL: str = f"{_SHEET_BASE}?gid=1150536605&single=true&output=csv"

    # Game Configuration
    DEFAULT_PLAYER_LAT: float = 52.52  # Berlin
    DEFAULT_PLAYER_LON: float = 13.405
    DEFAULT_RADIUS_KM: float = 2000
    RECENT_LOCATIONS_SIZE: int = 5
    MIN_GUESS_DISTANCE_KM: float = 0.001
    PATH_SEGMENTS: int = 64

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
