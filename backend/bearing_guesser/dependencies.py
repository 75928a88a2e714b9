from functools import lru_cache

from .config import get_settings
from .services.locations import LocationLoader, build_datasets


@lru_cache()
def get_location_loader() -> LocationLoader:
    """Get the shared dataset loader."""
    settings = get_settings()
    return LocationLoader(build_datasets(settings), timeout=settings.DATASET_TIMEOUT_S)
