import asyncio
import csv
import io
import logging
import random
from dataclasses import dataclass
from math import ceil
from typing import Dict, List, Optional, Sequence, Tuple

import httpx
from fastapi import HTTPException, status

from .geodesy import Coordinate, distance_km
from ..config import Settings
from ..models.location import Location

log = logging.getLogger(__name__)

CUSTOM_DATASET = "custom"


@dataclass(frozen=True)
class Dataset:
    """A named source of locations."""
    key: str
    name: str
    default_radius_km: float
    url: Optional[str] = None

    @property
    def remote(self) -> bool:
        return self.url is not None


def build_datasets(settings: Settings) -> Dict[str, Dataset]:
    """Dataset registry keyed by dataset key."""
    datasets = [
        Dataset("global", "Global Cities", 15000, settings.GLOBAL_DATASET_URL),
        Dataset("capitals", "World Capitals", 5000, settings.CAPITALS_DATASET_URL),
        Dataset("germany", "German Cities", 1000, settings.GERMANY_DATASET_URL),
        Dataset("bremen", "Bremen Places", 30, settings.BREMEN_DATASET_URL),
        Dataset(CUSTOM_DATASET, "Custom Locations", 10000),
    ]
    return {d.key: d for d in datasets}


def parse_locations_csv(text: str) -> List[Location]:
    """
    Parse a location CSV export.

    The first row is a header; columns are name, lat, lon, type, country,
    population. Rows that cannot be parsed are skipped.

    Args:
        text: CSV document

    Returns:
        Parsed locations in file order
    """
    locations = []
    reader = csv.reader(io.StringIO(text.strip()))
    next(reader, None)

    for line_number, row in enumerate(reader, 2):
        if not row or not any(cell.strip() for cell in row):
            continue
        try:
            name, lat, lon, loc_type, country = (cell.strip() for cell in row[:5])
            population_raw = row[5].strip() if len(row) > 5 else ""
            try:
                population = int(float(population_raw))
            except ValueError:
                population = 0
            locations.append(Location(
                name=name,
                lat=float(lat),
                lon=float(lon),
                type=loc_type,
                country=country,
                population=population,
            ))
        except ValueError as e:
            log.warning("Skipping malformed location row %d: %s", line_number, e)

    return locations


class LocationLoader:
    """Fetches remote location datasets and caches them per process."""

    def __init__(
        self,
        datasets: Dict[str, Dataset],
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.datasets = datasets
        self.timeout = timeout
        self.transport = transport
        self._cache: Dict[str, List[Location]] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    def get_dataset(self, key: str) -> Dataset:
        dataset = self.datasets.get(key)
        if dataset is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Unknown dataset '{key}'. Available: {', '.join(self.datasets)}"
            )
        return dataset

    async def load(self, key: str) -> List[Location]:
        """
        Load the locations of a remote dataset.

        Args:
            key: Dataset key

        Returns:
            List of locations
        """
        dataset = self.get_dataset(key)
        if not dataset.remote:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Dataset '{key}' is not loaded from a remote source."
            )

        if key in self._cache:
            return self._cache[key]

        # Loads of different datasets never wait on each other
        async with self._locks.setdefault(key, asyncio.Lock()):
            if key in self._cache:
                return self._cache[key]

            async with httpx.AsyncClient(
                timeout=self.timeout, follow_redirects=True, transport=self.transport
            ) as client:
                try:
                    response = await client.get(dataset.url)
                    response.raise_for_status()
                except httpx.HTTPStatusError as e:
                    raise HTTPException(
                        status_code=status.HTTP_502_BAD_GATEWAY,
                        detail=f"Error loading dataset '{key}': {str(e)}"
                    )
                except httpx.RequestError as e:
                    raise HTTPException(
                        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                        detail=f"Cannot reach dataset source for '{key}': {str(e)}"
                    )

            locations = parse_locations_csv(response.text)
            log.info("Loaded %d locations for dataset %s", len(locations), key)
            self._cache[key] = locations
            return locations

    def clear(self) -> None:
        """Drop the cached datasets so the next load fetches them again."""
        self._cache.clear()
        log.info("Cleared dataset cache")


def filter_and_sort_by_distance(
    locations: Sequence[Location],
    player: Coordinate,
    radius_km: float,
) -> List[Tuple[Location, float]]:
    """Locations within radius_km of the player, nearest first, with their distances."""
    enriched = [(loc, distance_km(player, loc.coordinate)) for loc in locations]
    within = [(loc, dist) for loc, dist in enriched if dist <= radius_km]
    within.sort(key=lambda item: item[1])
    return within


def default_radius_km(locations: Sequence[Location], player: Coordinate, fallback: float) -> float:
    """
    Search radius that reaches the farthest location.

    The maximum distance is rounded up to a whole 1, 10, 100 or 1000 km
    depending on its size. Falls back when there is nothing to measure.
    """
    max_dist = max((distance_km(player, loc.coordinate) for loc in locations), default=0.0)
    if max_dist == 0:
        return fallback

    if max_dist <= 10:
        step = 1
    elif max_dist <= 100:
        step = 10
    elif max_dist <= 1000:
        step = 100
    else:
        step = 1000
    return float(ceil(max_dist / step) * step)


def pick_question(
    candidates: Sequence[Location],
    current_name: Optional[str],
    recent: Sequence[str],
    recent_size: int,
    rng: Optional[random.Random] = None,
) -> Tuple[Location, List[str]]:
    """
    Pick the next location to ask about.

    The current question is avoided whenever there is another candidate;
    recently asked names are avoided when enough candidates remain.

    Args:
        candidates: Locations within the search radius
        current_name: Name of the question just asked
        recent: Names asked recently, oldest first
        recent_size: How many recent names to remember
        rng: Random source

    Returns:
        The chosen location and the updated recent names
    """
    if not candidates:
        raise ValueError("No candidate locations to pick from")

    rng = rng or random
    available = list(candidates)
    if len(available) > 1 and current_name is not None:
        available = [loc for loc in available if loc.name != current_name] or available

    if len(available) > recent_size:
        fresh = [loc for loc in available if loc.name not in recent]
        if fresh:
            available = fresh

    question = rng.choice(available)

    updated = list(recent)
    if question.name not in updated:
        updated.append(question.name)
    return question, updated[-recent_size:] if recent_size > 0 else []
