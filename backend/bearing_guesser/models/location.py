from pydantic import BaseModel, Field
from typing import Optional, List

from ..services.geodesy import Coordinate


class CoordinateSchema(BaseModel):
    """Latitude/longitude pair in degrees."""
    lat: float = Field(ge=-90, le=90, allow_inf_nan=False)
    lon: float = Field(ge=-180, le=180, allow_inf_nan=False)

    def to_coordinate(self) -> Coordinate:
        return Coordinate(self.lat, self.lon)

    @classmethod
    def from_coordinate(cls, point: Coordinate) -> "CoordinateSchema":
        return cls(lat=point.lat, lon=point.lon)


class Location(BaseModel):
    """A place that can be asked about."""

    name: str
    lat: float = Field(ge=-90, le=90, allow_inf_nan=False)
    lon: float = Field(ge=-180, le=180, allow_inf_nan=False)
    type: str = "custom"
    country: str = "Unknown"
    population: int = 0

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(self.lat, self.lon)

    class Config:
        frozen = True
        from_attributes = True


class CustomLocationResponse(Location):
    """A stored custom location."""
    id: int


class LocationCreate(BaseModel):
    """Request for adding a custom location."""
    name: str = "Unknown Location"
    lat: float = Field(ge=-90, le=90, allow_inf_nan=False)
    lon: float = Field(ge=-180, le=180, allow_inf_nan=False)
    type: str = "custom"
    country: str = "Unknown"
    population: int = Field(default=0, ge=0)


class DatasetResponse(BaseModel):
    """A location dataset the game can draw questions from."""
    key: str
    name: str
    default_radius_km: float
    remote: bool


class DiscoveredLocationResponse(BaseModel):
    """A location the player has guessed at least once."""
    name: str
    country: Optional[str] = None
    lat: float
    lon: float
    type: Optional[str] = None
    best_score: int
    plays: int

    class Config:
        from_attributes = True


class DiscoveredResponse(BaseModel):
    """Discovered locations of one dataset."""
    dataset: str
    locations: List[DiscoveredLocationResponse]
