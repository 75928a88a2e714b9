from enum import Enum
from fastapi import APIRouter, HTTPException, Query, status
from pydantic import BaseModel, Field
from typing import List, Optional

from ..config import get_settings
from ..models.location import CoordinateSchema
from ..services.geodesy import bearing_deg, distance_km, great_circle_points
from ..services.quantization import (
    DISTANCE_GUESS_TABLE, RADIUS_SLIDER_TABLE, clip_table, normalize, quantize
)

router = APIRouter(prefix="/geo", tags=["Geo"])
settings = get_settings()


class TableName(str, Enum):
    distance = "distance"
    radius = "radius"


class QuantizeResponse(BaseModel):
    """Magnitude for a control position."""
    table: TableName
    t: float
    value: float


class MeasureRequest(BaseModel):
    """Two points to measure between."""
    origin: CoordinateSchema
    target: CoordinateSchema


class MeasureResponse(BaseModel):
    """Great circle distance and initial bearing."""
    distance_km: float
    bearing_deg: float


class PathRequest(BaseModel):
    """Great circle path request."""
    start: CoordinateSchema
    end: CoordinateSchema
    segments: int = Field(default=settings.PATH_SEGMENTS, ge=1, le=1024)


def _table(name: TableName, radius_km: Optional[float]):
    if name == TableName.radius:
        return RADIUS_SLIDER_TABLE
    if radius_km is not None:
        clipped = clip_table(DISTANCE_GUESS_TABLE, settings.MIN_GUESS_DISTANCE_KM, radius_km)
        if not clipped:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Radius must exceed {settings.MIN_GUESS_DISTANCE_KM}km."
            )
        return clipped
    return DISTANCE_GUESS_TABLE


@router.get("/quantize", response_model=QuantizeResponse)
async def quantize_position(
    t: float = Query(ge=0, le=1, allow_inf_nan=False),
    table: TableName = TableName.distance,
    radius_km: Optional[float] = Query(default=None, gt=0, allow_inf_nan=False),
):
    """Map a slider or tilt position to kilometres."""
    floor_value = 1.0 if table == TableName.radius else None
    value = quantize(_table(table, radius_km), t, floor_value=floor_value)
    return QuantizeResponse(table=table, t=t, value=value)


@router.get("/normalize", response_model=QuantizeResponse)
async def normalize_value(
    value: float = Query(ge=0, allow_inf_nan=False),
    table: TableName = TableName.distance,
    radius_km: Optional[float] = Query(default=None, gt=0, allow_inf_nan=False),
):
    """Map kilometres back to a slider position."""
    t = normalize(_table(table, radius_km), value)
    return QuantizeResponse(table=table, t=t, value=value)


@router.post("/measure", response_model=MeasureResponse)
async def measure(request: MeasureRequest):
    """Distance and bearing from origin to target."""
    origin = request.origin.to_coordinate()
    target = request.target.to_coordinate()
    return MeasureResponse(
        distance_km=distance_km(origin, target),
        bearing_deg=bearing_deg(origin, target),
    )


@router.post("/path", response_model=List[CoordinateSchema])
async def path(request: PathRequest):
    """Evenly spaced points along the great circle between two points."""
    points = great_circle_points(request.start.to_coordinate(), request.end.to_coordinate(), request.segments)
    return [CoordinateSchema.from_coordinate(p) for p in points]
