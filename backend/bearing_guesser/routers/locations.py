from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from ..database.session import get_db
from ..dependencies import get_location_loader
from ..models.location import CustomLocationResponse, DatasetResponse, LocationCreate
from ..services import history
from ..services.locations import LocationLoader

router = APIRouter(tags=["Locations"])


@router.get("/datasets", response_model=List[DatasetResponse])
async def list_datasets(
    refresh: bool = False,
    loader: LocationLoader = Depends(get_location_loader)
):
    """List the available location datasets, optionally dropping cached ones."""
    if refresh:
        loader.clear()
    return [
        DatasetResponse(
            key=d.key,
            name=d.name,
            default_radius_km=d.default_radius_km,
            remote=d.remote,
        )
        for d in loader.datasets.values()
    ]


@router.get("/custom-locations", response_model=List[CustomLocationResponse])
async def list_custom_locations(db: AsyncSession = Depends(get_db)):
    """List the custom locations."""
    return await history.get_custom_locations(db)


@router.post("/custom-locations", response_model=CustomLocationResponse, status_code=status.HTTP_201_CREATED)
async def create_custom_location(
    location: LocationCreate,
    db: AsyncSession = Depends(get_db)
):
    """Add a custom location."""
    return await history.add_custom_location(db, location)


@router.delete("/custom-locations/{location_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_custom_location(
    location_id: int,
    db: AsyncSession = Depends(get_db)
):
    """Delete a custom location."""
    await history.delete_custom_location(db, location_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
