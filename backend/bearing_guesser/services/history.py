import logging
from typing import List, Optional

from fastapi import HTTPException, status
from sqlalchemy import delete, desc, func, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from .geodesy import Coordinate
from .locations import CUSTOM_DATASET
from .quantization import HISTORY_DISTANCE_TABLE, round_to_table
from ..database.models import CustomLocation, DiscoveredLocation, ScoreRecord
from ..models.game import ResetResponse, ScoreResult
from ..models.location import CustomLocationResponse, Location, LocationCreate

log = logging.getLogger(__name__)


async def record_score(
    db: AsyncSession,
    dataset: str,
    location: Location,
    player: Coordinate,
    guessed_point: Coordinate,
    guess_distance_km: float,
    correct_distance_km: float,
    guess_bearing_deg: float,
    correct_bearing_deg: float,
    score: ScoreResult,
) -> ScoreRecord:
    """
    Store a scored guess and update the discovered-location aggregate.

    Distances are rounded with the history table before storing.

    Returns:
        The stored record
    """
    record = ScoreRecord(
        dataset=dataset,
        location_name=location.name,
        country=location.country,
        location_type=location.type,
        location_lat=location.lat,
        location_lon=location.lon,
        player_lat=player.lat,
        player_lon=player.lon,
        guessed_lat=guessed_point.lat,
        guessed_lon=guessed_point.lon,
        guess_distance_km=round_to_table(HISTORY_DISTANCE_TABLE, guess_distance_km),
        actual_distance_km=round_to_table(HISTORY_DISTANCE_TABLE, correct_distance_km),
        error_distance_km=round_to_table(HISTORY_DISTANCE_TABLE, score.details.actual_distance_km),
        distance_score=round(score.details.distance_score2),
        guess_bearing_deg=guess_bearing_deg,
        actual_bearing_deg=correct_bearing_deg,
        direction_score=round(score.details.direction_score),
        score=score.score2,
        score_old=score.score1,
    )
    db.add(record)
    await _add_discovered(db, dataset, location, score.score2)
    await db.commit()
    await db.refresh(record)

    log.info("Recorded score %d for %s (%s)", record.score, location.name, dataset)
    return record


async def _add_discovered(db: AsyncSession, dataset: str, location: Location, score: int) -> None:
    # Custom locations always aggregate under the custom dataset
    key = CUSTOM_DATASET if location.type == CUSTOM_DATASET else dataset

    stmt = sqlite_insert(DiscoveredLocation).values(
        dataset=key,
        name=location.name,
        country=location.country,
        lat=location.lat,
        lon=location.lon,
        type=location.type,
        best_score=score,
        plays=1,
    )
    # Insert-or-update in one statement; concurrent first guesses must not collide
    stmt = stmt.on_conflict_do_update(
        index_elements=[DiscoveredLocation.dataset, DiscoveredLocation.name],
        set_={
            "country": stmt.excluded.country,
            "lat": stmt.excluded.lat,
            "lon": stmt.excluded.lon,
            "type": stmt.excluded.type,
            "best_score": func.max(DiscoveredLocation.best_score, stmt.excluded.best_score),
            "plays": DiscoveredLocation.plays + 1,
        },
    )
    await db.execute(stmt)


async def get_scores(db: AsyncSession, dataset: Optional[str] = None, limit: int = 100) -> List[ScoreRecord]:
    """Score history, newest first."""
    query = select(ScoreRecord)
    if dataset:
        query = query.where(ScoreRecord.dataset == dataset)
    result = await db.execute(query.order_by(desc(ScoreRecord.id)).limit(limit))
    return list(result.scalars().all())


async def get_stats(db: AsyncSession, dataset: Optional[str] = None):
    """
    Count, rounded average and best of the recorded scores.

    Returns zeros when there is no history.
    """
    query = select(func.count(ScoreRecord.id), func.avg(ScoreRecord.score), func.max(ScoreRecord.score))
    if dataset:
        query = query.where(ScoreRecord.dataset == dataset)
    count, average, best = (await db.execute(query)).one()

    if not count:
        return 0, 0, 0
    return count, int(round(average)), best


async def get_discovered(db: AsyncSession, dataset: str) -> List[DiscoveredLocation]:
    result = await db.execute(
        select(DiscoveredLocation).where(
            DiscoveredLocation.dataset == dataset
        ).order_by(DiscoveredLocation.name)
    )
    return list(result.scalars().all())


async def get_custom_locations(db: AsyncSession) -> List[CustomLocationResponse]:
    result = await db.execute(select(CustomLocation).order_by(CustomLocation.id))
    return [CustomLocationResponse.model_validate(row) for row in result.scalars().all()]


async def add_custom_location(db: AsyncSession, data: LocationCreate) -> CustomLocationResponse:
    """
    Add a custom location.

    Raises:
        HTTPException: 409 if a location already exists at the same coordinates
    """
    result = await db.execute(
        select(CustomLocation).where(
            CustomLocation.lat == data.lat,
            CustomLocation.lon == data.lon
        )
    )
    if result.scalar_one_or_none() is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"A custom location already exists at {data.lat}, {data.lon}."
        )

    row = CustomLocation(**data.model_dump())
    db.add(row)
    await db.commit()
    await db.refresh(row)

    log.info("Added custom location %s", row.name)
    return CustomLocationResponse.model_validate(row)


async def delete_custom_location(db: AsyncSession, location_id: int) -> None:
    """
    Delete a custom location.

    Raises:
        HTTPException: 404 if there is no custom location with this id
    """
    row = await db.get(CustomLocation, location_id)
    if row is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Custom location {location_id} not found"
        )

    await db.delete(row)
    await db.commit()
    log.info("Deleted custom location %s", row.name)


async def reset_history(db: AsyncSession) -> ResetResponse:
    """
    Delete all recorded data: scores, discovered locations and custom locations.

    Returns:
        Number of rows removed per table
    """
    scores = await db.execute(delete(ScoreRecord))
    discovered = await db.execute(delete(DiscoveredLocation))
    custom = await db.execute(delete(CustomLocation))
    await db.commit()

    log.info(
        "Reset history: %d scores, %d discovered, %d custom locations",
        scores.rowcount, discovered.rowcount, custom.rowcount
    )
    return ResetResponse(
        scores=scores.rowcount,
        discovered=discovered.rowcount,
        custom_locations=custom.rowcount,
    )
