import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import get_settings
from ..database.session import get_db
from ..dependencies import get_location_loader
from ..models.game import GuessRequest, GuessResponse, QuestionRequest, QuestionResponse
from ..models.location import CoordinateSchema, Location
from ..services import history
from ..services.geodesy import Coordinate, bearing_deg, destination_point, distance_km, great_circle_points
from ..services.locations import (
    CUSTOM_DATASET, LocationLoader, default_radius_km, filter_and_sort_by_distance, pick_question
)
from ..services.quantization import DISTANCE_GUESS_TABLE, round_to_table
from ..services.scoring import calculate_score

log = logging.getLogger(__name__)

router = APIRouter(prefix="/game", tags=["Game"])
settings = get_settings()


async def _dataset_locations(key: str, loader: LocationLoader, db: AsyncSession) -> List[Location]:
    loader.get_dataset(key)
    if key == CUSTOM_DATASET:
        return await history.get_custom_locations(db)
    return await loader.load(key)


def _path(a: Coordinate, b: Coordinate) -> List[CoordinateSchema]:
    return [CoordinateSchema.from_coordinate(p) for p in great_circle_points(a, b, settings.PATH_SEGMENTS)]


@router.post("/question", response_model=QuestionResponse)
async def next_question(
    request: QuestionRequest,
    loader: LocationLoader = Depends(get_location_loader),
    db: AsyncSession = Depends(get_db)
):
    """Pick the next location to guess within the search radius."""

    dataset = loader.get_dataset(request.dataset)
    locations = await _dataset_locations(request.dataset, loader, db)

    if request.player is not None:
        player = request.player.to_coordinate()
    else:
        player = Coordinate(settings.DEFAULT_PLAYER_LAT, settings.DEFAULT_PLAYER_LON)

    radius = request.radius_km
    if radius is None:
        radius = default_radius_km(locations, player, dataset.default_radius_km)

    candidates = filter_and_sort_by_distance(locations, player, radius)
    if not candidates:
        log.warning("No locations found within %s km in %s", radius, request.dataset)
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No locations found within {radius}km in {dataset.name}. "
                   f"Try increasing the range."
        )

    question, recent = pick_question(
        [loc for loc, _ in candidates],
        request.current_name,
        request.recent,
        settings.RECENT_LOCATIONS_SIZE,
    )

    return QuestionResponse(
        location=question,
        player=CoordinateSchema.from_coordinate(player),
        radius_km=radius,
        candidates=len(candidates),
        recent=recent,
    )


@router.post("/guess", response_model=GuessResponse)
async def submit_guess(
    guess: GuessRequest,
    loader: LocationLoader = Depends(get_location_loader),
    db: AsyncSession = Depends(get_db)
):
    """Score a distance and bearing guess and record it."""

    loader.get_dataset(guess.dataset)
    player = guess.player.to_coordinate()
    target = guess.location.coordinate

    # The correct distance is shown with the same rounding as the guess input
    correct_distance = round_to_table(DISTANCE_GUESS_TABLE, distance_km(player, target))
    correct_bearing = bearing_deg(player, target)

    score = calculate_score(
        correct_distance,
        guess.guess_distance_km,
        correct_bearing,
        guess.guess_bearing_deg,
        player,
        target,
    )
    guessed_point = destination_point(player, guess.guess_distance_km, guess.guess_bearing_deg)

    await history.record_score(
        db,
        dataset=guess.dataset,
        location=guess.location,
        player=player,
        guessed_point=guessed_point,
        guess_distance_km=guess.guess_distance_km,
        correct_distance_km=correct_distance,
        guess_bearing_deg=guess.guess_bearing_deg,
        correct_bearing_deg=correct_bearing,
        score=score,
    )

    return GuessResponse(
        location=guess.location,
        correct_distance_km=correct_distance,
        correct_bearing_deg=correct_bearing,
        guess_distance_km=guess.guess_distance_km,
        guess_bearing_deg=guess.guess_bearing_deg,
        guessed_point=CoordinateSchema.from_coordinate(guessed_point),
        score=score,
        target_path=_path(player, target),
        guess_path=_path(player, guessed_point),
        difference_path=_path(guessed_point, target),
    )
