from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from ..database.session import get_db
from ..models.game import ResetResponse, ScoreRecordResponse, ScoreStatsResponse
from ..models.location import DiscoveredLocationResponse, DiscoveredResponse
from ..services import history

router = APIRouter(tags=["History"])


@router.get("/scores", response_model=List[ScoreRecordResponse])
async def list_scores(
    dataset: Optional[str] = None,
    limit: int = Query(default=100, ge=1, le=1000),
    db: AsyncSession = Depends(get_db)
):
    """Get the score history, newest first."""
    return await history.get_scores(db, dataset, limit)


@router.get("/scores/stats", response_model=ScoreStatsResponse)
async def score_stats(
    dataset: Optional[str] = None,
    db: AsyncSession = Depends(get_db)
):
    """Get count, average and best score."""
    count, average, best = await history.get_stats(db, dataset)
    return ScoreStatsResponse(dataset=dataset, count=count, average=average, best=best)


@router.get("/discovered/{dataset}", response_model=DiscoveredResponse)
async def discovered_locations(
    dataset: str,
    db: AsyncSession = Depends(get_db)
):
    """Get the locations guessed at least once in a dataset."""
    locations = await history.get_discovered(db, dataset)
    return DiscoveredResponse(
        dataset=dataset,
        locations=[DiscoveredLocationResponse.model_validate(row) for row in locations]
    )


@router.delete("/history", response_model=ResetResponse)
async def reset_history(db: AsyncSession = Depends(get_db)):
    """Delete all scores, discovered locations and custom locations."""
    return await history.reset_history(db)
