from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

from .location import CoordinateSchema, Location


class ScoreDetails(BaseModel):
    """Breakdown behind a score."""
    distance_score1: float
    distance_score2: float
    direction_score: float
    actual_distance_km: float


class ScoreResult(BaseModel):
    """Both scores of a guess, 0-100 each."""
    score1: int = Field(ge=0, le=100)
    score2: int = Field(ge=0, le=100)
    details: ScoreDetails


class QuestionRequest(BaseModel):
    """Request for the next location to guess."""
    dataset: str = "global"
    player: Optional[CoordinateSchema] = None
    radius_km: Optional[float] = Field(default=None, gt=0, allow_inf_nan=False)
    current_name: Optional[str] = None
    recent: List[str] = []


class QuestionResponse(BaseModel):
    """Next location to guess."""
    location: Location
    player: CoordinateSchema
    radius_km: float
    candidates: int
    recent: List[str]


class GuessRequest(BaseModel):
    """Request for submitting a guess."""
    dataset: str = "global"
    location: Location
    player: CoordinateSchema
    guess_distance_km: float = Field(gt=0, allow_inf_nan=False)
    guess_bearing_deg: float = Field(ge=0, lt=360, allow_inf_nan=False)


class GuessResponse(BaseModel):
    """Response after submitting a guess."""
    location: Location
    correct_distance_km: float
    correct_bearing_deg: float
    guess_distance_km: float
    guess_bearing_deg: float
    guessed_point: CoordinateSchema
    score: ScoreResult
    target_path: List[CoordinateSchema]
    guess_path: List[CoordinateSchema]
    difference_path: List[CoordinateSchema]


class ScoreRecordResponse(BaseModel):
    """One entry of the score history."""
    id: int
    created_at: datetime
    dataset: str
    location_name: str
    country: Optional[str] = None
    location_type: Optional[str] = None
    location_lat: float
    location_lon: float
    player_lat: float
    player_lon: float
    guessed_lat: float
    guessed_lon: float
    guess_distance_km: float
    actual_distance_km: float
    error_distance_km: float
    distance_score: int
    guess_bearing_deg: float
    actual_bearing_deg: float
    direction_score: int
    score: int
    score_old: int

    class Config:
        from_attributes = True


class ScoreStatsResponse(BaseModel):
    """Aggregate statistics over the score history."""
    dataset: Optional[str] = None
    count: int
    average: int
    best: int


class ResetResponse(BaseModel):
    """Rows removed by a history reset."""
    scores: int
    discovered: int
    custom_locations: int
