from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Float, DateTime, UniqueConstraint
from .session import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ScoreRecord(Base):
    """One scored guess."""
    __tablename__ = "score_records"

    id = Column(Integer, primary_key=True, index=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, index=True)
    dataset = Column(String(50), index=True, nullable=False)

    # Location information
    location_name = Column(String(200), nullable=False)
    country = Column(String(100), nullable=True)
    location_type = Column(String(50), nullable=True)
    location_lat = Column(Float, nullable=False)
    location_lon = Column(Float, nullable=False)

    # Player and the point the guess designates
    player_lat = Column(Float, nullable=False)
    player_lon = Column(Float, nullable=False)
    guessed_lat = Column(Float, nullable=False)
    guessed_lon = Column(Float, nullable=False)

    # Distance (km, rounded for display)
    guess_distance_km = Column(Float, nullable=False)
    actual_distance_km = Column(Float, nullable=False)
    error_distance_km = Column(Float, nullable=False)
    distance_score = Column(Integer, default=0)

    # Direction (degrees)
    guess_bearing_deg = Column(Float, nullable=False)
    actual_bearing_deg = Column(Float, nullable=False)
    direction_score = Column(Integer, default=0)

    # score2 is the score of record, score1 is kept for comparison
    score = Column(Integer, default=0)
    score_old = Column(Integer, default=0)


class DiscoveredLocation(Base):
    """Per-dataset aggregate of a location's plays."""
    __tablename__ = "discovered_locations"
    __table_args__ = (UniqueConstraint("dataset", "name", name="uq_discovered_dataset_name"),)

    id = Column(Integer, primary_key=True, index=True)
    dataset = Column(String(50), index=True, nullable=False)
    name = Column(String(200), nullable=False)
    country = Column(String(100), nullable=True)
    lat = Column(Float, nullable=False)
    lon = Column(Float, nullable=False)
    type = Column(String(50), nullable=True)
    best_score = Column(Integer, default=0)
    plays = Column(Integer, default=0)


class CustomLocation(Base):
    """A location added by the player."""
    __tablename__ = "custom_locations"
    __table_args__ = (UniqueConstraint("lat", "lon", name="uq_custom_lat_lon"),)

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False)
    lat = Column(Float, nullable=False)
    lon = Column(Float, nullable=False)
    type = Column(String(50), default="custom")
    country = Column(String(100), default="Unknown")
    population = Column(Integer, default=0)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
