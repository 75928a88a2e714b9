from math import exp, isfinite
from decimal import Decimal, ROUND_HALF_UP

from .geodesy import Coordinate, angle_difference, destination_point, distance_km
from ..models.game import ScoreDetails, ScoreResult


def _round_score(value: float) -> int:
    """Round half up and clamp into 0..100."""
    rounded = int(Decimal(repr(value)).quantize(Decimal(1), rounding=ROUND_HALF_UP))
    return max(0, min(100, rounded))


def direction_score(correct_bearing: float, guess_bearing: float) -> float:
    """
    Score a bearing guess.

    Falls linearly from 100 for an exact bearing to 0 at 90 degrees off and
    stays at 0 beyond that.
    """
    diff = angle_difference(correct_bearing, guess_bearing)
    return max(0.0, 100 * (1 - diff / 90))


def distance_score_legacy(correct_distance: float, guess_distance: float) -> float:
    """
    Score a distance guess against the correct distance alone.

    Scoring system by correct distance:
    - < 0.1km: 100 minus 100 per km of error
    - < 1km: linear in relative error, 0 at 100% off
    - otherwise: exponential decay exp(-2 * relative error)
    """
    error = abs(correct_distance - guess_distance)
    if correct_distance < 0.1:
        return max(0.0, 100 * (1 - error))
    relative_error = error / correct_distance
    if correct_distance < 1:
        return 100 * (1 - min(1.0, relative_error))
    return 100 * exp(-2 * relative_error)


def distance_score_geometric(correct_distance: float, actual_distance: float) -> float:
    """
    Score the miss distance between the guessed point and the target.

    A miss larger than the correct distance scores 0. With a correct
    distance of zero only an exact hit scores.
    """
    if correct_distance <= 0:
        return 100.0 if actual_distance <= 0 else 0.0
    if actual_distance > correct_distance:
        return 0.0
    return 100 * (1 - actual_distance / correct_distance)


def calculate_score(
    correct_distance_km: float,
    guess_distance_km: float,
    correct_bearing_deg: float,
    guess_bearing_deg: float,
    player: Coordinate,
    target: Coordinate,
) -> ScoreResult:
    """
    Calculate both scores of a guess.

    score2 is the primary score: it follows the guess from the player to
    the point it designates and measures how far that point is from the
    target. score1 averages a distance-only score with the direction score
    and is kept for comparison.

    Args:
        correct_distance_km: Distance from player to target
        guess_distance_km: Guessed distance
        correct_bearing_deg: Bearing from player to target
        guess_bearing_deg: Guessed bearing
        player: Player coordinate
        target: Target coordinate

    Returns:
        ScoreResult with score1, score2 and the details behind them

    Raises:
        ValueError: If any input is NaN or infinite
    """
    values = (
        correct_distance_km, guess_distance_km, correct_bearing_deg, guess_bearing_deg,
        player.lat, player.lon, target.lat, target.lon,
    )
    if not all(isfinite(v) for v in values):
        raise ValueError(f"Scoring inputs must be finite: {values}")

    dir_score = direction_score(correct_bearing_deg, guess_bearing_deg)
    dist_score1 = distance_score_legacy(correct_distance_km, guess_distance_km)

    guessed_point = destination_point(player, guess_distance_km, guess_bearing_deg)
    actual_distance = distance_km(guessed_point, target)
    dist_score2 = distance_score_geometric(correct_distance_km, actual_distance)

    return ScoreResult(
        score1=_round_score((dist_score1 + dir_score) / 2),
        score2=_round_score(dist_score2),
        details=ScoreDetails(
            distance_score1=dist_score1,
            distance_score2=dist_score2,
            direction_score=dir_score,
            actual_distance_km=actual_distance,
        ),
    )
