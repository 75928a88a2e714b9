"""
Piecewise mapping between a normalized control position and a magnitude.

A table splits [0, 1] into equal segments. Each segment covers a magnitude
range and carries its own rounding, so small magnitudes get fine control and
large ones coarse control. The same mechanism drives the distance guess
input and the search radius slider; only the table differs.
"""
from decimal import Decimal, ROUND_HALF_UP
from math import floor
from typing import NamedTuple, Optional, Sequence, Tuple


class Tier(NamedTuple):
    """
    One segment of a quantization table.

    decimals >= 0 rounds to that many decimal places; decimals < 0 rounds to
    the nearest 10 ** -decimals. min defaults to the previous tier's max.
    """
    max: float
    decimals: int
    min: Optional[float] = None


QuantizationTable = Tuple[Tier, ...]


DISTANCE_GUESS_TABLE: QuantizationTable = (
    Tier(0.01, 3),
    Tier(0.1, 2),
    Tier(1, 1),
    Tier(10, 1),
    Tier(100, 0),
    Tier(1000, -1),
    Tier(20000, -2),
)

RADIUS_SLIDER_TABLE: QuantizationTable = (
    Tier(10, 0),
    Tier(100, -1),
    Tier(1000, -2),
    Tier(20000, -3),
)

# Score history keeps whole kilometres from 1 km upwards
HISTORY_DISTANCE_TABLE: QuantizationTable = (
    Tier(0.01, 3),
    Tier(0.1, 2),
    Tier(1, 1),
    Tier(10, 0),
    Tier(100, 0),
    Tier(1000, -1),
    Tier(20000, -2),
)


def _bounds(table: Sequence[Tier], index: int) -> Tuple[float, float]:
    tier = table[index]
    if tier.min is not None:
        return tier.min, tier.max
    return (0.0 if index == 0 else table[index - 1].max), tier.max


def _check(table: Sequence[Tier]) -> None:
    if not table:
        raise ValueError("quantization table is empty")
    previous = None
    for index, tier in enumerate(table):
        low, high = _bounds(table, index)
        if high <= low or (previous is not None and high <= previous):
            raise ValueError(f"quantization tier {index} is not increasing: {tier}")
        previous = high


def round_decimals(value: float, decimals: int) -> float:
    """
    Round half away from zero at a decimal position.

    Negative decimals round to tens, hundreds and so on.
    """
    exponent = Decimal(1).scaleb(-decimals)
    return float(Decimal(repr(value)).quantize(exponent, rounding=ROUND_HALF_UP))


def quantize(table: Sequence[Tier], t: float, floor_value: Optional[float] = None) -> float:
    """
    Map a normalized position to a rounded magnitude.

    Args:
        table: Ordered quantization tiers
        t: Control position, clamped into [0, 1]
        floor_value: Replaces results that round to zero or below

    Returns:
        Magnitude rounded with the decimals of the selected tier
    """
    _check(table)
    t = min(1.0, max(0.0, t))
    segment = 1.0 / len(table)

    index = min(int(floor(t / segment)), len(table) - 1)
    progress = (t - index * segment) / segment
    low, high = _bounds(table, index)
    raw = low + (high - low) * progress

    value = round_decimals(raw, table[index].decimals)
    if floor_value is not None and value <= 0:
        return floor_value
    return value


def normalize(table: Sequence[Tier], value: float) -> float:
    """
    Inverse of quantize: position in [0, 1] that maps to a magnitude.

    Values below the table map to 0, values above it to 1.
    """
    _check(table)
    segment = 1.0 / len(table)
    for index in range(len(table)):
        low, high = _bounds(table, index)
        if low <= value <= high:
            frac = (value - low) / (high - low)
            return min(1.0, max(0.0, index * segment + frac * segment))
    return 1.0 if value > table[-1].max else 0.0


def round_to_table(table: Sequence[Tier], value: float) -> float:
    """
    Round a magnitude with the decimals of the first tier that holds it.

    Magnitudes beyond the last tier are rounded to a whole number.
    """
    for tier in table:
        if value <= tier.max:
            return round_decimals(value, tier.decimals)
    return round_decimals(value, 0)


def clip_table(table: Sequence[Tier], minimum: float, maximum: float) -> QuantizationTable:
    """
    Restrict a table to [minimum, maximum], dropping tiers left empty.

    The distance guess input uses this to stop at the current search radius.
    """
    clipped = []
    for index, tier in enumerate(table):
        low, high = _bounds(table, index)
        low = max(low, minimum)
        high = min(high, maximum)
        if low < high:
            clipped.append(Tier(high, tier.decimals, low))
    return tuple(clipped)


def resolution(table: Sequence[Tier], value: float) -> float:
    """Rounding step that quantize applies around a magnitude."""
    for tier in table:
        if value <= tier.max:
            return 10.0 ** -tier.decimals
    return 1.0
