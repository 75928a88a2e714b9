from math import radians, degrees, sin, cos, asin, sqrt, atan2, pi
from typing import List, NamedTuple


# Mean Earth radius in kilometers
EARTH_RADIUS_KM = 6371.0

# Below this sin(central angle) two points are treated as identical or antipodal
_DEGENERATE_ANGLE = 1e-12


class Coordinate(NamedTuple):
    """A point on the sphere in degrees."""
    lat: float
    lon: float


def normalize_longitude(lon: float) -> float:
    """Wrap a longitude into [-180, 180)."""
    return ((lon + 540.0) % 360.0) - 180.0


def normalize_bearing(bearing: float) -> float:
    """Wrap a bearing into [0, 360)."""
    return bearing % 360.0


def angle_difference(a: float, b: float) -> float:
    """Smallest circular difference between two bearings, in [0, 180]."""
    diff = abs(a - b) % 360.0
    return min(diff, 360.0 - diff)


def distance_km(a: Coordinate, b: Coordinate) -> float:
    """
    Calculate the great circle distance between two points on Earth.

    Args:
        a, b: Coordinates of the two points (degrees)

    Returns:
        Distance in kilometers
    """
    lat1_rad = radians(a.lat)
    lat2_rad = radians(b.lat)

    # Haversine formula
    dlat = lat2_rad - lat1_rad
    dlon = radians(b.lon - a.lon)

    h = sin(dlat / 2)**2 + cos(lat1_rad) * cos(lat2_rad) * sin(dlon / 2)**2
    # Rounding can push h a hair outside [0, 1] for near-antipodal points
    h = min(1.0, max(0.0, h))
    c = 2 * atan2(sqrt(h), sqrt(1 - h))

    return EARTH_RADIUS_KM * c


def bearing_deg(origin: Coordinate, to: Coordinate) -> float:
    """
    Initial bearing of the great circle from origin to another point.

    Args:
        origin: Starting coordinate (degrees)
        to: Destination coordinate (degrees)

    Returns:
        Bearing in degrees clockwise from true north, in [0, 360).
        Coincident points yield 0.0.
    """
    lat1 = radians(origin.lat)
    lat2 = radians(to.lat)
    dlon = radians(to.lon - origin.lon)

    y = sin(dlon) * cos(lat2)
    x = cos(lat1) * sin(lat2) - sin(lat1) * cos(lat2) * cos(dlon)
    theta = atan2(y, x)

    return normalize_bearing(degrees(theta) + 360.0)


def destination_point(origin: Coordinate, distance: float, bearing: float) -> Coordinate:
    """
    Point reached by travelling a distance along a bearing from origin.

    Args:
        origin: Starting coordinate (degrees)
        distance: Distance to travel in kilometers
        bearing: Initial bearing in degrees

    Returns:
        Destination coordinate with longitude wrapped into [-180, 180)
    """
    if distance == 0:
        return Coordinate(origin.lat, origin.lon)

    lat1 = radians(origin.lat)
    lon1 = radians(origin.lon)
    theta = radians(bearing)
    delta = distance / EARTH_RADIUS_KM

    sin_lat2 = sin(lat1) * cos(delta) + cos(lat1) * sin(delta) * cos(theta)
    lat2 = asin(min(1.0, max(-1.0, sin_lat2)))
    lon2 = lon1 + atan2(
        sin(theta) * sin(delta) * cos(lat1),
        cos(delta) - sin(lat1) * sin(lat2)
    )

    return Coordinate(degrees(lat2), normalize_longitude(degrees(lon2)))



def _to_vector(point: Coordinate):
    phi, lam = radians(point.lat), radians(point.lon)
    return (cos(phi) * cos(lam), cos(phi) * sin(lam), sin(phi))


def _to_coordinate(x: float, y: float, z: float) -> Coordinate:
    lat = degrees(atan2(z, sqrt(x * x + y * y)))
    lon = degrees(atan2(y, x))
    return Coordinate(lat, normalize_longitude(lon))


def _antipodal_points(a: Coordinate, n: int) -> List[Coordinate]:
    """
    Half great circle between antipodes, routed through the pole on a's side.

    The path between antipodal points is not unique; rotating a towards the
    pole of its own hemisphere (north for the equator) keeps the result
    deterministic.
    """
    p1 = _to_vector(a)
    pole = (0.0, 0.0, 1.0) if a.lat >= 0 else (0.0, 0.0, -1.0)
    dot = _dot(p1, pole)
    u = tuple(q - dot * p for p, q in zip(p1, pole))
    norm = sqrt(sum(c * c for c in u))
    if norm < _DEGENERATE_ANGLE:
        # a is itself a pole: travel along the prime meridian
        u = (1.0, 0.0, 0.0)
        norm = 1.0
    u = tuple(c / norm for c in u)

    points = []
    for i in range(n + 1):
        t = pi * i / n
        x, y, z = (cos(t) * p + sin(t) * q for p, q in zip(p1, u))
        points.append(_to_coordinate(x, y, z))
    return points


def _cross_norm(p, q) -> float:
    return sqrt(
        (p[1] * q[2] - p[2] * q[1]) ** 2
        + (p[2] * q[0] - p[0] * q[2]) ** 2
        + (p[0] * q[1] - p[1] * q[0]) ** 2
    )


def _dot(p, q) -> float:
    return p[0] * q[0] + p[1] * q[1] + p[2] * q[2]


def central_angle(a: Coordinate, b: Coordinate) -> float:
    """
    Angular separation of two points in radians, in [0, pi].

    Equal to acos(sin φ1·sin φ2 + cos φ1·cos φ2·cos Δλ), evaluated as
    atan2(|P1 × P2|, P1 · P2) on the unit vectors so that nearby points
    keep their precision.
    """
    p1, p2 = _to_vector(a), _to_vector(b)
    return atan2(_cross_norm(p1, p2), _dot(p1, p2))


def great_circle_points(a: Coordinate, b: Coordinate, n: int) -> List[Coordinate]:
    """
    Evenly spaced points along the great circle from a to b.

    Uses spherical linear interpolation on the unit-sphere embedding.

    Args:
        a: Start coordinate
        b: End coordinate
        n: Number of segments (>= 1)

    Returns:
        n + 1 coordinates, first equal to a and last equal to b
    """
    if n < 1:
        raise ValueError(f"n must be at least 1, got {n}")

    p1 = _to_vector(a)
    p2 = _to_vector(b)

    # sin(delta) vanishes for identical and for antipodal points
    if _cross_norm(p1, p2) < _DEGENERATE_ANGLE:
        if _dot(p1, p2) > 0:
            return [Coordinate(a.lat, a.lon) for _ in range(n + 1)]
        points = _antipodal_points(a, n)
        points[-1] = Coordinate(b.lat, b.lon)
        return points

    delta = central_angle(a, b)
    sin_delta = sin(delta)
    points = []
    for i in range(n + 1):
        f = i / n
        weight_a = sin((1 - f) * delta) / sin_delta
        weight_b = sin(f * delta) / sin_delta
        x, y, z = (weight_a * p + weight_b * q for p, q in zip(p1, p2))
        points.append(_to_coordinate(x, y, z))

    return points
