from math import isnan

import pytest

from bearing_guesser.services.geodesy import (
    Coordinate,
    angle_difference,
    bearing_deg,
    central_angle,
    destination_point,
    distance_km,
    great_circle_points,
    normalize_bearing,
    normalize_longitude,
)

BERLIN = Coordinate(52.5200, 13.4050)
PARIS = Coordinate(48.8566, 2.3522)
SYDNEY = Coordinate(-33.8688, 151.2093)
QUITO = Coordinate(-0.1807, -78.4678)
ANCHORAGE = Coordinate(61.2181, -149.9003)

POINTS = [BERLIN, PARIS, SYDNEY, QUITO, ANCHORAGE, Coordinate(0, 0)]


def test_berlin_to_paris():
    assert distance_km(BERLIN, PARIS) == pytest.approx(878, abs=2)
    # South-west
    assert 240 < bearing_deg(BERLIN, PARIS) < 250


@pytest.mark.parametrize("point", POINTS)
def test_distance_to_self_is_zero(point):
    assert distance_km(point, point) == 0


@pytest.mark.parametrize("a", POINTS)
@pytest.mark.parametrize("b", POINTS)
def test_distance_is_symmetric(a, b):
    assert distance_km(a, b) == pytest.approx(distance_km(b, a), rel=1e-6, abs=1e-9)


def test_distance_along_equator():
    # One degree of arc on a 6371 km sphere
    assert distance_km(Coordinate(0, 0), Coordinate(0, 1)) == pytest.approx(111.195, abs=0.01)


def test_antipodal_distance_is_half_circumference():
    assert distance_km(Coordinate(0, 0), Coordinate(0, 180)) == pytest.approx(20015.09, abs=0.1)


def test_cardinal_bearings():
    origin = Coordinate(0, 0)
    assert bearing_deg(origin, Coordinate(10, 0)) == pytest.approx(0)
    assert bearing_deg(origin, Coordinate(0, 10)) == pytest.approx(90)
    assert bearing_deg(origin, Coordinate(-10, 0)) == pytest.approx(180)
    assert bearing_deg(origin, Coordinate(0, -10)) == pytest.approx(270)


def test_bearing_of_coincident_points_is_zero():
    assert bearing_deg(BERLIN, BERLIN) == 0.0


@pytest.mark.parametrize("a", POINTS)
@pytest.mark.parametrize("b", POINTS)
def test_bearing_in_range(a, b):
    assert 0 <= bearing_deg(a, b) < 360


@pytest.mark.parametrize("origin", [BERLIN, SYDNEY, QUITO, ANCHORAGE])
@pytest.mark.parametrize("distance", [0.5, 12, 878, 5000, 10000])
@pytest.mark.parametrize("bearing", [0, 45, 90, 135, 200, 315])
def test_destination_round_trip(origin, distance, bearing):
    destination = destination_point(origin, distance, bearing)

    assert distance_km(origin, destination) == pytest.approx(distance, rel=1e-3)
    assert angle_difference(bearing_deg(origin, destination), bearing) < 0.5


def test_destination_wraps_across_dateline():
    destination = destination_point(Coordinate(0, 179), distance_km(Coordinate(0, 0), Coordinate(0, 2)), 90)
    assert destination.lat == pytest.approx(0, abs=1e-9)
    assert destination.lon == pytest.approx(-179, abs=1e-6)


def test_destination_with_zero_distance_is_origin():
    destination = destination_point(BERLIN, 0, 123)
    assert destination.lat == pytest.approx(BERLIN.lat)
    assert destination.lon == pytest.approx(BERLIN.lon)


def test_normalizers():
    assert normalize_longitude(190) == pytest.approx(-170)
    assert normalize_longitude(-190) == pytest.approx(170)
    assert normalize_longitude(45) == pytest.approx(45)
    assert normalize_bearing(-10) == pytest.approx(350)
    assert normalize_bearing(360) == 0
    assert angle_difference(350, 10) == pytest.approx(20)
    assert angle_difference(0, 180) == pytest.approx(180)


def test_central_angle_of_quarter_circle():
    assert central_angle(Coordinate(0, 0), Coordinate(0, 90)) == pytest.approx(1.5707963, abs=1e-6)


@pytest.mark.parametrize("n", [1, 2, 7, 64])
@pytest.mark.parametrize("a,b", [(BERLIN, PARIS), (SYDNEY, QUITO), (ANCHORAGE, BERLIN)])
def test_great_circle_endpoints(a, b, n):
    points = great_circle_points(a, b, n)

    assert len(points) == n + 1
    assert points[0].lat == pytest.approx(a.lat, abs=1e-9)
    assert points[0].lon == pytest.approx(a.lon, abs=1e-9)
    assert points[-1].lat == pytest.approx(b.lat, abs=1e-9)
    assert points[-1].lon == pytest.approx(b.lon, abs=1e-9)


def test_great_circle_points_are_evenly_spaced():
    points = great_circle_points(BERLIN, SYDNEY, 8)
    step = distance_km(BERLIN, SYDNEY) / 8

    for p, q in zip(points, points[1:]):
        assert distance_km(p, q) == pytest.approx(step, rel=1e-6)


def test_great_circle_midpoint_on_equator():
    points = great_circle_points(Coordinate(0, 0), Coordinate(0, 90), 2)
    assert points[1].lat == pytest.approx(0, abs=1e-9)
    assert points[1].lon == pytest.approx(45)


def test_great_circle_of_identical_points():
    points = great_circle_points(BERLIN, BERLIN, 5)
    assert points == [BERLIN] * 6


def test_great_circle_between_antipodes_is_finite():
    a = Coordinate(10, 20)
    b = Coordinate(-10, -160)
    points = great_circle_points(a, b, 4)

    assert len(points) == 5
    assert not any(isnan(p.lat) or isnan(p.lon) for p in points)
    assert points[0].lat == pytest.approx(a.lat)
    assert points[-1] == b
    # Routed over the north pole
    assert points[2].lat == pytest.approx(80)
    step = distance_km(a, b) / 4
    for p, q in zip(points, points[1:]):
        assert distance_km(p, q) == pytest.approx(step, rel=1e-6)


def test_great_circle_requires_a_segment():
    with pytest.raises(ValueError):
        great_circle_points(BERLIN, PARIS, 0)
