import asyncio
import random

import httpx
import pytest
from fastapi import HTTPException

from bearing_guesser.config import Settings
from bearing_guesser.models.location import Location
from bearing_guesser.services.geodesy import Coordinate
from bearing_guesser.services.locations import (
    Dataset,
    LocationLoader,
    build_datasets,
    default_radius_km,
    filter_and_sort_by_distance,
    parse_locations_csv,
    pick_question,
)

BERLIN = Coordinate(52.52, 13.405)

CSV = """name,lat,lon,type,country,population
Paris,48.8566,2.3522,city,France,2148000
Hamburg,53.5511,9.9937,city,Germany,1841000
Broken,not-a-number,1,city,Nowhere,0
Potsdam,52.3906,13.0645,city,Germany,
"Washington, D.C.",38.9072,-77.0369,capital,USA,689545
"""


def _loc(name, lat, lon):
    return Location(name=name, lat=lat, lon=lon, type="city", country="X")


PLACES = [
    _loc("Paris", 48.8566, 2.3522),
    _loc("Hamburg", 53.5511, 9.9937),
    _loc("Potsdam", 52.3906, 13.0645),
    _loc("Madrid", 40.4168, -3.7038),
]


def test_parse_locations_csv():
    locations = parse_locations_csv(CSV)

    assert [loc.name for loc in locations] == ["Paris", "Hamburg", "Potsdam", "Washington, D.C."]
    assert locations[0].lat == pytest.approx(48.8566)
    assert locations[0].population == 2148000
    assert locations[2].population == 0
    assert locations[3].type == "capital"


def test_parse_skips_out_of_range_coordinates():
    locations = parse_locations_csv("name,lat,lon,type,country,population\nNowhere,95,0,city,X,1\n")
    assert locations == []


def test_filter_and_sort_by_distance():
    within = filter_and_sort_by_distance(PLACES, BERLIN, 1000)

    assert [loc.name for loc, _ in within] == ["Potsdam", "Hamburg", "Paris"]
    distances = [dist for _, dist in within]
    assert distances == sorted(distances)
    assert all(dist <= 1000 for dist in distances)


def test_default_radius_rounds_up_farthest_location():
    # Madrid is about 1870 km from Berlin
    assert default_radius_km(PLACES, BERLIN, 5000) == 2000
    assert default_radius_km(PLACES[:2], BERLIN, 5000) == 900
    assert default_radius_km([_loc("Potsdam", 52.3906, 13.0645)], BERLIN, 5000) == 30


def test_default_radius_small_distances():
    near = [_loc("Near", 52.56, 13.405)]
    assert default_radius_km(near, BERLIN, 5000) == 5


def test_default_radius_falls_back():
    assert default_radius_km([], BERLIN, 1234) == 1234
    assert default_radius_km([_loc("Here", BERLIN.lat, BERLIN.lon)], BERLIN, 1234) == 1234


def test_pick_question_avoids_current():
    for seed in range(20):
        question, _ = pick_question(PLACES, "Paris", [], 5, rng=random.Random(seed))
        assert question.name != "Paris"


def test_pick_question_single_candidate_repeats():
    question, recent = pick_question(PLACES[:1], "Paris", ["Paris"], 5)
    assert question.name == "Paris"
    assert recent == ["Paris"]


def test_pick_question_avoids_recent_when_enough_candidates():
    for seed in range(20):
        question, recent = pick_question(PLACES, None, ["Paris", "Hamburg"], 2, rng=random.Random(seed))
        assert question.name in ("Potsdam", "Madrid")
        assert recent == ["Hamburg", question.name]


def test_pick_question_requires_candidates():
    with pytest.raises(ValueError):
        pick_question([], None, [], 5)


def test_build_datasets():
    datasets = build_datasets(Settings())

    assert set(datasets) == {"global", "capitals", "germany", "bremen", "custom"}
    assert datasets["bremen"].default_radius_km == 30
    assert datasets["custom"].remote is False
    assert datasets["global"].remote is True


def _loader(handler):
    datasets = {
        "test": Dataset("test", "Test", 1000, "https://example.com/test.csv"),
        "custom": Dataset("custom", "Custom", 10000),
    }
    return LocationLoader(datasets, transport=httpx.MockTransport(handler))


def test_loader_fetches_and_caches():
    calls = []

    def handler(request):
        calls.append(request.url)
        return httpx.Response(200, text=CSV)

    loader = _loader(handler)
    first = asyncio.run(loader.load("test"))
    second = asyncio.run(loader.load("test"))

    assert len(first) == 4
    assert second is first
    assert len(calls) == 1

    loader.clear()
    asyncio.run(loader.load("test"))
    assert len(calls) == 2


def test_loader_unknown_dataset():
    loader = _loader(lambda request: httpx.Response(200, text=CSV))
    with pytest.raises(HTTPException) as exc:
        asyncio.run(loader.load("nope"))
    assert exc.value.status_code == 404


def test_loader_rejects_local_dataset():
    loader = _loader(lambda request: httpx.Response(200, text=CSV))
    with pytest.raises(HTTPException) as exc:
        asyncio.run(loader.load("custom"))
    assert exc.value.status_code == 400


def test_loader_upstream_error():
    loader = _loader(lambda request: httpx.Response(500))
    with pytest.raises(HTTPException) as exc:
        asyncio.run(loader.load("test"))
    assert exc.value.status_code == 502


def test_loader_unreachable_source():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    loader = _loader(handler)
    with pytest.raises(HTTPException) as exc:
        asyncio.run(loader.load("test"))
    assert exc.value.status_code == 503


def test_slow_dataset_does_not_block_others():
    async def scenario():
        started = asyncio.Event()
        released = asyncio.Event()

        async def handler(request):
            if request.url.path == "/slow.csv":
                started.set()
                await released.wait()
            return httpx.Response(200, text=CSV)

        loader = LocationLoader(
            {
                "slow": Dataset("slow", "Slow", 1000, "https://example.com/slow.csv"),
                "fast": Dataset("fast", "Fast", 1000, "https://example.com/fast.csv"),
            },
            transport=httpx.MockTransport(handler),
        )
        slow = asyncio.create_task(loader.load("slow"))
        await started.wait()

        fast = await asyncio.wait_for(loader.load("fast"), timeout=5)
        assert not slow.done()

        released.set()
        return fast, await slow

    fast, slow = asyncio.run(scenario())

    assert len(fast) == 4
    assert len(slow) == 4
