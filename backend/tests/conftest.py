import pytest
from fastapi.testclient import TestClient

from bearing_guesser.database.session import configure_engine
from bearing_guesser.dependencies import get_location_loader
from bearing_guesser.main import app
from bearing_guesser.models.location import Location
from bearing_guesser.services.locations import Dataset, LocationLoader

TEST_LOCATIONS = [
    Location(name="Paris", lat=48.8566, lon=2.3522, type="capital", country="France", population=2148000),
    Location(name="Hamburg", lat=53.5511, lon=9.9937, type="city", country="Germany", population=1841000),
    Location(name="Potsdam", lat=52.3906, lon=13.0645, type="city", country="Germany", population=182000),
    Location(name="Sydney", lat=-33.8688, lon=151.2093, type="city", country="Australia", population=5312000),
]


class StubLoader(LocationLoader):
    """Serves a fixed dataset without network access."""

    def __init__(self):
        super().__init__({
            "global": Dataset("global", "Global Cities", 15000, "https://example.com/global.csv"),
            "custom": Dataset("custom", "Custom Locations", 10000),
        })

    async def load(self, key):
        self.get_dataset(key)
        return TEST_LOCATIONS


@pytest.fixture
def client(tmp_path):
    configure_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    app.dependency_overrides[get_location_loader] = StubLoader
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
