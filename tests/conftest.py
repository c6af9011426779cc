from datetime import datetime, timedelta, timezone

import mongomock
import pytest

from lurelands.database.store import GameStore
from lurelands.game.services.game_service import GameService

SPAWN_POINTS = [(400.0, 300.0), (1700.0, 300.0), (1000.0, 1000.0)]


class FakeClock:
    """Controllable stand-in for utcnow()."""

    def __init__(self):
        self.now = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: int):
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    client = mongomock.MongoClient(tz_aware=True)
    game_store = GameStore(client["lurelands_test"])
    game_store.ensure_indexes()
    return game_store


@pytest.fixture
def service(store, clock):
    game_service = GameService.create(store, spawn_points=SPAWN_POINTS, clock=clock)
    game_service.seed_defaults()
    return game_service


@pytest.fixture
def player(service):
    return service.join_world("player-1", "Angler", 0xFF3498DB)
