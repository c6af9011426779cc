import logging
from typing import List

from pymongo.database import Database

from .base_repository import MongoRepository
from ...core.models import Player, PlayerStats

log = logging.getLogger(__name__)

class PlayerRepository(MongoRepository[Player, str]):
    """Repository for managing Player data in MongoDB."""

    model_class = Player

    def __init__(self, db: Database):
        super().__init__(db, collection_name="players")

    def list_online(self) -> List[Player]:
        return self.list_all({"is_online": True})


class PlayerStatsRepository(MongoRepository[PlayerStats, str]):
    """Lifetime stats, keyed by player id."""

    model_class = PlayerStats
    key_field = "player_id"

    def __init__(self, db: Database):
        super().__init__(db, collection_name="player_stats")
