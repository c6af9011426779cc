import logging
from typing import List, Optional

from pymongo.database import Database

from .base_repository import MongoRepository
from ...core.models import EventType, PlayerSession, GameEvent, FishCatch

log = logging.getLogger(__name__)

class SessionRepository(MongoRepository[PlayerSession, int]):
    """Play sessions."""

    model_class = PlayerSession

    def __init__(self, db: Database):
        super().__init__(db, collection_name="player_sessions")

    def list_active(self, player_id: str) -> List[PlayerSession]:
        return self.list_all({"player_id": player_id, "is_active": True})

    def get_active(self, player_id: str) -> Optional[PlayerSession]:
        return self.find_one({"player_id": player_id, "is_active": True})


class GameEventRepository(MongoRepository[GameEvent, int]):
    """Append-only audit log. Rows are never updated or deleted by the engine."""

    model_class = GameEvent

    def __init__(self, db: Database):
        super().__init__(db, collection_name="game_events")

    def list_for_player(self, player_id: str, event_type: Optional[str] = None) -> List[GameEvent]:
        query = {"player_id": player_id}
        if event_type is not None:
            query["event_type"] = EventType(event_type).value
        return self.list_all(query)


class FishCatchRepository(MongoRepository[FishCatch, int]):
    """Catch log."""

    model_class = FishCatch

    def __init__(self, db: Database):
        super().__init__(db, collection_name="fish_catches")

    def list_for_player(self, player_id: str) -> List[FishCatch]:
        return self.list_all({"player_id": player_id})
