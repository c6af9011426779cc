import logging
from typing import List, Optional

from pymongo.database import Database

from .base_repository import MongoRepository
from ...core.models import Npc, PlayerNpcInteraction

log = logging.getLogger(__name__)

class NpcRepository(MongoRepository[Npc, str]):
    """NPC definitions. Admin managed."""

    model_class = Npc

    def __init__(self, db: Database):
        super().__init__(db, collection_name="npcs")


class PlayerNpcInteractionRepository(MongoRepository[PlayerNpcInteraction, int]):
    """Per-player NPC relationship rows."""

    model_class = PlayerNpcInteraction

    def __init__(self, db: Database):
        super().__init__(db, collection_name="player_npc_interactions")

    def find(self, player_id: str, npc_id: str) -> Optional[PlayerNpcInteraction]:
        return self.find_one({"player_id": player_id, "npc_id": npc_id})

    def list_for_player(self, player_id: str) -> List[PlayerNpcInteraction]:
        return self.list_all({"player_id": player_id})
