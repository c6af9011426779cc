import logging
from typing import List, Optional

from pymongo.database import Database

from .base_repository import MongoRepository
from ...core.models import Quest, PlayerQuest, QuestStatus

log = logging.getLogger(__name__)

class QuestRepository(MongoRepository[Quest, str]):
    """Quest definitions."""

    model_class = Quest

    def __init__(self, db: Database):
        super().__init__(db, collection_name="quests")


class PlayerQuestRepository(MongoRepository[PlayerQuest, int]):
    """Per-player quest rows (active or completed)."""

    model_class = PlayerQuest

    def __init__(self, db: Database):
        super().__init__(db, collection_name="player_quests")

    def find(self, player_id: str, quest_id: str, status: Optional[QuestStatus] = None) -> Optional[PlayerQuest]:
        query = {"player_id": player_id, "quest_id": quest_id}
        if status is not None:
            query["status"] = QuestStatus(status).value
        return self.find_one(query)

    def list_for_player(self, player_id: str) -> List[PlayerQuest]:
        return self.list_all({"player_id": player_id})

    def list_active(self, player_id: str) -> List[PlayerQuest]:
        return self.list_all({"player_id": player_id, "status": QuestStatus.ACTIVE.value})

    def is_completed(self, player_id: str, quest_id: str) -> bool:
        return self.find(player_id, quest_id, QuestStatus.COMPLETED) is not None

    def set_progress(self, row_id: int, progress: str) -> Optional[PlayerQuest]:
        return self.update(row_id, {"progress": progress})

    def delete_for_quest(self, quest_id: str) -> int:
        return self.delete_many({"quest_id": quest_id})
