import logging

from pymongo import ASCENDING
from pymongo.database import Database

from .repositories.player_repository import PlayerRepository, PlayerStatsRepository
from .repositories.inventory_repository import InventoryRepository, ItemDefinitionRepository
from .repositories.quest_repository import QuestRepository, PlayerQuestRepository
from .repositories.activity_repository import SessionRepository, GameEventRepository, FishCatchRepository
from .repositories.npc_repository import NpcRepository, PlayerNpcInteractionRepository

log = logging.getLogger(__name__)

class GameStore:
    """All repositories the engine reads and writes, bound to one database.

    Passed explicitly into every manager; nothing in the game layer reaches
    for a global database handle.
    """

    def __init__(self, db: Database):
        self.db = db
        self.players = PlayerRepository(db)
        self.stats = PlayerStatsRepository(db)
        self.inventory = InventoryRepository(db)
        self.items = ItemDefinitionRepository(db)
        self.quests = QuestRepository(db)
        self.player_quests = PlayerQuestRepository(db)
        self.sessions = SessionRepository(db)
        self.events = GameEventRepository(db)
        self.catches = FishCatchRepository(db)
        self.npcs = NpcRepository(db)
        self.npc_interactions = PlayerNpcInteractionRepository(db)

    def ensure_indexes(self):
        """Create the lookup indexes the engine's queries rely on."""
        self.players.collection.create_index("id", unique=True)
        self.stats.collection.create_index("player_id", unique=True)
        self.items.collection.create_index("id", unique=True)
        self.quests.collection.create_index("id", unique=True)
        self.npcs.collection.create_index("id", unique=True)
        for repo in (self.inventory, self.player_quests, self.sessions, self.events, self.catches,
                     self.npc_interactions):
            repo.collection.create_index("id", unique=True)
        self.inventory.collection.create_index(
            [("player_id", ASCENDING), ("item_id", ASCENDING), ("rarity", ASCENDING)]
        )
        self.player_quests.collection.create_index([("player_id", ASCENDING), ("quest_id", ASCENDING)])
        self.sessions.collection.create_index([("player_id", ASCENDING), ("is_active", ASCENDING)])
        self.events.collection.create_index("player_id")
        self.npc_interactions.collection.create_index(
            [("player_id", ASCENDING), ("npc_id", ASCENDING)], unique=True
        )
        log.info("MongoDB indexes ensured.")
