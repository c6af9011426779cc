from datetime import datetime, timezone
from enum import Enum
from functools import lru_cache
from typing import Optional, List

from pydantic import BaseModel, ConfigDict, Field

# Using Pydantic for data validation and clear schemas.
# Every model maps 1:1 onto a MongoDB collection (see database/repositories).


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """MongoDB hands back naive datetimes unless the client is tz_aware."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class ItemKind(str, Enum):
    """Item category, resolved once per item id."""
    FISH = "fish"
    POLE = "pole"
    LURE = "lure"
    OTHER = "other"

    @classmethod
    def of(cls, item_id: str) -> "ItemKind":
        return _kind_for_id(item_id)


@lru_cache(maxsize=1024)
def _kind_for_id(item_id: str) -> ItemKind:
    for kind in (ItemKind.FISH, ItemKind.POLE, ItemKind.LURE):
        if item_id.startswith(f"{kind.value}_"):
            return kind
    return ItemKind.OTHER


class QuestType(str, Enum):
    STORY = "story"
    DAILY = "daily"


class QuestStatus(str, Enum):
    # "available" is computed, never stored
    ACTIVE = "active"
    COMPLETED = "completed"


class EventType(str, Enum):
    FISH_CAUGHT = "fish_caught"
    ITEM_BOUGHT = "item_bought"
    ITEM_SOLD = "item_sold"
    SESSION_STARTED = "session_started"
    SESSION_ENDED = "session_ended"
    POLE_EQUIPPED = "pole_equipped"
    POLE_UNEQUIPPED = "pole_unequipped"
    QUEST_ACCEPTED = "quest_accepted"
    QUEST_COMPLETED = "quest_completed"


class NpcInteractionType(str, Enum):
    TALKED = "talked"
    TRADED = "traded"


class Row(BaseModel):
    """Base for persisted rows. Enums are stored as their plain values."""
    model_config = ConfigDict(use_enum_values=True)


class Position(BaseModel):
    """Represents a 2D position in the game world."""
    x: float = 0.0
    y: float = 0.0


class Player(Row):
    """A player account. Never deleted, only marked offline."""
    id: str
    name: str
    x: float = 0.0
    y: float = 0.0
    facing_angle: float = 0.0
    is_casting: bool = False
    cast_target_x: Optional[float] = None
    cast_target_y: Optional[float] = None
    color: int = 0xFFE74C3C # ARGB
    is_online: bool = False
    gold: int = Field(0, ge=0)
    equipped_pole_id: Optional[str] = None
    last_updated: datetime = Field(default_factory=utcnow)


class InventoryStack(Row):
    """One stack of a single (item, rarity) pair owned by a player."""
    id: int
    player_id: str
    item_id: str
    rarity: int = 0 # 0 = non-fish / base, 1-3 = fish stars
    quantity: int = Field(..., ge=1)


class ItemDefinition(Row):
    """Reference data for an item. Admin managed, read-only for the engine."""
    id: str
    name: str
    category: ItemKind
    water_type: Optional[str] = None
    tier: int = 1
    buy_price: int = 0
    sell_price: int = 0
    stack_size: int = 1
    sprite_id: str = ""
    description: Optional[str] = None
    is_active: bool = True


class FishCatch(Row):
    """Catch log row."""
    id: int
    fish_id: str
    player_id: str
    fish_type: str
    size: float
    rarity: str # e.g. "2star"
    water_body_id: str
    released: bool = False
    caught_at: datetime = Field(default_factory=utcnow)


class Quest(Row):
    id: str
    title: str
    description: str = ""
    quest_type: QuestType
    storyline: Optional[str] = None
    story_order: Optional[int] = None
    prerequisite_quest_id: Optional[str] = None
    requirements: str = "{}" # restricted document, see core/documents.py
    rewards: str = "{}"
    quest_giver_type: Optional[str] = None
    quest_giver_id: Optional[str] = None

    @property
    def is_story(self) -> bool:
        return self.quest_type == QuestType.STORY


class Npc(Row):
    """A non-player character that can give quests or trade."""
    id: str # e.g. "guild_master"
    name: str
    title: Optional[str] = None
    description: Optional[str] = None
    location_x: Optional[float] = None
    location_y: Optional[float] = None
    sprite_id: Optional[str] = None
    can_give_quests: bool = False
    can_trade: bool = False
    is_active: bool = True


class PlayerNpcInteraction(Row):
    """Relationship row for one (player, npc) pair, created on first contact."""
    id: int
    player_id: str
    npc_id: str
    has_talked: bool = False
    has_traded: bool = False
    talk_count: int = 0
    reputation: int = 0
    first_interaction_at: datetime = Field(default_factory=utcnow)
    last_interaction_at: datetime = Field(default_factory=utcnow)


class PlayerQuest(Row):
    id: int
    player_id: str
    quest_id: str
    status: QuestStatus
    progress: str = "{}"
    accepted_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class PlayerStats(Row):
    """Lifetime counters and level state, 1:1 with Player."""
    player_id: str
    total_playtime_seconds: int = 0
    total_sessions: int = 0
    total_fish_caught: int = 0
    total_gold_earned: int = 0
    total_gold_spent: int = 0
    first_seen_at: datetime = Field(default_factory=utcnow)
    last_seen_at: datetime = Field(default_factory=utcnow)
    level: int = 1
    xp: int = 0
    xp_to_next_level: int = 0


class PlayerSession(Row):
    id: int
    player_id: str
    started_at: datetime = Field(default_factory=utcnow)
    ended_at: Optional[datetime] = None
    duration_seconds: int = 0
    is_active: bool = True


class GameEvent(Row):
    """Append-only audit row."""
    id: int
    player_id: str
    session_id: Optional[int] = None
    event_type: EventType
    item_id: Optional[str] = None
    quantity: Optional[int] = None
    gold_amount: Optional[int] = None
    rarity: Optional[int] = None
    water_body_id: Optional[str] = None
    metadata: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)


class QuestBoard(BaseModel):
    """Computed quest view for a single player."""
    available: List[Quest] = Field(default_factory=list)
    active: List[PlayerQuest] = Field(default_factory=list)
    completed: List[PlayerQuest] = Field(default_factory=list)
