"""Default item definitions and quests loaded into an empty world."""
import logging
from typing import List, Tuple

from ..core import rules
from ..core.models import ItemDefinition, ItemKind, Quest, QuestType
from ..database.store import GameStore

log = logging.getLogger(__name__)

FISH_NAMES = {
    "pond": ["Pond Sunfish", "Pond Bass", "Pond Pike", "Pond Legend"],
    "river": ["River Trout", "River Salmon", "River Catfish", "River Monster"],
    "ocean": ["Ocean Mackerel", "Ocean Tuna", "Ocean Marlin", "Ocean Leviathan"],
    "night": ["Night Eel", "Night Lanternfish", "Night Anglerfish", "Night Phantom"],
}
POLE_NAMES = ["Starter Rod", "Steel Rod", "Carbon Rod", "Legendary Rod"]
LURE_NAMES = ["Basic Lure", "Spinner Lure", "Premium Lure", "Master Lure"]
LURE_STACK_SIZE = 99


def default_items() -> List[ItemDefinition]:
    items = []
    for water_type, names in FISH_NAMES.items():
        for tier, name in enumerate(names, start=1):
            item_id = f"fish_{water_type}_{tier}"
            items.append(ItemDefinition(
                id=item_id, name=name, category=ItemKind.FISH, water_type=water_type,
                tier=tier, buy_price=0, sell_price=rules.base_sell_price(item_id),
                stack_size=rules.capacity(item_id), sprite_id=item_id,
            ))
    for prefix, kind, names in (("pole", ItemKind.POLE, POLE_NAMES), ("lure", ItemKind.LURE, LURE_NAMES)):
        for tier, name in enumerate(names, start=1):
            item_id = f"{prefix}_{tier}"
            items.append(ItemDefinition(
                id=item_id, name=name, category=kind, tier=tier,
                buy_price=rules.buy_price(item_id), sell_price=rules.base_sell_price(item_id),
                stack_size=rules.capacity(item_id) if kind is ItemKind.POLE else LURE_STACK_SIZE,
                sprite_id=item_id,
            ))
    return items


def default_quests() -> List[Quest]:
    return [
        Quest(
            id="guild_1",
            title="Guild Initiation",
            description="Prove your worth to the Fisherman's Guild by catching any 2 fish.",
            quest_type=QuestType.STORY, storyline="fishermans_guild", story_order=1,
            requirements='{"total_fish": 2}',
            rewards='{"gold": 50}',
        ),
        Quest(
            id="guild_2",
            title="Freshwater Mastery",
            description="Master the art of freshwater fishing. Catch 3 pond fish and 2 river fish.",
            quest_type=QuestType.STORY, storyline="fishermans_guild", story_order=2,
            prerequisite_quest_id="guild_1",
            requirements='{"fish": {"fish_pond_1": 1, "fish_pond_2": 1, "fish_pond_3": 1, '
                         '"fish_river_1": 1, "fish_river_2": 1}}',
            rewards='{"gold": 100, "items": [{"item_id": "pole_2", "quantity": 1}]}',
        ),
        Quest(
            id="guild_3",
            title="Guild Champion",
            description="Become a true champion! Catch a rare 3-star fish of any type.",
            quest_type=QuestType.STORY, storyline="fishermans_guild", story_order=3,
            prerequisite_quest_id="guild_2",
            requirements='{"min_rarity": 3}',
            rewards='{"gold": 300, "items": [{"item_id": "pole_3", "quantity": 1}]}',
        ),
        Quest(
            id="ocean_1",
            title="Coastal Curiosity",
            description="The ocean holds many secrets. Start by catching 3 ocean fish.",
            quest_type=QuestType.STORY, storyline="ocean_mysteries", story_order=1,
            requirements='{"fish": {"fish_ocean_1": 1, "fish_ocean_2": 1, "fish_ocean_3": 1}}',
            rewards='{"gold": 75}',
        ),
        Quest(
            id="ocean_2",
            title="Deep Waters",
            description="Venture deeper into the ocean's mysteries. "
                        "Catch 5 ocean fish including at least one 2-star.",
            quest_type=QuestType.STORY, storyline="ocean_mysteries", story_order=2,
            prerequisite_quest_id="ocean_1",
            requirements='{"total_fish": 5, "min_rarity": 2}',
            rewards='{"gold": 200, "items": [{"item_id": "lure_2", "quantity": 1}]}',
        ),
        Quest(
            id="daily_haul",
            title="Daily Haul",
            description="A simple task for any fisher. Catch 5 fish of any type today.",
            quest_type=QuestType.DAILY,
            requirements='{"total_fish": 5}',
            rewards='{"gold": 25}',
        ),
    ]


def seed_defaults(store: GameStore) -> Tuple[int, int]:
    """Insert default items and quests whose ids are missing.

    Returns (added, skipped).
    """
    added = skipped = 0
    for repo, rows in ((store.items, default_items()), (store.quests, default_quests())):
        for row in rows:
            if repo.get_by_id(row.id) is None:
                repo.create(row)
                added += 1
            else:
                skipped += 1
    log.info(f"Seeded defaults: {added} added, {skipped} already existed")
    return added, skipped
