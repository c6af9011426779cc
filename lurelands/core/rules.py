"""Server-authoritative pricing, stacking and XP rules. Pure functions only."""
import sys
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Tuple

from .models import ItemKind, QuestType

# --- Stacking ---

MAX_FISH_STACK_SIZE = 5
MAX_POLE_STACK_SIZE = 1
UNBOUNDED_STACK_SIZE = sys.maxsize

STARTER_POLE_ID = "pole_1"

# --- Pricing ---

BASE_SELL_PRICES: Dict[str, int] = {
    "fish_pond_1": 10,
    "fish_pond_2": 25,
    "fish_pond_3": 50,
    "fish_pond_4": 150,
    "fish_river_1": 12,
    "fish_river_2": 30,
    "fish_river_3": 60,
    "fish_river_4": 180,
    "fish_ocean_1": 15,
    "fish_ocean_2": 40,
    "fish_ocean_3": 80,
    "fish_ocean_4": 250,
    "fish_night_1": 20,
    "fish_night_2": 45,
    "fish_night_3": 90,
    "fish_night_4": 300,
    "pole_1": 0,
    "pole_2": 200,
    "pole_3": 500,
    "pole_4": 1500,
    "lure_1": 10,
    "lure_2": 30,
    "lure_3": 80,
    "lure_4": 250,
}
DEFAULT_BASE_SELL_PRICE = 5

BUY_PRICES: Dict[str, int] = {
    "pole_1": 0, # free starter pole
    "pole_2": 200,
    "pole_3": 500,
    "pole_4": 1500,
    "lure_1": 20,
    "lure_2": 60,
    "lure_3": 160,
    "lure_4": 500,
}

RARITY_MULTIPLIERS: Dict[int, float] = {0: 1.0, 1: 1.0, 2: 2.0, 3: 4.0}

# --- Levels & XP ---

XP_BASE = 100.0
XP_EXPONENT = 1.5
XP_PER_FISH_BASE = 10
XP_PER_FISH_TIER = 10
XP_PER_RARITY_STAR = 5
XP_QUEST_BASE = 50
XP_QUEST_STORY_BONUS = 100


def round_half_up(value: float) -> int:
    """Round to nearest with .5 going up, independent of float repr quirks."""
    return int(Decimal(value).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def is_pole_item(item_id: str) -> bool:
    return ItemKind.of(item_id) is ItemKind.POLE


def is_fish_item(item_id: str) -> bool:
    return ItemKind.of(item_id) is ItemKind.FISH


def capacity(item_id: str) -> int:
    """Maximum quantity a single inventory stack of item_id may hold."""
    if is_pole_item(item_id):
        return MAX_POLE_STACK_SIZE
    if is_fish_item(item_id):
        return MAX_FISH_STACK_SIZE
    return UNBOUNDED_STACK_SIZE


def base_sell_price(item_id: str) -> int:
    return BASE_SELL_PRICES.get(item_id, DEFAULT_BASE_SELL_PRICE)


def buy_price(item_id: str) -> int:
    """Shop price; 0 means not purchasable (except the starter pole)."""
    return BUY_PRICES.get(item_id, 0)


def is_purchasable(item_id: str) -> bool:
    return buy_price(item_id) > 0 or item_id == STARTER_POLE_ID


def rarity_multiplier(rarity: int) -> float:
    return RARITY_MULTIPLIERS.get(rarity, 1.0)


def sell_price(item_id: str, rarity: int) -> int:
    """Unit sell price: base price scaled by the rarity multiplier."""
    return round_half_up(base_sell_price(item_id) * rarity_multiplier(rarity))


def xp_for_level(level: int) -> int:
    """XP needed to go from level - 1 to level (100 * level^1.5)."""
    if level <= 1:
        return 0
    return round_half_up(XP_BASE * level ** XP_EXPONENT)


def fish_tier(item_id: str) -> int:
    """Trailing numeric suffix of an item id, e.g. fish_pond_2 -> 2."""
    suffix = item_id.rsplit("_", 1)[-1]
    if suffix.isascii() and suffix.isdigit():
        return int(suffix)
    return 1


def fish_xp(item_id: str, rarity: int) -> int:
    return (
        XP_PER_FISH_BASE
        + fish_tier(item_id) * XP_PER_FISH_TIER
        + max(rarity - 1, 0) * XP_PER_RARITY_STAR
    )


def quest_xp(quest_type: QuestType) -> int:
    if quest_type == QuestType.STORY:
        return XP_QUEST_BASE + XP_QUEST_STORY_BONUS
    return XP_QUEST_BASE


def level_up(level: int, xp: int, xp_to_next_level: int, gained: int) -> Tuple[int, int, int]:
    """Apply gained XP and resolve any level ups.

    Returns the new (level, xp, xp_to_next_level). A level of 0 is treated as
    a fresh level 1 record. Afterwards xp < xp_to_next_level always holds.
    """
    if level <= 0:
        level = 1
        xp_to_next_level = xp_for_level(2)
    elif xp_to_next_level <= 0:
        xp_to_next_level = xp_for_level(level + 1)

    xp += gained
    while xp >= xp_to_next_level > 0:
        xp -= xp_to_next_level
        level += 1
        xp_to_next_level = xp_for_level(level + 1)
    return level, xp, xp_to_next_level
