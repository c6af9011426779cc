import sys

import pytest

from lurelands.core import rules
from lurelands.core.models import ItemKind, QuestType


class TestItemKinds:

    @pytest.mark.parametrize("item_id,kind", [
        ("fish_pond_1", ItemKind.FISH),
        ("pole_3", ItemKind.POLE),
        ("lure_2", ItemKind.LURE),
        ("bait", ItemKind.OTHER),
        ("polecat", ItemKind.OTHER),
    ])
    def test_kind_from_id(self, item_id, kind):
        assert ItemKind.of(item_id) is kind

    def test_kind_predicates(self):
        assert rules.is_fish_item("fish_night_4")
        assert not rules.is_fish_item("pole_1")
        assert rules.is_pole_item("pole_1")
        assert not rules.is_pole_item("lure_1")

    def test_capacity(self):
        assert rules.capacity("fish_ocean_2") == 5
        assert rules.capacity("pole_2") == 1
        assert rules.capacity("lure_1") == sys.maxsize


class TestPricing:

    def test_sell_price_scales_with_rarity(self):
        assert rules.sell_price("fish_ocean_3", 3) == 320
        assert rules.sell_price("fish_ocean_3", 2) == 160
        assert rules.sell_price("fish_ocean_3", 1) == 80
        assert rules.sell_price("fish_ocean_3", 0) == 80

    def test_unknown_items_use_default_price(self):
        assert rules.sell_price("mystery_box", 1) == rules.DEFAULT_BASE_SELL_PRICE
        assert rules.sell_price("fish_pond_1", 9) == 10

    def test_round_half_up(self):
        assert rules.round_half_up(2.5) == 3
        assert rules.round_half_up(2.4999) == 2
        assert rules.round_half_up(0.5) == 1

    def test_purchasable(self):
        assert rules.is_purchasable("pole_1")
        assert rules.buy_price("pole_1") == 0
        assert rules.is_purchasable("lure_4")
        assert not rules.is_purchasable("fish_pond_1")
        assert not rules.is_purchasable("nothing")


class TestProgressionRules:

    def test_xp_for_level(self):
        assert rules.xp_for_level(1) == 0
        assert rules.xp_for_level(0) == 0
        assert rules.xp_for_level(2) == 283
        assert rules.xp_for_level(3) == 520

    def test_xp_for_level_is_non_decreasing(self):
        values = [rules.xp_for_level(n) for n in range(0, 101)]
        assert values == sorted(values)

    def test_fish_xp(self):
        assert rules.fish_xp("fish_pond_1", 1) == 20
        assert rules.fish_xp("fish_pond_2", 3) == 40
        assert rules.fish_xp("fish_pond_1", 0) == 20

    def test_quest_xp(self):
        assert rules.quest_xp(QuestType.STORY) == 150
        assert rules.quest_xp(QuestType.DAILY) == 50

    def test_level_up_carries_over_remainder(self):
        assert rules.level_up(1, 0, 283, 300) == (2, 17, 520)

    def test_level_up_multiple_levels(self):
        level, xp, xp_to_next = rules.level_up(1, 0, 283, 283 + 520 + 1)
        assert (level, xp, xp_to_next) == (3, 1, rules.xp_for_level(4))

    def test_level_up_repairs_bad_records(self):
        assert rules.level_up(0, 0, 0, 10) == (1, 10, 283)
        assert rules.level_up(2, 0, 0, 10) == (2, 10, 520)

    def test_level_up_keeps_xp_below_threshold(self):
        level, xp, xp_to_next = 1, 0, rules.xp_for_level(2)
        for gained in (50, 500, 7, 1200, 0, 333):
            level, xp, xp_to_next = rules.level_up(level, xp, xp_to_next, gained)
            assert 0 <= xp < xp_to_next
