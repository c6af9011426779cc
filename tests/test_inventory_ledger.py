import random

import pytest

from lurelands.core import rules
from lurelands.game.exceptions import InsufficientQuantityException
from lurelands.game.managers.inventory_manager import InventoryManager

PLAYER = "player-1"


@pytest.fixture
def ledger(store):
    return InventoryManager(store)


def quantities(ledger, item_id, rarity=None):
    return [
        s.quantity for s in ledger.list_for_player(PLAYER)
        if s.item_id == item_id and (rarity is None or s.rarity == rarity)
    ]


class TestAdd:

    def test_splits_into_capped_stacks(self, ledger):
        ledger.add(PLAYER, "fish_pond_1", 1, 7)
        assert quantities(ledger, "fish_pond_1") == [5, 2]
        assert ledger.total_owned(PLAYER, "fish_pond_1", 1) == 7

    def test_tops_up_existing_stack_first(self, ledger):
        ledger.add(PLAYER, "fish_pond_1", 1, 3)
        ledger.add(PLAYER, "fish_pond_1", 1, 4)
        assert quantities(ledger, "fish_pond_1") == [5, 2]

    def test_rarities_are_separate(self, ledger):
        ledger.add(PLAYER, "fish_pond_1", 1, 2)
        ledger.add(PLAYER, "fish_pond_1", 3, 1)
        assert ledger.total_owned(PLAYER, "fish_pond_1", 1) == 2
        assert ledger.total_owned(PLAYER, "fish_pond_1", 3) == 1
        assert ledger.total_owned_any_rarity(PLAYER, "fish_pond_1") == 3

    def test_poles_never_stack(self, ledger):
        ledger.add(PLAYER, "pole_2", 0, 3)
        assert quantities(ledger, "pole_2") == [1, 1, 1]

    def test_lures_share_one_stack(self, ledger):
        ledger.add(PLAYER, "lure_1", 0, 40)
        ledger.add(PLAYER, "lure_1", 0, 80)
        assert quantities(ledger, "lure_1") == [120]


class TestRemove:

    def test_add_then_remove_everything(self, ledger):
        ledger.add(PLAYER, "fish_pond_1", 1, 7)
        ledger.remove(PLAYER, "fish_pond_1", 1, 7)
        assert ledger.total_owned(PLAYER, "fish_pond_1", 1) == 0
        assert ledger.list_for_player(PLAYER) == []

    def test_consumes_oldest_stack_first(self, ledger):
        ledger.add(PLAYER, "fish_pond_1", 1, 7)
        newest = ledger.list_for_player(PLAYER)[-1]
        ledger.remove(PLAYER, "fish_pond_1", 1, 6)
        remaining = ledger.list_for_player(PLAYER)
        assert [(s.id, s.quantity) for s in remaining] == [(newest.id, 1)]

    def test_rejected_remove_changes_nothing(self, ledger):
        ledger.add(PLAYER, "fish_pond_1", 1, 3)
        before = ledger.list_for_player(PLAYER)
        with pytest.raises(InsufficientQuantityException) as exc_info:
            ledger.remove(PLAYER, "fish_pond_1", 1, 5)
        assert exc_info.value.available == 3
        assert ledger.list_for_player(PLAYER) == before
        assert ledger.total_owned(PLAYER, "fish_pond_1", 1) == 3

    def test_other_rarity_does_not_count(self, ledger):
        ledger.add(PLAYER, "fish_pond_1", 2, 3)
        with pytest.raises(InsufficientQuantityException):
            ledger.remove(PLAYER, "fish_pond_1", 1, 1)

    def test_remove_zero_is_a_no_op(self, ledger):
        ledger.remove(PLAYER, "fish_pond_1", 1, 0)
        assert ledger.list_for_player(PLAYER) == []


class TestInvariants:

    def test_capacity_holds_for_random_sequences(self, ledger):
        rng = random.Random(1234)
        items = ["fish_pond_1", "fish_river_2", "pole_2", "lure_1"]
        expected = {}
        for _ in range(150):
            item_id = rng.choice(items)
            rarity = rng.randint(0, 3)
            quantity = rng.randint(0, 9)
            key = (item_id, rarity)
            if rng.random() < 0.6:
                ledger.add(PLAYER, item_id, rarity, quantity)
                expected[key] = expected.get(key, 0) + quantity
            else:
                try:
                    ledger.remove(PLAYER, item_id, rarity, quantity)
                    expected[key] = expected.get(key, 0) - quantity
                except InsufficientQuantityException:
                    pass

            for stack in ledger.list_for_player(PLAYER):
                assert 1 <= stack.quantity <= rules.capacity(stack.item_id)
            assert ledger.total_owned(PLAYER, item_id, rarity) == expected.get(key, 0)


class TestRewardStacks:

    def test_reward_stack_is_capped(self, ledger):
        assert ledger.grant_reward_stack(PLAYER, "fish_pond_1", 8) == 5
        assert quantities(ledger, "fish_pond_1", 0) == [5]

    def test_reward_stack_is_not_merged(self, ledger):
        ledger.add(PLAYER, "lure_1", 0, 2)
        ledger.grant_reward_stack(PLAYER, "lure_1", 1)
        assert quantities(ledger, "lure_1") == [2, 1]

    def test_zero_reward_creates_nothing(self, ledger):
        assert ledger.grant_reward_stack(PLAYER, "pole_2", 0) == 0
        assert ledger.list_for_player(PLAYER) == []
