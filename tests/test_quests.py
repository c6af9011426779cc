import pytest

from lurelands.core import documents
from lurelands.core.models import Quest, QuestStatus, QuestType
from lurelands.game.exceptions import (
    DataIntegrityException,
    QuestNotFoundException,
    QuestPrerequisiteException,
    QuestRequirementsNotMetException,
    QuestStateException,
)
from lurelands.game.managers.quest_manager import meets_requirements, parse_reward_items


def catch(service, player_id, item_id="fish_pond_1", rarity=1, times=1):
    for _ in range(times):
        service.catch_fish(player_id, item_id, "fish", 12.0, rarity, "pond")


def complete_guild_1(service, player_id):
    service.accept_quest(player_id, "guild_1")
    catch(service, player_id, times=2)
    return service.complete_quest(player_id, "guild_1")


class TestRequirements:

    def test_gate_closes_on_missing_progress(self):
        assert meets_requirements('{"total_fish":5}', "{}") is False

    def test_no_clauses_is_always_met(self):
        assert meets_requirements("{}", "{}") is True
        assert meets_requirements("{}", '{"total":3}') is True

    def test_fish_clause(self):
        requirements = '{"fish": {"fish_pond_1": 2, "fish_river_1": 1}}'
        assert not meets_requirements(requirements, '{"fish_pond_1":2}')
        assert meets_requirements(requirements, '{"fish_pond_1":2,"fish_river_1":1}')

    def test_all_clauses_must_hold(self):
        requirements = '{"total_fish": 5, "min_rarity": 2}'
        assert not meets_requirements(requirements, '{"total":5,"max_rarity":1}')
        assert not meets_requirements(requirements, '{"total":4,"max_rarity":3}')
        assert meets_requirements(requirements, '{"total":6,"max_rarity":2}')

    def test_reward_items_default_to_one(self):
        rewards = '{"gold": 10, "items": [{"item_id": "pole_2"}, {"item_id": "lure_1", "quantity": 3}, {"x": 1}]}'
        assert parse_reward_items(rewards) == [("pole_2", 1), ("lure_1", 3)]


class TestQuestLifecycle:

    def test_guild_1_scenario(self, service, player):
        service.accept_quest(player.id, "guild_1")
        catch(service, player.id, "fish_pond_1")
        catch(service, player.id, "fish_river_3", rarity=2)

        progress = service.quests.find_player_quest(player.id, "guild_1").progress
        assert documents.read_number(progress, "total") == 2
        assert documents.read_number(progress, "max_rarity") == 2

        xp_before = service.get_stats(player.id).xp
        completed = service.complete_quest(player.id, "guild_1")

        assert completed.status == QuestStatus.COMPLETED.value
        assert completed.completed_at is not None
        assert service.get_player(player.id).gold == 50
        stats = service.get_stats(player.id)
        assert stats.xp - xp_before == 150
        assert stats.total_gold_earned == 50

        events = service.get_events(player.id, "quest_completed")
        assert documents.read_number(events[0].metadata, "gold") == 50

    def test_progress_counts_per_item(self, service, player):
        service.accept_quest(player.id, "daily_haul")
        catch(service, player.id, "fish_pond_1", times=2)
        catch(service, player.id, "fish_ocean_1", rarity=3)

        progress = service.quests.find_player_quest(player.id, "daily_haul").progress
        assert documents.read_number(progress, "fish_pond_1") == 2
        assert documents.read_number(progress, "fish_ocean_1") == 1
        assert documents.read_number(progress, "total") == 3
        assert documents.read_number(progress, "max_rarity") == 3

    def test_catches_before_accepting_do_not_count(self, service, player):
        catch(service, player.id, times=2)
        service.accept_quest(player.id, "guild_1")
        with pytest.raises(QuestRequirementsNotMetException):
            service.complete_quest(player.id, "guild_1")
        row = service.quests.find_player_quest(player.id, "guild_1")
        assert row.status == QuestStatus.ACTIVE.value
        assert service.get_player(player.id).gold == 0

    def test_unknown_quest(self, service, player):
        with pytest.raises(QuestNotFoundException):
            service.accept_quest(player.id, "no_such_quest")

    def test_accepting_twice_is_rejected(self, service, player):
        service.accept_quest(player.id, "guild_1")
        with pytest.raises(QuestStateException):
            service.accept_quest(player.id, "guild_1")

    def test_completing_without_accepting_is_rejected(self, service, player):
        with pytest.raises(QuestStateException):
            service.complete_quest(player.id, "guild_1")

    def test_story_quest_is_terminal(self, service, player):
        complete_guild_1(service, player.id)
        with pytest.raises(QuestStateException):
            service.accept_quest(player.id, "guild_1")
        with pytest.raises(QuestStateException):
            service.complete_quest(player.id, "guild_1")
        assert service.get_player(player.id).gold == 50

    def test_prerequisite_gates_acceptance(self, service, player):
        with pytest.raises(QuestPrerequisiteException):
            service.accept_quest(player.id, "guild_2")
        assert service.quests.find_player_quest(player.id, "guild_2") is None

        complete_guild_1(service, player.id)
        assert service.accept_quest(player.id, "guild_2").status == QuestStatus.ACTIVE.value

    def test_daily_quest_can_be_repeated(self, service, player):
        service.accept_quest(player.id, "daily_haul")
        catch(service, player.id, times=5)
        service.complete_quest(player.id, "daily_haul")

        again = service.accept_quest(player.id, "daily_haul")
        assert again.status == QuestStatus.ACTIVE.value
        assert again.progress == documents.EMPTY_DOCUMENT
        rows = service.store.player_quests.list_for_player(player.id)
        assert [r.quest_id for r in rows] == ["daily_haul"]
        assert service.get_player(player.id).gold == 25

    def test_rejected_daily_reaccept_keeps_completed_row(self, service, store, player):
        store.quests.create(Quest(
            id="guild_daily", title="Guild Errand", quest_type=QuestType.DAILY,
            prerequisite_quest_id="guild_1", requirements="{}", rewards='{"gold": 5}',
        ))
        complete_guild_1(service, player.id)
        service.accept_quest(player.id, "guild_daily")
        service.complete_quest(player.id, "guild_daily")
        service.reset_quest_progress("guild_1")

        with pytest.raises(QuestPrerequisiteException):
            service.accept_quest(player.id, "guild_daily")
        row = service.quests.find_player_quest(player.id, "guild_daily")
        assert row.status == QuestStatus.COMPLETED.value

    def test_missing_quest_definition_is_an_integrity_error(self, service, store, player):
        service.accept_quest(player.id, "guild_1")
        catch(service, player.id, times=2)
        store.quests.delete("guild_1")

        with pytest.raises(DataIntegrityException):
            service.complete_quest(player.id, "guild_1")
        assert service.get_player(player.id).gold == 0


class TestRewards:

    def test_item_rewards_land_in_capped_stacks(self, service, store, player):
        store.quests.create(Quest(
            id="bounty", title="Bounty", quest_type=QuestType.DAILY, requirements="{}",
            rewards='{"gold": 0, "items": [{"item_id": "fish_pond_4", "quantity": 8}, {"item_id": "pole_2"}]}',
        ))
        service.accept_quest(player.id, "bounty")
        service.complete_quest(player.id, "bounty")

        stacks = {(s.item_id, s.rarity): s.quantity for s in service.get_inventory(player.id)}
        assert stacks == {("fish_pond_4", 0): 5, ("pole_2", 0): 1}
        assert service.get_player(player.id).gold == 0
        assert service.get_stats(player.id).xp == 50


class TestQuestBoard:

    def test_initial_board(self, service, player):
        board = service.get_quest_board(player.id)
        assert sorted(q.id for q in board.available) == ["daily_haul", "guild_1", "ocean_1"]
        assert board.active == []
        assert board.completed == []

    def test_board_follows_progress(self, service, player):
        complete_guild_1(service, player.id)
        service.accept_quest(player.id, "daily_haul")

        board = service.get_quest_board(player.id)
        assert sorted(q.id for q in board.available) == ["guild_2", "ocean_1"]
        assert [pq.quest_id for pq in board.active] == ["daily_haul"]
        assert [pq.quest_id for pq in board.completed] == ["guild_1"]

    def test_completed_daily_is_available_again(self, service, player):
        service.accept_quest(player.id, "daily_haul")
        catch(service, player.id, times=5)
        service.complete_quest(player.id, "daily_haul")

        board = service.get_quest_board(player.id)
        assert "daily_haul" in [q.id for q in board.available]

    def test_reset_quest_progress(self, service, player):
        service.accept_quest(player.id, "guild_1")
        service.join_world("player-2", "Other", 0xFF00FF00)
        service.accept_quest("player-2", "guild_1")

        assert service.reset_quest_progress("guild_1") == 2
        assert service.quests.find_player_quest(player.id, "guild_1") is None


class TestSeed:

    def test_seeding_is_idempotent(self, service, store):
        assert service.seed_defaults() == (0, 30)
        assert store.items.count() == 24
        assert store.quests.count() == 6

    def test_seeded_item_definitions(self, store):
        from lurelands.game.seed import seed_defaults
        seed_defaults(store)
        lure = store.items.get_by_id("lure_2")
        assert (lure.category, lure.buy_price, lure.stack_size) == ("lure", 60, 99)
        assert store.items.get_by_id("pole_1").stack_size == 1
        assert store.items.get_by_id("fish_night_4").sell_price == 300
