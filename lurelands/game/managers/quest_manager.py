import logging
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from ...core import documents, rules
from ...core.models import (
    EventType, PlayerQuest, Quest, QuestBoard, QuestStatus, QuestType, utcnow,
)
from ...database.store import GameStore
from ..exceptions import (
    DataIntegrityException,
    QuestNotFoundException,
    QuestPrerequisiteException,
    QuestRequirementsNotMetException,
    QuestStateException,
)
from .inventory_manager import InventoryManager
from .player_manager import PlayerManager
from .progression_manager import ProgressionManager
from .session_manager import SessionManager

log = logging.getLogger(__name__)


def meets_requirements(requirements: str, progress: str) -> bool:
    """Check a progress document against a requirements document.

    Three optional clauses, all of which must hold when present:
      - "fish": {item_id: n, ...}  each item caught at least n times
      - "total_fish": n            progress "total" >= n
      - "min_rarity": n            progress "max_rarity" >= n
    Missing progress values count as 0, so a gate never opens on bad data.
    """
    fish = documents.read_nested_object(requirements, "fish")
    if fish is not None:
        for item_id, required in documents.read_number_map(fish).items():
            if documents.read_count(progress, item_id) < required:
                return False

    total_fish = documents.read_number(requirements, "total_fish")
    if total_fish is not None and documents.read_count(progress, "total") < total_fish:
        return False

    min_rarity = documents.read_number(requirements, "min_rarity")
    if min_rarity is not None and documents.read_count(progress, "max_rarity") < min_rarity:
        return False

    return True


def parse_reward_items(rewards: str) -> List[Tuple[str, int]]:
    """(item_id, quantity) pairs from a rewards document; quantity defaults to 1."""
    items = []
    for raw in documents.read_array_of_objects(rewards, "items"):
        item_id = documents.read_string(raw, "item_id")
        if item_id is None:
            log.warning(f"Skipping reward entry without item_id: {raw}")
            continue
        quantity = documents.read_number(raw, "quantity")
        items.append((item_id, 1 if quantity is None else quantity))
    return items


class QuestManager:
    """Quest state machine: absent -> active -> completed.

    Daily quests may be accepted again once completed (the old row is
    replaced); story quests stay completed.
    """

    def __init__(
        self,
        store: GameStore,
        inventory: InventoryManager,
        players: PlayerManager,
        progression: ProgressionManager,
        sessions: SessionManager,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.inventory = inventory
        self.players = players
        self.progression = progression
        self.sessions = sessions
        self.clock = clock

    def get_quest(self, quest_id: str) -> Quest:
        quest = self.store.quests.get_by_id(quest_id)
        if quest is None:
            log.warning(f"Quest {quest_id} not found")
            raise QuestNotFoundException(quest_id)
        return quest

    def accept_quest(self, player_id: str, quest_id: str) -> PlayerQuest:
        quest = self.get_quest(quest_id)

        existing = self.store.player_quests.find(player_id, quest_id)
        replace_row = None
        if existing:
            if existing.status == QuestStatus.ACTIVE:
                log.warning(f"Player {player_id} already has quest {quest_id} active")
                raise QuestStateException(f"Quest '{quest_id}' is already active.")
            if quest.is_story:
                log.warning(f"Player {player_id} already completed story quest {quest_id}")
                raise QuestStateException(f"Story quest '{quest_id}' is already completed.")
            replace_row = existing

        prerequisite = quest.prerequisite_quest_id
        if prerequisite and not self.store.player_quests.is_completed(player_id, prerequisite):
            log.warning(
                f"Player {player_id} cannot accept quest {quest_id} - prerequisite {prerequisite} not completed"
            )
            raise QuestPrerequisiteException(quest_id, prerequisite)

        if replace_row is not None:
            self.store.player_quests.delete(replace_row.id)
            log.info(f"Player {player_id} re-accepting daily quest {quest_id}")

        player_quest = self.store.player_quests.create(PlayerQuest(
            id=self.store.player_quests.next_id(),
            player_id=player_id,
            quest_id=quest_id,
            status=QuestStatus.ACTIVE,
            progress=documents.EMPTY_DOCUMENT,
            accepted_at=self.clock(),
        ))
        self.sessions.log_event(player_id, EventType.QUEST_ACCEPTED, item_id=quest_id)
        log.info(f"Player {player_id} accepted quest: {quest.title} ({quest_id})")
        return player_quest

    def update_progress_on_catch(self, player_id: str, item_id: str, rarity: int):
        """Count a catch towards every active quest of the player."""
        for player_quest in self.store.player_quests.list_active(player_id):
            progress = player_quest.progress
            progress = documents.write_or_update_number(
                progress, item_id, documents.read_count(progress, item_id) + 1
            )
            progress = documents.write_or_update_number(
                progress, "total", documents.read_count(progress, "total") + 1
            )
            if rarity > documents.read_count(progress, "max_rarity"):
                progress = documents.write_or_update_number(progress, "max_rarity", rarity)

            self.store.player_quests.set_progress(player_quest.id, progress)
            log.debug(f"Updated quest {player_quest.quest_id} progress for player {player_id}: {progress}")

    def complete_quest(self, player_id: str, quest_id: str) -> PlayerQuest:
        player_quest = self.store.player_quests.find(player_id, quest_id, QuestStatus.ACTIVE)
        if player_quest is None:
            log.warning(f"Player {player_id} has no active quest: {quest_id}")
            raise QuestStateException(f"Quest '{quest_id}' is not active.")

        quest = self.store.quests.get_by_id(quest_id)
        if quest is None:
            log.error(f"Quest {quest_id} not found but player {player_id} had it active")
            raise DataIntegrityException(
                f"Active quest row {player_quest.id} references missing quest '{quest_id}'."
            )

        if not meets_requirements(quest.requirements, player_quest.progress):
            log.warning(
                f"Player {player_id} tried to complete quest {quest_id} but requirements not met. "
                f"Requirements: {quest.requirements}, Progress: {player_quest.progress}"
            )
            raise QuestRequirementsNotMetException(quest_id, quest.requirements, player_quest.progress)

        completed = self.store.player_quests.update(player_quest.id, {
            "status": QuestStatus.COMPLETED.value,
            "completed_at": self.clock(),
        })

        self.grant_rewards(player_id, quest.rewards)
        self.progression.add_xp(player_id, rules.quest_xp(QuestType(quest.quest_type)), "quest_completed")

        self.sessions.log_event(
            player_id,
            EventType.QUEST_COMPLETED,
            item_id=quest_id,
            metadata=f'{{"rewards":{quest.rewards}}}',
        )
        log.info(f"Player {player_id} completed quest: {quest.title} ({quest_id})")
        return completed

    def grant_rewards(self, player_id: str, rewards: str):
        """Credit reward gold and items; each item lands in a new capped stack."""
        gold = documents.read_number(rewards, "gold")
        if gold and self.players.get_player(player_id):
            self.players.add_gold(player_id, gold)
            log.info(f"Granted {gold} gold to player {player_id} from quest")

        for item_id, quantity in parse_reward_items(rewards):
            self.inventory.grant_reward_stack(player_id, item_id, quantity)

    def quest_board(self, player_id: str) -> QuestBoard:
        """Available quests are computed: no live row (or a finished daily) and prerequisite done."""
        rows = self.store.player_quests.list_for_player(player_id)
        completed_ids = {row.quest_id for row in rows if row.status == QuestStatus.COMPLETED}
        board = QuestBoard(
            active=[row for row in rows if row.status == QuestStatus.ACTIVE],
            completed=[row for row in rows if row.status == QuestStatus.COMPLETED],
        )
        active_ids = {row.quest_id for row in board.active}

        for quest in self.store.quests.list_all():
            if quest.id in active_ids:
                continue
            if quest.id in completed_ids and quest.is_story:
                continue
            prerequisite = quest.prerequisite_quest_id
            if prerequisite is None or prerequisite in completed_ids:
                board.available.append(quest)

        log.info(
            f"Player {player_id} quests: {len(board.available)} available, "
            f"{len(board.active)} active, {len(board.completed)} completed"
        )
        return board

    def reset_quest_progress(self, quest_id: str) -> int:
        """Delete every player's row for a quest. Returns the number removed."""
        count = self.store.player_quests.delete_for_quest(quest_id)
        log.info(f"Reset progress for quest {quest_id} ({count} player entries deleted)")
        return count

    def find_player_quest(self, player_id: str, quest_id: str) -> Optional[PlayerQuest]:
        return self.store.player_quests.find(player_id, quest_id)
