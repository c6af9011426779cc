import logging
from datetime import datetime
from typing import Callable, List

from ...core.models import Npc, NpcInteractionType, PlayerNpcInteraction, utcnow
from ...database.store import GameStore
from ..exceptions import InvalidActionException, NpcNotFoundException

log = logging.getLogger(__name__)

class NpcManager:
    """NPC definitions and each player's history with them."""

    def __init__(self, store: GameStore, clock: Callable[[], datetime] = utcnow):
        self.store = store
        self.clock = clock

    def create_npc(self, npc: Npc) -> Npc:
        if self.store.npcs.get_by_id(npc.id) is not None:
            log.warning(f"NPC {npc.id} already exists")
            raise InvalidActionException(f"NPC '{npc.id}' already exists.")
        created = self.store.npcs.create(npc)
        log.info(f"Created NPC {npc.id} ({npc.name})")
        return created

    def record_interaction(self, player_id: str, npc_id: str, interaction_type: str) -> PlayerNpcInteraction:
        """Mark that a player talked to or traded with an NPC.

        The relationship row is created on first contact. Talking bumps
        talk_count every time; trading only sets the flag.
        """
        try:
            kind = NpcInteractionType(interaction_type)
        except ValueError:
            log.warning(f"Player {player_id} sent unknown NPC interaction '{interaction_type}'")
            raise InvalidActionException(f"Unknown NPC interaction '{interaction_type}'.")

        if self.store.npcs.get_by_id(npc_id) is None:
            log.warning(f"NPC {npc_id} not found for interaction")
            raise NpcNotFoundException(npc_id)

        now = self.clock()
        talked = kind is NpcInteractionType.TALKED
        traded = kind is NpcInteractionType.TRADED

        existing = self.store.npc_interactions.find(player_id, npc_id)
        if existing is None:
            interaction = self.store.npc_interactions.create(PlayerNpcInteraction(
                id=self.store.npc_interactions.next_id(),
                player_id=player_id,
                npc_id=npc_id,
                has_talked=talked,
                has_traded=traded,
                talk_count=1 if talked else 0,
                first_interaction_at=now,
                last_interaction_at=now,
            ))
            log.info(f"Created NPC interaction: player {player_id} {kind.value} NPC {npc_id}")
            return interaction

        changes = {"last_interaction_at": now}
        if talked:
            changes["has_talked"] = True
            changes["talk_count"] = existing.talk_count + 1
        if traded:
            changes["has_traded"] = True
        interaction = self.store.npc_interactions.update(existing.id, changes)
        log.debug(f"Updated NPC interaction: player {player_id} {kind.value} NPC {npc_id}")
        return interaction

    def list_interactions(self, player_id: str) -> List[PlayerNpcInteraction]:
        return self.store.npc_interactions.list_for_player(player_id)
