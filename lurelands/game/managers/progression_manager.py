import logging
from typing import Optional

from ...core import rules
from ...core.models import PlayerStats
from ...database.store import GameStore

log = logging.getLogger(__name__)

class ProgressionManager:
    """XP and levels, stored on the player's stats row."""

    def __init__(self, store: GameStore):
        self.store = store

    def add_xp(self, player_id: str, amount: int, source: str) -> Optional[PlayerStats]:
        """Grant XP and resolve level ups. No-op for players without stats."""
        stats = self.store.stats.get_by_id(player_id)
        if stats is None:
            log.debug(f"No stats for player {player_id}; {amount} XP from {source} dropped")
            return None

        old_level = stats.level
        level, xp, xp_to_next = rules.level_up(stats.level, stats.xp, stats.xp_to_next_level, amount)
        updated = self.store.stats.update(player_id, {
            "level": level,
            "xp": xp,
            "xp_to_next_level": xp_to_next,
        })

        if level > old_level:
            log.info(f"Player {player_id} gained {amount} XP from {source} and reached level {level}")
        else:
            log.debug(f"Player {player_id} gained {amount} XP from {source} (total: {xp}/{xp_to_next})")
        return updated
