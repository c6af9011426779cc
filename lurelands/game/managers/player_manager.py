import logging
from datetime import datetime
from typing import Callable, List, Optional, Sequence, Tuple

from ...core.models import Player, Position, utcnow
from ...database.store import GameStore
from ..exceptions import PlayerNotFoundException, InsufficientGoldException, InvalidActionException
from .session_manager import SessionManager

log = logging.getLogger(__name__)

DEFAULT_SPAWN = Position(x=1000.0, y=1000.0)
DEFAULT_COLOR = 0xFFE74C3C

class PlayerManager:
    """Player accounts: presence, replicated fields and gold."""

    def __init__(
        self,
        store: GameStore,
        sessions: SessionManager,
        spawn_points: Sequence[Tuple[float, float]] = (),
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.sessions = sessions
        self.spawn_points = [Position(x=x, y=y) for x, y in spawn_points]
        self.clock = clock

    def spawn_for(self, player_id: str) -> Position:
        """Deterministic spawn point: byte sum of the id modulo the point count."""
        if not self.spawn_points:
            log.warning("No spawn points configured, using default center position")
            return DEFAULT_SPAWN
        index = sum(player_id.encode("utf-8")) % len(self.spawn_points)
        return self.spawn_points[index]

    def get_player(self, player_id: str) -> Optional[Player]:
        return self.store.players.get_by_id(player_id)

    def require_player(self, player_id: str) -> Player:
        player = self.get_player(player_id)
        if player is None:
            log.warning(f"Player {player_id} not found")
            raise PlayerNotFoundException(player_id)
        return player

    def list_online(self) -> List[Player]:
        return self.store.players.list_online()

    def _touch(self, player_id: str, update_data: dict) -> Optional[Player]:
        update_data["last_updated"] = self.clock()
        return self.store.players.update(player_id, update_data)

    # --- Presence ---

    def join_world(self, player_id: str, name: str, color: int) -> Player:
        """Bring a player online, creating the account on first join."""
        player = self.get_player(player_id)
        if player:
            log.info(f"Player {player_id} reconnecting, preserving existing data (name: {player.name})")
            player = self._touch(player_id, {"is_online": True})
        else:
            spawn = self.spawn_for(player_id)
            player = self.store.players.create(Player(
                id=player_id,
                name=name,
                x=spawn.x,
                y=spawn.y,
                color=color,
                is_online=True,
                gold=0,
                last_updated=self.clock(),
            ))
            log.info(f"Player {player_id} joined the world at ({spawn.x}, {spawn.y}) with 0g")

        self.sessions.start_session(player_id)
        return player

    def leave_world(self, player_id: str) -> Optional[Player]:
        """Mark offline and close the session. Unknown players are ignored."""
        if self.get_player(player_id) is None:
            return None
        player = self._touch(player_id, {"is_online": False})
        log.info(f"Player {player_id} left the world (marked as offline)")
        self.sessions.end_session(player_id)
        return player

    def update_player_name(self, player_id: str, name: str) -> Player:
        """Rename, or create an offline account when the id is new."""
        if self.get_player(player_id):
            log.info(f"Player {player_id} updated name to: {name}")
            return self._touch(player_id, {"name": name})

        spawn = self.spawn_for(player_id)
        player = self.store.players.create(Player(
            id=player_id,
            name=name,
            x=spawn.x,
            y=spawn.y,
            color=DEFAULT_COLOR,
            is_online=False,
            last_updated=self.clock(),
        ))
        log.info(f"Player {player_id} created with name: {name} at ({spawn.x}, {spawn.y})")
        return player

    # --- Field replication ---

    def update_position(self, player_id: str, x: float, y: float, facing_angle: float) -> Optional[Player]:
        if self.get_player(player_id) is None:
            return None
        return self._touch(player_id, {"x": x, "y": y, "facing_angle": facing_angle})

    def start_casting(self, player_id: str, target_x: float, target_y: float) -> Optional[Player]:
        if self.get_player(player_id) is None:
            return None
        log.debug(f"Player {player_id} started casting at ({target_x}, {target_y})")
        return self._touch(player_id, {
            "is_casting": True,
            "cast_target_x": target_x,
            "cast_target_y": target_y,
        })

    def stop_casting(self, player_id: str) -> Optional[Player]:
        if self.get_player(player_id) is None:
            return None
        log.debug(f"Player {player_id} stopped casting")
        return self._touch(player_id, {
            "is_casting": False,
            "cast_target_x": None,
            "cast_target_y": None,
        })

    def set_equipped_pole(self, player_id: str, pole_item_id: Optional[str]) -> Optional[Player]:
        return self._touch(player_id, {"equipped_pole_id": pole_item_id})

    # --- Gold ---

    def add_gold(self, player_id: str, amount: int) -> Player:
        """Credit gold and count it as earned."""
        player = self.require_player(player_id)
        updated = self._touch(player_id, {"gold": player.gold + amount})
        self.sessions.increment(player_id, "total_gold_earned", amount)
        log.info(f"Player {player_id} earned {amount}g (total: {updated.gold}g)")
        return updated

    def spend_gold(self, player_id: str, amount: int) -> Player:
        """Debit gold and count it as spent.

        Raises:
            InsufficientGoldException: balance is below amount; nothing changes.
        """
        player = self.require_player(player_id)
        if player.gold < amount:
            log.warning(f"Player {player_id} tried to spend {amount}g but only has {player.gold}g")
            raise InsufficientGoldException(player_id, amount, player.gold)
        updated = self._touch(player_id, {"gold": player.gold - amount})
        self.sessions.increment(player_id, "total_gold_spent", amount)
        log.info(f"Player {player_id} spent {amount}g (remaining: {updated.gold}g)")
        return updated

    def set_gold(self, player_id: str, amount: int) -> Player:
        if amount < 0:
            raise InvalidActionException("Gold balance cannot be negative.")
        player = self.require_player(player_id)
        updated = self._touch(player_id, {"gold": amount})
        log.info(f"Player {player_id} gold set from {player.gold}g to {amount}g")
        return updated
