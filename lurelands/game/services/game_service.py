import functools
import logging
import threading
from datetime import datetime
from typing import Callable, List, Optional, Sequence, Tuple

from ...core import rules
from ...core.models import (
    EventType, FishCatch, GameEvent, InventoryStack, Npc, Player, PlayerNpcInteraction,
    PlayerQuest, PlayerStats, QuestBoard, utcnow,
)
from ...database.store import GameStore
from ..exceptions import (
    CatchNotFoundException,
    EquippedItemException,
    InsufficientQuantityException,
    InvalidActionException,
    ItemNotPurchasableException,
)
from ..managers.inventory_manager import InventoryManager
from ..managers.npc_manager import NpcManager
from ..managers.player_manager import PlayerManager
from ..managers.progression_manager import ProgressionManager
from ..managers.quest_manager import QuestManager
from ..managers.session_manager import SessionManager
from .. import seed

log = logging.getLogger(__name__)


def transaction(method):
    """Run an entry point while holding the service-wide transaction lock.

    Entry points read totals and then act on them, which is only sound when
    no other entry point interleaves. The lock is re-entrant so entry points
    may call each other.
    """
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            return method(self, *args, **kwargs)
    return wrapper


def _require_non_negative(name: str, value: int):
    if value < 0:
        raise InvalidActionException(f"{name} must not be negative (got {value}).")


class GameService:
    """The server's entry points.

    Each public method is one transaction: it validates first and raises a
    GameException subclass without touching any row when a check fails, and
    otherwise applies all of its mutations.
    """

    def __init__(
        self,
        store: GameStore,
        player_manager: PlayerManager,
        inventory_manager: InventoryManager,
        quest_manager: QuestManager,
        progression_manager: ProgressionManager,
        session_manager: SessionManager,
        npc_manager: NpcManager,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.players = player_manager
        self.inventory = inventory_manager
        self.quests = quest_manager
        self.progression = progression_manager
        self.sessions = session_manager
        self.npcs = npc_manager
        self.clock = clock
        self._lock = threading.RLock()
        log.info("GameService initialized.")

    @classmethod
    def create(
        cls,
        store: GameStore,
        spawn_points: Sequence[Tuple[float, float]] = (),
        clock: Callable[[], datetime] = utcnow,
    ) -> "GameService":
        """Wire every manager onto one store."""
        sessions = SessionManager(store, clock=clock)
        players = PlayerManager(store, sessions, spawn_points=spawn_points, clock=clock)
        inventory = InventoryManager(store)
        progression = ProgressionManager(store)
        quests = QuestManager(store, inventory, players, progression, sessions, clock=clock)
        npcs = NpcManager(store, clock=clock)
        return cls(store, players, inventory, quests, progression, sessions, npcs, clock=clock)

    # --- World / presence ---

    @transaction
    def join_world(self, player_id: str, name: str, color: int) -> Player:
        return self.players.join_world(player_id, name, color)

    @transaction
    def leave_world(self, player_id: str) -> Optional[Player]:
        return self.players.leave_world(player_id)

    @transaction
    def update_player_name(self, player_id: str, name: str) -> Player:
        return self.players.update_player_name(player_id, name)

    @transaction
    def update_position(self, player_id: str, x: float, y: float, facing_angle: float) -> Optional[Player]:
        return self.players.update_position(player_id, x, y, facing_angle)

    @transaction
    def start_casting(self, player_id: str, target_x: float, target_y: float) -> Optional[Player]:
        return self.players.start_casting(player_id, target_x, target_y)

    @transaction
    def stop_casting(self, player_id: str) -> Optional[Player]:
        return self.players.stop_casting(player_id)

    # --- Fishing ---

    @transaction
    def catch_fish(
        self,
        player_id: str,
        item_id: str,
        fish_type: str,
        size: float,
        rarity: int,
        water_body_id: str,
    ) -> FishCatch:
        """Record a catch and everything that follows from it.

        Catch legality is decided elsewhere; this trusts its inputs.
        """
        _require_non_negative("rarity", rarity)

        catch = self.store.catches.create(FishCatch(
            id=self.store.catches.next_id(),
            fish_id=item_id,
            player_id=player_id,
            fish_type=fish_type,
            size=size,
            rarity=f"{rarity}star",
            water_body_id=water_body_id,
            caught_at=self.clock(),
        ))
        log.info(f"Player {player_id} caught fish {item_id} ({rarity}star)")

        self.inventory.add(player_id, item_id, rarity, 1)
        self.sessions.log_event(
            player_id,
            EventType.FISH_CAUGHT,
            item_id=item_id,
            quantity=1,
            rarity=rarity,
            water_body_id=water_body_id,
            metadata=f'{{"fish_type":"{fish_type}","size":{size}}}',
        )
        self.sessions.increment(player_id, "total_fish_caught")
        self.progression.add_xp(player_id, rules.fish_xp(item_id, rarity), "fish_caught")
        self.quests.update_progress_on_catch(player_id, item_id, rarity)
        return catch

    @transaction
    def release_fish(self, catch_id: int) -> FishCatch:
        catch = self.store.catches.get_by_id(catch_id)
        if catch is None:
            log.warning(f"Catch {catch_id} not found for release")
            raise CatchNotFoundException(catch_id)
        released = self.store.catches.update(catch_id, {"released": True})
        log.info(f"Fish from catch {catch_id} was released")
        return released

    # --- Economy ---

    @transaction
    def sell_item(self, player_id: str, item_id: str, rarity: int, quantity: int) -> Player:
        """Sell quantity units at the server-side price and credit the gold."""
        _require_non_negative("rarity", rarity)
        if quantity <= 0:
            log.warning(f"Player {player_id} tried to sell {quantity} items")
            raise InvalidActionException("Quantity to sell must be at least 1.")

        player = self.players.require_player(player_id)
        if rules.is_pole_item(item_id) and player.equipped_pole_id == item_id:
            log.warning(f"Player {player_id} tried to sell equipped pole {item_id}")
            raise EquippedItemException(item_id)

        owned = self.inventory.total_owned(player_id, item_id, rarity)
        if owned < quantity:
            log.warning(f"Player {player_id} tried to sell {quantity} of {item_id} but only owns {owned}")
            raise InsufficientQuantityException(item_id, rarity, quantity, owned)

        unit_price = rules.sell_price(item_id, rarity)
        total_gold = unit_price * quantity

        self.inventory.remove(player_id, item_id, rarity, quantity)
        updated = self.players.add_gold(player_id, total_gold)
        self.sessions.log_event(
            player_id,
            EventType.ITEM_SOLD,
            item_id=item_id,
            quantity=quantity,
            gold_amount=total_gold,
            rarity=rarity,
        )
        log.info(f"Player {player_id} sold {quantity}x {item_id} (rarity {rarity}) for {total_gold}g")
        return updated

    @transaction
    def buy_item(self, player_id: str, item_id: str) -> Player:
        """Buy one unit at the server-side price."""
        price = rules.buy_price(item_id)
        if not rules.is_purchasable(item_id):
            log.warning(f"Player {player_id} tried to buy non-purchasable item {item_id}")
            raise ItemNotPurchasableException(item_id)

        self.players.require_player(player_id)
        updated = self.players.spend_gold(player_id, price)
        self.inventory.add(player_id, item_id, 0, 1)
        self.sessions.log_event(
            player_id,
            EventType.ITEM_BOUGHT,
            item_id=item_id,
            quantity=1,
            gold_amount=price,
            rarity=0,
        )
        log.info(f"Player {player_id} bought {item_id} for {price}g")
        return updated

    @transaction
    def equip_pole(self, player_id: str, pole_item_id: str) -> Player:
        if not rules.is_pole_item(pole_item_id):
            log.warning(f"Player {player_id} tried to equip non-pole item {pole_item_id}")
            raise InvalidActionException(f"Item '{pole_item_id}' is not a fishing pole.")
        player = self.players.require_player(player_id)
        if self.inventory.total_owned_any_rarity(player_id, pole_item_id) <= 0:
            log.warning(f"Player {player_id} tried to equip pole {pole_item_id} but doesn't own it")
            raise InvalidActionException(f"Pole '{pole_item_id}' is not in the inventory.")

        if player.equipped_pole_id == pole_item_id:
            return player

        updated = self.players.set_equipped_pole(player_id, pole_item_id)
        self.sessions.log_event(player_id, EventType.POLE_EQUIPPED, item_id=pole_item_id)
        log.info(f"Player {player_id} equipped pole: {pole_item_id}")
        return updated

    @transaction
    def unequip_pole(self, player_id: str) -> Player:
        player = self.players.require_player(player_id)
        if player.equipped_pole_id is None:
            return player

        updated = self.players.set_equipped_pole(player_id, None)
        self.sessions.log_event(player_id, EventType.POLE_UNEQUIPPED, item_id=player.equipped_pole_id)
        log.info(f"Player {player_id} unequipped pole: {player.equipped_pole_id}")
        return updated

    # --- Direct currency (trusted callers) ---

    @transaction
    def add_gold(self, player_id: str, amount: int) -> Player:
        _require_non_negative("amount", amount)
        return self.players.add_gold(player_id, amount)

    @transaction
    def spend_gold(self, player_id: str, amount: int) -> Player:
        _require_non_negative("amount", amount)
        return self.players.spend_gold(player_id, amount)

    @transaction
    def set_gold(self, player_id: str, amount: int) -> Player:
        return self.players.set_gold(player_id, amount)

    @transaction
    def add_xp(self, player_id: str, amount: int, source: str) -> Optional[PlayerStats]:
        _require_non_negative("amount", amount)
        return self.progression.add_xp(player_id, amount, source)

    # --- Quests ---

    @transaction
    def accept_quest(self, player_id: str, quest_id: str) -> PlayerQuest:
        return self.quests.accept_quest(player_id, quest_id)

    @transaction
    def complete_quest(self, player_id: str, quest_id: str) -> PlayerQuest:
        return self.quests.complete_quest(player_id, quest_id)

    # --- NPCs ---

    @transaction
    def record_npc_interaction(self, player_id: str, npc_id: str, interaction_type: str) -> PlayerNpcInteraction:
        return self.npcs.record_interaction(player_id, npc_id, interaction_type)

    # --- Client-reported audit events ---

    @transaction
    def log_game_event(
        self,
        player_id: str,
        event_type: str,
        item_id: Optional[str] = None,
        quantity: Optional[int] = None,
        gold_amount: Optional[int] = None,
        rarity: Optional[int] = None,
        water_body_id: Optional[str] = None,
        metadata: Optional[str] = None,
    ) -> GameEvent:
        """Append an audit event on behalf of a trusted caller. Nothing else changes."""
        try:
            kind = EventType(event_type)
        except ValueError:
            log.warning(f"Rejected unknown event type '{event_type}' for player {player_id}")
            raise InvalidActionException(f"Unknown event type '{event_type}'.")
        for name, value in (("quantity", quantity), ("gold_amount", gold_amount), ("rarity", rarity)):
            if value is not None:
                _require_non_negative(name, value)

        return self.sessions.log_event(
            player_id,
            kind,
            item_id=item_id,
            quantity=quantity,
            gold_amount=gold_amount,
            rarity=rarity,
            water_body_id=water_body_id,
            metadata=metadata,
        )

    def log_item_sold(self, player_id: str, item_id: str, rarity: int, quantity: int, gold_amount: int) -> GameEvent:
        event = self.log_game_event(
            player_id, EventType.ITEM_SOLD.value,
            item_id=item_id, quantity=quantity, gold_amount=gold_amount, rarity=rarity,
        )
        log.info(f"Player {player_id} sold {quantity}x {item_id} (rarity {rarity}) for {gold_amount}g")
        return event

    def log_item_bought(self, player_id: str, item_id: str, quantity: int, gold_amount: int) -> GameEvent:
        # non-fish items carry rarity 0
        event = self.log_game_event(
            player_id, EventType.ITEM_BOUGHT.value,
            item_id=item_id, quantity=quantity, gold_amount=gold_amount, rarity=0,
        )
        log.info(f"Player {player_id} bought {quantity}x {item_id} for {gold_amount}g")
        return event

    # --- Read views ---

    @transaction
    def get_player(self, player_id: str) -> Player:
        return self.players.require_player(player_id)

    @transaction
    def list_online_players(self) -> List[Player]:
        return self.players.list_online()

    @transaction
    def get_npc_interactions(self, player_id: str) -> List[PlayerNpcInteraction]:
        return self.npcs.list_interactions(player_id)

    @transaction
    def get_inventory(self, player_id: str) -> List[InventoryStack]:
        inventory = self.inventory.list_for_player(player_id)
        log.debug(f"Player {player_id} has {len(inventory)} inventory stacks")
        return inventory

    @transaction
    def get_stats(self, player_id: str) -> Optional[PlayerStats]:
        return self.sessions.get_stats(player_id)

    @transaction
    def get_quest_board(self, player_id: str) -> QuestBoard:
        return self.quests.quest_board(player_id)

    @transaction
    def get_events(self, player_id: str, event_type: Optional[str] = None) -> List[GameEvent]:
        return self.store.events.list_for_player(player_id, event_type)

    # --- Maintenance ---

    @transaction
    def seed_defaults(self) -> Tuple[int, int]:
        return seed.seed_defaults(self.store)

    @transaction
    def create_npc(self, npc: Npc) -> Npc:
        return self.npcs.create_npc(npc)

    @transaction
    def reset_quest_progress(self, quest_id: str) -> int:
        return self.quests.reset_quest_progress(quest_id)
