import logging
from typing import List

from ...core import rules
from ...core.models import InventoryStack
from ...database.store import GameStore
from ..exceptions import InsufficientQuantityException

log = logging.getLogger(__name__)

class InventoryManager:
    """Per-player item stacks, each bounded by the item's stack capacity.

    Stacks of the same (player, item, rarity) may be fragmented; nothing here
    compacts them. Matching stacks are always visited oldest first.
    """

    def __init__(self, store: GameStore):
        self.store = store

    def total_owned(self, player_id: str, item_id: str, rarity: int) -> int:
        return sum(s.quantity for s in self.store.inventory.find_stacks(player_id, item_id, rarity))

    def total_owned_any_rarity(self, player_id: str, item_id: str) -> int:
        return sum(s.quantity for s in self.store.inventory.find_stacks(player_id, item_id))

    def list_for_player(self, player_id: str) -> List[InventoryStack]:
        return self.store.inventory.list_for_player(player_id)

    def add(self, player_id: str, item_id: str, rarity: int, quantity: int):
        """Top up existing stacks with spare room, then open new stacks."""
        max_stack = rules.capacity(item_id)
        remaining = quantity

        for stack in self.store.inventory.find_stacks(player_id, item_id, rarity):
            if remaining == 0:
                break
            space = max_stack - stack.quantity
            if space <= 0:
                continue
            to_add = min(remaining, space)
            self.store.inventory.set_quantity(stack.id, stack.quantity + to_add)
            remaining -= to_add
            log.info(f"Updated inventory for player {player_id}: {item_id} x{stack.quantity + to_add} (rarity {rarity})")

        while remaining > 0:
            stack_size = min(remaining, max_stack)
            self.store.inventory.create(InventoryStack(
                id=self.store.inventory.next_id(),
                player_id=player_id,
                item_id=item_id,
                rarity=rarity,
                quantity=stack_size,
            ))
            remaining -= stack_size
            log.info(f"Added to inventory for player {player_id}: {item_id} x{stack_size} (rarity {rarity})")

    def remove(self, player_id: str, item_id: str, rarity: int, quantity: int):
        """Take quantity out across stacks, or nothing at all.

        Raises:
            InsufficientQuantityException: the player owns fewer than quantity.
                No stack is touched in that case.
        """
        if quantity == 0:
            return

        stacks = self.store.inventory.find_stacks(player_id, item_id, rarity)
        total = sum(s.quantity for s in stacks)
        if total < quantity:
            log.warning(
                f"Player {player_id} only has {total} of {item_id} (rarity {rarity}) but tried to remove {quantity}"
            )
            raise InsufficientQuantityException(item_id, rarity, quantity, total)

        remaining = quantity
        for stack in stacks:
            if remaining == 0:
                break
            to_remove = min(remaining, stack.quantity)
            if stack.quantity == to_remove:
                self.store.inventory.delete(stack.id)
            else:
                self.store.inventory.set_quantity(stack.id, stack.quantity - to_remove)
            remaining -= to_remove

        log.info(f"Removed {quantity} of {item_id} (rarity {rarity}) from player {player_id}")

    def grant_reward_stack(self, player_id: str, item_id: str, quantity: int) -> int:
        """Insert one fresh rarity-0 stack, capped at the item's capacity.

        Returns the quantity actually granted.
        """
        granted = min(quantity, rules.capacity(item_id))
        if granted <= 0:
            return 0
        self.store.inventory.create(InventoryStack(
            id=self.store.inventory.next_id(),
            player_id=player_id,
            item_id=item_id,
            rarity=0,
            quantity=granted,
        ))
        log.info(f"Granted item {item_id} x{granted} to player {player_id}")
        return granted
