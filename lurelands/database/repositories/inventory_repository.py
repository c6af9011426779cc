import logging
from typing import List, Optional

from pymongo.database import Database

from .base_repository import MongoRepository
from ...core.models import InventoryStack, ItemDefinition

log = logging.getLogger(__name__)

class InventoryRepository(MongoRepository[InventoryStack, int]):
    """Inventory stacks. Every query returns stacks in creation (id) order."""

    model_class = InventoryStack

    def __init__(self, db: Database):
        super().__init__(db, collection_name="inventory")

    def find_stacks(self, player_id: str, item_id: str, rarity: Optional[int] = None) -> List[InventoryStack]:
        """Stacks of one item for a player; rarity None matches every rarity."""
        query = {"player_id": player_id, "item_id": item_id}
        if rarity is not None:
            query["rarity"] = rarity
        return self.list_all(query)

    def list_for_player(self, player_id: str) -> List[InventoryStack]:
        return self.list_all({"player_id": player_id})

    def set_quantity(self, stack_id: int, quantity: int) -> Optional[InventoryStack]:
        return self.update(stack_id, {"quantity": quantity})


class ItemDefinitionRepository(MongoRepository[ItemDefinition, str]):
    """Item reference data."""

    model_class = ItemDefinition

    def __init__(self, db: Database):
        super().__init__(db, collection_name="item_definitions")
