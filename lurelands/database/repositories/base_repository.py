import logging
from abc import ABC, abstractmethod
from typing import TypeVar, Generic, List, Optional, Any, Dict, Type

from pymongo import ASCENDING, ReturnDocument
from pymongo.database import Database
from pymongo.results import InsertOneResult, UpdateResult, DeleteResult
from pydantic import BaseModel

log = logging.getLogger(__name__)

# Define generic types for the model and its ID
ModelType = TypeVar('ModelType', bound=BaseModel)
IDType = TypeVar('IDType') # str for natural keys, int for sequence-allocated rows

COUNTERS_COLLECTION = "counters"

class BaseRepository(Generic[ModelType, IDType], ABC):
    """Abstract base class for data repositories."""

    def __init__(self, db: Database, collection_name: str):
        """
        Initialize the repository.

        Args:
            db: The pymongo database instance.
            collection_name: The name of the MongoDB collection.
        """
        self.db = db
        self.collection = self.db[collection_name]

    @abstractmethod
    def get_by_id(self, item_id: IDType) -> Optional[ModelType]:
        """Retrieve an item by its ID."""
        pass

    @abstractmethod
    def create(self, item: ModelType) -> ModelType:
        """Create a new item."""
        pass

    @abstractmethod
    def update(self, item_id: IDType, update_data: Dict[str, Any]) -> Optional[ModelType]:
        """Update an existing item."""
        pass

    @abstractmethod
    def delete(self, item_id: IDType) -> bool:
        """Delete an item by its ID. Returns True if deleted, False otherwise."""
        pass

    @abstractmethod
    def list_all(self, filter_query: Optional[Dict[str, Any]] = None) -> List[ModelType]:
        """List all items, optionally applying a filter."""
        pass


class MongoRepository(BaseRepository[ModelType, IDType]):
    """Generic pymongo implementation shared by every entity repository.

    Rows are stored as the model's ``model_dump()``; ``key_field`` names the
    model attribute used as the primary key.
    """

    model_class: Type[ModelType]
    key_field: str = "id"

    def __init__(self, db: Database, collection_name: str):
        super().__init__(db, collection_name)
        self.collection_name = collection_name

    def _to_model(self, data: Optional[Dict[str, Any]]) -> Optional[ModelType]:
        if not data:
            return None
        data.pop("_id", None)
        return self.model_class(**data)

    def next_id(self) -> int:
        """Allocate the next integer id for this collection (atomic $inc)."""
        counter = self.db[COUNTERS_COLLECTION].find_one_and_update(
            {"_id": self.collection_name},
            {"$inc": {"seq": 1}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return int(counter["seq"])

    def get_by_id(self, item_id: IDType) -> Optional[ModelType]:
        return self._to_model(self.collection.find_one({self.key_field: item_id}))

    def find_one(self, filter_query: Dict[str, Any]) -> Optional[ModelType]:
        # Oldest first, so "first match" is creation order
        cursor = self.collection.find(filter_query).sort(self.key_field, ASCENDING).limit(1)
        for data in cursor:
            return self._to_model(data)
        return None

    def create(self, item: ModelType) -> ModelType:
        result: InsertOneResult = self.collection.insert_one(item.model_dump())
        log.debug(f"Inserted into {self.collection_name}: {getattr(item, self.key_field)} ({result.inserted_id})")
        return item

    def update(self, item_id: IDType, update_data: Dict[str, Any]) -> Optional[ModelType]:
        result: UpdateResult = self.collection.update_one(
            {self.key_field: item_id},
            {"$set": update_data}
        )
        if result.matched_count:
            return self.get_by_id(item_id)
        log.warning(f"Update failed: {self.collection_name} row {item_id} not found.")
        return None

    def delete(self, item_id: IDType) -> bool:
        result: DeleteResult = self.collection.delete_one({self.key_field: item_id})
        if result.deleted_count:
            return True
        log.warning(f"Delete failed: {self.collection_name} row {item_id} not found.")
        return False

    def delete_many(self, filter_query: Dict[str, Any]) -> int:
        result: DeleteResult = self.collection.delete_many(filter_query)
        return result.deleted_count

    def list_all(self, filter_query: Optional[Dict[str, Any]] = None) -> List[ModelType]:
        if filter_query is None:
            filter_query = {}
        cursor = self.collection.find(filter_query).sort(self.key_field, ASCENDING)
        return [self._to_model(data) for data in cursor]

    def count(self, filter_query: Optional[Dict[str, Any]] = None) -> int:
        return self.collection.count_documents(filter_query or {})
