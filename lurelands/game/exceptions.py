# Custom exceptions for the game logic layer.
# Every entry point validates before it mutates, so any of these being raised
# means the call left all rows untouched.

class GameException(Exception):
    """Base class for game-related exceptions."""
    pass


# --- Not found ---

class NotFoundException(GameException):
    """Raised when a referenced row does not exist."""
    pass

class PlayerNotFoundException(NotFoundException):
    """Raised when a player cannot be found."""
    def __init__(self, player_id: str):
        self.player_id = player_id
        super().__init__(f"Player with ID '{player_id}' not found.")

class QuestNotFoundException(NotFoundException):
    """Raised when a quest definition cannot be found."""
    def __init__(self, quest_id: str):
        self.quest_id = quest_id
        super().__init__(f"Quest with ID '{quest_id}' not found.")

class CatchNotFoundException(NotFoundException):
    """Raised when a catch log row cannot be found."""
    def __init__(self, catch_id: int):
        self.catch_id = catch_id
        super().__init__(f"Catch with ID '{catch_id}' not found.")

class NpcNotFoundException(NotFoundException):
    """Raised when an NPC definition cannot be found."""
    def __init__(self, npc_id: str):
        self.npc_id = npc_id
        super().__init__(f"NPC with ID '{npc_id}' not found.")


# --- Precondition failed ---

class InvalidActionException(GameException):
    """Raised when a player attempts an invalid action."""
    pass

class InsufficientGoldException(InvalidActionException):
    def __init__(self, player_id: str, required: int, available: int):
        self.player_id = player_id
        self.required = required
        self.available = available
        super().__init__(f"Player '{player_id}' needs {required}g but has {available}g.")

class InsufficientQuantityException(InvalidActionException):
    def __init__(self, item_id: str, rarity: int, required: int, available: int):
        self.item_id = item_id
        self.rarity = rarity
        self.required = required
        self.available = available
        super().__init__(
            f"Needed {required} of {item_id} (rarity {rarity}) but only {available} owned."
        )

class ItemNotPurchasableException(InvalidActionException):
    def __init__(self, item_id: str):
        self.item_id = item_id
        super().__init__(f"Item '{item_id}' cannot be bought.")

class EquippedItemException(InvalidActionException):
    """Raised when trying to sell the pole currently equipped."""
    def __init__(self, item_id: str):
        self.item_id = item_id
        super().__init__(f"Item '{item_id}' is equipped and cannot be sold.")

class QuestStateException(InvalidActionException):
    """Raised when a quest is not in the state the action needs."""
    pass

class QuestRequirementsNotMetException(InvalidActionException):
    def __init__(self, quest_id: str, requirements: str, progress: str):
        self.quest_id = quest_id
        self.requirements = requirements
        self.progress = progress
        super().__init__(f"Requirements for quest '{quest_id}' are not met yet.")

class QuestPrerequisiteException(InvalidActionException):
    def __init__(self, quest_id: str, prerequisite_id: str):
        self.quest_id = quest_id
        self.prerequisite_id = prerequisite_id
        super().__init__(f"Quest '{quest_id}' requires '{prerequisite_id}' to be completed first.")


# --- Data integrity ---

class DataIntegrityException(GameException):
    """Raised when stored rows contradict each other (e.g. a dangling quest reference)."""
    pass
