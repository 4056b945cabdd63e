"""
Store Module

Persistence for action items and their notes.
The dispatcher receives a store handle per call and never holds one itself.
"""

from .base import (
    ActionItem,
    ActionItemNote,
    ActionItemPriority,
    ActionItemStatus,
    ActionItemStore,
    StoreUnavailableError,
)
from .json_store import JsonActionItemStore
from .postgrest_store import PostgrestActionItemStore

__all__ = [
    "ActionItem",
    "ActionItemNote",
    "ActionItemPriority",
    "ActionItemStatus",
    "ActionItemStore",
    "StoreUnavailableError",
    "JsonActionItemStore",
    "PostgrestActionItemStore"
]
