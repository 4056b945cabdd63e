"""
Action Item Store - Base Interface

Defines the records the dispatcher reads and writes, and the abstract store
contract every backend (local JSON file, hosted database) must honour.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from enum import Enum
from typing import Dict, Any, List, Optional

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class ActionItemStatus(str, Enum):
    """Lifecycle states of an action item."""
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CLOSED = "closed"
    ON_HOLD = "on_hold"
    CANCELLED = "cancelled"


class ActionItemPriority(str, Enum):
    """Priority levels of an action item."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class ActionItem(BaseModel):
    """A trackable task raised from a daily log, meeting or site observation."""
    id: str
    title: str
    description: Optional[str] = None
    project_id: Optional[str] = None
    log_id: Optional[str] = None
    assigned_to: Optional[str] = None
    priority: ActionItemPriority = ActionItemPriority.MEDIUM
    status: ActionItemStatus = ActionItemStatus.OPEN
    due_date: Optional[str] = None
    created_by: Optional[str] = None
    created_at: str = Field(default_factory=lambda: datetime.now().isoformat())
    updated_at: str = Field(default_factory=lambda: datetime.now().isoformat())
    completed_at: Optional[str] = None


class ActionItemNote(BaseModel):
    """A timestamped note attached to an action item."""
    id: str
    action_item_id: str
    note: str
    created_by: str
    created_at: str = Field(default_factory=lambda: datetime.now().isoformat())


class StoreUnavailableError(RuntimeError):
    """Raised when the store cannot be reached or refuses the operation."""


class ActionItemStore(ABC):
    """
    Abstract base class for action item stores.

    The dispatcher only talks to this interface, so the hosted database can be
    swapped for a local file (or anything else) without touching the
    extraction or execution logic.

    Implementations:
    - JsonActionItemStore (local file, tests and demos)
    - PostgrestActionItemStore (hosted Postgres over its REST interface)
    """

    @abstractmethod
    def get_action_item(self, item_id: str) -> Optional[ActionItem]:
        """
        Fetch a single action item.

        Args:
            item_id: Action item identifier

        Returns:
            ActionItem if found, None otherwise

        Raises:
            StoreUnavailableError: If the store cannot be queried
        """
        pass

    @abstractmethod
    def list_action_items(
        self,
        status: Optional[ActionItemStatus] = None
    ) -> List[ActionItem]:
        """
        List action items, newest first.

        Args:
            status: Optional status filter

        Returns:
            List of action items
        """
        pass

    @abstractmethod
    def search_action_items(self, query: str, limit: int = 10) -> List[ActionItem]:
        """
        Case-insensitive search of titles and descriptions, newest first.

        Lets the assistant resolve an item it only knows by name to its id.

        Args:
            query: Text to look for
            limit: Maximum number of items returned

        Returns:
            Matching action items

        Raises:
            StoreUnavailableError: If the store cannot be queried
        """
        pass

    @abstractmethod
    def list_notes(self, action_item_id: Optional[str] = None) -> List[ActionItemNote]:
        """
        List notes, newest first.

        Args:
            action_item_id: Optional action item to restrict the notes to

        Returns:
            List of notes
        """
        pass

    @abstractmethod
    def update_action_item(
        self,
        item_id: str,
        fields: Dict[str, Any]
    ) -> Optional[ActionItem]:
        """
        Overwrite fields of one action item in a single write.

        Args:
            item_id: Action item identifier
            fields: Column name to new value

        Returns:
            The updated row, or None if no row matched

        Raises:
            StoreUnavailableError: If the write fails
        """
        pass

    @abstractmethod
    def insert_note(
        self,
        action_item_id: str,
        note: str,
        created_by: str
    ) -> ActionItemNote:
        """
        Insert a note row referencing an action item.

        Args:
            action_item_id: Parent action item identifier
            note: Note text
            created_by: Author identifier

        Returns:
            The inserted note

        Raises:
            StoreUnavailableError: If the insert fails
        """
        pass

    @abstractmethod
    def insert_action_item(self, fields: Dict[str, Any]) -> ActionItem:
        """
        Insert a new action item.

        Args:
            fields: Column name to value (title and project_id at minimum)

        Returns:
            The inserted action item

        Raises:
            StoreUnavailableError: If the insert fails
        """
        pass

    @abstractmethod
    def health_check(self) -> bool:
        """
        Check if the store is reachable.

        Returns:
            True if healthy, False otherwise
        """
        pass
