"""
JSON Action Item Store

Keeps action items and their notes in a local JSON file.
Used for demos, tests and running the assistant without the hosted database.
"""

import json
import logging
import uuid
from pathlib import Path
from typing import Dict, Any, List, Optional
from datetime import datetime

from pydantic import BaseModel, Field

from .base import (
    ActionItem,
    ActionItemNote,
    ActionItemStatus,
    ActionItemStore,
    StoreUnavailableError,
)

logger = logging.getLogger(__name__)


class StoreState(BaseModel):
    """Complete store contents."""
    project_id: str
    last_updated: str = Field(default_factory=lambda: datetime.now().isoformat())
    action_items: List[ActionItem] = Field(default_factory=list)
    notes: List[ActionItemNote] = Field(default_factory=list)


class JsonActionItemStore(ActionItemStore):
    """
    Action item store that reads/writes a single JSON file.

    Every call loads the file and every mutation saves it back, so two
    instances pointed at the same path see each other's writes.
    """

    def __init__(self, store_file_path: str):
        """
        Initialize the JSON store.

        Args:
            store_file_path: Path to the JSON file holding the store state
        """
        self.store_file = Path(store_file_path)
        logger.info(f"JsonActionItemStore initialized with file: {store_file_path}")

        # Create file with sample data if it doesn't exist or is empty
        if not self.store_file.exists() or self.store_file.stat().st_size == 0:
            self._create_default_store()

    def _create_default_store(self) -> None:
        """Create a default store file with a few open site items."""
        logger.info("Creating default action item store")

        default_state = StoreState(
            project_id="proj_001",
            action_items=[
                ActionItem(
                    id="f916cb93-4229-41e7-8ee5-f046365c75ed",
                    title="Stucco / siding",
                    description="Confirm stucco and siding scope on the east elevation",
                    project_id="proj_001",
                    priority="high",
                    status="open"
                ),
                ActionItem(
                    id="2626a95f-36c0-4824-8e96-0d1ba7ec38d4",
                    title="Gypcrete quote",
                    description="Get an updated gypcrete quote for levels 2-4",
                    project_id="proj_001",
                    assigned_to="Dana",
                    status="in_progress"
                ),
                ActionItem(
                    id="947078ef-ad3a-4542-a7b2-a72909d00c55",
                    title="Temp fencing around the building",
                    project_id="proj_001",
                    priority="urgent",
                    status="open"
                )
            ]
        )

        self._save_state(default_state)

    def _load_state(self) -> StoreState:
        """Load store state from file."""
        try:
            with open(self.store_file, 'r') as f:
                data = json.load(f)
            return StoreState(**data)
        except Exception as e:
            logger.error(f"Failed to load action item store: {e}")
            raise StoreUnavailableError(f"Cannot read {self.store_file}: {e}") from e

    def _save_state(self, state: StoreState) -> None:
        """Save store state to file."""
        try:
            self.store_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.store_file, 'w') as f:
                json.dump(state.model_dump(mode='json'), f, indent=2)
            logger.debug("Action item store saved successfully")
        except Exception as e:
            logger.error(f"Failed to save action item store: {e}")
            raise StoreUnavailableError(f"Cannot write {self.store_file}: {e}") from e

    def get_action_item(self, item_id: str) -> Optional[ActionItem]:
        state = self._load_state()
        for item in state.action_items:
            if item.id == item_id:
                return item
        return None

    def list_action_items(
        self,
        status: Optional[ActionItemStatus] = None
    ) -> List[ActionItem]:
        state = self._load_state()
        items = [
            item for item in state.action_items
            if status is None or item.status == status
        ]
        return sorted(items, key=lambda item: item.created_at, reverse=True)

    def search_action_items(self, query: str, limit: int = 10) -> List[ActionItem]:
        needle = query.lower()
        matches = [
            item for item in self.list_action_items()
            if needle in item.title.lower()
            or needle in (item.description or '').lower()
        ]
        logger.info(f"Search '{query}' matched {len(matches)} action items")
        return matches[:limit]

    def list_notes(self, action_item_id: Optional[str] = None) -> List[ActionItemNote]:
        state = self._load_state()
        notes = [
            note for note in state.notes
            if action_item_id is None or note.action_item_id == action_item_id
        ]
        return sorted(notes, key=lambda note: note.created_at, reverse=True)

    def update_action_item(
        self,
        item_id: str,
        fields: Dict[str, Any]
    ) -> Optional[ActionItem]:
        """
        Overwrite fields of one action item.

        Args:
            item_id: Action item identifier
            fields: Column name to new value

        Returns:
            The updated item, or None if the id is unknown
        """
        logger.info(f"Updating action item {item_id}: {sorted(fields)}")

        state = self._load_state()

        index = None
        for i, item in enumerate(state.action_items):
            if item.id == item_id:
                index = i
                break

        if index is None:
            logger.error(f"Action item not found: {item_id}")
            return None

        current = state.action_items[index].model_dump()
        current.update(fields)
        current['updated_at'] = datetime.now().isoformat()
        updated = ActionItem(**current)

        state.action_items[index] = updated
        state.last_updated = datetime.now().isoformat()
        self._save_state(state)
        return updated

    def insert_note(
        self,
        action_item_id: str,
        note: str,
        created_by: str
    ) -> ActionItemNote:
        logger.info(f"Adding note to action item {action_item_id} by {created_by}")

        state = self._load_state()
        new_note = ActionItemNote(
            id=str(uuid.uuid4()),
            action_item_id=action_item_id,
            note=note,
            created_by=created_by
        )
        state.notes.append(new_note)
        state.last_updated = datetime.now().isoformat()
        self._save_state(state)
        return new_note

    def insert_action_item(self, fields: Dict[str, Any]) -> ActionItem:
        logger.info(f"Creating action item: {fields.get('title')}")

        state = self._load_state()
        new_item = ActionItem(id=str(uuid.uuid4()), **fields)
        state.action_items.append(new_item)
        state.last_updated = datetime.now().isoformat()
        self._save_state(state)
        return new_item

    def health_check(self) -> bool:
        try:
            self._load_state()
            return True
        except StoreUnavailableError:
            return False
