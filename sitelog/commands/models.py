"""
Command Models

The assistant has written actions in two shapes over time:

    {"action": {"type": "...", "data": {...}}}               (current)
    {"action": {"actionType": "...", "actionData": {...}}}   (legacy)

Both are parsed into the same Command so the executor only ever sees one form.
"""

import logging
from typing import Dict, Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)

CURRENT_SHAPE = "current"
LEGACY_SHAPE = "legacy"


class Command(BaseModel):
    """A requested mutation, normalized from either action shape."""
    model_config = ConfigDict(frozen=True)

    kind: str = Field(..., description="Action identifier as written by the assistant")
    payload: Dict[str, Any] = Field(default_factory=dict, description="Action fields")
    shape: str = Field(CURRENT_SHAPE, description="Which action shape it was parsed from")


class ActionEnvelope(BaseModel):
    """Current action shape: type + data."""
    type: str = Field(..., min_length=1)
    data: Dict[str, Any]


class LegacyActionEnvelope(BaseModel):
    """Legacy action shape: actionType + actionData."""
    actionType: str = Field(..., min_length=1)
    actionData: Dict[str, Any]


def normalize_action(action: Any) -> Optional[Command]:
    """
    Normalize an inner action object into a Command.

    Args:
        action: The value found under the "action" key

    Returns:
        Command if either shape matches, None otherwise
    """
    if not isinstance(action, dict):
        return None

    try:
        envelope = ActionEnvelope.model_validate(action)
        return Command(
            kind=envelope.type,
            payload=envelope.data,
            shape=CURRENT_SHAPE
        )
    except ValidationError:
        pass

    try:
        legacy = LegacyActionEnvelope.model_validate(action)
        return Command(
            kind=legacy.actionType,
            payload=legacy.actionData,
            shape=LEGACY_SHAPE
        )
    except ValidationError:
        logger.debug(f"Action object matches neither shape: keys={sorted(action)}")
        return None


def command_from_document(document: Any) -> Optional[Command]:
    """
    Build a Command from a decoded `{"action": {...}}` document.

    Args:
        document: Decoded JSON value

    Returns:
        Command if the document has the expected top-level shape, None otherwise
    """
    if not isinstance(document, dict) or 'action' not in document:
        return None
    return normalize_action(document['action'])
