"""
Command Executor

Validates a Command against the supported action kinds and applies exactly
one write to the action item store. The store handle is passed in per call;
the executor itself keeps no state between commands.
"""

import logging
from datetime import date, datetime, timezone
from enum import Enum
from typing import Dict, Any, Callable, Optional, Tuple, Type

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)

from ..commands.models import Command
from ..store.base import (
    ActionItem,
    ActionItemPriority,
    ActionItemStatus,
    ActionItemStore,
)
from .results import AffectedRecord, ExecutionResult, FailureReason

logger = logging.getLogger(__name__)

DEFAULT_AUTHOR = "AI Assistant"

ACTION_ITEMS_TABLE = "action_items"
NOTES_TABLE = "action_item_notes"

RECORD_ID_FIELD = AliasChoices('id', 'actionItemId', 'action_item_id')
AUTHOR_FIELD = AliasChoices('user', 'author', 'createdBy', 'created_by')
PERSON_FIELD = AliasChoices('assignedTo', 'assigned_to', 'assignee', 'person')
DUE_DATE_FIELD = AliasChoices('dueDate', 'due_date')

AUTHOR_KEYS = ('user', 'author', 'createdBy', 'created_by')

# Moving back to one of these clears a stale completion stamp
REOPENED_STATUSES = (
    ActionItemStatus.OPEN,
    ActionItemStatus.IN_PROGRESS,
    ActionItemStatus.ON_HOLD,
)


class ActionKind(str, Enum):
    """Actions the assistant is allowed to perform."""
    UPDATE_STATUS = "update_status"
    ADD_NOTE = "add_note"
    ASSIGN_PERSON = "assign_person"
    UPDATE_PRIORITY = "update_priority"
    UPDATE_DUE_DATE = "update_due_date"
    CREATE_ACTION_ITEM = "create_action_item"


# Names the assistant prompt used before the kinds were shortened
KIND_ALIASES: Dict[str, ActionKind] = {
    "update_action_item_status": ActionKind.UPDATE_STATUS,
    "add_action_item_note": ActionKind.ADD_NOTE,
    "assign_action_item": ActionKind.ASSIGN_PERSON,
    "assign": ActionKind.ASSIGN_PERSON,
    "update_action_item_priority": ActionKind.UPDATE_PRIORITY,
    "update_action_item_due_date": ActionKind.UPDATE_DUE_DATE,
}


def _normalize_token(value: str) -> str:
    return value.strip().lower().replace(' ', '_').replace('-', '_')


def resolve_kind(kind: str) -> Optional[ActionKind]:
    """
    Map an action identifier to a supported kind.

    Accepts canonical names, their spaced/hyphenated spellings
    ("update status") and the older long names ("update_action_item_status").

    Args:
        kind: Identifier as written by the assistant

    Returns:
        ActionKind, or None if unsupported
    """
    key = _normalize_token(kind)
    try:
        return ActionKind(key)
    except ValueError:
        return KIND_ALIASES.get(key)


class _Payload(BaseModel):
    model_config = ConfigDict(extra='ignore')

    @field_validator(
        'record_id', 'person', 'author', 'title', 'project_id', 'log_id', 'due_date',
        mode='before', check_fields=False
    )
    @classmethod
    def _strip_identifiers(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip()
        return value


class UpdateStatusPayload(_Payload):
    record_id: str = Field(..., min_length=1, validation_alias=RECORD_ID_FIELD)
    status: ActionItemStatus

    @field_validator('status', mode='before')
    @classmethod
    def _normalize_status(cls, value: Any) -> Any:
        if isinstance(value, str):
            return _normalize_token(value)
        return value


class AddNotePayload(_Payload):
    record_id: str = Field(..., min_length=1, validation_alias=RECORD_ID_FIELD)
    note: str = Field(..., min_length=1)
    author: str = Field(..., min_length=1, validation_alias=AUTHOR_FIELD)

    # Stored exactly as written
    @field_validator('note')
    @classmethod
    def _reject_blank_note(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("note must not be blank")
        return value


class AssignPersonPayload(_Payload):
    record_id: str = Field(..., min_length=1, validation_alias=RECORD_ID_FIELD)
    person: str = Field(..., min_length=1, validation_alias=PERSON_FIELD)


class UpdatePriorityPayload(_Payload):
    record_id: str = Field(..., min_length=1, validation_alias=RECORD_ID_FIELD)
    priority: ActionItemPriority

    @field_validator('priority', mode='before')
    @classmethod
    def _normalize_priority(cls, value: Any) -> Any:
        if isinstance(value, str):
            return _normalize_token(value)
        return value


class UpdateDueDatePayload(_Payload):
    record_id: str = Field(..., min_length=1, validation_alias=RECORD_ID_FIELD)
    due_date: date = Field(..., validation_alias=DUE_DATE_FIELD)


class CreateActionItemPayload(_Payload):
    title: str = Field(..., min_length=1)
    project_id: str = Field(..., min_length=1,
                            validation_alias=AliasChoices('projectId', 'project_id'))
    description: Optional[str] = None
    priority: ActionItemPriority = ActionItemPriority.MEDIUM
    person: Optional[str] = Field(None, validation_alias=PERSON_FIELD)
    due_date: Optional[date] = Field(None, validation_alias=DUE_DATE_FIELD)
    log_id: Optional[str] = Field(None,
                                  validation_alias=AliasChoices('dailyLogId', 'logId', 'log_id'))
    author: str = Field(DEFAULT_AUTHOR, min_length=1, validation_alias=AUTHOR_FIELD)

    @field_validator('priority', mode='before')
    @classmethod
    def _normalize_priority(cls, value: Any) -> Any:
        if isinstance(value, str):
            return _normalize_token(value)
        return value


Handler = Callable[[Any, ActionItemStore], ExecutionResult]


class CommandExecutor:
    """
    Applies validated commands to an action item store.

    Each kind has one payload model and one handler in an explicit table;
    adding a kind means adding both. Validation always completes before the
    store is touched, and each command results in at most one write.
    """

    def __init__(self):
        self._registry: Dict[ActionKind, Tuple[Type[_Payload], Handler]] = {
            ActionKind.UPDATE_STATUS: (UpdateStatusPayload, self._update_status),
            ActionKind.ADD_NOTE: (AddNotePayload, self._add_note),
            ActionKind.ASSIGN_PERSON: (AssignPersonPayload, self._assign_person),
            ActionKind.UPDATE_PRIORITY: (UpdatePriorityPayload, self._update_priority),
            ActionKind.UPDATE_DUE_DATE: (UpdateDueDatePayload, self._update_due_date),
            ActionKind.CREATE_ACTION_ITEM: (CreateActionItemPayload, self._create_action_item),
        }

    @property
    def supported_kinds(self) -> Tuple[ActionKind, ...]:
        return tuple(self._registry)

    def execute(
        self,
        command: Command,
        store: ActionItemStore,
        acting_user: Optional[str] = None
    ) -> ExecutionResult:
        """
        Validate and apply one command.

        Args:
            command: Normalized command
            store: Store the mutation is applied to
            acting_user: Fallback author when the payload names none

        Returns:
            ExecutionResult describing the outcome
        """
        logger.info(f"Executing '{command.kind}' command")

        kind = resolve_kind(command.kind)
        if kind is None:
            logger.warning(f"Unsupported action kind: {command.kind}")
            return ExecutionResult.failure(
                FailureReason.UNSUPPORTED_ACTION,
                f"Unknown action type: {command.kind}"
            )

        payload_model, handler = self._registry[kind]

        data = dict(command.payload)
        if acting_user and not any(data.get(key) for key in AUTHOR_KEYS):
            data['user'] = acting_user

        try:
            payload = payload_model.model_validate(data)
        except ValidationError as e:
            problems = self._describe_errors(e)
            logger.warning(f"Invalid payload for {kind.value}: {problems}")
            return ExecutionResult.failure(
                FailureReason.INVALID_PAYLOAD,
                f"Invalid {kind.value} payload: {problems}"
            )

        try:
            result = handler(payload, store)
        except Exception as e:
            logger.error(f"Store error while executing {kind.value}: {e}")
            return ExecutionResult.failure(
                FailureReason.STORE_UNAVAILABLE,
                f"Store unavailable: {e}"
            )

        if result.succeeded:
            logger.info(f"{kind.value} succeeded: {result.message}")
        else:
            logger.warning(f"{kind.value} failed: {result.message}")
        return result

    def _update_status(
        self,
        payload: UpdateStatusPayload,
        store: ActionItemStore
    ) -> ExecutionResult:
        current = store.get_action_item(payload.record_id)
        if current is None:
            return self._not_found(payload.record_id)

        fields: Dict[str, Any] = {'status': payload.status.value}
        if payload.status == ActionItemStatus.COMPLETED:
            fields['completed_at'] = datetime.now(timezone.utc).isoformat()
        elif payload.status in REOPENED_STATUSES and current.completed_at:
            fields['completed_at'] = None

        return self._write_fields(
            store,
            payload.record_id,
            fields,
            f"Action item {payload.record_id} status updated to {payload.status.value}"
        )

    def _add_note(
        self,
        payload: AddNotePayload,
        store: ActionItemStore
    ) -> ExecutionResult:
        if store.get_action_item(payload.record_id) is None:
            return self._not_found(payload.record_id)

        note = store.insert_note(payload.record_id, payload.note, payload.author)

        return ExecutionResult.success(
            AffectedRecord(
                table=NOTES_TABLE,
                record_id=note.id,
                fields={
                    'action_item_id': note.action_item_id,
                    'note': note.note,
                    'created_by': note.created_by
                }
            ),
            f"Note added to action item {payload.record_id}"
        )

    def _assign_person(
        self,
        payload: AssignPersonPayload,
        store: ActionItemStore
    ) -> ExecutionResult:
        return self._update_fields(
            store,
            payload.record_id,
            {'assigned_to': payload.person},
            f"Action item {payload.record_id} assigned to {payload.person}"
        )

    def _update_priority(
        self,
        payload: UpdatePriorityPayload,
        store: ActionItemStore
    ) -> ExecutionResult:
        return self._update_fields(
            store,
            payload.record_id,
            {'priority': payload.priority.value},
            f"Action item {payload.record_id} priority updated to {payload.priority.value}"
        )

    def _update_due_date(
        self,
        payload: UpdateDueDatePayload,
        store: ActionItemStore
    ) -> ExecutionResult:
        due = payload.due_date.isoformat()
        return self._update_fields(
            store,
            payload.record_id,
            {'due_date': due},
            f"Action item {payload.record_id} due date updated to {due}"
        )

    def _create_action_item(
        self,
        payload: CreateActionItemPayload,
        store: ActionItemStore
    ) -> ExecutionResult:
        fields = {
            'title': payload.title,
            'project_id': payload.project_id,
            'description': payload.description,
            'priority': payload.priority.value,
            'status': ActionItemStatus.OPEN.value,
            'assigned_to': payload.person,
            'due_date': payload.due_date.isoformat() if payload.due_date else None,
            'log_id': payload.log_id,
            'created_by': payload.author
        }
        fields = {name: value for name, value in fields.items() if value is not None}

        item = store.insert_action_item(fields)

        return ExecutionResult.success(
            self._affected(item, fields),
            f"New action item created: {item.title}"
        )

    def _update_fields(
        self,
        store: ActionItemStore,
        record_id: str,
        fields: Dict[str, Any],
        message: str
    ) -> ExecutionResult:
        """Check the record exists, then issue the single update."""
        if store.get_action_item(record_id) is None:
            return self._not_found(record_id)

        return self._write_fields(store, record_id, fields, message)

    def _write_fields(
        self,
        store: ActionItemStore,
        record_id: str,
        fields: Dict[str, Any],
        message: str
    ) -> ExecutionResult:
        updated = store.update_action_item(record_id, fields)
        if updated is None:
            # Deleted between the lookup and the write
            return self._not_found(record_id)

        return ExecutionResult.success(self._affected(updated, fields), message)

    @staticmethod
    def _affected(item: ActionItem, fields: Dict[str, Any]) -> AffectedRecord:
        """Report the post-write value of each changed field."""
        written = item.model_dump(mode='json')
        return AffectedRecord(
            table=ACTION_ITEMS_TABLE,
            record_id=item.id,
            fields={name: written.get(name, value) for name, value in fields.items()}
        )

    @staticmethod
    def _not_found(record_id: str) -> ExecutionResult:
        logger.warning(f"Action item not found: {record_id}")
        return ExecutionResult.failure(
            FailureReason.RECORD_NOT_FOUND,
            f"Action item {record_id} not found"
        )

    @staticmethod
    def _describe_errors(error: ValidationError) -> str:
        parts = []
        for err in error.errors():
            location = '.'.join(str(part) for part in err['loc']) or 'payload'
            parts.append(f"{location}: {err['msg']}")
        return '; '.join(parts)


def execute_command(
    command: Command,
    store: ActionItemStore,
    acting_user: Optional[str] = None
) -> ExecutionResult:
    """Execute a command with a fresh executor."""
    return CommandExecutor().execute(command, store, acting_user=acting_user)
