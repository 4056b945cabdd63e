"""
Execution Results

Standardized outcome of applying one command, so HTTP handlers, the chat
pipeline and the CLI all present success and failure the same way.
"""

from enum import Enum
from typing import Dict, Any, Optional

from pydantic import BaseModel, Field, model_validator


class FailureReason(str, Enum):
    """Why a command was not applied."""
    UNSUPPORTED_ACTION = "UnsupportedAction"
    INVALID_PAYLOAD = "InvalidPayload"
    RECORD_NOT_FOUND = "RecordNotFound"
    STORE_UNAVAILABLE = "StoreUnavailable"


class AffectedRecord(BaseModel):
    """The row a successful command wrote, with the post-write values it changed."""
    table: str
    record_id: str
    fields: Dict[str, Any] = Field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Flatten to `{"id": ..., <changed fields>}`."""
        return {'id': self.record_id, **self.fields}


class ExecutionResult(BaseModel):
    """
    Outcome of executing one command.

    `affected_record` is set only on success and `failure_reason` only on
    failure; anything else is rejected at construction.
    """
    succeeded: bool
    affected_record: Optional[AffectedRecord] = None
    failure_reason: Optional[FailureReason] = None
    message: str = ""

    @model_validator(mode='after')
    def _check_outcome_fields(self) -> 'ExecutionResult':
        if self.succeeded:
            if self.affected_record is None or self.failure_reason is not None:
                raise ValueError("successful result needs affected_record and no failure_reason")
        elif self.failure_reason is None or self.affected_record is not None:
            raise ValueError("failed result needs failure_reason and no affected_record")
        return self

    @classmethod
    def success(cls, affected_record: AffectedRecord, message: str) -> 'ExecutionResult':
        return cls(succeeded=True, affected_record=affected_record, message=message)

    @classmethod
    def failure(cls, reason: FailureReason, message: str) -> 'ExecutionResult':
        return cls(succeeded=False, failure_reason=reason, message=message)
