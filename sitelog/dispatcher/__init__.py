"""
Dispatcher Module

Executes commands found in assistant replies against the action item store.
"""

from .actions import (
    ActionKind,
    CommandExecutor,
    execute_command,
    resolve_kind,
)
from .results import AffectedRecord, ExecutionResult, FailureReason

__all__ = [
    "ActionKind",
    "AffectedRecord",
    "CommandExecutor",
    "ExecutionResult",
    "FailureReason",
    "execute_command",
    "resolve_kind"
]
