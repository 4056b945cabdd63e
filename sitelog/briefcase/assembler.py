"""
Context Assembler

Builds the data context the assistant sees: action item statistics and the
items themselves with their Internal IDs and latest notes.
"""

import logging
from collections import defaultdict
from datetime import date, datetime
from typing import Dict, Any, List, Optional, Sequence

from ..dispatcher.actions import ActionKind
from ..store.base import (
    ActionItem,
    ActionItemNote,
    ActionItemPriority,
    ActionItemStatus,
)
from .templates import AssistantTemplates

logger = logging.getLogger(__name__)

CLOSED_STATUSES = (
    ActionItemStatus.COMPLETED,
    ActionItemStatus.CLOSED,
    ActionItemStatus.CANCELLED,
)


class ContextAssembler:
    """
    Assembles the assistant's system prompt and message list.
    """

    def __init__(
        self,
        max_items: int = 50,
        notes_per_item: int = 3,
        max_history: int = 10
    ):
        """
        Initialize the context assembler.

        Args:
            max_items: Maximum number of action items rendered into the context
            notes_per_item: Most recent notes rendered under each item
            max_history: Most recent conversation turns sent back to the model
        """
        self.max_items = max_items
        self.notes_per_item = notes_per_item
        self.max_history = max_history
        self.templates = AssistantTemplates()
        logger.info("ContextAssembler initialized")

    def summarize(
        self,
        items: Sequence[ActionItem],
        today: Optional[date] = None
    ) -> Dict[str, int]:
        """
        Count action items by status, priority and lateness.

        Args:
            items: Action items
            today: Reference date for overdue checks (defaults to today)

        Returns:
            Dictionary of counts
        """
        today = today or date.today()
        return {
            'total': len(items),
            'open': sum(1 for i in items if i.status == ActionItemStatus.OPEN),
            'in_progress': sum(1 for i in items if i.status == ActionItemStatus.IN_PROGRESS),
            'completed': sum(1 for i in items if i.status == ActionItemStatus.COMPLETED),
            'urgent': sum(1 for i in items if i.priority == ActionItemPriority.URGENT),
            'overdue': sum(1 for i in items if self._is_overdue(i, today))
        }

    def assemble(
        self,
        items: Sequence[ActionItem],
        notes: Sequence[ActionItemNote] = (),
        today: Optional[date] = None
    ) -> str:
        """
        Render action items and notes into the data context block.

        Args:
            items: Action items, newest first
            notes: Notes for those items (any order)
            today: Reference date for overdue checks

        Returns:
            Formatted context string
        """
        logger.info(f"Assembling context for {len(items)} action items")

        context = self.templates.summary_template().format(**self.summarize(items, today))

        notes_by_item: Dict[str, List[ActionItemNote]] = defaultdict(list)
        for note in notes:
            notes_by_item[note.action_item_id].append(note)

        if items:
            context += "\nCURRENT ACTION ITEMS:\n"

        for item in list(items)[:self.max_items]:
            context += self.templates.item_template().format(
                priority=item.priority.value.upper(),
                title=item.title,
                id=item.id,
                status=item.status.value,
                assigned_to=item.assigned_to or 'Unassigned',
                due_date=item.due_date or 'No due date',
                updated_at=self._format_datetime(item.updated_at)
            )
            if item.description:
                context += f"  Description: {item.description}\n"

            item_notes = sorted(
                notes_by_item.get(item.id, []),
                key=lambda n: n.created_at,
                reverse=True
            )[:self.notes_per_item]
            for note in item_notes:
                context += (f"  - [{self._format_datetime(note.created_at)}] "
                            f"{note.created_by}: \"{note.note}\"\n")

        if len(items) > self.max_items:
            context += f"\n({len(items) - self.max_items} older action items not shown)\n"

        return context

    def system_prompt(self, data_context: str) -> str:
        """
        Build the full system prompt around a data context.

        Args:
            data_context: Output of assemble()

        Returns:
            System prompt string
        """
        descriptions = self.templates.action_descriptions()
        action_list = "\n".join(
            f"- {kind.value}: {descriptions[kind.value]}" for kind in ActionKind
        )

        return self.templates.system_prompt().format(
            data_context=data_context,
            action_list=action_list,
            status_values=self.templates.format_values(s.value for s in ActionItemStatus),
            priority_values=self.templates.format_values(p.value for p in ActionItemPriority)
        )

    def build_messages(
        self,
        message: str,
        history: Optional[List[Dict[str, Any]]] = None
    ) -> List[Dict[str, Any]]:
        """
        Build the Messages API conversation for one user turn.

        Args:
            message: The user's new message
            history: Earlier turns as {"role", "content"} dicts, oldest first

        Returns:
            List of message dictionaries ending with the new user message
        """
        turns = [
            {'role': turn['role'], 'content': turn['content']}
            for turn in (history or [])
            if turn.get('role') in ('user', 'assistant') and turn.get('content')
        ]
        messages = turns[-self.max_history:] if self.max_history > 0 else []

        # The conversation has to open with a user turn
        while messages and messages[0]['role'] != 'user':
            messages.pop(0)

        messages.append({'role': 'user', 'content': message})
        return messages

    @staticmethod
    def _is_overdue(item: ActionItem, today: date) -> bool:
        if not item.due_date or item.status in CLOSED_STATUSES:
            return False
        try:
            due = date.fromisoformat(item.due_date[:10])
        except ValueError:
            return False
        return due < today

    def _format_datetime(self, dt: Any) -> str:
        """
        Format datetime for display.

        Args:
            dt: Datetime object or ISO string

        Returns:
            Formatted datetime string
        """
        if isinstance(dt, datetime):
            return dt.strftime('%Y-%m-%d %H:%M')
        elif isinstance(dt, str):
            try:
                return datetime.fromisoformat(dt).strftime('%Y-%m-%d %H:%M')
            except ValueError:
                return dt
        else:
            return 'Unknown'
