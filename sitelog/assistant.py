"""
Site Assistant

Runs the command core over one assistant reply: find the action block,
execute it, and produce the text the user actually sees. SiteAssistant wraps
that around a full turn: context, Claude reply, then the reply processor.
"""

import logging
from typing import Dict, Any, List, Optional

from pydantic import BaseModel

from .briefcase import ContextAssembler
from .commands import Command, CommandExtractor
from .dispatcher import CommandExecutor, ExecutionResult
from .reasoner import AssistantClient
from .store import ActionItemStore

logger = logging.getLogger(__name__)


class ReplyOutcome(BaseModel):
    """What happened to one assistant reply."""
    display_text: str
    command: Optional[Command] = None
    result: Optional[ExecutionResult] = None


class ReplyProcessor:
    """
    Extracts at most one command from a reply and applies it.
    """

    def __init__(
        self,
        extractor: Optional[CommandExtractor] = None,
        executor: Optional[CommandExecutor] = None
    ):
        self.extractor = extractor or CommandExtractor()
        self.executor = executor or CommandExecutor()

    def process(
        self,
        reply: str,
        store: ActionItemStore,
        acting_user: Optional[str] = None
    ) -> ReplyOutcome:
        """
        Process one assistant reply.

        Args:
            reply: The assistant's reply text
            store: Store any command is applied to
            acting_user: Fallback author for the command

        Returns:
            ReplyOutcome with the display text and, if a command was present,
            the command and its execution result
        """
        match = self.extractor.locate(reply)
        if match is None:
            return ReplyOutcome(display_text=reply)

        result = self.executor.execute(match.command, store, acting_user=acting_user)

        remainder = (reply[:match.start] + reply[match.end:]).strip()
        if result.succeeded:
            status_line = f"✅ Action completed: {result.message}"
        else:
            status_line = f"❌ Action failed: {result.message}"

        display_text = f"{remainder}\n\n{status_line}" if remainder else status_line

        return ReplyOutcome(
            display_text=display_text,
            command=match.command,
            result=result
        )


class SiteAssistant:
    """
    One conversational turn against the action item store.

    Each call re-reads the store so the model always sees current data.
    """

    def __init__(
        self,
        client: AssistantClient,
        assembler: Optional[ContextAssembler] = None,
        processor: Optional[ReplyProcessor] = None
    ):
        self.client = client
        self.assembler = assembler or ContextAssembler()
        self.processor = processor or ReplyProcessor()

    def respond(
        self,
        message: str,
        store: ActionItemStore,
        history: Optional[List[Dict[str, Any]]] = None,
        acting_user: Optional[str] = None
    ) -> ReplyOutcome:
        """
        Answer one user message, applying any action the reply carries.

        Args:
            message: The user's message
            store: Store the context is read from and actions are applied to
            history: Earlier turns, oldest first
            acting_user: Fallback author for the command

        Returns:
            ReplyOutcome for the model's reply

        Raises:
            StoreUnavailableError: If the context cannot be read
            RuntimeError: If the Claude call fails
        """
        items = store.list_action_items()
        notes = store.list_notes()
        logger.info(f"Answering with {len(items)} action items in context")

        system_prompt = self.assembler.system_prompt(self.assembler.assemble(items, notes))
        messages = self.assembler.build_messages(message, history)

        reply = self.client.generate_reply(system_prompt, messages)
        return self.processor.process(reply, store, acting_user=acting_user)
