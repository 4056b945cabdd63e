"""
Claude API Client

Handles communication with Anthropic's Claude API for the site log assistant.
"""

import logging
from typing import Dict, Any, Optional, List

from anthropic import Anthropic
from anthropic.types import Message

logger = logging.getLogger(__name__)


class AssistantClient:
    """
    Client for getting the construction assistant's replies from Claude.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "claude-sonnet-4-20250514",
        max_tokens: int = 2048,
        client: Optional[Anthropic] = None
    ):
        """
        Initialize Claude API client.

        Args:
            api_key: Anthropic API key
            model: Claude model identifier
            max_tokens: Maximum tokens for responses
            client: Optional pre-built Anthropic client
        """
        self.client = client or Anthropic(api_key=api_key)
        self.model = model
        self.max_tokens = max_tokens
        logger.info(f"AssistantClient initialized with model: {model}")

    def generate_reply(
        self,
        system_prompt: str,
        messages: List[Dict[str, Any]]
    ) -> str:
        """
        Send the conversation to Claude and return the reply text.

        Args:
            system_prompt: System prompt including the data context
            messages: Conversation ending with the user's message

        Returns:
            The assistant's reply, possibly containing an action block

        Raises:
            RuntimeError: If the API call fails or returns no text
        """
        logger.info(f"Requesting assistant reply ({len(messages)} messages)")

        try:
            message = self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                system=system_prompt,
                messages=messages
            )
        except Exception as e:
            logger.error(f"Failed to get reply from Claude: {e}")
            raise RuntimeError(f"Claude API call failed: {e}") from e

        logger.debug(f"Claude response received: {message.stop_reason}")

        reply = self._extract_text(message)
        if not reply:
            logger.error("No text content in Claude's response")
            raise RuntimeError("Claude did not return any text")

        return reply

    def _extract_text(self, message: Message) -> str:
        """
        Join the text blocks of a response.

        Args:
            message: Claude API message response

        Returns:
            Reply text (empty if the response has no text blocks)
        """
        parts = [
            block.text for block in message.content
            if getattr(block, 'type', None) == 'text'
        ]
        return "\n".join(parts).strip()

    def validate_api_key(self) -> bool:
        """
        Validate that the API key is working.

        Returns:
            True if API key is valid, False otherwise
        """
        try:
            self.client.messages.create(
                model=self.model,
                max_tokens=10,
                messages=[
                    {
                        "role": "user",
                        "content": "Test"
                    }
                ]
            )
            logger.info("API key validation successful")
            return True
        except Exception as e:
            logger.error(f"API key validation failed: {e}")
            return False
