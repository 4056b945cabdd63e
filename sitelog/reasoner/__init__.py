"""
Reasoner Module

Integrates with Claude API to produce the assistant's replies.
"""

from .claude_client import AssistantClient

__all__ = ["AssistantClient"]
