"""
Test Assistant Client

Tests for the Claude client with the Anthropic SDK mocked out.
"""

import os
from unittest.mock import MagicMock

import pytest

from sitelog.reasoner import AssistantClient


def _message(*texts):
    message = MagicMock()
    message.stop_reason = "end_turn"
    message.content = [MagicMock(type="text", text=text) for text in texts]
    return message


def test_generate_reply_joins_text_blocks():
    anthropic = MagicMock()
    anthropic.messages.create.return_value = _message("Marked it closed.", '{"action":{}}')
    client = AssistantClient(api_key="unused", model="test-model", client=anthropic)

    reply = client.generate_reply("system", [{"role": "user", "content": "close it"}])

    assert reply == 'Marked it closed.\n{"action":{}}'
    kwargs = anthropic.messages.create.call_args.kwargs
    assert kwargs["model"] == "test-model"
    assert kwargs["system"] == "system"
    assert kwargs["messages"][-1]["content"] == "close it"


def test_generate_reply_ignores_non_text_blocks():
    anthropic = MagicMock()
    message = _message("Here you go.")
    message.content.insert(0, MagicMock(type="thinking"))
    anthropic.messages.create.return_value = message
    client = AssistantClient(api_key="unused", client=anthropic)

    assert client.generate_reply("system", []) == "Here you go."


def test_generate_reply_wraps_api_errors():
    anthropic = MagicMock()
    anthropic.messages.create.side_effect = ConnectionError("network down")
    client = AssistantClient(api_key="unused", client=anthropic)

    with pytest.raises(RuntimeError, match="Claude API call failed"):
        client.generate_reply("system", [])


def test_generate_reply_without_text_raises():
    anthropic = MagicMock()
    anthropic.messages.create.return_value = _message()
    client = AssistantClient(api_key="unused", client=anthropic)

    with pytest.raises(RuntimeError, match="did not return any text"):
        client.generate_reply("system", [])


def test_validate_api_key_failure():
    anthropic = MagicMock()
    anthropic.messages.create.side_effect = PermissionError("invalid x-api-key")
    client = AssistantClient(api_key="bad", client=anthropic)

    assert not client.validate_api_key()


@pytest.mark.skipif(
    not os.getenv('ANTHROPIC_API_KEY'),
    reason="Anthropic API key not configured"
)
def test_claude_client():
    """Test Claude API client (requires API key)."""
    client = AssistantClient(api_key=os.getenv('ANTHROPIC_API_KEY'))

    assert client.validate_api_key(), "Claude API key validation failed"
