"""
Integration Tests for the Reply Processor

Tests the complete flow on one assistant reply:
1. Locate the action block
2. Execute it against the store
3. Build the text shown to the user
"""

from unittest.mock import Mock

from sitelog.assistant import ReplyProcessor, SiteAssistant
from sitelog.commands import CommandExtractor
from sitelog.dispatcher import FailureReason
from sitelog.reasoner import AssistantClient


def test_reply_without_command_is_unchanged(json_store):
    reply = "There are two open items on the project."

    outcome = ReplyProcessor().process(reply, json_store)

    assert outcome.display_text == reply
    assert outcome.command is None
    assert outcome.result is None


def test_update_status_scenario(json_store):
    """Status update embedded after prose."""
    reply = ('Sure, done. {"action":{"type":"update_status",'
             '"data":{"id":"abc-1","status":"closed"}}}')

    outcome = ReplyProcessor().process(reply, json_store)

    assert outcome.result.succeeded
    assert outcome.result.affected_record.to_dict() == {"id": "abc-1", "status": "closed"}
    assert outcome.display_text == (
        "Sure, done.\n\n✅ Action completed: Action item abc-1 status updated to closed"
    )
    assert json_store.get_action_item("abc-1").status.value == "closed"


def test_legacy_add_note_scenario(json_store):
    """Legacy-shaped note with no surrounding prose."""
    reply = ('{"action":{"actionType":"add_note","actionData":'
             '{"id":"abc-1","note":"called vendor","user":"jane"}}}')

    outcome = ReplyProcessor().process(reply, json_store)

    assert outcome.command.shape == "legacy"
    assert outcome.result.succeeded
    notes = json_store.list_notes("abc-1")
    assert [n.note for n in notes] == ["called vendor"]
    assert outcome.result.affected_record.fields["action_item_id"] == "abc-1"
    assert outcome.display_text.startswith("✅ Action completed:")


def test_failed_command_is_reported(json_store):
    reply = ('Closing it now. {"action":{"type":"update_status",'
             '"data":{"id":"missing-7","status":"closed"}}} Anything else?')

    outcome = ReplyProcessor().process(reply, json_store)

    assert outcome.result.failure_reason == FailureReason.RECORD_NOT_FOUND
    assert outcome.display_text.startswith("Closing it now.  Anything else?")
    assert "❌ Action failed: Action item missing-7 not found" in outcome.display_text


def test_acting_user_fills_note_author(json_store):
    reply = '{"action":{"type":"add_note","data":{"actionItemId":"abc-2","note":"Delivered"}}}'

    outcome = ReplyProcessor().process(reply, json_store, acting_user="foreman")

    assert outcome.result.affected_record.fields["created_by"] == "foreman"


def test_custom_extractor_bounds(json_store):
    reply = "x" * 50 + '{"action":{"type":"update_status","data":{"id":"abc-1","status":"closed"}}}'
    processor = ReplyProcessor(extractor=CommandExtractor(max_text_length=10))

    outcome = processor.process(reply, json_store)

    assert outcome.command is None
    assert json_store.get_action_item("abc-1").status.value == "open"


def test_site_assistant_turn(json_store):
    client = Mock(spec=AssistantClient)
    client.generate_reply.return_value = (
        'Moved it up. {"action":{"type":"update_priority","data":{"id":"abc-1","priority":"urgent"}}}'
    )

    outcome = SiteAssistant(client).respond(
        "Make the RFI urgent", json_store,
        history=[{"role": "user", "content": "What is open?"},
                 {"role": "assistant", "content": "The RFI."}]
    )

    assert outcome.result.succeeded
    assert json_store.get_action_item("abc-1").priority.value == "urgent"
    system_prompt, messages = client.generate_reply.call_args.args
    assert "Internal ID: abc-1" in system_prompt
    assert [m["role"] for m in messages] == ["user", "assistant", "user"]
    assert messages[-1]["content"] == "Make the RFI urgent"
