"""
Test Command Extraction

Tests for locating the action block in assistant replies and normalizing
both action shapes into a Command.
"""

import pytest

from sitelog.commands import (
    Command,
    CommandExtractor,
    extract_command,
    normalize_action,
)
from sitelog.commands.extractor import find_object_end


class TestFindObjectEnd:
    """Test brace matching."""

    def test_nested_braces(self):
        text = 'x {"a": {"b": {"c": 1}}} y'
        start = text.index('{')
        assert text[start:find_object_end(text, start)] == '{"a": {"b": {"c": 1}}}'

    def test_braces_inside_strings_are_ignored(self):
        text = '{"note": "use {curly} braces }}", "n": 1} tail'
        end = find_object_end(text, 0)
        assert text[:end] == '{"note": "use {curly} braces }}", "n": 1}'

    def test_escaped_quote_inside_string(self):
        text = r'{"note": "he said \"}\" twice"} after'
        end = find_object_end(text, 0)
        assert text[end:] == ' after'

    def test_unbalanced_returns_none(self):
        assert find_object_end('{"a": {"b": 1}', 0) is None


class TestCommandExtractor:
    """Test CommandExtractor over realistic replies."""

    def test_no_json_returns_none(self):
        extractor = CommandExtractor()
        assert extractor.extract("The drywall was delivered on Tuesday.") is None

    def test_empty_and_none_input(self):
        extractor = CommandExtractor()
        assert extractor.extract("") is None
        assert extractor.extract(None) is None

    def test_json_without_action_key_returns_none(self):
        text = 'Here is the summary: {"open": 3, "closed": 2}'
        assert extract_command(text) is None

    def test_current_shape_with_surrounding_prose(self):
        text = ('Sure, done. {"action":{"type":"update_status",'
                '"data":{"id":"abc-1","status":"closed"}}} Let me know if anything else.')

        command = extract_command(text)

        assert command is not None
        assert command.kind == "update_status"
        assert command.payload == {"id": "abc-1", "status": "closed"}
        assert command.shape == "current"

    def test_legacy_shape(self):
        text = ('{"action":{"actionType":"add_note","actionData":'
                '{"id":"abc-1","note":"called vendor","user":"jane"}}}')

        command = extract_command(text)

        assert command == Command(
            kind="add_note",
            payload={"id": "abc-1", "note": "called vendor", "user": "jane"},
            shape="legacy"
        )

    def test_whitespace_and_code_fence(self):
        text = """I'll add that note.

```json
{
  "action": {
    "type": "add_note",
    "data": {"id": "abc-1", "note": "Slab poured {north bay}", "user": "AI Assistant"}
  }
}
```
"""
        command = extract_command(text)

        assert command.kind == "add_note"
        assert command.payload["note"] == "Slab poured {north bay}"

    def test_nested_objects_in_data(self):
        text = ('{"action":{"type":"create_action_item","data":'
                '{"title":"Order rebar","projectId":"p1","meta":{"source":{"kind":"log"}}}}}')

        command = extract_command(text)

        assert command.payload["meta"] == {"source": {"kind": "log"}}

    def test_first_malformed_second_valid(self):
        text = ('Trying: {"action":{"type":"update_status","data":{"id":"abc-1",'
                '"status":"closed",}}} and again: '
                '{"action":{"type":"update_status","data":{"id":"abc-2","status":"open"}}}')

        command = extract_command(text)

        assert command.payload == {"id": "abc-2", "status": "open"}

    def test_unbalanced_first_block_does_not_hide_second(self):
        text = ('{"action":{"type":"add_note","data":{"id":"abc-1"} oops '
                '{"action":{"type":"add_note","data":{"id":"abc-2","note":"ok","user":"u"}}}')

        command = extract_command(text)

        assert command.payload["id"] == "abc-2"

    def test_first_valid_block_wins(self):
        text = ('{"action":{"type":"assign_person","data":{"id":"abc-1","assignedTo":"Ana"}}} '
                '{"action":{"type":"assign_person","data":{"id":"abc-2","assignedTo":"Ben"}}}')

        command = extract_command(text)

        assert command.payload["id"] == "abc-1"

    def test_wrong_shape_action_is_skipped(self):
        text = ('{"action": "close the RFI"} then '
                '{"action":{"type":"update_status","data":{"id":"abc-1","status":"completed"}}}')

        command = extract_command(text)

        assert command.kind == "update_status"

    def test_action_key_after_other_keys(self):
        text = ('Done. {"reason":"user asked","action":{"type":"update_status",'
                '"data":{"id":"abc-1","status":"closed"}}}')

        match = CommandExtractor().locate(text)

        assert match.command.kind == "update_status"
        assert text[match.start:match.end].startswith('{"reason"')

    def test_non_action_object_before_command(self):
        text = ('Counts: {"open": 3} and the change: '
                '{"action":{"type":"update_priority","data":{"id":"abc-1","priority":"high"}}}')

        command = extract_command(text)

        assert command.payload == {"id": "abc-1", "priority": "high"}

    def test_data_must_be_an_object(self):
        assert extract_command('{"action":{"type":"add_note","data":["abc-1"]}}') is None

    def test_locate_reports_span(self):
        block = '{"action":{"type":"update_status","data":{"id":"abc-1","status":"closed"}}}'
        text = f"Done. {block} Thanks."

        match = CommandExtractor().locate(text)

        assert text[match.start:match.end] == block

    def test_scan_stops_at_text_bound(self):
        block = '{"action":{"type":"update_status","data":{"id":"abc-1","status":"closed"}}}'
        text = "x" * 200 + block

        assert CommandExtractor(max_text_length=100).extract(text) is None
        assert CommandExtractor(max_text_length=1000).extract(text) is not None

    def test_scan_stops_at_candidate_bound(self):
        broken = '{"action": nope} ' * 5
        block = '{"action":{"type":"update_status","data":{"id":"abc-1","status":"closed"}}}'

        assert CommandExtractor(max_candidates=5).extract(broken + block) is None
        assert CommandExtractor(max_candidates=6).extract(broken + block) is not None

    def test_invalid_bounds_rejected(self):
        with pytest.raises(ValueError):
            CommandExtractor(max_text_length=0)

    def test_deeply_nested_input_does_not_raise(self):
        text = '{"action":' + '[' * 5000 + ']' * 5000 + '}'
        assert extract_command(text) is None


class TestNormalizeAction:
    """Test the two-shape normalization."""

    def test_current_shape(self):
        command = normalize_action({"type": "add_note", "data": {"id": "1"}})
        assert command.kind == "add_note"
        assert command.shape == "current"

    def test_legacy_shape(self):
        command = normalize_action({"actionType": "add_note", "actionData": {"id": "1"}})
        assert command.kind == "add_note"
        assert command.shape == "legacy"

    def test_current_shape_preferred_when_both_present(self):
        command = normalize_action({
            "type": "add_note", "data": {"id": "1"},
            "actionType": "update_status", "actionData": {"id": "2"}
        })
        assert command.kind == "add_note"

    @pytest.mark.parametrize("action", [
        None,
        "add_note",
        {"type": "add_note"},
        {"type": "", "data": {}},
        {"type": 3, "data": {}},
        {"actionType": "add_note", "actionData": "id=1"},
    ])
    def test_unrecognized_shapes(self, action):
        assert normalize_action(action) is None
