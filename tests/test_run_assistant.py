"""
Test the command-line assistant turn (reply mode, no Claude call).
"""

import pytest

import run_assistant


@pytest.fixture
def store_env(monkeypatch, json_store):
    monkeypatch.setattr('sitelog.config.load_dotenv', lambda *args, **kwargs: False)
    monkeypatch.setenv('SITELOG_STORE', 'json')
    monkeypatch.setenv('SITELOG_STORE_FILE', str(json_store.store_file))
    return json_store


def test_reply_mode_executes_action(store_env, capsys):
    reply = ('Done. {"action":{"type":"update_priority",'
             '"data":{"id":"abc-1","priority":"urgent"}}}')

    exit_code = run_assistant.main(["--reply", reply])

    assert exit_code == 0
    output = capsys.readouterr().out
    assert "priority updated to urgent" in output
    assert store_env.get_action_item("abc-1").priority.value == "urgent"


def test_reply_mode_failed_action(store_env, capsys):
    reply = '{"action":{"type":"update_priority","data":{"id":"abc-1","priority":"asap"}}}'

    exit_code = run_assistant.main(["--reply", reply])

    assert exit_code == 2
    assert "InvalidPayload" in capsys.readouterr().out


def test_message_mode_requires_api_key(store_env, monkeypatch, capsys):
    monkeypatch.delenv('ANTHROPIC_API_KEY', raising=False)

    assert run_assistant.main(["What is open?"]) == 1
    assert "ANTHROPIC_API_KEY" in capsys.readouterr().out
