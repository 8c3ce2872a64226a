# Tests for the terminal client's slash commands.

import pytest

from client.__main__ import handle_command
from client.session import ChatSession
from client.storage import SavedChatStore
from tests.fakes import make_http_client


@pytest.fixture
def session():
    return ChatSession(character="Echo", http_client=make_http_client())


@pytest.fixture
def store(tmp_path):
    return SavedChatStore(tmp_path / "saved.json")


def test_quit_stops_loop(session, store):
    assert handle_command("/quit", session, store) is False


def test_save_and_open(session, store, capsys):
    handle_command("/save", session, store)
    assert len(store.load()) == 1

    session.start("Nova")
    assert handle_command("/open 1", session, store) is True
    assert session.character == "Echo"
    assert "Echo connected" in capsys.readouterr().out


def test_delete(session, store):
    handle_command("/save", session, store)
    handle_command("/delete 1", session, store)
    assert store.load() == []


def test_open_out_of_range(session, store, capsys):
    handle_command("/open 3", session, store)
    assert "No such chat." in capsys.readouterr().out


def test_persona(session, store):
    handle_command("/persona Spicy", session, store)
    assert session.persona == "spicy"
    handle_command("/persona grumpy", session, store)
    assert session.persona == "spicy"


def test_wipe_history(session, store):
    handle_command("/save", session, store)
    handle_command("/wipe-history", session, store)
    assert store.load() == []


def test_forget_removes_one_message(session, store):
    session.open(
        {
            "character": "Echo",
            "messages": [
                {"id": "a-1", "role": "assistant", "text": "hey"},
                {"id": "u-1", "role": "user", "text": "yo"},
            ],
        }
    )
    handle_command("/forget 2", session, store)
    assert [m.id for m in session.messages] == ["a-1"]


def test_forget_last_message_restores_starter(session, store):
    handle_command("/forget 1", session, store)
    assert len(session.messages) == 1
    assert session.messages[0].text.startswith("Echo connected")


def test_forget_out_of_range(session, store, capsys):
    handle_command("/forget 9", session, store)
    assert "No such message." in capsys.readouterr().out
    assert len(session.messages) == 1


def test_messages_lists_conversation(session, store, capsys):
    handle_command("/messages", session, store)
    assert "1. assistant> Echo connected" in capsys.readouterr().out
