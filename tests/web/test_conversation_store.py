"""Tests for conversation_store: persona chats and user-to-user chats."""

import pytest

from web.conversation_store import (
    clear_chat_messages,
    clear_user_chat_messages,
    get_chat_messages,
    get_user_chat_messages,
    save_chat_message,
    save_user_chat_message,
)
from web.persona_store import save_persona
from web.user_store import get_or_create_user


@pytest.fixture
def persona_id(db):
    get_or_create_user("u1", db_path=db)
    return save_persona("u1", {"name": "Alex"}, db_path=db)["id"]


def test_save_and_order(db, persona_id):
    for i in range(3):
        save_chat_message(
            persona_id, "user" if i % 2 == 0 else "ai", f"m{i}",
            timestamp=f"2024-01-01T00:00:0{i}+00:00", db_path=db,
        )
    msgs = get_chat_messages(persona_id, db_path=db)
    assert [m["text"] for m in msgs] == ["m0", "m1", "m2"]
    assert msgs[1]["sender"] == "ai"


def test_limit_keeps_latest(db, persona_id):
    for i in range(5):
        save_chat_message(persona_id, "user", f"m{i}", timestamp=f"2024-01-01T00:00:0{i}", db_path=db)
    assert [m["text"] for m in get_chat_messages(persona_id, limit=2, db_path=db)] == ["m3", "m4"]
    assert len(get_chat_messages(persona_id, limit=None, db_path=db)) == 5


def test_context_stored(db, persona_id):
    msg = save_chat_message(persona_id, "user", "hi", context="Job interview", db_path=db)
    assert msg["context"] == "Job interview"
    assert get_chat_messages(persona_id, db_path=db)[0]["context"] == "Job interview"


def test_clear(db, persona_id):
    save_chat_message(persona_id, "user", "hi", db_path=db)
    save_chat_message(persona_id, "ai", "hello", db_path=db)
    assert clear_chat_messages(persona_id, db_path=db) == 2
    assert get_chat_messages(persona_id, db_path=db) == []


def test_user_chat(db):
    save_user_chat_message("a_b", "a", "hi", db_path=db)
    save_user_chat_message("a_b", "b", "hey", db_path=db)
    save_user_chat_message("a_c", "a", "other", db_path=db)

    msgs = get_user_chat_messages("a_b", db_path=db)
    assert [(m["sender_user_id"], m["text"]) for m in msgs] == [("a", "hi"), ("b", "hey")]

    assert clear_user_chat_messages("a_b", db_path=db) == 2
    assert get_user_chat_messages("a_b", db_path=db) == []
    assert len(get_user_chat_messages("a_c", db_path=db)) == 1
