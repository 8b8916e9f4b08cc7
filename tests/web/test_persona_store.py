"""Tests for persona_store: upsert, search, ownership, derived lookup."""

import pytest

from web.conversation_store import get_chat_messages, save_chat_message
from web.persona_store import (
    count_personas,
    delete_persona,
    get_chat_derived_persona,
    get_persona,
    list_personas,
    save_persona,
)
from web.user_store import get_or_create_user


@pytest.fixture
def users(db):
    get_or_create_user("u1", db_path=db)
    get_or_create_user("u2", db_path=db)
    return db


def test_save_fills_defaults(users):
    persona = save_persona("u1", {"name": "Alex"}, db_path=users)
    assert persona["id"]
    assert persona["created_at"]
    assert persona["origin_type"] == "user-created"
    assert persona["persona_description"] == ""
    assert "user_id" not in persona


def test_save_replaces_wholesale(users):
    persona = save_persona("u1", {"name": "Alex", "category": "Friends", "age": 30}, db_path=users)
    persona.update(name="Alexander", category=None)
    updated = save_persona("u1", persona, db_path=users)

    assert updated["id"] == persona["id"]
    assert updated["created_at"] == persona["created_at"]
    assert updated["name"] == "Alexander"
    assert updated["category"] is None
    assert updated["age"] == 30
    assert count_personas("u1", db_path=users) == 1


def test_insights_roundtrip_as_dict(users):
    insights = {"summary": "Warm.", "sentiment": {"label": "positive", "score": 0.5}}
    persona = save_persona("u1", {"name": "Alex", "personality_insights": insights}, db_path=users)
    assert get_persona("u1", persona["id"], db_path=users)["personality_insights"] == insights


def test_cannot_overwrite_other_users_persona(users):
    persona = save_persona("u1", {"name": "Alex"}, db_path=users)
    with pytest.raises(PermissionError):
        save_persona("u2", dict(persona, name="Stolen"), db_path=users)
    assert get_persona("u1", persona["id"], db_path=users)["name"] == "Alex"


def test_get_is_scoped_to_owner(users):
    persona = save_persona("u1", {"name": "Alex"}, db_path=users)
    assert get_persona("u2", persona["id"], db_path=users) is None


def test_list_newest_first_and_search(users):
    save_persona("u1", {"name": "Alex", "created_at": "2024-01-01T00:00:00+00:00"}, db_path=users)
    save_persona("u1", {"name": "Bea", "created_at": "2024-02-01T00:00:00+00:00"}, db_path=users)
    save_persona("u1", {"name": "alexis", "created_at": "2024-03-01T00:00:00+00:00"}, db_path=users)
    save_persona("u2", {"name": "Alex"}, db_path=users)

    assert [p["name"] for p in list_personas("u1", db_path=users)] == ["alexis", "Bea", "Alex"]
    assert [p["name"] for p in list_personas("u1", search="ALEX", db_path=users)] == [
        "alexis",
        "Alex",
    ]
    assert len(list_personas("u1", search="   ", db_path=users)) == 3


def test_delete_removes_messages(users):
    persona = save_persona("u1", {"name": "Alex"}, db_path=users)
    save_chat_message(persona["id"], "user", "hi", db_path=users)

    assert delete_persona("u2", persona["id"], db_path=users) is False
    assert delete_persona("u1", persona["id"], db_path=users) is True
    assert get_chat_messages(persona["id"], db_path=users) == []
    assert delete_persona("u1", persona["id"], db_path=users) is False


def test_chat_derived_lookup(users):
    save_persona(
        "u1",
        {
            "name": "Bob's Chat Persona",
            "origin_type": "chat-derived",
            "derived_from_chat_id": "u1_u2",
            "derived_representing_user_id": "u2",
        },
        db_path=users,
    )
    found = get_chat_derived_persona("u1", "u1_u2", "u2", db_path=users)
    assert found["name"] == "Bob's Chat Persona"
    assert get_chat_derived_persona("u1", "u1_u3", "u3", db_path=users) is None
    assert get_chat_derived_persona("u2", "u1_u2", "u2", db_path=users) is None
