"""Message persistence: persona AI chats and user-to-user chats in SQLite."""

import uuid
from datetime import datetime, timezone

from web.user_store import _get_conn

# --- Persona (AI) chat ---


def save_chat_message(
    persona_id: str,
    sender: str,
    text: str,
    context: str | None = None,
    timestamp: str | None = None,
    db_path=None,
) -> dict:
    """Append a message to a persona's chat, return the stored message."""
    msg = {
        "id": uuid.uuid4().hex,
        "sender": sender,
        "text": text,
        "context": context,
        "timestamp": timestamp or datetime.now(timezone.utc).isoformat(),
    }
    conn = _get_conn(db_path)
    try:
        conn.execute(
            "INSERT INTO persona_messages (id, persona_id, sender, text, context, timestamp) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            (msg["id"], persona_id, sender, text, context, msg["timestamp"]),
        )
        conn.commit()
        return msg
    finally:
        conn.close()


def get_chat_messages(persona_id: str, limit: int | None = 50, db_path=None) -> list[dict]:
    """Most recent ``limit`` messages, returned oldest first. None = all."""
    conn = _get_conn(db_path)
    try:
        if limit is None:
            rows = conn.execute(
                "SELECT id, sender, text, context, timestamp FROM persona_messages "
                "WHERE persona_id = ? ORDER BY timestamp ASC, rowid ASC",
                (persona_id,),
            ).fetchall()
            return [dict(r) for r in rows]
        rows = conn.execute(
            "SELECT id, sender, text, context, timestamp FROM persona_messages "
            "WHERE persona_id = ? ORDER BY timestamp DESC, rowid DESC LIMIT ?",
            (persona_id, limit),
        ).fetchall()
        return [dict(r) for r in reversed(rows)]
    finally:
        conn.close()


def clear_chat_messages(persona_id: str, db_path=None) -> int:
    conn = _get_conn(db_path)
    try:
        cur = conn.execute("DELETE FROM persona_messages WHERE persona_id = ?", (persona_id,))
        conn.commit()
        return cur.rowcount
    finally:
        conn.close()


# --- User-to-user chat ---


def save_user_chat_message(chat_id: str, sender_user_id: str, text: str, db_path=None) -> dict:
    msg = {
        "id": uuid.uuid4().hex,
        "sender_user_id": sender_user_id,
        "text": text,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    conn = _get_conn(db_path)
    try:
        conn.execute(
            "INSERT INTO user_chat_messages (id, chat_id, sender_user_id, text, timestamp) "
            "VALUES (?, ?, ?, ?, ?)",
            (msg["id"], chat_id, sender_user_id, text, msg["timestamp"]),
        )
        conn.commit()
        return msg
    finally:
        conn.close()


def get_user_chat_messages(chat_id: str, db_path=None) -> list[dict]:
    """All messages in a user chat, oldest first."""
    conn = _get_conn(db_path)
    try:
        rows = conn.execute(
            "SELECT id, sender_user_id, text, timestamp FROM user_chat_messages "
            "WHERE chat_id = ? ORDER BY timestamp ASC, rowid ASC",
            (chat_id,),
        ).fetchall()
        return [dict(r) for r in rows]
    finally:
        conn.close()


def clear_user_chat_messages(chat_id: str, db_path=None) -> int:
    conn = _get_conn(db_path)
    try:
        cur = conn.execute("DELETE FROM user_chat_messages WHERE chat_id = ?", (chat_id,))
        conn.commit()
        return cur.rowcount
    finally:
        conn.close()
