"""Persona persistence: per-user persona records in SQLite."""

import json
import uuid
from datetime import datetime, timezone

import structlog

from web.user_store import _get_conn

logger = structlog.get_logger()

_COLUMNS = (
    "id",
    "user_id",
    "name",
    "persona_description",
    "created_at",
    "avatar_url",
    "category",
    "origin_type",
    "chat_history",
    "mbti",
    "age",
    "gender",
    "personality_insights",
    "derived_from_chat_id",
    "derived_representing_user_id",
    "source_chat_messages_count",
)


def _row_to_persona(row) -> dict:
    persona = dict(row)
    persona.pop("user_id", None)
    if persona.get("personality_insights"):
        persona["personality_insights"] = json.loads(persona["personality_insights"])
    return persona


def save_persona(user_id: str, persona: dict, db_path=None) -> dict:
    """Insert or wholesale-replace a persona. Fills id/created_at when absent."""
    record = {col: persona.get(col) for col in _COLUMNS}
    record["user_id"] = user_id
    record["id"] = record["id"] or uuid.uuid4().hex
    record["created_at"] = record["created_at"] or datetime.now(timezone.utc).isoformat()
    record["origin_type"] = record["origin_type"] or "user-created"
    record["persona_description"] = record["persona_description"] or ""
    record["chat_history"] = record["chat_history"] or ""
    if record["personality_insights"] is not None:
        record["personality_insights"] = json.dumps(record["personality_insights"])

    placeholders = ", ".join("?" for _ in _COLUMNS)
    updates = ", ".join(f"{c} = excluded.{c}" for c in _COLUMNS if c not in ("id", "user_id"))
    conn = _get_conn(db_path)
    try:
        cur = conn.execute(
            f"INSERT INTO personas ({', '.join(_COLUMNS)}) VALUES ({placeholders}) "
            f"ON CONFLICT(id) DO UPDATE SET {updates} WHERE personas.user_id = excluded.user_id",
            tuple(record[c] for c in _COLUMNS),
        )
        conn.commit()
        if cur.rowcount == 0:
            raise PermissionError(f"Persona {record['id']} belongs to another user")
        logger.info("persona_store.saved", user_id=user_id, persona_id=record["id"])
    finally:
        conn.close()
    return get_persona(user_id, record["id"], db_path=db_path)


def get_persona(user_id: str, persona_id: str, db_path=None) -> dict | None:
    conn = _get_conn(db_path)
    try:
        row = conn.execute(
            "SELECT * FROM personas WHERE id = ? AND user_id = ?", (persona_id, user_id)
        ).fetchone()
        return _row_to_persona(row) if row else None
    finally:
        conn.close()


def list_personas(user_id: str, search: str | None = None, db_path=None) -> list[dict]:
    """Personas for a user, newest first. ``search`` matches name, case-insensitive."""
    conn = _get_conn(db_path)
    try:
        if search and search.strip():
            rows = conn.execute(
                "SELECT * FROM personas WHERE user_id = ? AND name LIKE ? COLLATE NOCASE "
                "ORDER BY created_at DESC",
                (user_id, f"%{search.strip()}%"),
            ).fetchall()
        else:
            rows = conn.execute(
                "SELECT * FROM personas WHERE user_id = ? ORDER BY created_at DESC",
                (user_id,),
            ).fetchall()
        return [_row_to_persona(r) for r in rows]
    finally:
        conn.close()


def count_personas(user_id: str, db_path=None) -> int:
    conn = _get_conn(db_path)
    try:
        row = conn.execute(
            "SELECT COUNT(*) AS cnt FROM personas WHERE user_id = ?", (user_id,)
        ).fetchone()
        return row["cnt"]
    finally:
        conn.close()


def delete_persona(user_id: str, persona_id: str, db_path=None) -> bool:
    """Delete persona and its AI chat messages. Returns False if not found."""
    conn = _get_conn(db_path)
    try:
        conn.execute(
            "DELETE FROM persona_messages WHERE persona_id IN "
            "(SELECT id FROM personas WHERE id = ? AND user_id = ?)",
            (persona_id, user_id),
        )
        cur = conn.execute(
            "DELETE FROM personas WHERE id = ? AND user_id = ?", (persona_id, user_id)
        )
        conn.commit()
        if cur.rowcount:
            logger.info("persona_store.deleted", user_id=user_id, persona_id=persona_id)
        return cur.rowcount > 0
    finally:
        conn.close()


def get_chat_derived_persona(
    user_id: str, chat_id: str, contact_id: str, db_path=None
) -> dict | None:
    """The persona derived from a specific contact chat, if one exists."""
    conn = _get_conn(db_path)
    try:
        row = conn.execute(
            "SELECT * FROM personas WHERE user_id = ? AND origin_type = 'chat-derived' "
            "AND derived_from_chat_id = ? AND derived_representing_user_id = ? "
            "ORDER BY created_at DESC LIMIT 1",
            (user_id, chat_id, contact_id),
        ).fetchone()
        return _row_to_persona(row) if row else None
    finally:
        conn.close()
