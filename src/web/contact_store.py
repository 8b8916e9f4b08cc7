"""Contact list persistence."""

from datetime import datetime, timezone

import structlog

from web.user_store import _get_conn

logger = structlog.get_logger()


def add_contact(
    user_id: str, contact_id: str, name: str, avatar_url: str | None = None, db_path=None
) -> dict:
    """Add (or refresh) a contact. Returns the stored contact."""
    contact = {
        "id": contact_id,
        "name": name,
        "avatar_url": avatar_url,
        "added_at": datetime.now(timezone.utc).isoformat(),
    }
    conn = _get_conn(db_path)
    try:
        conn.execute(
            "INSERT INTO contacts (user_id, contact_id, name, avatar_url, added_at) "
            "VALUES (?, ?, ?, ?, ?) "
            "ON CONFLICT(user_id, contact_id) DO UPDATE SET name = excluded.name, "
            "avatar_url = excluded.avatar_url",
            (user_id, contact_id, name, avatar_url, contact["added_at"]),
        )
        conn.commit()
        logger.info("contact_store.added", user_id=user_id, contact_id=contact_id)
        return contact
    finally:
        conn.close()


def get_contact(user_id: str, contact_id: str, db_path=None) -> dict | None:
    conn = _get_conn(db_path)
    try:
        row = conn.execute(
            "SELECT contact_id AS id, name, avatar_url, added_at FROM contacts "
            "WHERE user_id = ? AND contact_id = ?",
            (user_id, contact_id),
        ).fetchone()
        return dict(row) if row else None
    finally:
        conn.close()


def list_contacts(user_id: str, db_path=None) -> list[dict]:
    conn = _get_conn(db_path)
    try:
        rows = conn.execute(
            "SELECT contact_id AS id, name, avatar_url, added_at FROM contacts "
            "WHERE user_id = ? ORDER BY name COLLATE NOCASE",
            (user_id,),
        ).fetchall()
        return [dict(r) for r in rows]
    finally:
        conn.close()


def remove_contact(user_id: str, contact_id: str, db_path=None) -> bool:
    conn = _get_conn(db_path)
    try:
        cur = conn.execute(
            "DELETE FROM contacts WHERE user_id = ? AND contact_id = ?", (user_id, contact_id)
        )
        conn.commit()
        return cur.rowcount > 0
    finally:
        conn.close()
