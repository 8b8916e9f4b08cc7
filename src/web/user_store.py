"""Multi-user SQLite store: schema, user profiles, persona quota, encrypted secrets."""

import json as _json
import os
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import structlog

from db import wal_connect
from web.crypto import decrypt_value, encrypt_value

logger = structlog.get_logger()

_DEFAULT_DB_PATH = (
    Path(os.environ.get("PERSONASIM_HOME", Path.home() / "personasim")) / "personasim.db"
)


class UserExistsError(ValueError):
    """Email already registered."""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _get_conn(db_path: Path | None = None) -> sqlite3.Connection:
    return wal_connect(db_path or _DEFAULT_DB_PATH, row_factory=True)


def init_db(db_path: Path | None = None) -> None:
    """Create tables if they don't exist."""
    conn = _get_conn(db_path)
    try:
        conn.executescript("""
            CREATE TABLE IF NOT EXISTS users (
                id TEXT PRIMARY KEY,
                email TEXT,
                name TEXT,
                avatar_url TEXT,
                password_hash TEXT,
                email_verified INTEGER NOT NULL DEFAULT 0,
                persona_quota INTEGER,
                created_at TIMESTAMP NOT NULL,
                last_login TIMESTAMP
            );
            CREATE UNIQUE INDEX IF NOT EXISTS idx_users_email ON users(email);

            CREATE TABLE IF NOT EXISTS user_secrets (
                user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
                key TEXT NOT NULL,
                value TEXT NOT NULL,
                PRIMARY KEY (user_id, key)
            );

            CREATE TABLE IF NOT EXISTS personas (
                id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
                name TEXT NOT NULL,
                persona_description TEXT NOT NULL DEFAULT '',
                created_at TIMESTAMP NOT NULL,
                avatar_url TEXT,
                category TEXT,
                origin_type TEXT NOT NULL DEFAULT 'user-created'
                    CHECK(origin_type IN ('user-created','chat-derived')),
                chat_history TEXT NOT NULL DEFAULT '',
                mbti TEXT,
                age INTEGER,
                gender TEXT,
                personality_insights TEXT,
                derived_from_chat_id TEXT,
                derived_representing_user_id TEXT,
                source_chat_messages_count INTEGER
            );
            CREATE INDEX IF NOT EXISTS idx_personas_user ON personas(user_id, created_at DESC);
            CREATE INDEX IF NOT EXISTS idx_personas_derived
                ON personas(user_id, derived_from_chat_id, derived_representing_user_id);

            CREATE TABLE IF NOT EXISTS persona_messages (
                id TEXT PRIMARY KEY,
                persona_id TEXT NOT NULL REFERENCES personas(id) ON DELETE CASCADE,
                sender TEXT NOT NULL CHECK(sender IN ('user','ai')),
                text TEXT NOT NULL,
                context TEXT,
                timestamp TIMESTAMP NOT NULL
            );
            CREATE INDEX IF NOT EXISTS idx_pmsg_persona ON persona_messages(persona_id, timestamp ASC);

            CREATE TABLE IF NOT EXISTS contacts (
                user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
                contact_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
                name TEXT NOT NULL,
                avatar_url TEXT,
                added_at TIMESTAMP NOT NULL,
                PRIMARY KEY (user_id, contact_id)
            );

            CREATE TABLE IF NOT EXISTS user_chat_messages (
                id TEXT PRIMARY KEY,
                chat_id TEXT NOT NULL,
                sender_user_id TEXT NOT NULL,
                text TEXT NOT NULL,
                timestamp TIMESTAMP NOT NULL
            );
            CREATE INDEX IF NOT EXISTS idx_umsg_chat ON user_chat_messages(chat_id, timestamp ASC);

            CREATE TABLE IF NOT EXISTS usage_events (
                id         INTEGER PRIMARY KEY AUTOINCREMENT,
                event      TEXT NOT NULL,
                user_id    TEXT,
                metadata   TEXT,
                created_at DATETIME DEFAULT CURRENT_TIMESTAMP
            );
            CREATE INDEX IF NOT EXISTS idx_usage_event ON usage_events(event, created_at DESC);
        """)
        conn.commit()
    finally:
        conn.close()


# --- Users ---


def get_or_create_user(
    user_id: str,
    email: str | None = None,
    name: str | None = None,
    db_path: Path | None = None,
) -> dict[str, Any]:
    """Upsert user on authenticated request. Returns user dict."""
    email = email.lower() if email else None
    conn = _get_conn(db_path)
    try:
        row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        if row:
            return dict(row)
        now = _now()
        conn.execute(
            "INSERT INTO users (id, email, name, created_at) VALUES (?, ?, ?, ?)",
            (user_id, email, name, now),
        )
        conn.commit()
        logger.info("user_store.user_created", user_id=user_id)
        row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        return dict(row)
    finally:
        conn.close()


def create_user_with_password(
    user_id: str,
    email: str,
    password_hash: str,
    name: str,
    avatar_url: str | None,
    persona_quota: int,
    db_path: Path | None = None,
) -> dict[str, Any]:
    """Insert a signed-up user. Raises UserExistsError on duplicate email."""
    now = _now()
    conn = _get_conn(db_path)
    try:
        try:
            conn.execute(
                "INSERT INTO users (id, email, name, avatar_url, password_hash, persona_quota, "
                "created_at, last_login) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                (user_id, email.lower(), name, avatar_url, password_hash, persona_quota, now, now),
            )
        except sqlite3.IntegrityError as e:
            raise UserExistsError(f"Email already registered: {email}") from e
        conn.commit()
        logger.info("user_store.signup", user_id=user_id)
        return dict(conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone())
    finally:
        conn.close()


def get_user(user_id: str, db_path: Path | None = None) -> dict[str, Any] | None:
    conn = _get_conn(db_path)
    try:
        row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        return dict(row) if row else None
    finally:
        conn.close()


def get_user_by_email(email: str, db_path: Path | None = None) -> dict[str, Any] | None:
    conn = _get_conn(db_path)
    try:
        row = conn.execute("SELECT * FROM users WHERE email = ?", (email.lower(),)).fetchone()
        return dict(row) if row else None
    finally:
        conn.close()


def list_users(db_path: Path | None = None) -> list[dict[str, Any]]:
    """All users with their persona counts, newest first."""
    conn = _get_conn(db_path)
    try:
        rows = conn.execute(
            """
            SELECT u.id, u.email, u.name, u.persona_quota, u.email_verified, u.created_at,
                   COUNT(p.id) AS persona_count
            FROM users u
            LEFT JOIN personas p ON p.user_id = u.id
            GROUP BY u.id
            ORDER BY u.created_at DESC
            """
        ).fetchall()
        return [dict(r) for r in rows]
    finally:
        conn.close()


def update_profile(
    user_id: str,
    name: str | None = None,
    avatar_url: str | None = None,
    db_path: Path | None = None,
) -> None:
    """Last-write-wins update of display fields. None leaves a field unchanged."""
    conn = _get_conn(db_path)
    try:
        if name is not None:
            conn.execute("UPDATE users SET name = ? WHERE id = ?", (name, user_id))
        if avatar_url is not None:
            conn.execute(
                "UPDATE users SET avatar_url = ? WHERE id = ?", (avatar_url or None, user_id)
            )
        conn.commit()
    finally:
        conn.close()


def touch_last_login(user_id: str, db_path: Path | None = None) -> None:
    conn = _get_conn(db_path)
    try:
        conn.execute("UPDATE users SET last_login = ? WHERE id = ?", (_now(), user_id))
        conn.commit()
    finally:
        conn.close()


def mark_email_verified(user_id: str, db_path: Path | None = None) -> bool:
    """Returns False if the user doesn't exist."""
    conn = _get_conn(db_path)
    try:
        cur = conn.execute("UPDATE users SET email_verified = 1 WHERE id = ?", (user_id,))
        conn.commit()
        return cur.rowcount > 0
    finally:
        conn.close()


def _like_escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def delete_user(user_id: str, db_path: Path | None = None) -> None:
    """Delete a user; personas, messages, contacts and secrets cascade."""
    escaped = _like_escape(user_id)
    conn = _get_conn(db_path)
    try:
        conn.execute(
            "DELETE FROM user_chat_messages "
            "WHERE chat_id LIKE ? ESCAPE '\\' OR chat_id LIKE ? ESCAPE '\\'",
            (f"{escaped}\\_%", f"%\\_{escaped}"),
        )
        conn.execute("DELETE FROM contacts WHERE contact_id = ?", (user_id,))
        conn.execute("DELETE FROM users WHERE id = ?", (user_id,))
        conn.commit()
        logger.info("user_store.user_deleted", user_id=user_id)
    finally:
        conn.close()


# --- Persona quota ---


def get_persona_quota(user_id: str, default: int, db_path: Path | None = None) -> int | None:
    """Quota for a user, ``default`` when unset. None if the user doesn't exist."""
    conn = _get_conn(db_path)
    try:
        row = conn.execute("SELECT persona_quota FROM users WHERE id = ?", (user_id,)).fetchone()
        if not row:
            return None
        return row["persona_quota"] if row["persona_quota"] is not None else default
    finally:
        conn.close()


def set_persona_quota(user_id: str, quota: int, db_path: Path | None = None) -> bool:
    conn = _get_conn(db_path)
    try:
        cur = conn.execute("UPDATE users SET persona_quota = ? WHERE id = ?", (quota, user_id))
        conn.commit()
        return cur.rowcount > 0
    finally:
        conn.close()


def increment_persona_quota(
    user_id: str, amount: int, default: int, db_path: Path | None = None
) -> int | None:
    """Add ``amount`` to the quota in one statement. Returns the new quota, None if no user."""
    conn = _get_conn(db_path)
    try:
        cur = conn.execute(
            "UPDATE users SET persona_quota = COALESCE(persona_quota, ?) + ? WHERE id = ?",
            (default, amount, user_id),
        )
        conn.commit()
        if cur.rowcount == 0:
            return None
        row = conn.execute("SELECT persona_quota FROM users WHERE id = ?", (user_id,)).fetchone()
        logger.info("user_store.quota_incremented", user_id=user_id, quota=row["persona_quota"])
        return row["persona_quota"]
    finally:
        conn.close()


# --- Secrets ---


def get_user_secret(
    user_id: str,
    secret_key: str,
    fernet_key: str,
    db_path: Path | None = None,
) -> str | None:
    """Get a single decrypted secret for a user."""
    conn = _get_conn(db_path)
    try:
        row = conn.execute(
            "SELECT value FROM user_secrets WHERE user_id = ? AND key = ?",
            (user_id, secret_key),
        ).fetchone()
        if not row:
            return None
        return decrypt_value(fernet_key, row["value"], key_name=secret_key)
    finally:
        conn.close()


def get_user_secrets(
    user_id: str,
    fernet_key: str,
    db_path: Path | None = None,
) -> dict[str, str]:
    """Get all decrypted secrets for a user, skipping ones that fail to decrypt."""
    conn = _get_conn(db_path)
    try:
        rows = conn.execute(
            "SELECT key, value FROM user_secrets WHERE user_id = ?",
            (user_id,),
        ).fetchall()
    finally:
        conn.close()
    result = {}
    for row in rows:
        val = decrypt_value(fernet_key, row["value"], key_name=row["key"])
        if val is not None:
            result[row["key"]] = val
    if len(result) < len(rows):
        logger.warning(
            "user_store.secrets_skipped",
            user_id=user_id,
            total=len(rows),
            skipped=len(rows) - len(result),
        )
    return result


def set_user_secret(
    user_id: str,
    secret_key: str,
    value: str,
    fernet_key: str,
    db_path: Path | None = None,
) -> None:
    """Encrypt and store a secret for a user."""
    conn = _get_conn(db_path)
    try:
        conn.execute(
            "INSERT INTO user_secrets (user_id, key, value) VALUES (?, ?, ?) "
            "ON CONFLICT(user_id, key) DO UPDATE SET value = excluded.value",
            (user_id, secret_key, encrypt_value(fernet_key, value)),
        )
        conn.commit()
        logger.info("user_store.secret_saved", user_id=user_id, key=secret_key)
    finally:
        conn.close()


def delete_user_secret(
    user_id: str,
    secret_key: str,
    db_path: Path | None = None,
) -> None:
    conn = _get_conn(db_path)
    try:
        conn.execute(
            "DELETE FROM user_secrets WHERE user_id = ? AND key = ?",
            (user_id, secret_key),
        )
        conn.commit()
    finally:
        conn.close()


# --- Usage events ---


def log_event(
    event: str,
    user_id: str | None = None,
    metadata: dict | None = None,
    db_path: Path | None = None,
) -> None:
    """Record a usage analytics event. Failures are logged, never raised."""
    try:
        conn = _get_conn(db_path)
        try:
            conn.execute(
                "INSERT INTO usage_events (event, user_id, metadata) VALUES (?, ?, ?)",
                (event, user_id, _json.dumps(metadata) if metadata else None),
            )
            conn.commit()
        finally:
            conn.close()
    except sqlite3.Error as e:
        logger.warning("user_store.log_event_failed", event_name=event, error=str(e))


def count_events(event: str, user_id: str | None = None, db_path: Path | None = None) -> int:
    conn = _get_conn(db_path)
    try:
        if user_id:
            row = conn.execute(
                "SELECT COUNT(*) AS cnt FROM usage_events WHERE event = ? AND user_id = ?",
                (event, user_id),
            ).fetchone()
        else:
            row = conn.execute(
                "SELECT COUNT(*) AS cnt FROM usage_events WHERE event = ?", (event,)
            ).fetchone()
        return row["cnt"]
    finally:
        conn.close()
