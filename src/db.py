"""SQLite connection helper shared by every PersonaSim store."""

import sqlite3
from pathlib import Path


def wal_connect(
    db_path: str | Path,
    row_factory: bool = False,
    foreign_keys: bool = True,
    timeout: float = 10.0,
) -> sqlite3.Connection:
    """Open a SQLite connection in WAL mode.

    Args:
        db_path: Path to database file. Parent directory is created if missing.
        row_factory: If True, rows come back as sqlite3.Row.
        foreign_keys: Enforce FK constraints (cascading deletes rely on it).
        timeout: Seconds to wait on a locked database before raising.
    """
    path = Path(db_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path), timeout=timeout)
    conn.execute("PRAGMA journal_mode=WAL")
    if foreign_keys:
        conn.execute("PRAGMA foreign_keys=ON")
    if row_factory:
        conn.row_factory = sqlite3.Row
    return conn
