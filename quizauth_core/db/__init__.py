"""SQLite access for QuizAuth Core.

A Core wraps one connection and hands out the user store as core.user.

    # Lookups outside a transaction
    user = get_core().user.find_by_email("alice@example.com")

    # Everything inside the block commits together or not at all
    with get_core(atomic=True) as core:
        core.user.set_password(user_id, new_password)
"""

import sqlite3
from pathlib import Path
from typing import TYPE_CHECKING

from ..config import settings
from ..exceptions import DatabaseError
from ..schema import read_schema

if TYPE_CHECKING:
    from .user import UserOperations

_METADATA_TABLE = "_schema_metadata"


class Core:
    """
    One database connection plus the stores built on it.

    An atomic Core is a context manager: leaving the block commits, or rolls
    back if the block raised, and always closes the connection. A plain Core
    leaves commits to the caller and closes when released.
    """

    def __init__(self, connection: sqlite3.Connection, atomic: bool = False):
        self._conn = connection
        self._atomic = atomic
        self._user_ops = None

    @property
    def user(self) -> "UserOperations":
        """User store bound to this connection."""
        if self._user_ops is None:
            from .user import UserOperations
            self._user_ops = UserOperations(self._conn, core=self)
        return self._user_ops

    def close(self):
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> "Core":
        if not self._atomic:
            raise RuntimeError(
                "Only an atomic Core is a transaction; "
                "open it with get_core(atomic=True)"
            )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        try:
            if exc_type is not None:
                self._conn.rollback()
            else:
                self._conn.commit()
        finally:
            self.close()

    def __del__(self):
        # The interpreter may already be tearing sqlite3 down
        try:
            self.close()
        except (AttributeError, sqlite3.Error):
            pass


def connect(path: str | None = None) -> sqlite3.Connection:
    """
    Open a connection to the database file, creating its directory.

    Args:
        path: Database file; defaults to settings.database_path

    Returns:
        Connection returning sqlite3.Row rows, with foreign keys enforced
    """
    db_file = Path(path or settings.database_path)
    db_file.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(str(db_file))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def get_core(atomic: bool = False) -> Core:
    """
    Open a Core on the configured database.

    Args:
        atomic: Return a Core that must be entered with `with`, making the
                block a single transaction
    """
    return Core(connect(), atomic=atomic)


# ============================================================================
# Schema
# ============================================================================


def init_db():
    """
    Create the tables from schema.sql unless the database already has them.

    Raises:
        DatabaseError: If the file is not a usable SQLite database
    """
    conn = None
    try:
        conn = connect()
        initialized = conn.execute(
            "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = ?",
            (_METADATA_TABLE,)
        ).fetchone()
        if initialized is None:
            conn.executescript(read_schema())
            conn.commit()
    except sqlite3.Error as e:
        raise DatabaseError(
            f"Failed to initialize database: {e}",
            {"path": settings.database_path}
        )
    finally:
        if conn is not None:
            conn.close()


def get_schema_version() -> str:
    """Version string stored by schema.sql, or 'unknown' if it is missing."""
    core = get_core()
    try:
        row = core._conn.execute(
            f"SELECT value FROM {_METADATA_TABLE} WHERE key = 'version'"
        ).fetchone()
    finally:
        core.close()
    return row["value"] if row else "unknown"
