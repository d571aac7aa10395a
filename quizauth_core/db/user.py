"""User store operations.

IMPORT CONVENTION:
- Core accesses these through core.user property
- NO direct import needed when using Core API

Lookups by username and email are case-insensitive (the columns are declared
COLLATE NOCASE), and the UNIQUE constraints on both columns are what settles
concurrent registrations. Password hashes are only read when a caller asks
for them with with_password=True.
"""

import sqlite3

from ..auth.schemas import User, UserProfile, UserStats
from ..auth.service import hash_password, verify_password
from ..utils import isodatetime, uid

# Columns that update() may write
_UPDATABLE_COLUMNS = frozenset({
    "name",
    "role",
    "nickname",
    "avatar",
    "password_hash",
    "last_login_at",
})


def _row_to_user(row: sqlite3.Row, with_password: bool = False) -> User:
    """
    Convert a users row to a User record.

    The profile is None when neither nickname nor avatar is set. The stats
    lastLoginAt mirrors the last_login_at column written by login.
    """
    profile = None
    if row["nickname"] is not None or row["avatar"] is not None:
        profile = UserProfile(nickname=row["nickname"], avatar=row["avatar"])

    stats = UserStats(
        total_questions=row["total_questions"],
        correct_count=row["correct_count"],
        wrong_count=row["wrong_count"],
        streak=row["streak"],
        last_login_at=row["last_login_at"],
        last_answer_at=row["last_answer_at"],
    )

    return User(
        id=row["id"],
        username=row["username"],
        email=row["email"],
        name=row["name"],
        role=row["role"],
        profile=profile,
        stats=stats,
        last_login_at=row["last_login_at"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        password_hash=row["password_hash"] if with_password else None,
    )


class UserOperations:
    """User persistence operations over a SQLite connection."""

    def __init__(self, conn: sqlite3.Connection, core=None):
        """Initialize user operations with a database connection.

        Args:
            conn: SQLite connection with row_factory set to sqlite3.Row
            core: Owning Core, referenced so its connection stays open for
                  as long as these operations are in use
        """
        self._conn = conn
        self._core = core

    def _fetch_one(self, where: str, params: tuple, with_password: bool) -> User | None:
        row = self._conn.execute(
            f"SELECT * FROM users WHERE {where}",
            params
        ).fetchone()
        return _row_to_user(row, with_password) if row else None

    # ------------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------------

    def get_by_id(self, user_id: str, with_password: bool = False) -> User | None:
        """Get a user by ID, or None if no such user exists."""
        return self._fetch_one("id = ?", (user_id,), with_password)

    def find_by_username_or_email(
        self,
        username: str,
        email: str | None = None,
        with_password: bool = False
    ) -> User | None:
        """
        Find a user whose username or email matches.

        Args:
            username: Username to match
            email: Email to match; defaults to username so a single login
                   identifier can be checked against both columns
            with_password: Load the password hash for verification

        Returns:
            The first matching User, or None
        """
        if email is None:
            email = username
        return self._fetch_one(
            "email = ? OR username = ? LIMIT 1",
            (email, username),
            with_password
        )

    def find_by_username(self, username: str) -> User | None:
        """Get a user by username (case-insensitive)."""
        return self._fetch_one("username = ?", (username,), False)

    def find_by_email(self, email: str) -> User | None:
        """Get a user by email (case-insensitive)."""
        return self._fetch_one("email = ?", (email,), False)

    def count(self) -> int:
        """Number of registered users."""
        return self._conn.execute("SELECT COUNT(*) FROM users").fetchone()[0]

    # ------------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------------

    def create(
        self,
        username: str,
        email: str,
        password: str,
        name: str | None = None,
        role: str = "user"
    ) -> User:
        """
        Create a user with a hashed password.

        Returns:
            The created User (without password hash)

        Raises:
            sqlite3.IntegrityError: If the username or email is already taken
        """
        user_id = uid.generate_uuid()
        now = isodatetime.now()

        self._conn.execute(
            """INSERT INTO users
               (id, username, email, password_hash, name, role, created_at, updated_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
            (user_id, username, email, hash_password(password), name, role, now, now)
        )

        return self.get_by_id(user_id)

    def update(self, user_id: str, fields: dict) -> bool:
        """
        Partially update a user.

        Args:
            user_id: The UUID of the user
            fields: Column values to write; only the keys present are changed

        Returns:
            True if a user was updated, False if no such user exists

        Raises:
            ValueError: If a column is not updatable
        """
        unknown = set(fields) - _UPDATABLE_COLUMNS
        if unknown:
            raise ValueError(f"Cannot update user columns: {sorted(unknown)}")

        values = dict(fields)
        values["updated_at"] = isodatetime.now()

        assignments = ", ".join(f"{column} = ?" for column in values)
        cursor = self._conn.execute(
            f"UPDATE users SET {assignments} WHERE id = ?",
            (*values.values(), user_id)
        )
        return cursor.rowcount > 0

    def set_password(self, user_id: str, password: str) -> bool:
        """Hash and store a new password. Returns False if the user is gone."""
        return self.update(user_id, {"password_hash": hash_password(password)})

    def update_profile(self, user_id: str, profile: dict) -> User | None:
        """
        Set the given profile fields and return the updated user.

        Args:
            user_id: The UUID of the user
            profile: Subset of {"nickname", "avatar"} to write

        Returns:
            Updated User, or None if no such user exists
        """
        fields = {key: profile[key] for key in ("nickname", "avatar") if key in profile}
        if fields:
            if not self.update(user_id, fields):
                return None
        return self.get_by_id(user_id)

    # ------------------------------------------------------------------------
    # Credentials
    # ------------------------------------------------------------------------

    @staticmethod
    def password_matches(user: User, password: str) -> bool:
        """
        Check a password against a user loaded with with_password=True.

        A user loaded without its hash never matches.
        """
        if not user.password_hash:
            return False
        return verify_password(password, user.password_hash)
