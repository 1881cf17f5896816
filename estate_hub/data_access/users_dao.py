"""Data access helpers for the users table."""

from __future__ import annotations

from datetime import datetime

import bcrypt

from ..models.entities import User
from .db import execute, get_db, query_one

UPDATABLE_COLUMNS = {"username", "email", "password_hash", "avatar"}


def _parse_timestamp(value: str) -> datetime:
    return datetime.fromisoformat(str(value).replace(" ", "T"))


def _row_to_user(row) -> User:
    return User(
        user_id=row["user_id"],
        username=row["username"],
        email=row["email"],
        password_hash=row["password_hash"],
        avatar=row["avatar"],
        created_at=_parse_timestamp(row["created_at"]),
        updated_at=_parse_timestamp(row["updated_at"]),
    )


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(stored_hash: str, candidate: str) -> bool:
    """Compare a stored hash against a candidate password."""

    if not stored_hash:
        return False
    return bcrypt.checkpw(candidate.encode("utf-8"), stored_hash.encode("utf-8"))


def create_user(username: str, email: str, password_hash: str, avatar: str) -> User:
    """Insert a new user and return the persisted entity.

    Raises ``sqlite3.IntegrityError`` when the username or email is taken.
    """

    db = get_db()
    cursor = execute(
        db,
        """
        INSERT INTO users (username, email, password_hash, avatar)
        VALUES (?, ?, ?, ?)
        """,
        (username, email, password_hash, avatar),
    )
    return get_user_by_id(cursor.lastrowid, connection=db)


def get_user_by_id(user_id: int, connection=None) -> User | None:
    """Fetch a user by primary key."""

    db = connection or get_db()
    row = query_one(
        db,
        "SELECT * FROM users WHERE user_id = ?",
        (user_id,),
    )
    return _row_to_user(row) if row else None


def get_user_by_email(email: str) -> User | None:
    """Fetch a user by unique email address."""

    db = get_db()
    row = query_one(
        db,
        "SELECT * FROM users WHERE email = ?",
        (email,),
    )
    return _row_to_user(row) if row else None


def update_user(user_id: int, **fields) -> User | None:
    """Rewrite only the supplied columns; returns None when the user is gone."""

    updates = {key: value for key, value in fields.items() if key in UPDATABLE_COLUMNS}
    db = get_db()
    if updates:
        columns = ", ".join(f"{key} = ?" for key in updates)
        params = list(updates.values()) + [user_id]
        execute(
            db,
            f"UPDATE users SET {columns}, updated_at = CURRENT_TIMESTAMP WHERE user_id = ?",
            params,
        )
    return get_user_by_id(user_id, connection=db)


def delete_user(user_id: int) -> bool:
    """Remove a user row. Listings and bookings are left in place."""

    db = get_db()
    cursor = execute(db, "DELETE FROM users WHERE user_id = ?", (user_id,))
    return cursor.rowcount > 0
