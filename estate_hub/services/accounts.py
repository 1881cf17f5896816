"""Credential store operations: signup, sign-in and profile management."""

from __future__ import annotations

import sqlite3
from typing import Optional

from flask import current_app

from ..data_access import users_dao
from ..errors import Conflict, Forbidden, NotFound, Unauthorized
from ..models.entities import Identity, User
from ..tokens import issue_token

DUPLICATE_USER = "User with that email or username already exists"


def ensure_self(user_id: int, identity: Identity, message: str) -> None:
    if identity.user_id != user_id:
        raise Forbidden(message)


def register(username: str, email: str, password: str) -> User:
    """Create an account from already validated fields."""

    try:
        user = users_dao.create_user(
            username=username,
            email=email,
            password_hash=users_dao.hash_password(password),
            avatar=current_app.config["DEFAULT_AVATAR"],
        )
    except sqlite3.IntegrityError as exc:
        raise Conflict(DUPLICATE_USER) from exc
    current_app.logger.info("Registered user %s (%s)", user.user_id, user.username)
    return user


def authenticate(email: str, password: str) -> tuple[User, str]:
    """Verify credentials and return the user with a freshly signed token."""

    user = users_dao.get_user_by_email(email)
    if user is None:
        current_app.logger.warning("Sign-in attempt for unknown email %s", email)
        raise NotFound("User not found")
    if not users_dao.verify_password(user.password_hash, password):
        current_app.logger.warning("Wrong password for user %s", user.user_id)
        raise Unauthorized("Wrong credentials")
    current_app.logger.info("User %s signed in", user.user_id)
    return user, issue_token(user.user_id)


def update_profile(
    user_id: int,
    identity: Identity,
    username: Optional[str] = None,
    email: Optional[str] = None,
    password: Optional[str] = None,
    avatar: Optional[str] = None,
) -> User:
    """Rewrite only the fields that were supplied."""

    ensure_self(user_id, identity, "You are not allowed to update this user")
    changes = {}
    if password:
        changes["password_hash"] = users_dao.hash_password(password)
    if username:
        changes["username"] = username
    if email:
        changes["email"] = email
    if avatar:
        changes["avatar"] = avatar
    try:
        user = users_dao.update_user(user_id, **changes)
    except sqlite3.IntegrityError as exc:
        raise Conflict(DUPLICATE_USER) from exc
    if user is None:
        raise NotFound("User not found")
    current_app.logger.info("User %s updated fields %s", user_id, sorted(changes))
    return user


def delete_account(user_id: int, identity: Identity) -> None:
    """Delete the account row. Owned listings and bookings stay where they are."""

    ensure_self(user_id, identity, "You can only delete your own account")
    if not users_dao.delete_user(user_id):
        raise NotFound("User not found")
    current_app.logger.info("User %s deleted their account", user_id)


def get_public_profile(user_id: int) -> User:
    user = users_dao.get_user_by_id(user_id)
    if user is None:
        raise NotFound("User not found")
    return user
