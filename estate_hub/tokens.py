"""Signed session tokens carried in the ``access_token`` cookie."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from flask import Response, current_app


def issue_token(user_id: int) -> str:
    """Sign a token carrying the user id, with an expiry when one is configured."""

    now = datetime.now(timezone.utc)
    payload: dict[str, Any] = {"id": user_id, "iat": now}
    ttl = current_app.config.get("ACCESS_TOKEN_TTL") or 0
    if ttl > 0:
        payload["exp"] = now + timedelta(seconds=ttl)
    return jwt.encode(
        payload,
        current_app.config["JWT_SECRET"],
        algorithm=current_app.config["JWT_ALGORITHM"],
    )


def decode_token(token: str) -> dict[str, Any]:
    """Verify signature and expiry. Raises ``jwt.InvalidTokenError`` on failure."""

    payload = jwt.decode(
        token,
        current_app.config["JWT_SECRET"],
        algorithms=[current_app.config["JWT_ALGORITHM"]],
    )
    if not isinstance(payload.get("id"), int):
        raise jwt.InvalidTokenError("Token carries no user id")
    return payload


def set_access_cookie(response: Response, token: str) -> Response:
    config = current_app.config
    max_age = config.get("ACCESS_TOKEN_TTL") or None
    response.set_cookie(
        config["ACCESS_COOKIE_NAME"],
        token,
        max_age=max_age,
        httponly=True,
        secure=config["ACCESS_COOKIE_SECURE"],
        samesite="Lax",
    )
    return response


def clear_access_cookie(response: Response) -> Response:
    config = current_app.config
    response.delete_cookie(
        config["ACCESS_COOKIE_NAME"],
        httponly=True,
        secure=config["ACCESS_COOKIE_SECURE"],
        samesite="Lax",
    )
    return response
