"""Domain errors surfaced to API clients with an HTTP status."""

from __future__ import annotations


class ApiError(Exception):
    """Base class for errors that map onto a client-facing status code."""

    status_code = 500
    default_message = "Internal Server Error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"success": False, "statusCode": self.status_code, "message": self.message}


class BadRequest(ApiError):
    status_code = 400
    default_message = "Bad Request"


class Unauthorized(ApiError):
    status_code = 401
    default_message = "Unauthorized"


class Forbidden(ApiError):
    status_code = 403
    default_message = "Forbidden"


class NotFound(ApiError):
    status_code = 404
    default_message = "Not Found"


class Conflict(ApiError):
    status_code = 409
    default_message = "Conflict"
