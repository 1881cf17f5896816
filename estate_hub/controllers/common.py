"""Helpers shared by the JSON blueprints."""

from __future__ import annotations

from typing import Any, Iterable

from flask import jsonify, request
from flask_wtf import FlaskForm
from werkzeug.datastructures import MultiDict
from wtforms.validators import StopValidation

from ..errors import BadRequest

INVALID_PAYLOAD = "Invalid payload"


def json_payload() -> dict[str, Any]:
    """Request body as a dict; a missing or unparsable body counts as empty."""

    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise BadRequest(INVALID_PAYLOAD)
    return payload


def form_data(payload: dict[str, Any]) -> MultiDict:
    """Feed a JSON object to a WTForms form. ``None`` values count as absent.

    Each value is wrapped in its own list so a JSON array reaches the field
    as one raw value instead of being spread over repeated keys.
    """

    return MultiDict({key: [value] for key, value in payload.items() if value is not None})


def string_value(form: FlaskForm, field) -> None:
    """Validator rejecting JSON values that are not strings."""

    if field.data is not None and not isinstance(field.data, str):
        raise StopValidation(INVALID_PAYLOAD)


def first_error(form: FlaskForm, preferred: Iterable[str] = ()) -> str:
    """Pick the message to report for a failed form.

    Messages listed in ``preferred`` win over field order.
    """

    messages = [error for errors in form.errors.values() for error in errors]
    for message in preferred:
        if message in messages:
            return message
    return messages[0] if messages else INVALID_PAYLOAD


def validate_form(form: FlaskForm, preferred: Iterable[str] = ()) -> FlaskForm:
    if not form.validate():
        raise BadRequest(first_error(form, preferred))
    return form


def success(status: int = 200, **payload: Any):
    body = {"success": True}
    body.update(payload)
    return jsonify(body), status
