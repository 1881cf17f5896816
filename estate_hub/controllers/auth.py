"""Authentication blueprint: signup, sign-in, sign-out and the token guards."""

from __future__ import annotations

from functools import wraps
from typing import Callable

from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user
from flask_wtf import FlaskForm
from wtforms import PasswordField, StringField
from wtforms.validators import Email, InputRequired, Length, ValidationError

from ..errors import Forbidden, Unauthorized
from ..models.entities import Identity
from ..services import accounts
from ..tokens import clear_access_cookie, set_access_cookie
from .common import INVALID_PAYLOAD, form_data, json_payload, string_value, success, validate_form

bp = Blueprint("auth", __name__, url_prefix="/api/auth")

SIGNUP_REQUIRED = "Username, email and password are required"
SIGNIN_REQUIRED = "Email and password are required"
PASSWORD_LENGTH = Length(min=6, message="Password must be at least 6 characters")


def username_rules(form: FlaskForm, field) -> None:
    """7-20 characters, lowercase letters and digits only."""

    value = field.data
    if not 7 <= len(value) <= 20:
        raise ValidationError("Username must be between 7 and 20 characters")
    if " " in value:
        raise ValidationError("Username cannot contain spaces")
    if value != value.lower():
        raise ValidationError("Username must be lowercase")
    if not value.isascii() or not value.isalnum():
        raise ValidationError("Username can only contain letters and numbers")


class SignupForm(FlaskForm):
    """New account credentials."""

    username = StringField("Username", validators=[InputRequired(SIGNUP_REQUIRED), string_value, username_rules])
    email = StringField(
        "Email",
        validators=[InputRequired(SIGNUP_REQUIRED), string_value, Email(message="Invalid email address")],
    )
    password = PasswordField("Password", validators=[InputRequired(SIGNUP_REQUIRED), string_value, PASSWORD_LENGTH])


class SigninForm(FlaskForm):
    email = StringField("Email", validators=[InputRequired(SIGNIN_REQUIRED), string_value])
    password = PasswordField("Password", validators=[InputRequired(SIGNIN_REQUIRED), string_value])


def verify_token(view: Callable) -> Callable:
    """Require a valid session cookie and pass the caller as ``identity``.

    No cookie is 401; a cookie that does not resolve to a user is 403.
    """

    @wraps(view)
    def wrapped(*args, **kwargs):
        if not request.cookies.get(current_app.config["ACCESS_COOKIE_NAME"]):
            raise Unauthorized("Unauthorized")
        if not current_user.is_authenticated:
            raise Forbidden("Forbidden")
        return view(*args, identity=Identity(current_user.user_id), **kwargs)

    return wrapped


def optional_token(view: Callable) -> Callable:
    """Pass ``identity`` when the cookie is valid, ``None`` otherwise."""

    @wraps(view)
    def wrapped(*args, **kwargs):
        identity = Identity(current_user.user_id) if current_user.is_authenticated else None
        return view(*args, identity=identity, **kwargs)

    return wrapped


@bp.route("/signup", methods=["POST"])
def signup():
    """Register a new account."""

    form = validate_form(
        SignupForm(formdata=form_data(json_payload())),
        preferred=(SIGNUP_REQUIRED, INVALID_PAYLOAD),
    )
    user = accounts.register(form.username.data, form.email.data, form.password.data)
    return success(201, message="User created successfully", user=user.to_public_dict())


@bp.route("/signin", methods=["POST"])
def signin():
    """Check credentials and set the session cookie."""

    form = validate_form(
        SigninForm(formdata=form_data(json_payload())),
        preferred=(SIGNIN_REQUIRED, INVALID_PAYLOAD),
    )
    user, token = accounts.authenticate(form.email.data, form.password.data)
    response, status = success(message="Signed in successfully", user=user.to_public_dict())
    set_access_cookie(response, token)
    return response, status


@bp.route("/signout", methods=["GET", "POST"])
def signout():
    response = jsonify({"success": True, "message": "User has been logged out"})
    return clear_access_cookie(response)
