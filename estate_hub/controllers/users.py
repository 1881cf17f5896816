"""User profile blueprint."""

from __future__ import annotations

from flask import Blueprint
from flask_wtf import FlaskForm
from wtforms import PasswordField, StringField
from wtforms.validators import Email, Optional

from ..models.entities import Identity
from ..services import accounts
from ..tokens import clear_access_cookie
from .auth import PASSWORD_LENGTH, username_rules, verify_token
from .common import INVALID_PAYLOAD, form_data, json_payload, string_value, success, validate_form

bp = Blueprint("users", __name__, url_prefix="/api/user")


class ProfileForm(FlaskForm):
    """Partial profile update; every field is optional."""

    username = StringField("Username", validators=[Optional(), string_value, username_rules])
    email = StringField("Email", validators=[Optional(), string_value, Email(message="Invalid email address")])
    password = PasswordField("Password", validators=[Optional(), string_value, PASSWORD_LENGTH])
    avatar = StringField("Avatar", validators=[Optional(), string_value])


@bp.route("/<int:user_id>", methods=["GET"])
def get_user(user_id: int):
    user = accounts.get_public_profile(user_id)
    return success(user=user.to_public_dict())


@bp.route("/update/<int:user_id>", methods=["PUT", "POST"])
@verify_token
def update_user(user_id: int, identity: Identity):
    """Update the caller's own profile."""

    accounts.ensure_self(user_id, identity, "You are not allowed to update this user")
    form = validate_form(ProfileForm(formdata=form_data(json_payload())), preferred=(INVALID_PAYLOAD,))
    user = accounts.update_profile(
        user_id,
        identity,
        username=form.username.data,
        email=form.email.data,
        password=form.password.data,
        avatar=form.avatar.data,
    )
    return success(user=user.to_public_dict())


@bp.route("/delete/<int:user_id>", methods=["DELETE"])
@verify_token
def delete_user(user_id: int, identity: Identity):
    accounts.delete_account(user_id, identity)
    response, status = success(message="User has been deleted")
    clear_access_cookie(response)
    return response, status
