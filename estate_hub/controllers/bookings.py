"""Booking ledger blueprint."""

from __future__ import annotations

from flask import Blueprint, current_app, request
from flask_wtf import FlaskForm
from wtforms import StringField
from wtforms.validators import AnyOf, InputRequired, Optional

from ..models.entities import Identity
from ..services import bookings
from .auth import verify_token
from .common import INVALID_PAYLOAD, form_data, json_payload, string_value, success, validate_form

bp = Blueprint("bookings", __name__, url_prefix="/api/booking")


class StatusForm(FlaskForm):
    """Seller decision on a pending booking."""

    status = StringField(
        "Status",
        validators=[
            InputRequired("Invalid status"),
            string_value,
            AnyOf(bookings.SELLER_DECISIONS, message="Invalid status"),
        ],
    )
    sellerNote = StringField("Seller note", validators=[Optional(), string_value])


def _view_dict(view) -> dict:
    return view.to_dict(current_app.config["DEFAULT_AVATAR"])


@bp.route("/create", methods=["POST"])
@verify_token
def create(identity: Identity):
    booking = bookings.create_booking(identity, json_payload())
    return success(201, message="Booking request sent successfully", booking=booking.to_dict())


@bp.route("/get", methods=["GET"])
@verify_token
def list_mine(identity: Identity):
    """Bookings where the caller is the buyer (default) or the seller."""

    views = bookings.list_bookings(identity, request.args.get("type"))
    return success(bookings=[_view_dict(view) for view in views])


@bp.route("/get/<int:booking_id>", methods=["GET"])
@verify_token
def detail(booking_id: int, identity: Identity):
    view = bookings.get_booking(booking_id, identity)
    return success(booking=_view_dict(view))


@bp.route("/update/<int:booking_id>", methods=["PUT", "POST"])
@verify_token
def update_status(booking_id: int, identity: Identity):
    form = validate_form(StatusForm(formdata=form_data(json_payload())), preferred=(INVALID_PAYLOAD,))
    booking = bookings.update_status(booking_id, identity, form.status.data, form.sellerNote.data)
    return success(message=f"Booking {booking.status} successfully", booking=booking.to_dict())


@bp.route("/cancel/<int:booking_id>", methods=["POST", "PUT"])
@verify_token
def cancel(booking_id: int, identity: Identity):
    booking = bookings.cancel_booking(booking_id, identity)
    return success(message="Booking cancelled successfully", booking=booking.to_dict())


@bp.route("/stats/<int:user_id>", methods=["GET"])
@verify_token
def stats(user_id: int, identity: Identity):
    return success(stats=bookings.booking_stats(user_id, identity))
