"""Booking ledger operations.

Status changes follow ``STATUS_TRANSITIONS``; each change is written with a
conditional UPDATE so a concurrent change of the same booking cannot be
overwritten.
"""

from __future__ import annotations

import math
import sqlite3
from datetime import date
from typing import Any, Mapping, Optional

from flask import current_app

from .. import pricing
from ..data_access import bookings_dao, listings_dao
from ..errors import BadRequest, Forbidden, NotFound
from ..models.entities import (
    BOOKING_STATUSES,
    MAX_COUNT,
    MEATS,
    STATUS_TRANSITIONS,
    TIME_SLOTS,
    Booking,
    BookingView,
    Identity,
    NightStayListing,
)

SLOT_TAKEN = "This time slot is already booked"
BOOKING_ROLES = ("buyer", "seller")
SELLER_DECISIONS = ("approved", "rejected")


def _present(value: Any) -> bool:
    return value is not None and value != ""


def _parse_date(value: Any) -> date:
    if not isinstance(value, str):
        raise BadRequest("Invalid booking date")
    try:
        # full ISO datetimes are accepted; only the date part matters
        return date.fromisoformat(value[:10])
    except ValueError as exc:
        raise BadRequest("Invalid booking date") from exc


def _flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.lower() == "true"
    return bool(value)


def _quantity(name: str, value: Any) -> float:
    if value is None or value == "":
        return 0.0
    if isinstance(value, bool):
        raise BadRequest(f"{name} must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise BadRequest(f"{name} must be a number") from exc
    if not math.isfinite(number):
        raise BadRequest(f"{name} must be a number")
    if number < 0:
        raise BadRequest(f"{name} cannot be negative")
    return number


def _add_on_object(name: str, value: Any) -> Mapping[str, Any]:
    if not value:
        return {}
    if not isinstance(value, dict):
        raise BadRequest(f"{name} must be an object")
    return value


def _add_ons(payload: Mapping[str, Any]) -> dict[str, Any]:
    """Flatten the add-on fields; the nested ``addOns`` object wins when sent."""

    add_ons = {
        "bbq_enabled": _flag(payload.get("bbqEnabled")),
        "kilograms": {meat: payload.get(f"{meat}Kg") for meat in MEATS},
        "campfire_enabled": _flag(payload.get("campfireEnabled")),
        "sound_system_enabled": _flag(payload.get("soundSystemEnabled")),
    }
    nested = _add_on_object("addOns", payload.get("addOns"))
    bbq = _add_on_object("addOns.bbq", nested.get("bbq"))
    if bbq:
        add_ons["bbq_enabled"] = _flag(bbq.get("enabled"))
        add_ons["kilograms"] = {meat: bbq.get(f"{meat}Kg") for meat in MEATS}
    campfire = _add_on_object("addOns.campfire", nested.get("campfire"))
    if campfire:
        add_ons["campfire_enabled"] = _flag(campfire.get("enabled"))
    sound_system = _add_on_object("addOns.soundSystem", nested.get("soundSystem"))
    if sound_system:
        add_ons["sound_system_enabled"] = _flag(sound_system.get("enabled"))
    add_ons["kilograms"] = {
        meat: _quantity(f"{meat.capitalize()} quantity", value)
        for meat, value in add_ons["kilograms"].items()
    }
    return add_ons


def _guests(payload: Mapping[str, Any]) -> int:
    raw = payload.get("guests")
    if not _present(raw):
        raw = payload.get("numberOfGuests")
    if not _present(raw):
        return 1
    guests = _quantity("Guests", raw)
    if guests < 1 or guests != int(guests):
        raise BadRequest("Guests must be a whole number of at least 1")
    if guests > MAX_COUNT:
        raise BadRequest(f"Guests cannot exceed {MAX_COUNT}")
    return int(guests)


def _check_night_stay(listing: NightStayListing, guests: int, add_ons: dict[str, Any]) -> None:
    if guests > listing.max_guests:
        raise BadRequest(f"This property allows at most {listing.max_guests} guests")
    if add_ons["bbq_enabled"]:
        if not listing.bbq_enabled:
            raise BadRequest("BBQ is not available for this property")
        for meat, kilograms in add_ons["kilograms"].items():
            if kilograms and not listing.meat_allowed(meat):
                raise BadRequest(f"{meat.capitalize()} is not available for BBQ at this property")
    if add_ons["campfire_enabled"] and not listing.campfire_enabled:
        raise BadRequest("Campfire is not available for this property")
    if add_ons["sound_system_enabled"] and not listing.sound_system_enabled:
        raise BadRequest("Sound system is not available for this property")


def create_booking(identity: Identity, payload: Mapping[str, Any], today: Optional[date] = None) -> Booking:
    """Request a booking as ``identity``; the seller is the listing's owner."""

    listing_id = payload.get("propertyId")
    if not _present(listing_id):
        listing_id = payload.get("listingId")
    if not (_present(listing_id) and _present(payload.get("date")) and _present(payload.get("totalPrice"))):
        raise BadRequest("Listing, date and total price are required")

    try:
        listing = listings_dao.get_listing_by_id(int(listing_id))
    except (TypeError, ValueError):
        listing = None
    if listing is None:
        raise NotFound("Listing not found")
    if listing.user_ref == identity.user_id:
        raise BadRequest("You cannot book your own property")

    booking_date = _parse_date(payload["date"])
    if booking_date < (today or date.today()):
        raise BadRequest("Booking date cannot be in the past")

    time_slot = None
    if not listing.is_night_stay:
        time_slot = payload.get("timeSlot")
        if not _present(time_slot):
            raise BadRequest("Time slot is required")
        if time_slot not in TIME_SLOTS:
            raise BadRequest("Invalid time slot")

    if bookings_dao.has_conflict(listing.listing_id, booking_date, time_slot):
        raise BadRequest(SLOT_TAKEN)
    if bookings_dao.has_pending_request(listing.listing_id, identity.user_id):
        raise BadRequest("You already have a pending booking for this property")

    guests = _guests(payload)
    message = payload.get("message") or ""
    if not isinstance(message, str):
        raise BadRequest("Message must be a string")

    if isinstance(listing, NightStayListing):
        add_ons = _add_ons(payload)
        _check_night_stay(listing, guests, add_ons)
        quote = pricing.quote_night_stay(
            listing,
            bbq_enabled=add_ons["bbq_enabled"],
            kilograms=add_ons["kilograms"],
            campfire=add_ons["campfire_enabled"],
            sound_system=add_ons["sound_system_enabled"],
        )
        total_price = quote.total
    else:
        add_ons = {
            "bbq_enabled": False,
            "kilograms": {meat: 0.0 for meat in MEATS},
            "campfire_enabled": False,
            "sound_system_enabled": False,
        }
        total_price = _quantity("Total price", payload["totalPrice"])

    try:
        booking = bookings_dao.create_booking(
            listing_id=listing.listing_id,
            buyer_id=identity.user_id,
            seller_id=listing.user_ref,
            booking_date=booking_date,
            time_slot=time_slot,
            total_price=total_price,
            message=message,
            guests=guests,
            bbq_enabled=add_ons["bbq_enabled"],
            chicken_kg=add_ons["kilograms"]["chicken"] if add_ons["bbq_enabled"] else 0,
            mutton_kg=add_ons["kilograms"]["mutton"] if add_ons["bbq_enabled"] else 0,
            fish_kg=add_ons["kilograms"]["fish"] if add_ons["bbq_enabled"] else 0,
            campfire_enabled=add_ons["campfire_enabled"],
            sound_system_enabled=add_ons["sound_system_enabled"],
        )
    except sqlite3.IntegrityError as exc:
        current_app.logger.warning(
            "Slot collision on listing %s for %s %s", listing.listing_id, booking_date, time_slot
        )
        raise BadRequest(SLOT_TAKEN) from exc

    current_app.logger.info(
        "User %s requested booking %s on listing %s", identity.user_id, booking.booking_id, listing.listing_id
    )
    return booking


def _load(booking_id: int) -> Booking:
    booking = bookings_dao.get_booking_by_id(booking_id)
    if booking is None:
        raise NotFound("Booking not found")
    return booking


def _transition(booking: Booking, to_status: str, seller_note: Optional[str] = None) -> bool:
    sources = [status for status, moves in STATUS_TRANSITIONS.items() if to_status in moves]
    return bookings_dao.transition_status(booking.booking_id, sources, to_status, seller_note)


def update_status(
    booking_id: int,
    identity: Identity,
    status: Optional[str],
    seller_note: Optional[str] = None,
) -> Booking:
    """Seller approves or rejects a pending booking."""

    if status not in SELLER_DECISIONS:
        raise BadRequest("Invalid status")
    booking = _load(booking_id)
    if booking.seller_id != identity.user_id:
        raise Forbidden("Only the property owner can update this booking")
    if booking.status != "pending" or not _transition(booking, status, seller_note):
        raise BadRequest("Can only update pending bookings")
    current_app.logger.info("Seller %s marked booking %s %s", identity.user_id, booking_id, status)
    return bookings_dao.get_booking_by_id(booking_id)


def cancel_booking(booking_id: int, identity: Identity) -> Booking:
    """Buyer withdraws a pending or approved booking."""

    booking = _load(booking_id)
    if booking.buyer_id != identity.user_id:
        raise Forbidden("You can only cancel your own bookings")
    if "cancelled" not in STATUS_TRANSITIONS.get(booking.status, {}) or not _transition(booking, "cancelled"):
        raise BadRequest("Cannot cancel this booking")
    current_app.logger.info("Buyer %s cancelled booking %s", identity.user_id, booking_id)
    return bookings_dao.get_booking_by_id(booking_id)


def get_booking(booking_id: int, identity: Identity) -> BookingView:
    view = bookings_dao.get_booking_view(booking_id)
    if view is None:
        raise NotFound("Booking not found")
    if identity.user_id not in (view.booking.buyer_id, view.booking.seller_id):
        raise Forbidden("You can only view your own bookings")
    return view


def list_bookings(identity: Identity, role: Optional[str] = None) -> list[BookingView]:
    role = role or "buyer"
    if role not in BOOKING_ROLES:
        raise BadRequest('Type must be either "buyer" or "seller"')
    return bookings_dao.list_booking_views(role, identity.user_id)


def booking_stats(user_id: int, identity: Identity) -> dict[str, dict[str, int]]:
    """Per-status booking counts for the user as seller and as buyer."""

    if user_id != identity.user_id:
        raise Forbidden("You can only view your own stats")
    stats = {}
    for role in ("seller", "buyer"):
        counts = dict.fromkeys(BOOKING_STATUSES, 0)
        counts.update(bookings_dao.count_by_status(role, user_id))
        counts["total"] = sum(counts.values())
        stats[role] = counts
    return stats