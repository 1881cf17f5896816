"""Data access helpers for bookings."""

from __future__ import annotations

import json
from datetime import date, datetime
from typing import Iterable, Optional

from ..models.entities import Booking, BookingView
from .db import execute, get_db, query_all, query_one

_JOINED_SELECT = """
    SELECT
        b.*,
        l.listing_id AS l_id,
        l.name AS l_name,
        l.address AS l_address,
        l.image_urls AS l_image_urls,
        l.regular_price AS l_regular_price,
        l.kind AS l_kind,
        bu.user_id AS bu_id,
        bu.username AS bu_username,
        bu.email AS bu_email,
        bu.avatar AS bu_avatar,
        se.user_id AS se_id,
        se.username AS se_username,
        se.email AS se_email,
        se.avatar AS se_avatar
    FROM bookings b
    LEFT JOIN listings l ON l.listing_id = b.listing_id
    LEFT JOIN users bu ON bu.user_id = b.buyer_id
    LEFT JOIN users se ON se.user_id = b.seller_id
"""


def _parse_timestamp(value: str) -> datetime:
    return datetime.fromisoformat(str(value).replace(" ", "T"))


def _row_to_booking(row) -> Booking:
    return Booking(
        booking_id=row["booking_id"],
        listing_id=row["listing_id"],
        buyer_id=row["buyer_id"],
        seller_id=row["seller_id"],
        booking_date=date.fromisoformat(row["booking_date"]),
        time_slot=row["time_slot"],
        message=row["message"],
        status=row["status"],
        seller_note=row["seller_note"],
        guests=row["guests"],
        bbq_enabled=bool(row["bbq_enabled"]),
        chicken_kg=float(row["chicken_kg"]),
        mutton_kg=float(row["mutton_kg"]),
        fish_kg=float(row["fish_kg"]),
        campfire_enabled=bool(row["campfire_enabled"]),
        sound_system_enabled=bool(row["sound_system_enabled"]),
        total_price=float(row["total_price"]),
        created_at=_parse_timestamp(row["created_at"]),
        updated_at=_parse_timestamp(row["updated_at"]),
    )


def _party(row, prefix: str) -> Optional[dict]:
    if row[f"{prefix}_id"] is None:
        return None
    return {
        "username": row[f"{prefix}_username"],
        "email": row[f"{prefix}_email"],
        "avatar": row[f"{prefix}_avatar"],
    }


def _row_to_view(row) -> BookingView:
    listing = None
    if row["l_id"] is not None:
        listing = {
            "name": row["l_name"],
            "address": row["l_address"],
            "imageUrls": json.loads(row["l_image_urls"]),
            "regularPrice": float(row["l_regular_price"]),
            "type": "sale" if row["l_kind"] == "sale" else "rent",
            "listingSubType": "night-stay" if row["l_kind"] == "night-stay" else None,
        }
    return BookingView(
        booking=_row_to_booking(row),
        listing=listing,
        buyer=_party(row, "bu"),
        seller=_party(row, "se"),
    )


def create_booking(
    listing_id: int,
    buyer_id: int,
    seller_id: int,
    booking_date: date,
    time_slot: Optional[str],
    total_price: float,
    message: str = "",
    guests: int = 1,
    bbq_enabled: bool = False,
    chicken_kg: float = 0,
    mutton_kg: float = 0,
    fish_kg: float = 0,
    campfire_enabled: bool = False,
    sound_system_enabled: bool = False,
) -> Booking:
    """Insert a pending booking.

    The partial unique index on live slots makes this the atomic guard against
    double-booking: a concurrent duplicate raises ``sqlite3.IntegrityError``.
    """

    db = get_db()
    cursor = execute(
        db,
        """
        INSERT INTO bookings (
            listing_id, buyer_id, seller_id, booking_date, time_slot, message, status,
            guests, bbq_enabled, chicken_kg, mutton_kg, fish_kg,
            campfire_enabled, sound_system_enabled, total_price
        )
        VALUES (?, ?, ?, ?, ?, ?, 'pending', ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            listing_id,
            buyer_id,
            seller_id,
            booking_date.isoformat(),
            time_slot,
            message,
            guests,
            int(bbq_enabled),
            chicken_kg,
            mutton_kg,
            fish_kg,
            int(campfire_enabled),
            int(sound_system_enabled),
            total_price,
        ),
    )
    return get_booking_by_id(cursor.lastrowid, connection=db)


def get_booking_by_id(booking_id: int, connection=None) -> Booking | None:
    """Fetch a specific booking."""

    db = connection or get_db()
    row = query_one(
        db,
        "SELECT * FROM bookings WHERE booking_id = ?",
        (booking_id,),
    )
    return _row_to_booking(row) if row else None


def has_conflict(listing_id: int, booking_date: date, time_slot: Optional[str]) -> bool:
    """Return True when a pending/approved booking already holds the slot."""

    db = get_db()
    row = query_one(
        db,
        """
        SELECT 1 FROM bookings
        WHERE listing_id = ?
          AND booking_date = ?
          AND COALESCE(time_slot, '') = ?
          AND status IN ('pending', 'approved')
        """,
        (listing_id, booking_date.isoformat(), time_slot or ""),
    )
    return row is not None


def has_pending_request(listing_id: int, buyer_id: int) -> bool:
    """Return True when the buyer already waits on a pending booking for the listing."""

    db = get_db()
    row = query_one(
        db,
        "SELECT 1 FROM bookings WHERE listing_id = ? AND buyer_id = ? AND status = 'pending'",
        (listing_id, buyer_id),
    )
    return row is not None


def transition_status(
    booking_id: int,
    from_statuses: Iterable[str],
    to_status: str,
    seller_note: Optional[str] = None,
) -> bool:
    """Move a booking to ``to_status`` only if it is still in one of ``from_statuses``.

    Returns False when another request changed the status first.
    """

    allowed = list(from_statuses)
    placeholders = ", ".join("?" for _ in allowed)
    query = "UPDATE bookings SET status = ?, updated_at = CURRENT_TIMESTAMP"
    params: list = [to_status]
    if seller_note:
        query += ", seller_note = ?"
        params.append(seller_note)
    query += f" WHERE booking_id = ? AND status IN ({placeholders})"
    params.append(booking_id)
    params.extend(allowed)
    db = get_db()
    cursor = execute(db, query, params)
    return cursor.rowcount == 1


def get_booking_view(booking_id: int) -> BookingView | None:
    """Booking joined with listing snapshot and both parties."""

    db = get_db()
    row = query_one(db, _JOINED_SELECT + " WHERE b.booking_id = ?", (booking_id,))
    return _row_to_view(row) if row else None


def list_booking_views(role: str, user_id: int) -> list[BookingView]:
    """Joined bookings where the user is the buyer or the seller, newest first."""

    column = "b.seller_id" if role == "seller" else "b.buyer_id"
    db = get_db()
    rows = query_all(
        db,
        _JOINED_SELECT + f" WHERE {column} = ? ORDER BY b.created_at DESC, b.booking_id DESC",
        (user_id,),
    )
    return [_row_to_view(row) for row in rows]


def count_by_status(role: str, user_id: int) -> dict[str, int]:
    """Booking totals per status for a buyer or seller."""

    column = "seller_id" if role == "seller" else "buyer_id"
    db = get_db()
    rows = query_all(
        db,
        f"SELECT status, COUNT(*) AS total FROM bookings WHERE {column} = ? GROUP BY status",
        (user_id,),
    )
    return {row["status"]: row["total"] for row in rows}
