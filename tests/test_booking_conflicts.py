"""Booking conflict detection tests."""

from __future__ import annotations

import sqlite3
from datetime import date, timedelta

import pytest

from estate_hub.data_access import bookings_dao

SLOT_DAY = date.today() + timedelta(days=5)


def _book(client, listing_id, slot="11:00 AM", day=SLOT_DAY):
    return client.post(
        "/api/booking/create",
        json={"propertyId": listing_id, "date": day.isoformat(), "timeSlot": slot, "totalPrice": 1200},
    )


def test_taken_slot_rejected(other_client, app, rental_listing):
    """A pending booking blocks the same listing, day and slot for everyone."""

    assert _book(other_client, rental_listing.listing_id).status_code == 201

    with app.app_context():
        assert bookings_dao.has_conflict(rental_listing.listing_id, SLOT_DAY, "11:00 AM")
        assert not bookings_dao.has_conflict(rental_listing.listing_id, SLOT_DAY, "12:00 PM")
        assert not bookings_dao.has_conflict(rental_listing.listing_id, SLOT_DAY + timedelta(days=1), "11:00 AM")


def test_second_request_for_same_slot_fails(other_client, buyer_client, rental_listing):
    assert _book(other_client, rental_listing.listing_id).status_code == 201

    second = _book(buyer_client, rental_listing.listing_id)
    assert second.status_code == 400
    assert second.get_json()["message"] == "This time slot is already booked"


def test_approved_booking_still_blocks(seller_client, other_client, app, rental_listing):
    booking_id = _book(other_client, rental_listing.listing_id).get_json()["booking"]["id"]
    seller_client.put(f"/api/booking/update/{booking_id}", json={"status": "approved"})

    with app.app_context():
        assert bookings_dao.has_conflict(rental_listing.listing_id, SLOT_DAY, "11:00 AM")


@pytest.mark.parametrize("final_status", ["cancelled", "rejected"])
def test_terminal_bookings_free_the_slot(seller_client, other_client, app, rental_listing, final_status):
    booking_id = _book(other_client, rental_listing.listing_id).get_json()["booking"]["id"]
    if final_status == "cancelled":
        other_client.post(f"/api/booking/cancel/{booking_id}")
    else:
        seller_client.put(f"/api/booking/update/{booking_id}", json={"status": "rejected"})

    with app.app_context():
        assert not bookings_dao.has_conflict(rental_listing.listing_id, SLOT_DAY, "11:00 AM")
    assert _book(other_client, rental_listing.listing_id).status_code == 201


def test_unique_index_blocks_racing_insert(app, rental_listing, seller, other_user, buyer):
    """Two writers that both passed the pre-check cannot both hold the slot."""

    with app.app_context():
        bookings_dao.create_booking(
            listing_id=rental_listing.listing_id,
            buyer_id=other_user.user_id,
            seller_id=seller.user_id,
            booking_date=SLOT_DAY,
            time_slot="3:00 PM",
            total_price=1200,
        )
        with pytest.raises(sqlite3.IntegrityError):
            bookings_dao.create_booking(
                listing_id=rental_listing.listing_id,
                buyer_id=buyer.user_id,
                seller_id=seller.user_id,
                booking_date=SLOT_DAY,
                time_slot="3:00 PM",
                total_price=1200,
            )


def test_night_stay_conflicts_on_whole_day(app, night_stay_listing, seller, other_user, buyer):
    with app.app_context():
        bookings_dao.create_booking(
            listing_id=night_stay_listing.listing_id,
            buyer_id=other_user.user_id,
            seller_id=seller.user_id,
            booking_date=SLOT_DAY,
            time_slot=None,
            total_price=5000,
        )
        assert bookings_dao.has_conflict(night_stay_listing.listing_id, SLOT_DAY, None)
        with pytest.raises(sqlite3.IntegrityError):
            bookings_dao.create_booking(
                listing_id=night_stay_listing.listing_id,
                buyer_id=buyer.user_id,
                seller_id=seller.user_id,
                booking_date=SLOT_DAY,
                time_slot=None,
                total_price=5000,
            )


def test_racing_insert_reported_as_taken_slot(other_client, buyer_client, rental_listing, monkeypatch):
    """When the pre-check is beaten, the index violation still surfaces as a 400."""

    assert _book(other_client, rental_listing.listing_id, slot="4:00 PM").status_code == 201
    monkeypatch.setattr(bookings_dao, "has_conflict", lambda *args: False)
    monkeypatch.setattr(bookings_dao, "has_pending_request", lambda *args: False)

    response = _book(buyer_client, rental_listing.listing_id, slot="4:00 PM")
    assert response.status_code == 400
    assert response.get_json()["message"] == "This time slot is already booked"
