"""Deterministic seed data for Estate Hub."""

from __future__ import annotations

from datetime import date, timedelta

from flask import current_app

from . import bookings_dao, listings_dao, users_dao

SEED_PASSWORD = "Password123!"


def seed() -> None:
    """Populate the database with representative demo records."""

    avatar = current_app.config["DEFAULT_AVATAR"]
    users = {}
    for username, email in (
        ("sellersam", "sam@estatehub.io"),
        ("buyerbenny", "benny@estatehub.io"),
        ("casey2024", "casey@estatehub.io"),
    ):
        existing = users_dao.get_user_by_email(email)
        users[username] = existing or users_dao.create_user(
            username=username,
            email=email,
            password_hash=users_dao.hash_password(SEED_PASSWORD),
            avatar=avatar,
        )

    if listings_dao.list_listings_for_owner(users["sellersam"].user_id):
        return

    seller = users["sellersam"].user_id
    listings_dao.create_listing(
        owner_id=seller,
        kind="sale",
        name="Lakeside Family Home",
        description="Four-bedroom house with a garden running down to the lake.",
        address="12 Shore Road, Lakeside",
        regular_price=450000,
        discount_price=420000,
        bathrooms=3,
        bedrooms=4,
        furnished=False,
        parking=True,
        offer=True,
        image_urls=["https://images.estatehub.io/lakeside-1.jpg"],
    )
    studio = listings_dao.create_listing(
        owner_id=seller,
        kind="rent",
        name="Downtown Studio Loft",
        description="Bright furnished studio two minutes from the central station.",
        address="88 Market Street, Downtown",
        regular_price=1200,
        discount_price=0,
        bathrooms=1,
        bedrooms=1,
        furnished=True,
        parking=False,
        offer=False,
        image_urls=["https://images.estatehub.io/studio-1.jpg"],
    )
    listings_dao.create_listing(
        owner_id=seller,
        kind="night-stay",
        name="Hilltop Night Retreat",
        description="Cabin on the ridge with a fire pit and open-air grill.",
        address="3 Ridge Lane, Hilltop",
        regular_price=5000,
        discount_price=0,
        bathrooms=1,
        bedrooms=2,
        furnished=True,
        parking=True,
        offer=False,
        image_urls=["https://images.estatehub.io/retreat-1.jpg"],
        extras={
            "bbqEnabled": True,
            "bbqRates": {"chicken": 700.0, "mutton": 2000.0, "fish": 1500.0},
            "bbqAvailability": {"isChickenAllowed": True, "isMuttonAllowed": True, "isFishAllowed": False},
            "campfireEnabled": True,
            "campfirePrice": 1000.0,
            "soundSystemEnabled": False,
            "soundSystemPrice": 0.0,
            "maxGuests": 6,
            "categories": ["family", "nature"],
            "checkInTime": "2:00 PM",
            "checkOutTime": "11:00 AM",
            "houseRules": "No loud music after 11 PM.",
        },
    )
    listings_dao.create_listing(
        owner_id=users["casey2024"].user_id,
        kind="rent",
        name="Garden Cottage",
        description="Quiet cottage with a private garden.",
        address="7 Orchard Close, Greenfield",
        regular_price=900,
        discount_price=0,
        bathrooms=1,
        bedrooms=2,
        furnished=False,
        parking=True,
        offer=False,
        image_urls=["https://images.estatehub.io/cottage-1.jpg"],
    )

    bookings_dao.create_booking(
        listing_id=studio.listing_id,
        buyer_id=users["buyerbenny"].user_id,
        seller_id=seller,
        booking_date=date.today() + timedelta(days=3),
        time_slot="10:00 AM",
        total_price=1200,
        message="Could I see the loft on Saturday morning?",
    )


if __name__ == "__main__":
    from ..app import create_app  # pylint: disable=import-outside-toplevel

    app = create_app()
    with app.app_context():
        seed()
        print("Seed data applied.")
