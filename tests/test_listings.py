"""Listing catalog endpoint tests."""

from __future__ import annotations

import pytest


def _payload(**overrides):
    payload = {
        "name": "Harbour View Flat",
        "description": "Two bedrooms overlooking the harbour.",
        "address": "5 Quay Street, Harbourside",
        "regularPrice": 1000,
        "discountPrice": 0,
        "bathrooms": 1,
        "bedrooms": 2,
        "furnished": True,
        "parking": False,
        "type": "rent",
        "offer": False,
        "imageUrls": ["https://images.estatehub.io/harbour.jpg"],
    }
    payload.update(overrides)
    return payload


def test_create_and_fetch_round_trip(seller_client, seller, client):
    payload = _payload()
    response = seller_client.post("/api/listing/create", json=payload)
    assert response.status_code == 201
    created = response.get_json()["listing"]
    assert created["userRef"] == seller.user_id

    fetched = client.get(f"/api/listing/get/{created['id']}").get_json()["listing"]
    for key, value in payload.items():
        assert fetched[key] == value
    assert fetched["kind"] == "rent"
    assert fetched["listingSubType"] is None


def test_owner_comes_from_the_cookie(seller_client, seller, buyer):
    response = seller_client.post("/api/listing/create", json=_payload(userRef=buyer.user_id))
    assert response.get_json()["listing"]["userRef"] == seller.user_id


def test_create_requires_auth(client):
    assert client.post("/api/listing/create", json=_payload()).status_code == 401


def test_missing_fields_listed(seller_client):
    response = seller_client.post("/api/listing/create", json={"name": "Only a name", "furnished": False})
    assert response.status_code == 400
    message = response.get_json()["message"]
    assert message.startswith("Missing required fields: ")
    assert "description" in message
    assert "furnished" not in message


def test_strings_are_coerced(seller_client):
    response = seller_client.post(
        "/api/listing/create",
        json=_payload(regularPrice="1500", bathrooms="2", bedrooms="3", furnished="false", offer="true", discountPrice="1200"),
    )
    assert response.status_code == 201
    listing = response.get_json()["listing"]
    assert listing["regularPrice"] == 1500
    assert listing["bathrooms"] == 2
    assert listing["furnished"] is False
    assert listing["offer"] is True
    assert listing["discountPrice"] == 1200


@pytest.mark.parametrize(
    ("overrides", "message"),
    [
        ({"regularPrice": 0}, "Regular price must be greater than 0"),
        ({"offer": True, "discountPrice": 1000}, "Discount price must be less than regular price when offer is true"),
        ({"offer": True, "discountPrice": -5}, "Discount price cannot be negative"),
        ({"bedrooms": -1}, "Bathrooms and bedrooms must be non-negative numbers"),
        ({"bedrooms": 1e20}, "Bathrooms and bedrooms cannot exceed 1000"),
        ({"listingSubType": "night-stay", "maxGuests": 1e20}, "Maximum guests cannot exceed 1000"),
        ({"type": "lease"}, 'Type must be either "sale" or "rent"'),
        ({"type": "sale", "listingSubType": "night-stay"}, "Night-stay listings must be rentals"),
        ({"imageUrls": ["a", "b", "c", "d", "e", "f", "g"]}, "You can only upload up to 6 images"),
    ],
)
def test_invalid_listing_rejected(seller_client, overrides, message):
    response = seller_client.post("/api/listing/create", json=_payload(**overrides))
    assert response.status_code == 400
    assert response.get_json()["message"] == message


def test_discount_zeroed_without_offer(seller_client):
    response = seller_client.post("/api/listing/create", json=_payload(offer=False, discountPrice=500))
    assert response.get_json()["listing"]["discountPrice"] == 0


def test_night_stay_listing(seller_client):
    response = seller_client.post(
        "/api/listing/create",
        json=_payload(
            listingSubType="night-stay",
            bbqEnabled=True,
            bbqRates={"chicken": 800},
            campfireEnabled=True,
            campfirePrice=500,
            maxGuests=4,
            categories=["party"],
        ),
    )
    assert response.status_code == 201
    listing = response.get_json()["listing"]
    assert listing["type"] == "rent"
    assert listing["listingSubType"] == "night-stay"
    assert listing["kind"] == "night-stay"
    assert listing["bbqRates"] == {"chicken": 800, "mutton": 2000, "fish": 1500}
    assert listing["bbqAvailability"]["isMuttonAllowed"] is True
    assert listing["maxGuests"] == 4


def test_legacy_bbq_flag_makes_night_stay(seller_client):
    response = seller_client.post("/api/listing/create", json=_payload(bbqEnabled=True))
    assert response.get_json()["listing"]["kind"] == "night-stay"


def test_regular_listing_has_no_night_stay_fields(seller_client):
    response = seller_client.post("/api/listing/create", json=_payload(maxGuests=9))
    listing = response.get_json()["listing"]
    assert "maxGuests" not in listing
    assert "bbqRates" not in listing


def test_update_by_owner(seller_client, rental_listing):
    response = seller_client.post(
        f"/api/listing/update/{rental_listing.listing_id}",
        json={"name": "Renamed Loft", "offer": True, "discountPrice": 1000},
    )
    assert response.status_code == 200
    listing = response.get_json()["listing"]
    assert listing["name"] == "Renamed Loft"
    assert listing["discountPrice"] == 1000
    assert listing["description"] == rental_listing.description


def test_update_checks_discount_against_new_price(seller_client, sale_listing):
    response = seller_client.post(
        f"/api/listing/update/{sale_listing.listing_id}",
        json={"regularPrice": 400000},
    )
    assert response.status_code == 400
    assert response.get_json()["message"] == "Discount price must be less than regular price when offer is true"


def test_update_can_switch_variant(seller_client, rental_listing):
    response = seller_client.post(
        f"/api/listing/update/{rental_listing.listing_id}",
        json={"listingSubType": "night-stay", "maxGuests": 3},
    )
    listing = response.get_json()["listing"]
    assert listing["kind"] == "night-stay"
    assert listing["maxGuests"] == 3

    response = seller_client.post(f"/api/listing/update/{rental_listing.listing_id}", json={"type": "sale", "listingSubType": None})
    listing = response.get_json()["listing"]
    assert listing["kind"] == "sale"
    assert "maxGuests" not in listing


@pytest.mark.parametrize("payload", [{}, {"name": "Hijacked"}, {"regularPrice": -1}])
def test_only_owner_can_update(buyer_client, rental_listing, payload):
    response = buyer_client.post(f"/api/listing/update/{rental_listing.listing_id}", json=payload)
    assert response.status_code == 403
    assert response.get_json()["message"] == "You can only update your own listings"


def test_only_owner_can_delete(buyer_client, seller_client, rental_listing, client):
    response = buyer_client.delete(f"/api/listing/delete/{rental_listing.listing_id}")
    assert response.status_code == 403
    assert response.get_json()["message"] == "You can only delete your own listings"

    response = seller_client.delete(f"/api/listing/delete/{rental_listing.listing_id}")
    assert response.status_code == 200
    assert client.get(f"/api/listing/get/{rental_listing.listing_id}").status_code == 404


def test_missing_listing(client, seller_client):
    response = client.get("/api/listing/get/999")
    assert response.status_code == 404
    assert response.get_json() == {"success": False, "statusCode": 404, "message": "Listing not found"}
    assert seller_client.post("/api/listing/update/999", json={}).status_code == 404


def test_list_by_owner_is_self_only(seller_client, seller, buyer):
    own = seller_client.get(f"/api/listing/user/{seller.user_id}")
    assert own.status_code == 200
    assert len(own.get_json()["listings"]) == 3

    other = seller_client.get(f"/api/listing/user/{buyer.user_id}")
    assert other.status_code == 403
