"""Search and filter functionality tests."""

from __future__ import annotations

from estate_hub.data_access import listings_dao


def _names(response):
    assert response.status_code == 200
    return [listing["name"] for listing in response.get_json()]


def test_anonymous_search_returns_everything(client):
    names = _names(client.get("/api/listing/get"))
    assert set(names) == {
        "Lakeside Family Home",
        "Downtown Studio Loft",
        "Hilltop Night Retreat",
        "Garden Cottage",
    }


def test_signed_in_search_excludes_own_listings(seller_client, other_client):
    assert _names(seller_client.get("/api/listing/get")) == ["Garden Cottage"]
    assert "Garden Cottage" not in _names(other_client.get("/api/listing/get"))
    assert len(_names(other_client.get("/api/listing/get?type=all"))) == 3


def test_keyword_search_is_case_insensitive(client):
    assert _names(client.get("/api/listing/get?searchTerm=studio")) == ["Downtown Studio Loft"]


def test_keyword_with_like_wildcards_is_literal(client):
    assert _names(client.get("/api/listing/get?searchTerm=%25")) == []


def test_type_filters(client):
    assert _names(client.get("/api/listing/get?type=sale")) == ["Lakeside Family Home"]
    assert set(_names(client.get("/api/listing/get?type=rent"))) == {
        "Downtown Studio Loft",
        "Hilltop Night Retreat",
        "Garden Cottage",
    }
    assert _names(client.get("/api/listing/get?type=night-stay")) == ["Hilltop Night Retreat"]


def test_unknown_type_rejected(client):
    response = client.get("/api/listing/get?type=castle")
    assert response.status_code == 400


def test_boolean_flags_only_narrow_on_true(client):
    assert _names(client.get("/api/listing/get?offer=true")) == ["Lakeside Family Home"]
    assert len(_names(client.get("/api/listing/get?offer=false"))) == 4
    parking = set(_names(client.get("/api/listing/get?parking=true")))
    assert parking == {"Lakeside Family Home", "Hilltop Night Retreat", "Garden Cottage"}
    furnished = set(_names(client.get("/api/listing/get?furnished=true&parking=true")))
    assert furnished == {"Hilltop Night Retreat"}


def test_sort_and_paginate(client):
    by_price = _names(client.get("/api/listing/get?sort=regularPrice&order=asc"))
    assert by_price == [
        "Garden Cottage",
        "Downtown Studio Loft",
        "Hilltop Night Retreat",
        "Lakeside Family Home",
    ]
    page = _names(client.get("/api/listing/get?sort=regularPrice&order=asc&limit=2&startIndex=2"))
    assert page == ["Hilltop Night Retreat", "Lakeside Family Home"]


def test_unknown_sort_falls_back_to_newest(client):
    names = _names(client.get("/api/listing/get?sort=password_hash"))
    assert names[0] == "Garden Cottage"


def test_limit_is_capped(app, seller):
    with app.app_context():
        for index in range(12):
            listings_dao.create_listing(
                owner_id=seller.user_id,
                kind="rent",
                name=f"Bulk Flat {index}",
                description="Generated",
                address="Bulk Street",
                regular_price=500 + index,
                discount_price=0,
                bathrooms=1,
                bedrooms=1,
                furnished=False,
                parking=False,
                offer=False,
                image_urls=["x"],
            )
    client = app.test_client()
    assert len(_names(client.get("/api/listing/get"))) == 9
    assert len(_names(client.get("/api/listing/get?limit=500"))) == 16


def test_huge_start_index_returns_empty_page(client):
    response = client.get("/api/listing/get?startIndex=99999999999999999999999")
    assert response.status_code == 200
    assert response.get_json() == []
