"""Profile update, lookup and account deletion."""

from __future__ import annotations

import pytest

from conftest import login
from estate_hub.data_access import bookings_dao, users_dao


def test_public_profile_hides_password(client, seller):
    response = client.get(f"/api/user/{seller.user_id}")
    assert response.status_code == 200
    user = response.get_json()["user"]
    assert user["username"] == "sellersam"
    assert set(user) == {"id", "username", "email", "avatar", "createdAt", "updatedAt"}


def test_public_profile_not_found(client):
    response = client.get("/api/user/4242")
    assert response.status_code == 404
    assert response.get_json()["message"] == "User not found"


def test_update_only_supplied_fields(seller_client, seller, app):
    response = seller_client.put(f"/api/user/update/{seller.user_id}", json={"avatar": "https://cdn.mail.com/a.png"})
    assert response.status_code == 200
    user = response.get_json()["user"]
    assert user["avatar"] == "https://cdn.mail.com/a.png"
    assert user["username"] == "sellersam"
    assert user["email"] == "sam@estatehub.io"


def test_update_password_rehashes(seller_client, seller, app, client):
    response = seller_client.put(f"/api/user/update/{seller.user_id}", json={"password": "brandnew1"})
    assert response.status_code == 200
    with app.app_context():
        stored = users_dao.get_user_by_id(seller.user_id)
        assert users_dao.verify_password(stored.password_hash, "brandnew1")
    login(client, "sam@estatehub.io", "brandnew1")


def test_cannot_update_someone_else(buyer_client, seller):
    response = buyer_client.put(f"/api/user/update/{seller.user_id}", json={"avatar": "x"})
    assert response.status_code == 403
    assert response.get_json()["message"] == "You are not allowed to update this user"


@pytest.mark.parametrize(
    ("username", "message"),
    [
        ("short", "Username must be between 7 and 20 characters"),
        ("has space1", "Username cannot contain spaces"),
        ("MixedCase1", "Username must be lowercase"),
        ("under_score", "Username can only contain letters and numbers"),
    ],
)
def test_username_rules(seller_client, seller, username, message):
    response = seller_client.put(f"/api/user/update/{seller.user_id}", json={"username": username})
    assert response.status_code == 400
    assert response.get_json()["message"] == message


@pytest.mark.parametrize("payload", [{"username": ["newname1"]}, {"avatar": {"url": "x"}}, {"email": ["a@b.com"]}])
def test_update_rejects_non_string_values(seller_client, seller, payload):
    response = seller_client.put(f"/api/user/update/{seller.user_id}", json=payload)
    assert response.status_code == 400
    assert response.get_json()["message"] == "Invalid payload"


def test_update_short_password_rejected(seller_client, seller):
    response = seller_client.put(f"/api/user/update/{seller.user_id}", json={"password": "abc"})
    assert response.status_code == 400
    assert response.get_json()["message"] == "Password must be at least 6 characters"


def test_update_to_taken_username_conflicts(seller_client, seller):
    response = seller_client.put(f"/api/user/update/{seller.user_id}", json={"username": "buyerbenny"})
    assert response.status_code == 409


def test_delete_account_keeps_bookings_with_placeholder(buyer_client, buyer, seller_client, app):
    response = buyer_client.delete(f"/api/user/delete/{buyer.user_id}")
    assert response.status_code == 200
    assert buyer_client.get("/api/booking/get").status_code == 401

    with app.app_context():
        assert users_dao.get_user_by_id(buyer.user_id) is None
        views = bookings_dao.list_booking_views("buyer", buyer.user_id)
        assert len(views) == 1

    booking = seller_client.get("/api/booking/get?type=seller").get_json()["bookings"][0]
    assert booking["buyer"]["username"] == "Deleted User"
    assert booking["buyer"]["deleted"] is True
    assert booking["buyer"]["avatar"] == app.config["DEFAULT_AVATAR"]


def test_cannot_delete_other_account(buyer_client, seller):
    response = buyer_client.delete(f"/api/user/delete/{seller.user_id}")
    assert response.status_code == 403
