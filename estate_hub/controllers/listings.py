"""Listing catalog blueprint."""

from __future__ import annotations

from typing import Optional

from flask import Blueprint, jsonify, request

from ..models.entities import Identity
from ..services import listings
from .auth import optional_token, verify_token
from .common import json_payload, success

bp = Blueprint("listings", __name__, url_prefix="/api/listing")


@bp.route("/create", methods=["POST"])
@verify_token
def create(identity: Identity):
    listing = listings.create_listing(identity, json_payload())
    return success(201, listing=listing.to_dict())


@bp.route("/update/<int:listing_id>", methods=["POST", "PUT"])
@verify_token
def update(listing_id: int, identity: Identity):
    listing = listings.update_listing(listing_id, identity, json_payload())
    return success(listing=listing.to_dict())


@bp.route("/delete/<int:listing_id>", methods=["DELETE"])
@verify_token
def delete(listing_id: int, identity: Identity):
    listings.delete_listing(listing_id, identity)
    return success(message="Listing has been deleted")


@bp.route("/get/<int:listing_id>", methods=["GET"])
def detail(listing_id: int):
    listing = listings.get_listing(listing_id)
    return success(listing=listing.to_dict())


@bp.route("/get", methods=["GET"])
@optional_token
def search(identity: Optional[Identity]):
    """Public marketplace search. Returns a bare JSON array."""

    results = listings.search_listings(request.args, identity)
    return jsonify([listing.to_dict() for listing in results])


@bp.route("/user/<int:user_id>", methods=["GET"])
@verify_token
def by_owner(user_id: int, identity: Identity):
    owned = listings.list_by_owner(user_id, identity)
    return success(listings=[listing.to_dict() for listing in owned])


@bp.route("/similar/<int:listing_id>", methods=["GET"])
def similar(listing_id: int):
    k = request.args.get("k", default=5, type=int)
    matches = listings.similar_listings(listing_id, k=max(1, min(k, 20)))
    return jsonify([match.to_dict() for match in matches])


@bp.route("/recommend", methods=["GET"])
def recommend():
    limit = request.args.get("limit", default=10, type=int)
    matches = listings.recommend_listings(request.args.get("q", ""), limit=max(1, min(limit, 50)))
    return jsonify([match.to_dict() for match in matches])
