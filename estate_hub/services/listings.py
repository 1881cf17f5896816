"""Listing catalog operations.

Every mutating operation takes the caller's ``Identity`` explicitly; the owner
of a new listing is always the caller, whatever ``userRef`` the client sends.
"""

from __future__ import annotations

import math
from typing import Any, Mapping, Optional

from flask import current_app

from .. import recommendation
from ..data_access import listings_dao
from ..errors import BadRequest, Forbidden, NotFound
from ..models.entities import DEFAULT_BBQ_RATES, MAX_COUNT, MEATS, Identity, Listing, availability_key

REQUIRED_FIELDS = (
    "name",
    "description",
    "address",
    "regularPrice",
    "bathrooms",
    "bedrooms",
    "furnished",
    "parking",
    "type",
    "offer",
    "imageUrls",
)
MAX_IMAGES = 6
LISTING_TYPES = ("sale", "rent")
RECOMMENDATION_POOL = 100
# largest OFFSET sqlite accepts
MAX_OFFSET = 2**63 - 1

# search ``type`` filter -> stored kinds
TYPE_FILTERS = {
    "sale": ("sale",),
    "rent": ("rent", "night-stay"),
    "night-stay": ("night-stay",),
}


def _present(payload: Mapping[str, Any], key: str) -> bool:
    value = payload.get(key)
    return value is not None and value != ""


def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _boolean(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.lower() in {"true", "false"}:
        return value.lower() == "true"
    raise BadRequest(f"{name} must be true or false")


def _text(name: str, value: Any) -> str:
    if not isinstance(value, str):
        raise BadRequest(f"{name} must be a string")
    return value


def _regular_price(value: Any) -> float:
    price = _number(value)
    if price is None or price <= 0:
        raise BadRequest("Regular price must be greater than 0")
    return price


def _discount_price(value: Any, regular_price: float) -> float:
    discount = _number(value)
    if discount is None:
        raise BadRequest("Discount price must be a number")
    if discount < 0:
        raise BadRequest("Discount price cannot be negative")
    if discount >= regular_price:
        raise BadRequest("Discount price must be less than regular price when offer is true")
    return discount


def _room_count(value: Any) -> int:
    number = _number(value)
    if number is None or number < 0:
        raise BadRequest("Bathrooms and bedrooms must be non-negative numbers")
    if number > MAX_COUNT:
        raise BadRequest(f"Bathrooms and bedrooms cannot exceed {MAX_COUNT}")
    return int(number)


def _image_urls(value: Any) -> list[str]:
    if not isinstance(value, list) or not value:
        raise BadRequest("At least one image URL is required")
    if len(value) > MAX_IMAGES:
        raise BadRequest(f"You can only upload up to {MAX_IMAGES} images")
    if not all(isinstance(url, str) and url for url in value):
        raise BadRequest("Image URLs must be non-empty strings")
    return list(value)


def _resolve_kind(type_value: Any, sub_type: Any, bbq_enabled: bool) -> str:
    """Map the wire ``type``/``listingSubType`` pair onto a single listing kind."""

    if not isinstance(type_value, str) or type_value.lower() not in LISTING_TYPES:
        raise BadRequest('Type must be either "sale" or "rent"')
    listing_type = type_value.lower()
    if sub_type == "night-stay":
        if listing_type != "rent":
            raise BadRequest("Night-stay listings must be rentals")
        return "night-stay"
    if not sub_type and listing_type == "rent" and bbq_enabled:
        # older clients flag night-stays with bbqEnabled on a rental
        return "night-stay"
    return listing_type


def default_night_stay_extras() -> dict[str, Any]:
    return {
        "bbqEnabled": False,
        "bbqRates": dict(DEFAULT_BBQ_RATES),
        "bbqAvailability": {availability_key(meat): True for meat in MEATS},
        "campfireEnabled": False,
        "campfirePrice": 0.0,
        "soundSystemEnabled": False,
        "soundSystemPrice": 0.0,
        "maxGuests": 1,
        "categories": [],
        "checkInTime": None,
        "checkOutTime": None,
        "houseRules": "",
    }


def _add_on_price(name: str, value: Any) -> float:
    price = _number(value)
    if price is None or price < 0:
        raise BadRequest(f"{name} must be a non-negative number")
    return price


def _night_stay_extras(payload: Mapping[str, Any], base: Mapping[str, Any]) -> dict[str, Any]:
    """Overlay the night-stay fields present in ``payload`` on ``base``."""

    extras = {**default_night_stay_extras(), **base}
    for flag in ("bbqEnabled", "campfireEnabled", "soundSystemEnabled"):
        if _present(payload, flag):
            extras[flag] = _boolean(flag, payload[flag])
    if _present(payload, "bbqRates"):
        rates = payload["bbqRates"]
        if not isinstance(rates, dict):
            raise BadRequest("bbqRates must be an object")
        merged = dict(extras["bbqRates"])
        for meat in MEATS:
            if meat in rates:
                merged[meat] = _add_on_price(f"BBQ rate for {meat}", rates[meat])
        extras["bbqRates"] = merged
    if _present(payload, "bbqAvailability"):
        availability = payload["bbqAvailability"]
        if not isinstance(availability, dict):
            raise BadRequest("bbqAvailability must be an object")
        merged = dict(extras["bbqAvailability"])
        for meat in MEATS:
            key = availability_key(meat)
            if key in availability:
                merged[key] = _boolean(key, availability[key])
        extras["bbqAvailability"] = merged
    for price_field in ("campfirePrice", "soundSystemPrice"):
        if _present(payload, price_field):
            extras[price_field] = _add_on_price(price_field, payload[price_field])
    if _present(payload, "maxGuests"):
        max_guests = _number(payload["maxGuests"])
        if max_guests is None or max_guests < 1:
            raise BadRequest("Maximum guests must be at least 1")
        if max_guests > MAX_COUNT:
            raise BadRequest(f"Maximum guests cannot exceed {MAX_COUNT}")
        extras["maxGuests"] = int(max_guests)
    if "categories" in payload and payload["categories"] is not None:
        categories = payload["categories"]
        if not isinstance(categories, list) or not all(isinstance(item, str) for item in categories):
            raise BadRequest("categories must be a list of strings")
        extras["categories"] = list(categories)
    for time_field in ("checkInTime", "checkOutTime"):
        if _present(payload, time_field):
            extras[time_field] = _text(time_field, payload[time_field])
    if "houseRules" in payload and payload["houseRules"] is not None:
        extras["houseRules"] = _text("houseRules", payload["houseRules"])
    return extras


def _owned_listing(listing_id: int, identity: Identity, message: str) -> Listing:
    listing = listings_dao.get_listing_by_id(listing_id)
    if listing is None:
        raise NotFound("Listing not found")
    if listing.user_ref != identity.user_id:
        raise Forbidden(message)
    return listing


def create_listing(identity: Identity, payload: Mapping[str, Any]) -> Listing:
    """Validate a new listing and store it under the caller's ownership."""

    missing = [name for name in REQUIRED_FIELDS if not _present(payload, name)]
    if missing:
        raise BadRequest(f"Missing required fields: {', '.join(missing)}")

    regular_price = _regular_price(payload["regularPrice"])
    offer = _boolean("offer", payload["offer"])
    discount_price = _discount_price(payload.get("discountPrice"), regular_price) if offer else 0.0
    bathrooms = _room_count(payload["bathrooms"])
    bedrooms = _room_count(payload["bedrooms"])
    bbq_flag = _boolean("bbqEnabled", payload["bbqEnabled"]) if _present(payload, "bbqEnabled") else False
    kind = _resolve_kind(payload["type"], payload.get("listingSubType"), bbq_flag)
    extras = _night_stay_extras(payload, {}) if kind == "night-stay" else None

    listing = listings_dao.create_listing(
        owner_id=identity.user_id,
        kind=kind,
        name=_text("name", payload["name"]),
        description=_text("description", payload["description"]),
        address=_text("address", payload["address"]),
        regular_price=regular_price,
        discount_price=discount_price,
        bathrooms=bathrooms,
        bedrooms=bedrooms,
        furnished=_boolean("furnished", payload["furnished"]),
        parking=_boolean("parking", payload["parking"]),
        offer=offer,
        image_urls=_image_urls(payload["imageUrls"]),
        extras=extras,
    )
    current_app.logger.info("User %s created %s listing %s", identity.user_id, kind, listing.listing_id)
    return listing


def update_listing(listing_id: int, identity: Identity, payload: Mapping[str, Any]) -> Listing:
    """Apply the fields present in ``payload``, re-checking the offer/discount pair."""

    listing = _owned_listing(listing_id, identity, "You can only update your own listings")
    changes: dict[str, Any] = {}

    for name in ("name", "description", "address"):
        if _present(payload, name):
            changes[name] = _text(name, payload[name])
    for name in ("furnished", "parking"):
        if _present(payload, name):
            changes[name] = _boolean(name, payload[name])
    for name in ("bathrooms", "bedrooms"):
        if _present(payload, name):
            changes[name] = _room_count(payload[name])
    if _present(payload, "imageUrls"):
        changes["image_urls"] = _image_urls(payload["imageUrls"])

    regular_price = listing.regular_price
    if _present(payload, "regularPrice"):
        regular_price = changes["regular_price"] = _regular_price(payload["regularPrice"])
    offer = _boolean("offer", payload["offer"]) if _present(payload, "offer") else listing.offer
    changes["offer"] = offer
    if offer:
        if _present(payload, "discountPrice"):
            raw_discount = payload["discountPrice"]
        else:
            raw_discount = listing.discount_price if listing.offer else None
        changes["discount_price"] = _discount_price(raw_discount, regular_price)
    else:
        changes["discount_price"] = 0.0

    type_value = payload["type"] if _present(payload, "type") else listing.type
    if "listingSubType" in payload:
        sub_type = payload["listingSubType"]
    else:
        sub_type = "night-stay" if listing.is_night_stay else None
    bbq_flag = _boolean("bbqEnabled", payload["bbqEnabled"]) if _present(payload, "bbqEnabled") else False
    kind = _resolve_kind(type_value, sub_type, bbq_flag)
    if kind != listing.kind:
        changes["kind"] = kind
    if kind == "night-stay":
        changes["extras"] = _night_stay_extras(payload, listing.extras() or {})
    elif listing.is_night_stay:
        changes["extras"] = None

    listings_dao.update_listing(listing_id, **changes)
    current_app.logger.info("User %s updated listing %s", identity.user_id, listing_id)
    return listings_dao.get_listing_by_id(listing_id)


def delete_listing(listing_id: int, identity: Identity) -> None:
    _owned_listing(listing_id, identity, "You can only delete your own listings")
    listings_dao.delete_listing(listing_id)
    current_app.logger.info("User %s deleted listing %s", identity.user_id, listing_id)


def get_listing(listing_id: int) -> Listing:
    listing = listings_dao.get_listing_by_id(listing_id)
    if listing is None:
        raise NotFound("Listing not found")
    return listing


def list_by_owner(owner_id: int, identity: Identity) -> list[Listing]:
    if owner_id != identity.user_id:
        raise Forbidden("You can only view your own listings")
    return listings_dao.list_listings_for_owner(owner_id)


def _flag(value: Optional[str]) -> Optional[bool]:
    """Search flags: "true" narrows to true, anything else matches both."""

    return True if value == "true" else None


def _bounded_int(value: Optional[str], default: int, minimum: int, maximum: Optional[int] = None) -> int:
    try:
        number = int(value) if value is not None else default
    except ValueError:
        number = default
    if number < minimum:
        number = default
    if maximum is not None:
        number = min(number, maximum)
    return number


def search_listings(args: Mapping[str, str], identity: Optional[Identity] = None) -> list[Listing]:
    """Marketplace search; the caller's own listings are left out when signed in."""

    config = current_app.config
    listing_type = (args.get("type") or "all").lower()
    if listing_type != "all" and listing_type not in TYPE_FILTERS:
        raise BadRequest('Type must be one of "all", "sale", "rent" or "night-stay"')
    return listings_dao.search_listings(
        search_term=(args.get("searchTerm") or "").strip() or None,
        offer=_flag(args.get("offer")),
        furnished=_flag(args.get("furnished")),
        parking=_flag(args.get("parking")),
        kinds=TYPE_FILTERS.get(listing_type),
        sort=args.get("sort") or "createdAt",
        order="asc" if args.get("order") == "asc" else "desc",
        limit=_bounded_int(args.get("limit"), config["SEARCH_DEFAULT_LIMIT"], 1, config["SEARCH_MAX_LIMIT"]),
        start_index=_bounded_int(args.get("startIndex"), 0, 0, MAX_OFFSET),
        exclude_owner_id=identity.user_id if identity else None,
    )


def similar_listings(listing_id: int, k: int = 5) -> list[recommendation.ScoredListing]:
    target = get_listing(listing_id)
    candidates = listings_dao.list_recent_listings(RECOMMENDATION_POOL, exclude_listing_id=listing_id)
    return recommendation.find_similar(target, candidates, k=k)


def recommend_listings(query: str, limit: int = 10) -> list[recommendation.ScoredListing]:
    preferences = recommendation.extract_preferences(query)
    candidates = listings_dao.list_recent_listings(RECOMMENDATION_POOL)
    return recommendation.recommend(candidates, preferences, limit=limit)
