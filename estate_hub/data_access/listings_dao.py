"""Data access helpers for property listings."""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Iterable, Optional, Sequence

from ..models.entities import LISTING_VARIANTS, NIGHT_STAY_FIELDS, Listing
from .db import execute, get_db, query_all, query_one

# public sort key -> column
SORT_COLUMNS = {
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "regularPrice": "regular_price",
    "discountPrice": "discount_price",
    "name": "name",
    "bedrooms": "bedrooms",
    "bathrooms": "bathrooms",
}

UPDATABLE_COLUMNS = {
    "kind",
    "name",
    "description",
    "address",
    "regular_price",
    "discount_price",
    "bathrooms",
    "bedrooms",
    "furnished",
    "parking",
    "offer",
    "image_urls",
    "extras",
}


def _parse_timestamp(value: str) -> datetime:
    return datetime.fromisoformat(str(value).replace(" ", "T"))


def _row_to_listing(row) -> Listing:
    variant = LISTING_VARIANTS[row["kind"]]
    fields: dict[str, Any] = dict(
        listing_id=row["listing_id"],
        user_ref=row["user_ref"],
        name=row["name"],
        description=row["description"],
        address=row["address"],
        regular_price=float(row["regular_price"]),
        discount_price=float(row["discount_price"]),
        bathrooms=int(row["bathrooms"]),
        bedrooms=int(row["bedrooms"]),
        furnished=bool(row["furnished"]),
        parking=bool(row["parking"]),
        offer=bool(row["offer"]),
        image_urls=json.loads(row["image_urls"]),
        created_at=_parse_timestamp(row["created_at"]),
        updated_at=_parse_timestamp(row["updated_at"]),
    )
    if row["kind"] == "night-stay" and row["extras"]:
        extras = json.loads(row["extras"])
        for wire_name, attribute in NIGHT_STAY_FIELDS.items():
            if wire_name in extras:
                fields[attribute] = extras[wire_name]
    return variant(**fields)


def _encode(column: str, value: Any) -> Any:
    if column in {"furnished", "parking", "offer"}:
        return int(bool(value))
    if column == "image_urls":
        return json.dumps(list(value))
    if column == "extras":
        return json.dumps(value) if value is not None else None
    return value


def create_listing(
    owner_id: int,
    kind: str,
    name: str,
    description: str,
    address: str,
    regular_price: float,
    discount_price: float,
    bathrooms: int,
    bedrooms: int,
    furnished: bool,
    parking: bool,
    offer: bool,
    image_urls: Sequence[str],
    extras: Optional[dict[str, Any]] = None,
) -> Listing:
    """Insert a new listing."""

    db = get_db()
    cursor = execute(
        db,
        """
        INSERT INTO listings (
            user_ref, kind, name, description, address, regular_price, discount_price,
            bathrooms, bedrooms, furnished, parking, offer, image_urls, extras
        )
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            owner_id,
            kind,
            name,
            description,
            address,
            regular_price,
            discount_price,
            bathrooms,
            bedrooms,
            _encode("furnished", furnished),
            _encode("parking", parking),
            _encode("offer", offer),
            _encode("image_urls", image_urls),
            _encode("extras", extras),
        ),
    )
    return get_listing_by_id(cursor.lastrowid, connection=db)


def update_listing(listing_id: int, **fields) -> None:
    """Update mutable fields for a listing."""

    updates = {key: _encode(key, value) for key, value in fields.items() if key in UPDATABLE_COLUMNS}
    if not updates:
        return

    columns = ", ".join(f"{key} = ?" for key in updates.keys())
    params = list(updates.values()) + [listing_id]
    db = get_db()
    execute(
        db,
        f"UPDATE listings SET {columns}, updated_at = CURRENT_TIMESTAMP WHERE listing_id = ?",
        params,
    )


def delete_listing(listing_id: int) -> None:
    db = get_db()
    execute(db, "DELETE FROM listings WHERE listing_id = ?", (listing_id,))


def get_listing_by_id(listing_id: int, connection=None) -> Listing | None:
    """Fetch a single listing."""

    db = connection or get_db()
    row = query_one(db, "SELECT * FROM listings WHERE listing_id = ?", (listing_id,))
    return _row_to_listing(row) if row else None


def list_listings_for_owner(owner_id: int) -> list[Listing]:
    """Return all listings created by a specific owner, newest first."""

    db = get_db()
    rows = query_all(
        db,
        """
        SELECT * FROM listings
        WHERE user_ref = ?
        ORDER BY created_at DESC, listing_id DESC
        """,
        (owner_id,),
    )
    return [_row_to_listing(row) for row in rows]


def list_recent_listings(limit: int, exclude_listing_id: Optional[int] = None) -> list[Listing]:
    """Most recently created listings, used as the candidate pool for recommendations."""

    db = get_db()
    query = "SELECT * FROM listings"
    params: list = []
    if exclude_listing_id is not None:
        query += " WHERE listing_id != ?"
        params.append(exclude_listing_id)
    query += " ORDER BY created_at DESC, listing_id DESC LIMIT ?"
    params.append(limit)
    return [_row_to_listing(row) for row in query_all(db, query, params)]


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def search_listings(
    search_term: Optional[str] = None,
    offer: Optional[bool] = None,
    furnished: Optional[bool] = None,
    parking: Optional[bool] = None,
    kinds: Optional[Iterable[str]] = None,
    sort: str = "createdAt",
    order: str = "desc",
    limit: int = 9,
    start_index: int = 0,
    exclude_owner_id: Optional[int] = None,
) -> list[Listing]:
    """Filtered, sorted and paginated search across all listings.

    Boolean filters left as ``None`` match both values.
    """

    db = get_db()
    query = "SELECT * FROM listings WHERE 1 = 1"
    params: list = []
    if search_term:
        query += " AND name LIKE ? ESCAPE '\\'"
        params.append(f"%{_escape_like(search_term)}%")
    for column, value in (("offer", offer), ("furnished", furnished), ("parking", parking)):
        if value is not None:
            query += f" AND {column} = ?"
            params.append(int(value))
    if kinds:
        kind_list = list(kinds)
        query += f" AND kind IN ({', '.join('?' for _ in kind_list)})"
        params.extend(kind_list)
    if exclude_owner_id is not None:
        query += " AND user_ref != ?"
        params.append(exclude_owner_id)

    column = SORT_COLUMNS.get(sort, "created_at")
    direction = "ASC" if order == "asc" else "DESC"
    query += f" ORDER BY {column} {direction}, listing_id {direction} LIMIT ? OFFSET ?"
    params.extend([limit, start_index])
    rows = query_all(db, query, params)
    return [_row_to_listing(row) for row in rows]
