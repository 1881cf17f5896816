"""Dataclass-style entity representations."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, ClassVar, Optional

from flask_login import UserMixin

MEATS = ("chicken", "mutton", "fish")
DEFAULT_BBQ_RATES = {"chicken": 700.0, "mutton": 2000.0, "fish": 1500.0}

TIME_SLOTS = (
    "9:00 AM",
    "10:00 AM",
    "11:00 AM",
    "12:00 PM",
    "1:00 PM",
    "2:00 PM",
    "3:00 PM",
    "4:00 PM",
    "5:00 PM",
)

BOOKING_STATUSES = ("pending", "approved", "rejected", "cancelled")
ACTIVE_BOOKING_STATUSES = ("pending", "approved")

# upper bound for room and guest counts
MAX_COUNT = 1000

# current status -> {target status: party allowed to make the move}
STATUS_TRANSITIONS: dict[str, dict[str, str]] = {
    "pending": {"approved": "seller", "rejected": "seller", "cancelled": "buyer"},
    "approved": {"cancelled": "buyer"},
}


def availability_key(meat: str) -> str:
    """Key used in ``bbqAvailability`` for a meat, e.g. ``isChickenAllowed``."""

    return f"is{meat.capitalize()}Allowed"


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass(frozen=True)
class Identity:
    """Authenticated caller, passed explicitly into every guarded operation."""

    user_id: int


@dataclass
class User(UserMixin):
    """User entity compatible with Flask-Login."""

    user_id: int
    username: str
    email: str
    password_hash: str
    avatar: str
    created_at: datetime
    updated_at: datetime

    def get_id(self) -> str:
        return str(self.user_id)

    def to_public_dict(self) -> dict[str, Any]:
        return {
            "id": self.user_id,
            "username": self.username,
            "email": self.email,
            "avatar": self.avatar,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }


@dataclass
class Listing:
    """Fields shared by every kind of property listing."""

    listing_id: int
    user_ref: int
    name: str
    description: str
    address: str
    regular_price: float
    discount_price: float
    bathrooms: int
    bedrooms: int
    furnished: bool
    parking: bool
    offer: bool
    image_urls: list[str]
    created_at: datetime
    updated_at: datetime

    kind: ClassVar[str] = ""

    @property
    def type(self) -> str:
        return "sale" if self.kind == "sale" else "rent"

    @property
    def is_night_stay(self) -> bool:
        return self.kind == "night-stay"

    def extras(self) -> Optional[dict[str, Any]]:
        """Variant-specific fields, persisted alongside the common columns."""

        return None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.listing_id,
            "name": self.name,
            "description": self.description,
            "address": self.address,
            "regularPrice": self.regular_price,
            "discountPrice": self.discount_price,
            "bathrooms": self.bathrooms,
            "bedrooms": self.bedrooms,
            "furnished": self.furnished,
            "parking": self.parking,
            "type": self.type,
            "listingSubType": "night-stay" if self.is_night_stay else None,
            "kind": self.kind,
            "offer": self.offer,
            "imageUrls": list(self.image_urls),
            "userRef": self.user_ref,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }
        data.update(self.extras() or {})
        return data


@dataclass
class SaleListing(Listing):
    kind: ClassVar[str] = "sale"


@dataclass
class RentalListing(Listing):
    kind: ClassVar[str] = "rent"


@dataclass
class NightStayListing(Listing):
    """24-hour experiential rental with optional paid add-ons."""

    kind: ClassVar[str] = "night-stay"

    bbq_enabled: bool = False
    bbq_rates: dict[str, float] = field(default_factory=lambda: dict(DEFAULT_BBQ_RATES))
    bbq_availability: dict[str, bool] = field(
        default_factory=lambda: {availability_key(meat): True for meat in MEATS}
    )
    campfire_enabled: bool = False
    campfire_price: float = 0.0
    sound_system_enabled: bool = False
    sound_system_price: float = 0.0
    max_guests: int = 1
    categories: list[str] = field(default_factory=list)
    check_in_time: Optional[str] = None
    check_out_time: Optional[str] = None
    house_rules: str = ""

    def meat_allowed(self, meat: str) -> bool:
        return bool(self.bbq_availability.get(availability_key(meat), True))

    def extras(self) -> dict[str, Any]:
        return {
            "bbqEnabled": self.bbq_enabled,
            "bbqRates": dict(self.bbq_rates),
            "bbqAvailability": dict(self.bbq_availability),
            "campfireEnabled": self.campfire_enabled,
            "campfirePrice": self.campfire_price,
            "soundSystemEnabled": self.sound_system_enabled,
            "soundSystemPrice": self.sound_system_price,
            "maxGuests": self.max_guests,
            "categories": list(self.categories),
            "checkInTime": self.check_in_time,
            "checkOutTime": self.check_out_time,
            "houseRules": self.house_rules,
        }


LISTING_VARIANTS: dict[str, type[Listing]] = {
    SaleListing.kind: SaleListing,
    RentalListing.kind: RentalListing,
    NightStayListing.kind: NightStayListing,
}

# camelCase wire name -> NightStayListing attribute
NIGHT_STAY_FIELDS = {
    "bbqEnabled": "bbq_enabled",
    "bbqRates": "bbq_rates",
    "bbqAvailability": "bbq_availability",
    "campfireEnabled": "campfire_enabled",
    "campfirePrice": "campfire_price",
    "soundSystemEnabled": "sound_system_enabled",
    "soundSystemPrice": "sound_system_price",
    "maxGuests": "max_guests",
    "categories": "categories",
    "checkInTime": "check_in_time",
    "checkOutTime": "check_out_time",
    "houseRules": "house_rules",
}


@dataclass
class Booking:
    """Reservation request by a buyer against a seller's listing."""

    booking_id: int
    listing_id: int
    buyer_id: int
    seller_id: int
    booking_date: date
    time_slot: Optional[str]
    message: str
    status: str
    seller_note: str
    guests: int
    bbq_enabled: bool
    chicken_kg: float
    mutton_kg: float
    fish_kg: float
    campfire_enabled: bool
    sound_system_enabled: bool
    total_price: float
    created_at: datetime
    updated_at: datetime

    def is_active(self) -> bool:
        return self.status in ACTIVE_BOOKING_STATUSES

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.booking_id,
            "propertyId": self.listing_id,
            "buyerId": self.buyer_id,
            "sellerId": self.seller_id,
            "date": self.booking_date.isoformat(),
            "timeSlot": self.time_slot,
            "message": self.message,
            "status": self.status,
            "sellerNote": self.seller_note,
            "guests": self.guests,
            "bbqEnabled": self.bbq_enabled,
            "chickenKg": self.chicken_kg,
            "muttonKg": self.mutton_kg,
            "fishKg": self.fish_kg,
            "campfireEnabled": self.campfire_enabled,
            "soundSystemEnabled": self.sound_system_enabled,
            "totalPrice": self.total_price,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }


DELETED_LISTING_NAME = "Property Deleted"
DELETED_USER_NAME = "Deleted User"


@dataclass
class BookingView:
    """A booking joined with its listing snapshot and both parties.

    Any side may be missing because nothing cascades on delete; ``to_dict``
    substitutes explicit placeholders so the view is always complete.
    """

    booking: Booking
    listing: Optional[dict[str, Any]]
    buyer: Optional[dict[str, Any]]
    seller: Optional[dict[str, Any]]

    def _party(self, user_id: int, party: Optional[dict[str, Any]], default_avatar: str) -> dict[str, Any]:
        if party is None:
            return {
                "id": user_id,
                "username": DELETED_USER_NAME,
                "email": "",
                "avatar": default_avatar,
                "deleted": True,
            }
        return {"id": user_id, **party, "deleted": False}

    def to_dict(self, default_avatar: str = "") -> dict[str, Any]:
        data = self.booking.to_dict()
        if self.listing is None:
            data["listing"] = {
                "id": self.booking.listing_id,
                "name": DELETED_LISTING_NAME,
                "address": "",
                "imageUrls": [],
                "deleted": True,
            }
        else:
            data["listing"] = {"id": self.booking.listing_id, **self.listing, "deleted": False}
        data["buyer"] = self._party(self.booking.buyer_id, self.buyer, default_avatar)
        data["seller"] = self._party(self.booking.seller_id, self.seller, default_avatar)
        return data
