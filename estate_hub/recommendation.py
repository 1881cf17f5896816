"""Weighted multi-criteria ranking of listings.

Each candidate is scored 0-100 on six criteria (price proximity, location word
overlap, amenity overlap, type match, size sufficiency and recency) and the
weighted sum is its recommendation score. Criteria whose inputs are missing
score a neutral 50 instead of being penalized.

Everything here is pure and synchronous; callers pass the candidate list.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Mapping, Optional, Sequence

from .models.entities import Listing, NightStayListing

NEUTRAL = 50.0
RECENCY_WINDOW_DAYS = 30
SIMILARITY_THRESHOLD = 30.0

DEFAULT_WEIGHTS = {
    "price": 0.25,
    "location": 0.20,
    "amenities": 0.20,
    "type": 0.15,
    "size": 0.10,
    "recency": 0.10,
}

_WORD = re.compile(r"[a-z0-9]+")
_PRICE = re.compile(r"(\d+(?:\.\d+)?)\s*(lakh|lac|k|thousand|million)\b")
_PRICE_MULTIPLIERS = {
    "lakh": 100_000,
    "lac": 100_000,
    "k": 1_000,
    "thousand": 1_000,
    "million": 1_000_000,
}


@dataclass
class Preferences:
    """What a searcher is looking for. ``None`` means "no preference"."""

    min_price: Optional[float] = None
    max_price: Optional[float] = None
    location: Optional[str] = None
    parking: Optional[bool] = None
    furnished: Optional[bool] = None
    listing_type: Optional[str] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    bbq: bool = False
    campfire: bool = False
    sound_system: bool = False


@dataclass
class ScoredListing:
    listing: Listing
    score: float
    breakdown: dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict:
        data = self.listing.to_dict()
        data["recommendationScore"] = self.score
        data["scoreBreakdown"] = {key: round(value, 2) for key, value in self.breakdown.items()}
        return data


def word_overlap(query: str, text: str) -> float:
    """Share of words that appear (as substrings) on both sides, 0..1."""

    query_words = _WORD.findall(query.lower())
    text_words = _WORD.findall(text.lower())
    if not query_words or not text_words:
        return 0.0
    matches = sum(
        1 for word in query_words if any(word in other or other in word for other in text_words)
    )
    return matches / max(len(query_words), len(text_words))


def _price_score(listing: Listing, prefs: Preferences) -> float:
    if not prefs.max_price or not listing.regular_price:
        return NEUTRAL
    price_range = prefs.max_price - (prefs.min_price or 0)
    if price_range > 0:
        difference = abs(listing.regular_price - prefs.max_price)
        score = max(0.0, 100 - difference / price_range * 100)
    else:
        score = 100.0 if listing.regular_price <= prefs.max_price else 0.0
    if listing.offer and listing.discount_price:
        bonus = (listing.regular_price - listing.discount_price) / listing.regular_price * 20
        score = min(100.0, score + bonus)
    return score


def _location_score(listing: Listing, prefs: Preferences) -> float:
    if not prefs.location or not listing.address:
        return NEUTRAL
    return word_overlap(prefs.location, listing.address) * 100


def _amenity_score(listing: Listing, prefs: Preferences) -> float:
    night_stay = listing if isinstance(listing, NightStayListing) else None
    checks: list[bool] = []
    if prefs.parking is not None:
        checks.append(listing.parking == prefs.parking)
    if prefs.furnished is not None:
        checks.append(listing.furnished == prefs.furnished)
    if prefs.bbq:
        checks.append(bool(night_stay and night_stay.bbq_enabled))
    if prefs.campfire:
        checks.append(bool(night_stay and night_stay.campfire_enabled))
    if prefs.sound_system:
        checks.append(bool(night_stay and night_stay.sound_system_enabled))
    if not checks:
        return NEUTRAL
    return sum(checks) / len(checks) * 100


def _type_score(listing: Listing, prefs: Preferences) -> float:
    wanted = prefs.listing_type
    if not wanted or wanted == "all":
        return NEUTRAL
    if wanted == listing.kind:
        return 100.0
    # night-stays are rentals too
    if wanted == "rent" and listing.type == "rent":
        return 100.0
    return 0.0


def _sufficiency(have: int, want: int) -> float:
    return 100.0 if have >= want else have / want * 100


def _size_score(listing: Listing, prefs: Preferences) -> float:
    if not prefs.bedrooms or not listing.bedrooms:
        return NEUTRAL
    parts = [_sufficiency(listing.bedrooms, prefs.bedrooms)]
    if prefs.bathrooms:
        parts.append(_sufficiency(listing.bathrooms, prefs.bathrooms))
    return sum(parts) / len(parts)


def _recency_score(listing: Listing, now: datetime) -> float:
    created = listing.created_at
    if created is None:
        return NEUTRAL
    if created.tzinfo is None:
        now = now.replace(tzinfo=None)
    age_days = (now - created).total_seconds() / 86400
    return min(100.0, max(0.0, 100 - age_days / RECENCY_WINDOW_DAYS * 100))


def score_listing(
    listing: Listing,
    prefs: Preferences,
    weights: Optional[Mapping[str, float]] = None,
    now: Optional[datetime] = None,
) -> ScoredListing:
    final_weights = {**DEFAULT_WEIGHTS, **(weights or {})}
    now = now or datetime.now(timezone.utc)
    breakdown = {
        "price": _price_score(listing, prefs),
        "location": _location_score(listing, prefs),
        "amenities": _amenity_score(listing, prefs),
        "type": _type_score(listing, prefs),
        "size": _size_score(listing, prefs),
        "recency": _recency_score(listing, now),
    }
    total = sum(breakdown[name] * final_weights[name] for name in breakdown)
    return ScoredListing(listing=listing, score=round(total, 2), breakdown=breakdown)


def _partition(items: list[ScoredListing], low: int, high: int) -> int:
    pivot = items[(low + high) // 2].score
    i, j = low - 1, high + 1
    while True:
        i += 1
        while items[i].score > pivot:
            i += 1
        j -= 1
        while items[j].score < pivot:
            j -= 1
        if i >= j:
            return j
        items[i], items[j] = items[j], items[i]


def sort_by_score(items: list[ScoredListing]) -> list[ScoredListing]:
    """Quicksort ``items`` in place, highest score first. Not stable."""

    stack = [(0, len(items) - 1)]
    while stack:
        low, high = stack.pop()
        if low >= high:
            continue
        split = _partition(items, low, high)
        stack.append((low, split))
        stack.append((split + 1, high))
    return items


def recommend(
    listings: Sequence[Listing],
    prefs: Preferences,
    limit: int = 10,
    min_score: float = 0,
    weights: Optional[Mapping[str, float]] = None,
    now: Optional[datetime] = None,
) -> list[ScoredListing]:
    """Top ``limit`` listings for the preferences."""

    scored = [score_listing(listing, prefs, weights, now) for listing in listings]
    scored = [item for item in scored if item.score >= min_score]
    return sort_by_score(scored)[:limit]


def find_similar(
    target: Listing,
    listings: Sequence[Listing],
    k: int = 5,
    now: Optional[datetime] = None,
) -> list[ScoredListing]:
    """The ``k`` listings closest to ``target``, ignoring weak matches."""

    prefs = Preferences(
        min_price=target.regular_price * 0.8,
        max_price=target.regular_price * 1.2,
        location=target.address,
        parking=target.parking,
        furnished=target.furnished,
        listing_type=target.kind,
        bedrooms=target.bedrooms,
        bathrooms=target.bathrooms,
    )
    scored = [
        score_listing(listing, prefs, now=now)
        for listing in listings
        if listing.listing_id != target.listing_id
    ]
    scored = [item for item in scored if item.score > SIMILARITY_THRESHOLD]
    return sort_by_score(scored)[:k]


def extract_preferences(query: str) -> Preferences:
    """Pull a budget, type and amenity hints out of a free-text search."""

    prefs = Preferences()
    text = (query or "").lower()

    price = _PRICE.search(text)
    if price:
        prefs.max_price = float(price.group(1)) * _PRICE_MULTIPLIERS[price.group(2)]

    if "night stay" in text or "night-stay" in text or "overnight" in text:
        prefs.listing_type = "night-stay"
    elif "rent" in text:
        prefs.listing_type = "rent"
    elif "sale" in text or "buy" in text:
        prefs.listing_type = "sale"

    if "parking" in text or "garage" in text:
        prefs.parking = True
    if "unfurnished" in text:
        prefs.furnished = False
    elif "furnished" in text:
        prefs.furnished = True
    if "bbq" in text or "barbecue" in text:
        prefs.bbq = True
    if "campfire" in text or "bonfire" in text:
        prefs.campfire = True

    bedrooms = re.search(r"(\d+)\s*(?:bed|bedroom|bhk)", text)
    if bedrooms:
        prefs.bedrooms = int(bedrooms.group(1))

    leftover = _PRICE.sub(" ", text)
    stopwords = {
        "in", "near", "at", "for", "with", "and", "a", "the", "to", "under", "below",
        "rent", "sale", "buy", "house", "home", "flat", "apartment", "villa",
        "parking", "garage", "furnished", "unfurnished", "bbq", "barbecue", "campfire",
        "bonfire", "night", "stay", "overnight", "bed", "bedroom", "bedrooms", "bhk",
    }
    location_words = [word for word in _WORD.findall(leftover) if word not in stopwords and not word.isdigit()]
    if location_words:
        prefs.location = " ".join(location_words)
    return prefs
