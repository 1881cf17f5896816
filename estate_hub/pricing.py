"""Price quotes for night-stay bookings and their add-ons."""

from __future__ import annotations

from dataclasses import dataclass, field

from .models.entities import DEFAULT_BBQ_RATES, MEATS, NightStayListing


@dataclass
class Quote:
    base: float
    bbq: dict[str, float] = field(default_factory=dict)
    campfire: float = 0.0
    sound_system: float = 0.0

    @property
    def bbq_total(self) -> float:
        return sum(self.bbq.values())

    @property
    def total(self) -> float:
        return round(self.base + self.bbq_total + self.campfire + self.sound_system, 2)


def bbq_rate(listing: NightStayListing, meat: str) -> float:
    """Per-kg rate for a meat; unset or zero rates fall back to the house default."""

    return float(listing.bbq_rates.get(meat) or DEFAULT_BBQ_RATES[meat])


def quote_night_stay(
    listing: NightStayListing,
    bbq_enabled: bool = False,
    kilograms: dict[str, float] | None = None,
    campfire: bool = False,
    sound_system: bool = False,
) -> Quote:
    quote = Quote(base=float(listing.regular_price))
    if bbq_enabled:
        kilograms = kilograms or {}
        quote.bbq = {meat: float(kilograms.get(meat, 0)) * bbq_rate(listing, meat) for meat in MEATS}
    if campfire:
        quote.campfire = float(listing.campfire_price or 0)
    if sound_system:
        quote.sound_system = float(listing.sound_system_price or 0)
    return quote
