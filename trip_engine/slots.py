"""
Deterministic trip requirement state.

The model proposes slot values; this module owns what they mean.
Progress is always recomputed from a snapshot, never stored on it.
"""

from datetime import date

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

# Slot categories in declaration order. Progress reports missing slots in this order.
SLOT_CATEGORIES = (
    "destination",
    "dates",
    "budget",
    "travelers",
    "travelStyle",
    "interests",
    "accommodationType",
)

SLOT_LABELS = {
    "destination": "Destination",
    "dates": "Travel Dates",
    "budget": "Budget",
    "travelers": "Travelers",
    "travelStyle": "Travel Style",
    "interests": "Interests",
    "accommodationType": "Accommodation Type",
}

DEFAULT_CURRENCY = "USD"


class CamelModel(BaseModel):
    """Base model exchanging camelCase JSON while using snake_case attributes."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def dedupe_interests(interests: list[str]) -> list[str]:
    """Drop blank and repeated interests (case-insensitive), keeping first spelling."""
    seen = set()
    result = []
    for interest in interests:
        cleaned = interest.strip()
        key = cleaned.lower()
        if cleaned and key not in seen:
            seen.add(key)
            result.append(cleaned)
    return result


class TripDates(CamelModel):
    start_date: date | None = None
    duration: int | None = None


class TripBudget(CamelModel):
    amount: float | None = None
    currency: str = DEFAULT_CURRENCY
    per_person: bool = True


class Travelers(CamelModel):
    adults: int = Field(default=0, ge=0)
    children: int = Field(default=0, ge=0)


class TripSlots(CamelModel):
    """Accumulated trip requirements for one conversation."""

    destination: str | None = None
    dates: TripDates = Field(default_factory=TripDates)
    budget: TripBudget = Field(default_factory=TripBudget)
    travelers: Travelers = Field(default_factory=Travelers)
    travel_style: str | None = None
    interests: list[str] = Field(default_factory=list)
    accommodation_type: str | None = None

    @field_validator("interests")
    @classmethod
    def _dedupe(cls, value: list[str]) -> list[str]:
        return dedupe_interests(value)

    def is_complete(self) -> bool:
        return not calculate_slot_progress(self).missing


class PartialDates(CamelModel):
    start_date: date | None = None
    duration: int | None = None


class PartialBudget(CamelModel):
    amount: float | None = None
    currency: str | None = None
    per_person: bool | None = None


class PartialTravelers(CamelModel):
    adults: int | None = None
    children: int | None = None


class PartialTripSlots(CamelModel):
    """Subset of slot values inferred during a single turn. None means "not mentioned"."""

    destination: str | None = None
    dates: PartialDates | None = None
    budget: PartialBudget | None = None
    travelers: PartialTravelers | None = None
    travel_style: str | None = None
    interests: list[str] | None = None
    accommodation_type: str | None = None


class SlotProgress(CamelModel):
    filled: int
    total: int
    missing: list[str]
    percentage: int


def empty_slots() -> TripSlots:
    """Slots for a brand new conversation."""
    return TripSlots()


def _has_text(value: str | None) -> bool:
    return value is not None and value.strip() != ""


def slot_fill_status(slots: TripSlots) -> dict[str, bool]:
    """Map every slot category to whether it counts as filled."""
    dates = slots.dates
    return {
        "destination": _has_text(slots.destination),
        "dates": dates.start_date is not None or (dates.duration is not None and dates.duration > 0),
        "budget": slots.budget.amount is not None and slots.budget.amount > 0,
        # Travelers is never filled by default: a positive count must have been set.
        "travelers": slots.travelers.adults > 0 or slots.travelers.children > 0,
        "travelStyle": _has_text(slots.travel_style),
        "interests": len(slots.interests) > 0,
        "accommodationType": _has_text(slots.accommodation_type),
    }


def calculate_slot_progress(slots: TripSlots) -> SlotProgress:
    """
    Count filled slots and list the missing ones.

    Args:
        slots: Snapshot to analyse

    Returns:
        SlotProgress with missing categories in declaration order
    """
    status = slot_fill_status(slots)
    missing = [category for category in SLOT_CATEGORIES if not status[category]]
    total = len(SLOT_CATEGORIES)
    filled = total - len(missing)

    return SlotProgress(
        filled=filled,
        total=total,
        missing=missing,
        percentage=int(round(filled * 100 / total)),
    )


def _pick(new, old):
    return old if new is None else new


def merge_slots(base: TripSlots, partial: PartialTripSlots | None) -> TripSlots:
    """
    Merge slots extracted this turn into the accumulated slots.

    Supplied values replace, absent ones keep the base value. Nested groups
    (dates, budget, travelers) merge per sub-field. Interests are replaced
    wholesale whenever a non-empty list is supplied.

    Returns:
        A new TripSlots; base is never mutated
    """
    if partial is None:
        return base

    merged = base.model_copy(deep=True)

    if _has_text(partial.destination):
        merged.destination = partial.destination

    if partial.dates is not None:
        merged.dates = TripDates(
            start_date=_pick(partial.dates.start_date, base.dates.start_date),
            duration=_pick(partial.dates.duration, base.dates.duration),
        )

    if partial.budget is not None:
        merged.budget = TripBudget(
            amount=_pick(partial.budget.amount, base.budget.amount),
            currency=_pick(partial.budget.currency, base.budget.currency),
            per_person=_pick(partial.budget.per_person, base.budget.per_person),
        )

    if partial.travelers is not None:
        merged.travelers = Travelers(
            adults=_pick(partial.travelers.adults, base.travelers.adults),
            children=_pick(partial.travelers.children, base.travelers.children),
        )

    if _has_text(partial.travel_style):
        merged.travel_style = partial.travel_style

    if partial.interests:
        merged.interests = dedupe_interests(partial.interests)

    if _has_text(partial.accommodation_type):
        merged.accommodation_type = partial.accommodation_type

    return merged
