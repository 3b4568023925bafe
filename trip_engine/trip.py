"""
Generated itinerary document.

The document is written by the model, so only its outline is enforced:
``metadata`` must be present and ``itinerary`` must be a list. Every leaf
value that has the wrong type falls back to its default instead of failing
the whole trip, list entries that are not objects are dropped, and unknown
fields are carried through untouched.
"""

from typing import Annotated, Any, Literal

from pydantic import (
    BeforeValidator,
    ConfigDict,
    Field,
    ValidationError,
    WrapValidator,
    field_validator,
    model_validator,
)

from trip_engine.slots import CamelModel

ITEM_CATEGORIES = ("accommodation", "food", "activity", "transport", "nightlife")

ItemCategory = Literal["accommodation", "food", "activity", "transport", "nightlife"]


def _or_default(default_factory):
    def validate(value, handler):
        try:
            return handler(value)
        except ValidationError:
            return default_factory()

    return WrapValidator(validate)


def _entries(*kinds):
    # Non-list values pass through so the list type itself still rejects them
    def keep(value):
        if isinstance(value, list):
            return [entry for entry in value if isinstance(entry, kinds)]
        return value

    return BeforeValidator(keep)


def _none():
    return None


Text = Annotated[str | None, _or_default(_none)]
Label = Annotated[str, _or_default(str)]
Number = Annotated[Annotated[float, Field(allow_inf_nan=False)] | None, _or_default(_none)]
Count = Annotated[int | None, _or_default(_none)]
Flag = Annotated[bool | None, _or_default(_none)]
StringList = Annotated[list[str], _entries(str), _or_default(list)]


class TripModel(CamelModel):
    model_config = ConfigDict(extra="allow")


class Location(TripModel):
    name: Label = ""
    address: Text = None
    lat: Number = None
    lng: Number = None


class ItineraryItem(TripModel):
    title: Label = ""
    category: ItemCategory = "activity"
    start_time: Text = None
    end_time: Text = None
    estimated_cost: Number = None
    location: Annotated[Location | None, _or_default(_none)] = None
    description: Text = None
    booking_url: Text = None
    tips: Annotated[str | list[str] | None, _or_default(_none)] = None

    @field_validator("category", mode="before")
    @classmethod
    def _known_category(cls, value: Any) -> str:
        if isinstance(value, str) and value.strip().lower() in ITEM_CATEGORIES:
            return value.strip().lower()
        return "activity"


class ItineraryDay(TripModel):
    day_number: Annotated[Annotated[int, Field(ge=1)] | None, _or_default(_none)] = None
    items: Annotated[list[ItineraryItem], _entries(dict, ItineraryItem), _or_default(list)] = Field(
        default_factory=list
    )


class TripBudgetSummary(TripModel):
    total: Number = None
    currency: Text = None
    per_person: Flag = None


class TripTravelers(TripModel):
    adults: Count = None
    children: Count = None


class TripMetadata(TripModel):
    destination: Text = None
    country: Text = None
    start_date: Text = None
    end_date: Text = None
    duration: Count = None
    budget: Annotated[TripBudgetSummary | None, _or_default(_none)] = None
    travelers: Annotated[TripTravelers | None, _or_default(_none)] = None
    travel_style: Text = None
    interests: StringList = Field(default_factory=list)
    accommodation_type: Text = None


class DoAndDont(TripModel):
    do: StringList = Field(default_factory=list)
    dont: StringList = Field(default_factory=list)


class LocalPhrase(TripModel):
    phrase: Label = ""
    meaning: Label = ""


class EmergencyContact(TripModel):
    name: Label = ""
    number: Label = ""


class Recommendations(TripModel):
    do_and_dont: Annotated[DoAndDont, _or_default(DoAndDont)] = Field(default_factory=DoAndDont)
    packing_list: StringList = Field(default_factory=list)
    local_phrases: Annotated[list[LocalPhrase], _entries(dict, LocalPhrase), _or_default(list)] = Field(
        default_factory=list
    )
    emergency_contacts: Annotated[
        list[EmergencyContact], _entries(dict, EmergencyContact), _or_default(list)
    ] = Field(default_factory=list)


class GeneratedTrip(TripModel):
    """Structured itinerary produced during generation or refinement."""

    metadata: Annotated[TripMetadata, _or_default(TripMetadata)]
    itinerary: Annotated[list[ItineraryDay], _entries(dict, ItineraryDay)]
    recommendations: Annotated[Recommendations | None, _or_default(_none)] = None

    @model_validator(mode="after")
    def _number_days(self) -> "GeneratedTrip":
        # Days without a usable number take their position in the itinerary
        for position, day in enumerate(self.itinerary, start=1):
            if day.day_number is None:
                day.day_number = position
        return self

    def is_valid(self) -> bool:
        """A trip counts as existing only once it has at least one day."""
        return len(self.itinerary) > 0


def has_valid_trip(trip: GeneratedTrip | None) -> bool:
    return trip is not None and trip.is_valid()
