"""
Extraction of structured blocks embedded in model replies.

Model output is untrusted. Nothing in this module raises on bad input:
every outcome is reported as an Extraction with a status, and callers
collapse anything other than FOUND to "nothing extracted".
"""

import json
import logging
import math
import re
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Generic, TypeVar

from dateutil import parser
from dateutil.parser import ParserError
from pydantic import ValidationError

from trip_engine.slots import (
    PartialBudget,
    PartialDates,
    PartialTravelers,
    PartialTripSlots,
    dedupe_interests,
)
from trip_engine.trip import GeneratedTrip

logger = logging.getLogger(__name__)

# Sentinel blocks: <!--SLOTS{...}SLOTS--> and <!--TRIP_JSON{...}TRIP_JSON-->
SLOTS_PATTERN = re.compile(r"<!--SLOTS(\{[\s\S]*?\})SLOTS-->")
TRIP_JSON_PATTERN = re.compile(r"<!--TRIP_JSON(\{[\s\S]*?\})TRIP_JSON-->")

# Leftovers after a failed match: non-object payloads, unterminated blocks, stray closers.
_LOOSE_BLOCK_PATTERN = re.compile(r"<!--(?:SLOTS|TRIP_JSON)[\s\S]*?(?:SLOTS|TRIP_JSON)-->")
_DANGLING_OPENER_PATTERN = re.compile(r"<!--(?:SLOTS|TRIP_JSON)[\s\S]*\Z")
_STRAY_CLOSER_PATTERN = re.compile(r"(?:SLOTS|TRIP_JSON)-->")

T = TypeVar("T")


class ExtractionStatus(Enum):
    """Outcome of scanning a reply for a structured block."""

    FOUND = "found"
    ABSENT = "absent"  # no block in the text
    MALFORMED = "malformed"  # block present, payload is not JSON
    INVALID = "invalid"  # JSON decoded but has the wrong shape
    EMPTY = "empty"  # right shape, nothing usable inside


@dataclass(frozen=True)
class Extraction(Generic[T]):
    status: ExtractionStatus
    value: T | None = None

    @property
    def found(self) -> bool:
        return self.status is ExtractionStatus.FOUND

    def value_or_none(self) -> T | None:
        return self.value if self.found else None


def _find_json_block(text: str, pattern: re.Pattern, name: str) -> Extraction[Any]:
    if not text or not isinstance(text, str):
        return Extraction(ExtractionStatus.ABSENT)

    match = pattern.search(text)
    if not match:
        logger.debug(f"No {name} block in reply")
        return Extraction(ExtractionStatus.ABSENT)

    try:
        return Extraction(ExtractionStatus.FOUND, json.loads(match.group(1)))
    except json.JSONDecodeError as e:
        logger.warning(f"Failed to parse {name} block: {e}")
        return Extraction(ExtractionStatus.MALFORMED)


# ---------------------------------------------------------------------------
# Slots
# ---------------------------------------------------------------------------


def _text(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _number(value: Any) -> float | None:
    # bool is an int subclass; "true" is never a count or an amount
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return value


def _start_date(value: Any) -> date | None:
    text = _text(value)
    if text is None:
        return None
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return parser.parse(text).date()
    except (ParserError, ValueError, OverflowError):
        logger.info(f"Ignoring unparseable startDate: {text!r}")
        return None


def _decode_dates(raw: Any) -> PartialDates | None:
    if not isinstance(raw, dict):
        return None
    start_date = _start_date(raw.get("startDate"))
    duration = _number(raw.get("duration"))
    duration = int(duration) if duration is not None and duration >= 1 else None
    if start_date is None and duration is None:
        return None
    return PartialDates(start_date=start_date, duration=duration)


def _decode_budget(raw: Any) -> PartialBudget | None:
    if not isinstance(raw, dict):
        return None
    amount = _number(raw.get("amount"))
    amount = amount if amount is not None and amount > 0 else None
    currency = _text(raw.get("currency"))
    per_person = raw.get("perPerson") if isinstance(raw.get("perPerson"), bool) else None
    if amount is None and currency is None and per_person is None:
        return None
    return PartialBudget(
        amount=amount,
        currency=currency.upper() if currency else None,
        per_person=per_person,
    )


def _decode_travelers(raw: Any) -> PartialTravelers | None:
    if not isinstance(raw, dict):
        return None
    counts = {}
    for key in ("adults", "children"):
        value = _number(raw.get(key))
        if value is not None:
            counts[key] = max(0, int(value))
    if not counts:
        return None
    return PartialTravelers(**counts)


def _decode_interests(raw: Any) -> list[str] | None:
    if not isinstance(raw, list):
        return None
    interests = dedupe_interests([item for item in raw if isinstance(item, str)])
    return interests or None


def decode_slot_payload(data: Any) -> PartialTripSlots | None:
    """
    Validate a decoded SLOTS payload field by field.

    Invalid fields are dropped individually so one bad value never costs
    the rest of the update. Unknown fields are ignored.

    Returns:
        PartialTripSlots with only the usable fields, or None if nothing usable
    """
    if not isinstance(data, dict):
        return None

    style = _text(data.get("travelStyle"))
    accommodation = _text(data.get("accommodationType"))

    fields = {
        "destination": _text(data.get("destination")),
        "dates": _decode_dates(data.get("dates")),
        "budget": _decode_budget(data.get("budget")),
        "travelers": _decode_travelers(data.get("travelers")),
        "travel_style": style.lower() if style else None,
        "interests": _decode_interests(data.get("interests")),
        "accommodation_type": accommodation.lower() if accommodation else None,
    }
    present = {key: value for key, value in fields.items() if value is not None}
    if not present:
        return None
    return PartialTripSlots(**present)


def scan_slots(text: str) -> Extraction[PartialTripSlots]:
    """Locate and decode the SLOTS block, keeping the reason when nothing is usable."""
    block = _find_json_block(text, SLOTS_PATTERN, "SLOTS")
    if not block.found:
        return block

    partial = decode_slot_payload(block.value)
    if partial is None:
        status = ExtractionStatus.EMPTY if isinstance(block.value, dict) else ExtractionStatus.INVALID
        return Extraction(status)
    return Extraction(ExtractionStatus.FOUND, partial)


def extract_slots(text: str) -> PartialTripSlots | None:
    """
    Extract slot updates from a model reply.

    Args:
        text: Full reply that may contain a SLOTS block

    Returns:
        Partial slots, or None when the block is absent or unusable
    """
    return scan_slots(text).value_or_none()


# ---------------------------------------------------------------------------
# Trip document
# ---------------------------------------------------------------------------


def scan_trip(text: str) -> Extraction[GeneratedTrip]:
    """Locate, shape-check and validate the TRIP_JSON block."""
    block = _find_json_block(text, TRIP_JSON_PATTERN, "TRIP_JSON")
    if not block.found:
        return block

    data = block.value
    if (
        not isinstance(data, dict)
        or data.get("metadata") is None
        or not isinstance(data.get("itinerary"), list)
    ):
        logger.warning("TRIP_JSON block is missing metadata or an itinerary array")
        return Extraction(ExtractionStatus.INVALID)

    try:
        trip = GeneratedTrip.model_validate(data)
    except ValidationError as e:
        logger.warning(f"TRIP_JSON block failed validation: {e.error_count()} errors")
        return Extraction(ExtractionStatus.INVALID)

    if not trip.is_valid():
        return Extraction(ExtractionStatus.EMPTY)
    return Extraction(ExtractionStatus.FOUND, trip)


def extract_trip(text: str) -> GeneratedTrip | None:
    """
    Extract a generated trip from a model reply.

    Returns:
        The trip, or None when absent, unparseable, wrongly shaped or empty
    """
    return scan_trip(text).value_or_none()


# ---------------------------------------------------------------------------
# Display text
# ---------------------------------------------------------------------------


def strip_structured_blocks(text: str) -> str:
    """Remove every SLOTS and TRIP_JSON block so the reply is safe to display."""
    if not text:
        return ""
    # A removal can splice a new sentinel together, so repeat until nothing changes
    previous = None
    while text != previous:
        previous = text
        for pattern in (
            SLOTS_PATTERN,
            TRIP_JSON_PATTERN,
            _LOOSE_BLOCK_PATTERN,
            _DANGLING_OPENER_PATTERN,
            _STRAY_CLOSER_PATTERN,
        ):
            text = pattern.sub("", text)
    return text.strip()
