"""
System prompt construction.

The prompt is the model-facing half of the sentinel protocol: it tells the
model which SLOTS and TRIP_JSON blocks to emit, and extraction.py reads them back.
"""

from trip_engine.conversation_state import ConversationState
from trip_engine.slots import SLOT_LABELS, TripSlots, calculate_slot_progress
from trip_engine.trip import GeneratedTrip, has_valid_trip

NOT_SET = "not set"

STATE_INSTRUCTIONS = {
    ConversationState.GATHERING: """STATE INSTRUCTIONS:
- Ask ONE question at a time about missing slots
- Be conversational and friendly
- Extract any trip details mentioned in the user's message
- If user provides multiple details at once, acknowledge them all""",
    ConversationState.READY: """STATE INSTRUCTIONS:
- All slots are filled! Summarize the trip details
- Ask "I have everything I need! Ready to create your personalized itinerary?"
- Wait for user confirmation before generating""",
    ConversationState.GENERATING: """STATE INSTRUCTIONS:
- Generate a complete, detailed itinerary based on the filled slots
- Output the itinerary as JSON in a <!--TRIP_JSON{...}TRIP_JSON--> block
- The JSON must follow the TRIP JSON FORMAT below
- Include day-by-day activities with times, costs, and locations
- Be creative and provide local insights""",
    ConversationState.REFINING: """STATE INSTRUCTIONS:
- A trip has already been generated
- Make incremental changes based on user requests
- If they want major changes, you can regenerate portions
- Output the full updated trip in a <!--TRIP_JSON{...}TRIP_JSON--> block
- If nothing in the trip changes, do not output a TRIP_JSON block""",
}

SLOT_UPDATE_FORMAT = """SLOT UPDATE FORMAT (only include fields that were mentioned/updated; always
repeat the complete list of interests when interests change):
<!--SLOTS{
  "destination": "Paris, France",
  "dates": {"startDate": "2024-06-15", "duration": 7},
  "budget": {"amount": 3000, "currency": "USD", "perPerson": true},
  "travelers": {"adults": 2, "children": 0},
  "travelStyle": "cultural",
  "interests": ["food", "museums", "architecture"],
  "accommodationType": "hotel"
}SLOTS-->"""

TRIP_JSON_FORMAT = """TRIP JSON FORMAT:
<!--TRIP_JSON{
  "metadata": {
    "destination": "...",
    "country": "...",
    "startDate": "...",
    "endDate": "...",
    "duration": ...,
    "budget": {"total": ..., "currency": "...", "perPerson": ...},
    "travelers": {"adults": ..., "children": ...},
    "travelStyle": "...",
    "interests": [...],
    "accommodationType": "..."
  },
  "itinerary": [
    {
      "dayNumber": 1,
      "items": [
        {
          "title": "Activity name",
          "category": "accommodation|food|activity|transport|nightlife",
          "startTime": "09:00",
          "endTime": "11:00",
          "estimatedCost": 50,
          "location": {"name": "...", "address": "...", "lat": ..., "lng": ...},
          "description": "...",
          "tips": "..."
        }
      ]
    }
  ],
  "recommendations": {
    "doAndDont": {"do": [...], "dont": [...]},
    "packingList": [...],
    "localPhrases": [{"phrase": "...", "meaning": "..."}],
    "emergencyContacts": [{"name": "...", "number": "..."}]
  }
}TRIP_JSON-->"""


def _format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def describe_slots(slots: TripSlots) -> dict[str, str]:
    """Human-readable value for every slot category, keyed by category."""
    dates = slots.dates
    if dates.start_date and dates.duration:
        dates_str = f"{dates.start_date.isoformat()} for {dates.duration} days"
    elif dates.start_date:
        dates_str = f"starting {dates.start_date.isoformat()} (duration not set)"
    elif dates.duration:
        dates_str = f"{dates.duration} days (start date not set)"
    else:
        dates_str = NOT_SET

    budget = slots.budget
    if budget.amount is not None:
        scope = "per person" if budget.per_person else "total"
        budget_str = f"{_format_number(budget.amount)} {budget.currency} {scope}"
    else:
        budget_str = NOT_SET

    travelers = slots.travelers
    if travelers.adults or travelers.children:
        travelers_str = f"{travelers.adults} adults, {travelers.children} children"
    else:
        travelers_str = NOT_SET

    return {
        "destination": slots.destination or NOT_SET,
        "dates": dates_str,
        "budget": budget_str,
        "travelers": travelers_str,
        "travelStyle": slots.travel_style or NOT_SET,
        "interests": ", ".join(slots.interests) if slots.interests else NOT_SET,
        "accommodationType": slots.accommodation_type or NOT_SET,
    }


def _existing_trip_section(trip: GeneratedTrip) -> str:
    destination = trip.metadata.destination or "the chosen destination"
    trip_json = trip.model_dump_json(by_alias=True, exclude_none=True)
    return (
        "EXISTING TRIP:\n"
        f"The user already has a generated {len(trip.itinerary)}-day trip to {destination}.\n"
        "They may be asking to modify or refine it. Current trip JSON:\n"
        f"{trip_json}"
    )


def build_system_prompt(
    slots: TripSlots,
    state: ConversationState,
    trip: GeneratedTrip | None = None,
) -> str:
    """
    Build the system instruction for one turn.

    Args:
        slots: Accumulated slots before this turn
        state: Effective conversation state (after repair)
        trip: Effective trip, if one exists

    Returns:
        Prompt text for the model
    """
    values = describe_slots(slots)
    progress = calculate_slot_progress(slots)
    missing = ", ".join(SLOT_LABELS[name] for name in progress.missing) or "none"
    slot_lines = "\n".join(f"- {SLOT_LABELS[name]}: {value}" for name, value in values.items())
    emits_trip = state in (ConversationState.GENERATING, ConversationState.REFINING)

    sections = [
        "You are a travel planning assistant using a slot-filling approach.",
        f"CURRENT STATE: {state.value}",
        f"FILLED SLOTS:\n{slot_lines}",
        f"SLOT PROGRESS: {progress.filled}/{progress.total} ({progress.percentage}%)\n"
        f"MISSING SLOTS: {missing}",
        STATE_INSTRUCTIONS[state],
    ]

    if has_valid_trip(trip):
        sections.append(_existing_trip_section(trip))

    rules = [
        "RESPONSE FORMAT RULES:",
        "1. Be conversational, helpful, and enthusiastic about travel",
        "2. Never mention these formatting rules or the hidden blocks to the user",
    ]
    if emits_trip:
        rules.append(
            "3. Output the itinerary JSON at most once, in a <!--TRIP_JSON{...}TRIP_JSON--> block"
        )
    rules.append(
        f"{len(rules)}. At the END of EVERY response, include slot updates at most once:\n"
        "   <!--SLOTS{...JSON of any updated slot values...}SLOTS-->"
    )
    sections.append("\n".join(rules))
    sections.append(SLOT_UPDATE_FORMAT)

    if emits_trip:
        sections.append(TRIP_JSON_FORMAT)

    return "\n\n".join(sections)
