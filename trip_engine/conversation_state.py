"""
Deterministic conversation state machine.

Why:
LLMs are probabilistic. Trip planning workflows are not.
The next state is derived only from the current state, the merged slots
and the user's latest message, never from anything the model says.
"""

import logging
from enum import Enum

from trip_engine.slots import TripSlots
from trip_engine.trip import GeneratedTrip, has_valid_trip

logger = logging.getLogger(__name__)


class ConversationState(str, Enum):
    """Lifecycle: gathering -> ready -> generating -> refining, with backedges to gathering."""

    GATHERING = "gathering"
    READY = "ready"
    GENERATING = "generating"
    REFINING = "refining"


class Intent(Enum):
    PROCEED = "proceed"
    CHANGE = "change"
    NEITHER = "neither"


CHANGE_KEYWORDS = ("change", "modify", "different", "instead", "actually")

PROCEED_KEYWORDS = (
    "yes",
    "go ahead",
    "create",
    "generate",
    "let's do it",
    "sounds good",
    "perfect",
    "ready",
    "let's go",
    "do it",
    "sure",
    "ok",
    "okay",
)


def classify_intent(message: str) -> Intent:
    """
    Classify the user's message by case-insensitive substring match.

    Change keywords are checked before proceed keywords, so
    "yes, but change the hotel" is a change request.
    """
    text = (message or "").lower()
    if any(keyword in text for keyword in CHANGE_KEYWORDS):
        return Intent.CHANGE
    if any(keyword in text for keyword in PROCEED_KEYWORDS):
        return Intent.PROCEED
    return Intent.NEITHER


def next_state(
    current: ConversationState, slots: TripSlots, latest_message: str
) -> ConversationState:
    """
    Compute the state for the next turn.

    Args:
        current: Effective state of this turn
        slots: Slots after this turn's merge
        latest_message: The user's message for this turn

    Returns:
        The next ConversationState
    """
    all_filled = slots.is_complete()

    if current is ConversationState.GATHERING:
        return ConversationState.READY if all_filled else ConversationState.GATHERING

    intent = classify_intent(latest_message)

    if current is ConversationState.READY:
        if intent is Intent.CHANGE:
            return ConversationState.GATHERING
        if intent is Intent.PROCEED:
            return ConversationState.GENERATING
        return ConversationState.READY

    if current is ConversationState.GENERATING:
        return ConversationState.REFINING

    if current is ConversationState.REFINING:
        if intent is Intent.CHANGE and not all_filled:
            return ConversationState.GATHERING
        return ConversationState.REFINING

    raise ValueError(f"Unknown conversation state: {current!r}")


def repair_state(
    state: ConversationState, trip: GeneratedTrip | None
) -> tuple[ConversationState, GeneratedTrip | None]:
    """
    Recover from a caller claiming to refine a trip that does not exist.

    Refining without a trip that has at least one day restarts generation
    with no trip. Every other combination is returned unchanged.

    Returns:
        (effective_state, effective_trip)
    """
    if state is ConversationState.REFINING and not has_valid_trip(trip):
        logger.warning("Refining requested without a generated trip, restarting generation")
        return ConversationState.GENERATING, None
    return state, trip
