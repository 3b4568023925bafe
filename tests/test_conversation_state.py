"""
Tests for the conversation state machine, intent classifier and state repair.
"""

import pytest

from trip_engine.conversation_state import (
    CHANGE_KEYWORDS,
    PROCEED_KEYWORDS,
    ConversationState,
    Intent,
    classify_intent,
    next_state,
    repair_state,
)
from trip_engine.trip import GeneratedTrip

GATHERING = ConversationState.GATHERING
READY = ConversationState.READY
GENERATING = ConversationState.GENERATING
REFINING = ConversationState.REFINING

PROCEED_MESSAGE = "yes let's do it"
CHANGE_MESSAGE = "actually make it Rome"
NEUTRAL_MESSAGE = "what is the weather like there in June"


class TestClassifyIntent:
    """Test keyword intent classification."""

    @pytest.mark.parametrize("keyword", PROCEED_KEYWORDS)
    def test_proceed_keywords(self, keyword):
        assert classify_intent(f"Well, {keyword.upper()}!") is Intent.PROCEED

    @pytest.mark.parametrize("keyword", CHANGE_KEYWORDS)
    def test_change_keywords(self, keyword):
        assert classify_intent(f"I want to {keyword} something") is Intent.CHANGE

    def test_change_checked_before_proceed(self):
        assert classify_intent("Yes, but change the hotel") is Intent.CHANGE

    def test_neither(self):
        assert classify_intent(NEUTRAL_MESSAGE) is Intent.NEITHER

    def test_empty_message(self):
        assert classify_intent("") is Intent.NEITHER

    def test_substring_match(self):
        """Matching is plain substring matching, so 'book' contains 'ok'."""
        assert classify_intent("Can you book it") is Intent.PROCEED


class TestNextState:
    """Exhaustive transition table."""

    @pytest.mark.parametrize(
        "current,complete,message,expected",
        [
            (GATHERING, True, PROCEED_MESSAGE, READY),
            (GATHERING, True, CHANGE_MESSAGE, READY),
            (GATHERING, True, NEUTRAL_MESSAGE, READY),
            (GATHERING, False, PROCEED_MESSAGE, GATHERING),
            (GATHERING, False, CHANGE_MESSAGE, GATHERING),
            (GATHERING, False, NEUTRAL_MESSAGE, GATHERING),
            (READY, True, PROCEED_MESSAGE, GENERATING),
            (READY, True, CHANGE_MESSAGE, GATHERING),
            (READY, True, NEUTRAL_MESSAGE, READY),
            (READY, False, PROCEED_MESSAGE, GENERATING),
            (READY, False, CHANGE_MESSAGE, GATHERING),
            (READY, False, NEUTRAL_MESSAGE, READY),
            (GENERATING, True, PROCEED_MESSAGE, REFINING),
            (GENERATING, True, CHANGE_MESSAGE, REFINING),
            (GENERATING, True, NEUTRAL_MESSAGE, REFINING),
            (GENERATING, False, PROCEED_MESSAGE, REFINING),
            (GENERATING, False, CHANGE_MESSAGE, REFINING),
            (GENERATING, False, NEUTRAL_MESSAGE, REFINING),
            (REFINING, True, PROCEED_MESSAGE, REFINING),
            (REFINING, True, CHANGE_MESSAGE, REFINING),
            (REFINING, True, NEUTRAL_MESSAGE, REFINING),
            (REFINING, False, PROCEED_MESSAGE, REFINING),
            (REFINING, False, CHANGE_MESSAGE, GATHERING),
            (REFINING, False, NEUTRAL_MESSAGE, REFINING),
        ],
    )
    def test_transition_table(
        self, filled_slots, partial_slots, current, complete, message, expected
    ):
        slots = filled_slots if complete else partial_slots

        assert next_state(current, slots, message) is expected

    def test_all_filled_gathering_moves_to_ready(self, filled_slots):
        assert next_state(GATHERING, filled_slots, "") is READY

    def test_ready_confirmation_starts_generation(self, filled_slots):
        assert next_state(READY, filled_slots, "yes let's do it") is GENERATING

    def test_next_state_is_pure(self, filled_slots):
        """Same inputs, same output, inputs untouched."""
        snapshot = filled_slots.model_copy(deep=True)

        results = {next_state(REFINING, filled_slots, CHANGE_MESSAGE) for _ in range(3)}

        assert results == {REFINING}
        assert filled_slots == snapshot

    def test_state_values(self):
        assert [s.value for s in ConversationState] == [
            "gathering",
            "ready",
            "generating",
            "refining",
        ]


class TestRepairState:
    """Test corrupted-state repair."""

    def test_refining_without_trip_restarts_generation(self):
        assert repair_state(REFINING, None) == (GENERATING, None)

    def test_refining_with_empty_itinerary_restarts_generation(self):
        empty = GeneratedTrip.model_validate({"metadata": {}, "itinerary": []})

        assert repair_state(REFINING, empty) == (GENERATING, None)

    def test_refining_with_trip_unchanged(self, sample_trip):
        state, trip = repair_state(REFINING, sample_trip)

        assert state is REFINING
        assert trip is sample_trip

    @pytest.mark.parametrize("state", [GATHERING, READY, GENERATING])
    def test_other_states_accepted_as_is(self, state):
        assert repair_state(state, None) == (state, None)

    def test_empty_trip_in_other_states_untouched(self):
        empty = GeneratedTrip.model_validate({"metadata": {}, "itinerary": []})

        assert repair_state(GATHERING, empty) == (GATHERING, empty)
