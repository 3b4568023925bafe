"""
Pytest configuration and fixtures.
Shared test utilities and sample conversation data.
"""

import copy
from unittest.mock import Mock

import pytest

from data.sample_trips import FILLED_SLOTS, PARTIAL_SLOTS, SAMPLE_TRIP
from trip_engine.config import Settings
from trip_engine.llm_client import ModelReply, TokenUsage
from trip_engine.slots import TripSlots
from trip_engine.trip import GeneratedTrip


@pytest.fixture
def filled_slots():
    """Return slots with all seven categories filled."""
    return TripSlots.model_validate(copy.deepcopy(FILLED_SLOTS))


@pytest.fixture
def partial_slots():
    """Return slots with only destination and duration filled."""
    return TripSlots.model_validate(copy.deepcopy(PARTIAL_SLOTS))


@pytest.fixture
def sample_trip():
    """Return a valid two-day generated trip."""
    return GeneratedTrip.model_validate(copy.deepcopy(SAMPLE_TRIP))


@pytest.fixture
def engine_settings():
    """Settings with a credential configured and metrics off."""
    return Settings(deepseek_api_key="test-key", metrics_enabled=False)


@pytest.fixture
def make_reply():
    """Build a ModelReply for a given assistant text."""

    def _make(text, prompt_tokens=1200, completion_tokens=300):
        usage = TokenUsage(
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=prompt_tokens + completion_tokens,
        )
        return ModelReply(text=text, usage=usage)

    return _make


@pytest.fixture
def mock_client(make_reply):
    """Model client returning a plain reply unless reconfigured."""
    client = Mock()
    client.complete.return_value = make_reply("Where would you like to go?")
    return client
