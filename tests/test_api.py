"""
Tests for FastAPI endpoints.
"""

import copy
from unittest.mock import Mock, patch

import pytest
from fastapi.testclient import TestClient

from data.sample_trips import FILLED_SLOTS, GENERATION_REPLY, SAMPLE_CHAT_REQUEST, SAMPLE_TRIP
from trip_engine.errors import ChatDisabledError, MissingCredentialError, ModelCallError
from trip_engine.main import app
from trip_engine.orchestrator import TurnOrchestrator


class TestAPIEndpoints:
    """Test FastAPI REST API endpoints."""

    @pytest.fixture
    def client(self):
        """Create test client."""
        return TestClient(app)

    @pytest.fixture
    def orchestrator(self, engine_settings, mock_client):
        return TurnOrchestrator(engine_settings, client=mock_client)

    def test_root_endpoint(self, client):
        """Test root endpoint returns API info."""
        response = client.get("/")
        assert response.status_code == 200
        data = response.json()
        assert "Trip Planner Chat API" in data["message"]
        assert "version" in data

    def test_health_endpoint(self, client):
        """Test health check endpoint."""
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "environment" in data
        assert "chat_enabled" in data
        assert "metrics_pending" in data

    def test_create_session(self, client):
        response = client.post("/chat/sessions")

        assert response.status_code == 200
        data = response.json()
        assert data["sessionId"].startswith("chat_")
        assert data["conversationState"] == "gathering"
        assert data["slots"]["destination"] is None
        assert data["slots"]["budget"] == {"amount": None, "currency": "USD", "perPerson": True}

    @patch("trip_engine.main.get_orchestrator")
    def test_chat_gathering_turn(self, mock_get_orchestrator, client, orchestrator):
        """A turn with no trip returns camelCase fields and omits generatedTrip."""
        mock_get_orchestrator.return_value = orchestrator

        response = client.post("/chat", json=SAMPLE_CHAT_REQUEST)

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Where would you like to go?"
        assert data["newState"] == "gathering"
        assert data["updatedSlots"]["destination"] == "Lisbon"
        assert data["updatedSlots"]["travelStyle"] is None
        assert data["slotProgress"]["total"] == 7
        assert data["aiMetrics"]["provider"] == "deepseek"
        assert "generatedTrip" not in data

    @patch("trip_engine.main.get_orchestrator")
    def test_chat_generation_turn(self, mock_get_orchestrator, client, orchestrator, mock_client, make_reply):
        mock_client.complete.return_value = make_reply(GENERATION_REPLY)
        mock_get_orchestrator.return_value = orchestrator

        request_data = {
            "sessionId": "test_session_1",
            "slots": copy.deepcopy(FILLED_SLOTS),
            "conversationState": "generating",
            "latestMessage": "Yes, go ahead",
        }
        response = client.post("/chat", json=request_data)

        assert response.status_code == 200
        data = response.json()
        assert data["newState"] == "refining"
        assert data["generatedTrip"]["metadata"]["destination"] == "Paris"
        assert data["generatedTrip"]["itinerary"][0]["dayNumber"] == 1
        assert "TRIP_JSON" not in data["message"]
        assert "SLOTS" not in data["message"]

    @patch("trip_engine.main.get_orchestrator")
    def test_chat_preserves_trip(self, mock_get_orchestrator, client, orchestrator):
        mock_get_orchestrator.return_value = orchestrator

        request_data = {
            "sessionId": "test_session_2",
            "slots": copy.deepcopy(FILLED_SLOTS),
            "conversationState": "refining",
            "latestMessage": "Thanks!",
            "generatedTrip": copy.deepcopy(SAMPLE_TRIP),
        }
        response = client.post("/chat", json=request_data)

        assert response.status_code == 200
        trip = response.json()["generatedTrip"]
        assert trip["itinerary"][1]["items"][0]["title"] == "Louvre Museum"
        assert trip["recommendations"]["packingList"] == SAMPLE_TRIP["recommendations"]["packingList"]

    @patch("trip_engine.main.get_orchestrator")
    def test_chat_accepts_loosely_typed_trip(self, mock_get_orchestrator, client, orchestrator):
        mock_get_orchestrator.return_value = orchestrator
        trip = copy.deepcopy(SAMPLE_TRIP)
        trip["itinerary"][0]["items"][0]["tips"] = ["Ask for a courtyard room"]
        trip["metadata"]["duration"] = "5 days"
        trip["recommendations"] = None

        request_data = {
            "sessionId": "test_session_3",
            "slots": copy.deepcopy(FILLED_SLOTS),
            "conversationState": "refining",
            "latestMessage": "Thanks!",
            "generatedTrip": trip,
        }
        response = client.post("/chat", json=request_data)

        assert response.status_code == 200
        data = response.json()
        assert data["newState"] == "refining"
        assert data["generatedTrip"]["itinerary"][0]["items"][0]["tips"] == ["Ask for a courtyard room"]
        assert data["generatedTrip"]["metadata"]["duration"] is None

    @pytest.mark.parametrize("missing", ["sessionId", "slots", "conversationState", "latestMessage"])
    def test_chat_validation_missing_fields(self, client, missing):
        """Test validation for missing required fields."""
        request_data = copy.deepcopy(SAMPLE_CHAT_REQUEST)
        del request_data[missing]

        with patch("trip_engine.main.get_orchestrator") as mock_get_orchestrator:
            response = client.post("/chat", json=request_data)

        assert response.status_code == 422  # Validation error
        mock_get_orchestrator.assert_not_called()

    def test_chat_validation_empty_message(self, client):
        request_data = {**SAMPLE_CHAT_REQUEST, "latestMessage": ""}

        response = client.post("/chat", json=request_data)

        assert response.status_code == 422

    def test_chat_validation_unknown_state(self, client):
        request_data = {**SAMPLE_CHAT_REQUEST, "conversationState": "booking"}

        response = client.post("/chat", json=request_data)

        assert response.status_code == 422

    @pytest.mark.parametrize(
        "error,detail",
        [
            (ChatDisabledError("off"), "Chat is currently disabled"),
            (MissingCredentialError("no key"), "API key not configured. Please contact the administrator."),
            (ModelCallError("provider down"), "Failed to get AI response. Please try again."),
        ],
    )
    @patch("trip_engine.main.get_orchestrator")
    def test_chat_service_unavailable(self, mock_get_orchestrator, client, error, detail):
        mock_orchestrator = Mock()
        mock_orchestrator.process.side_effect = error
        mock_get_orchestrator.return_value = mock_orchestrator

        response = client.post("/chat", json=SAMPLE_CHAT_REQUEST)

        assert response.status_code == 503
        assert response.json()["detail"] == detail

    @patch("trip_engine.main.get_orchestrator")
    def test_chat_endpoint_error_handling(self, mock_get_orchestrator, client):
        """Test error handling in chat endpoint."""
        mock_orchestrator = Mock()
        mock_orchestrator.process.side_effect = Exception("Test error")
        mock_get_orchestrator.return_value = mock_orchestrator

        response = client.post("/chat", json=SAMPLE_CHAT_REQUEST)
        assert response.status_code == 500
        assert response.json()["detail"] == "Internal server error"

    def test_openapi_docs_available(self, client):
        """Test that OpenAPI docs are accessible."""
        response = client.get("/openapi.json")
        assert response.status_code == 200

        response = client.get("/docs")
        assert response.status_code == 200
