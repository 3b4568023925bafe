"""
FastAPI application serving the slot-filling trip planner.
Provides REST API endpoints for chat and monitoring.
"""

import logging
import os
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict

from data.sample_trips import SAMPLE_CHAT_REQUEST
from trip_engine.config import settings
from trip_engine.errors import ChatDisabledError, ConfigurationError, ModelCallError
from trip_engine.orchestrator import (
    ChatTurn,
    SessionSeed,
    TurnResult,
    get_orchestrator,
    new_session,
)

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


class ChatRequest(ChatTurn):
    """Request model for chat endpoint."""

    model_config = ConfigDict(json_schema_extra={"example": SAMPLE_CHAT_REQUEST})


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    environment: str
    chat_enabled: bool
    api_key_configured: bool
    metrics_pending: int


# Lifespan context manager for startup/shutdown
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle startup and shutdown events."""
    # Startup
    logger.info("Starting Trip Planner Chat API")
    logger.info(f"Environment: {settings.environment}")

    orchestrator = get_orchestrator()
    if orchestrator.metrics is not None:
        orchestrator.metrics.start()

    yield

    # Shutdown
    logger.info("Shutting down Trip Planner Chat API")
    if orchestrator.metrics is not None:
        orchestrator.metrics.stop()


# Create FastAPI app
app = FastAPI(
    title="Trip Planner Chat API",
    description="Slot-filling conversational itinerary engine",
    version="1.0.0",
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# API Endpoints


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint."""
    return {"message": "Trip Planner Chat API", "version": "1.0.0", "docs": "/docs"}


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """
    Health check endpoint.
    Returns service status, configuration readiness and metrics backlog.
    """
    orchestrator = get_orchestrator()
    return HealthResponse(
        status="healthy",
        environment=settings.environment,
        chat_enabled=settings.chat_enabled,
        api_key_configured=bool(settings.deepseek_api_key),
        metrics_pending=orchestrator.metrics.pending() if orchestrator.metrics else 0,
    )


@app.post("/chat/sessions", response_model=SessionSeed, tags=["Chat"])
def create_session():
    """Start a conversation: fresh session id, empty slots, gathering state."""
    return new_session()


@app.post("/chat", response_model=TurnResult, tags=["Chat"])
def chat(request: ChatRequest):
    """
    Run one turn of the trip planning conversation.

    The engine keeps no session state: send back the updatedSlots, newState
    and generatedTrip from the previous response with every request.

    Errors leave the caller's last slots, state and trip valid, so the same
    request can simply be retried.
    """
    try:
        logger.info(f"Chat request: session={request.session_id}")

        result = get_orchestrator().process(request)

        # generatedTrip is only sent when a trip exists; nulls inside slots are kept
        exclude = {"generated_trip"} if result.generated_trip is None else None
        return JSONResponse(content=result.model_dump(mode="json", by_alias=True, exclude=exclude))

    except ConfigurationError as e:
        logger.warning(f"Chat unavailable: {e}")
        if isinstance(e, ChatDisabledError):
            detail = "Chat is currently disabled"
        else:
            detail = "API key not configured. Please contact the administrator."
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=detail) from e

    except ModelCallError as e:
        logger.error(f"Model call failed for session {request.session_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Failed to get AI response. Please try again.",
        ) from e

    except Exception as e:
        logger.error(f"Error in /chat endpoint: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error",
        ) from e


if __name__ == "__main__":
    uvicorn.run(
        "trip_engine.main:app",
        host="0.0.0.0",
        port=int(os.environ.get("PORT", 8080)),
        reload=settings.environment == "development",
        log_level=settings.log_level.lower(),
    )
