"""
Per-turn pipeline for the slot-filling trip planner.
"""

import logging
import secrets
import string
import time

from pydantic import Field

from trip_engine.config import Settings
from trip_engine.conversation_state import ConversationState, next_state, repair_state
from trip_engine.errors import ChatDisabledError, MissingCredentialError
from trip_engine.extraction import scan_slots, scan_trip, strip_structured_blocks
from trip_engine.llm_client import ModelClient, ModelReply, estimate_cost
from trip_engine.metrics import MetricsDispatcher, MetricsRecord
from trip_engine.observability import trace_span
from trip_engine.prompts import build_system_prompt
from trip_engine.slots import (
    CamelModel,
    SlotProgress,
    TripSlots,
    calculate_slot_progress,
    empty_slots,
    merge_slots,
)
from trip_engine.trip import GeneratedTrip, has_valid_trip

logger = logging.getLogger(__name__)

TRIP_STATES = (ConversationState.GENERATING, ConversationState.REFINING)

_SESSION_ALPHABET = string.ascii_lowercase + string.digits


class ChatTurn(CamelModel):
    """Everything the engine knows about a session, supplied anew on every turn."""

    session_id: str = Field(..., min_length=1, description="Session identifier")
    slots: TripSlots = Field(..., description="Slots accumulated so far")
    conversation_state: ConversationState = Field(..., description="State after the last turn")
    latest_message: str = Field(..., min_length=1, description="User's message")
    generated_trip: GeneratedTrip | None = Field(None, description="Trip from earlier turns")


class AIMetrics(CamelModel):
    model: str
    provider: str
    tokens_used: int
    prompt_tokens: int
    completion_tokens: int
    cost: float


class TurnResult(CamelModel):
    message: str
    updated_slots: TripSlots
    new_state: ConversationState
    generated_trip: GeneratedTrip | None = None
    slot_progress: SlotProgress
    ai_metrics: AIMetrics


class SessionSeed(CamelModel):
    session_id: str
    slots: TripSlots
    conversation_state: ConversationState


def new_session_id() -> str:
    suffix = "".join(secrets.choice(_SESSION_ALPHABET) for _ in range(7))
    return f"chat_{int(time.time() * 1000)}_{suffix}"


def new_session() -> SessionSeed:
    """Starting point for a conversation: empty slots, gathering."""
    return SessionSeed(
        session_id=new_session_id(),
        slots=empty_slots(),
        conversation_state=ConversationState.GATHERING,
    )


class TurnOrchestrator:
    """
    Stateless wrapper around a probabilistic language model.

    Responsibilities:
    - repair inconsistent caller state before anything else runs
    - build the prompt for the effective state
    - read slot and trip blocks back out of the reply without trusting them
    - derive the next state deterministically
    - never drop a valid trip because a reply failed to repeat it

    Nothing about a session is kept between turns.
    """

    def __init__(
        self,
        settings: Settings,
        client: ModelClient | None = None,
        metrics: MetricsDispatcher | None = None,
    ):
        self.settings = settings
        self.client = client or ModelClient(settings)
        self.metrics = metrics

    def _check_configuration(self) -> None:
        if not self.settings.chat_enabled:
            raise ChatDisabledError("Chat is currently disabled")
        if not self.settings.deepseek_api_key:
            raise MissingCredentialError("API key not configured")

    def process(self, turn: ChatTurn) -> TurnResult:
        """
        Run one conversation turn.

        Args:
            turn: Caller-supplied session snapshot and latest message

        Returns:
            TurnResult with display text, merged slots, next state and trip

        Raises:
            ConfigurationError: Chat disabled or no API key (model not called)
            ModelCallError: The model call failed
        """
        self._check_configuration()
        started = time.perf_counter()

        with trace_span("chat_turn", session=turn.session_id) as span:
            state, trip = repair_state(turn.conversation_state, turn.generated_trip)
            span["state"] = state.value

            prompt = build_system_prompt(turn.slots, state, trip)
            reply = self.client.complete(prompt, turn.latest_message, session_id=turn.session_id)

            slots_scan = scan_slots(reply.text)
            span["slots"] = slots_scan.status.value
            updated_slots = merge_slots(turn.slots, slots_scan.value_or_none())

            result_trip = trip if has_valid_trip(trip) else None
            if state in TRIP_STATES:
                trip_scan = scan_trip(reply.text)
                span["trip"] = trip_scan.status.value
                if trip_scan.found:
                    result_trip = trip_scan.value
                elif result_trip is not None:
                    logger.info(f"No new trip in reply, keeping previous trip (session={turn.session_id})")

            new_state = next_state(state, updated_slots, turn.latest_message)
            span["new_state"] = new_state.value

            progress = calculate_slot_progress(updated_slots)
            result = TurnResult(
                message=strip_structured_blocks(reply.text),
                updated_slots=updated_slots,
                new_state=new_state,
                generated_trip=result_trip,
                slot_progress=progress,
                ai_metrics=self._ai_metrics(reply),
            )

        self._record_metrics(turn, result, (time.perf_counter() - started) * 1000)
        return result

    def _ai_metrics(self, reply: ModelReply) -> AIMetrics:
        return AIMetrics(
            model=self.settings.ai_model_name,
            provider=self.settings.ai_provider,
            tokens_used=reply.usage.total_tokens,
            prompt_tokens=reply.usage.prompt_tokens,
            completion_tokens=reply.usage.completion_tokens,
            cost=estimate_cost(reply.usage, self.settings),
        )

    def _record_metrics(self, turn: ChatTurn, result: TurnResult, elapsed_ms: float) -> None:
        if self.metrics is None:
            return
        try:
            self.metrics.submit(
                MetricsRecord(
                    session_id=turn.session_id,
                    model=result.ai_metrics.model,
                    provider=result.ai_metrics.provider,
                    prompt_tokens=result.ai_metrics.prompt_tokens,
                    completion_tokens=result.ai_metrics.completion_tokens,
                    total_tokens=result.ai_metrics.tokens_used,
                    cost=result.ai_metrics.cost,
                    conversation_state=result.new_state.value,
                    slots_filled=result.slot_progress.filled,
                    slots_total=result.slot_progress.total,
                    response_time_ms=round(elapsed_ms, 2),
                    trip_generated=result.generated_trip is not None,
                )
            )
        except Exception as e:
            logger.error(f"Failed to queue metrics for session {turn.session_id}: {e}")


# Global orchestrator instance
turn_orchestrator = None


def get_orchestrator() -> TurnOrchestrator:
    """Get or create global orchestrator instance."""
    global turn_orchestrator
    if turn_orchestrator is None:
        from trip_engine.config import settings
        from trip_engine.metrics import LoggingMetricsSink

        metrics = None
        if settings.metrics_enabled:
            metrics = MetricsDispatcher(LoggingMetricsSink(), settings.metrics_queue_size)
        turn_orchestrator = TurnOrchestrator(settings, metrics=metrics)
    return turn_orchestrator
