"""
Generative model client.

A single synchronous completion per turn, routed through LiteLLM.
Failures are reported once and never retried here: retrying a turn is the
caller's decision because it owns the session state.
"""

import logging
from dataclasses import dataclass

import litellm

from trip_engine.config import Settings
from trip_engine.errors import ModelCallError
from trip_engine.observability import trace_span

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenUsage:
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


@dataclass(frozen=True)
class ModelReply:
    text: str
    usage: TokenUsage


def estimate_cost(usage: TokenUsage, settings: Settings) -> float:
    """Price a completion in USD using the configured per-million-token rates."""
    input_cost = usage.prompt_tokens / 1_000_000 * settings.input_cost_per_million
    output_cost = usage.completion_tokens / 1_000_000 * settings.output_cost_per_million
    return input_cost + output_cost


def _token_count(usage, name: str) -> int:
    if usage is None:
        return 0
    value = usage.get(name) if isinstance(usage, dict) else getattr(usage, name, None)
    return int(value or 0)


class ModelClient:
    """Thin wrapper around litellm.completion bound to one Settings value."""

    def __init__(self, settings: Settings):
        self.settings = settings

    def complete(self, system_prompt: str, user_message: str, session_id: str = "-") -> ModelReply:
        """
        Run one completion.

        Args:
            system_prompt: Instruction text for this turn
            user_message: The user's latest message
            session_id: Used for tracing only

        Returns:
            ModelReply with the raw text and token usage

        Raises:
            ModelCallError: Provider error, timeout, or empty reply
        """
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_message},
        ]

        with trace_span("model_call", session=session_id, model=self.settings.litellm_model) as span:
            try:
                response = litellm.completion(
                    model=self.settings.litellm_model,
                    messages=messages,
                    max_tokens=self.settings.max_tokens,
                    temperature=self.settings.temperature,
                    timeout=self.settings.request_timeout_seconds,
                    api_key=self.settings.deepseek_api_key,
                    num_retries=0,
                )
            except Exception as e:
                logger.error(f"Model provider error: {str(e)}", exc_info=True)
                raise ModelCallError("Model provider request failed") from e

            choices = getattr(response, "choices", None) or []
            text = choices[0].message.content if choices else None
            if not text:
                logger.error(f"Model returned no content (session={session_id})")
                raise ModelCallError("Model returned an empty response")

            raw_usage = getattr(response, "usage", None)
            usage = TokenUsage(
                prompt_tokens=_token_count(raw_usage, "prompt_tokens"),
                completion_tokens=_token_count(raw_usage, "completion_tokens"),
                total_tokens=_token_count(raw_usage, "total_tokens"),
            )
            span["tokens"] = usage.total_tokens

        return ModelReply(text=text, usage=usage)
