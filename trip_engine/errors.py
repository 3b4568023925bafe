"""
Error taxonomy for a chat turn.

Only failures that stop a turn are exceptions. Unusable model output
and inconsistent caller state are handled in-line and never raised.
"""


class EngineError(RuntimeError):
    """Base class for errors that abort a turn."""


class ConfigurationError(EngineError):
    """The engine cannot call the model with the current settings."""


class ChatDisabledError(ConfigurationError):
    """Chat is switched off."""


class MissingCredentialError(ConfigurationError):
    """No API key configured for the model provider."""


class ModelCallError(EngineError):
    """The model provider failed, timed out or returned nothing."""

    retryable = True
