"""Domain exceptions for the deep-think engines.

All domain-specific exceptions inherit from ``DeepThinkError`` so callers can
catch the full family with a single ``except`` clause when needed.  Failures
of the chat model itself are *not* wrapped: they propagate as raised by the
backend.
"""

from __future__ import annotations

from typing import Any


class DeepThinkError(Exception):
    """Base exception for all deep-think domain errors."""

    def __init__(self, message: str = "", details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.details: dict[str, Any] = details or {}


class AgentConfigError(DeepThinkError):
    """Raised when agent configurations cannot be recovered from model output.

    Both the structured call and the textual fallback failed.  This is fatal
    for the whole multi-agent run, not for a single agent.
    """

    def __init__(
        self,
        message: str = "Failed to parse agent configurations",
        raw_excerpt: str = "",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.raw_excerpt = raw_excerpt


class ConfigurationError(DeepThinkError, ValueError):
    """Raised when a configuration document is malformed."""

    def __init__(
        self,
        message: str = "Invalid configuration",
        section: str = "",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.section = section


class ModelFactoryError(DeepThinkError):
    """Raised when no chat-model constructor matches a model identifier."""

    def __init__(
        self,
        message: str = "Unknown model",
        model: str = "",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.model = model
