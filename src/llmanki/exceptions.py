"""Centralized exception hierarchy for llmanki.

Exception Hierarchy:
    LLMAnkiError (base)
     ConfigurationError - Configuration loading/validation errors
     CollectionLoadError - Collection snapshot could not be read
     RenderError - Card cannot be rendered (missing note, model or template)
     LLMError - Classified provider failure (carries an ErrorKind)

Rendering of media never raises: unresolved references degrade to visible
placeholders. The response parser never raises either; only provider
communication surfaces as ``LLMError``.

Usage Examples:
    try:
        text = await call_provider(system, message, llm_config)
    except LLMError as e:
        logger.error("analysis_failed", **e.to_dict())
        print(f"Suggestion: {e.suggestion}")
"""

from enum import Enum
from typing import Any


class LLMAnkiError(Exception):
    """Base exception for all llmanki errors.

    Attributes:
        message: Human-readable error message
        suggestion: Optional suggestion for resolving the error
        context: Additional context for debugging (deck names, card ids, ...)
    """

    def __init__(
        self,
        message: str,
        suggestion: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        self.message = message
        self.suggestion = suggestion
        self.context = context or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the error message with the suggestion if available."""
        if self.suggestion:
            return f"{self.message}\nSuggestion: {self.suggestion}"
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for structured logging."""
        return {
            "message": self.message,
            "suggestion": self.suggestion,
            "context": self.context,
            "type": type(self).__name__,
        }


class ConfigurationError(LLMAnkiError):
    """Configuration loading or validation errors.

    Raised when:
    - Config file is malformed YAML
    - Configuration values fail validation
    """


class CollectionLoadError(LLMAnkiError):
    """Collection snapshot errors.

    Raised when:
    - The snapshot file is missing or not valid JSON
    - Required collection sections are absent
    """


class RenderError(LLMAnkiError):
    """Card rendering errors.

    Raised when:
    - The card references a note that does not exist
    - The note references a model that does not exist
    - A standard model has no template for the card ordinal
    """


class ErrorKind(str, Enum):
    """Closed set of classified provider failure categories."""

    RATE_LIMIT = "rate_limit"
    AUTH_ERROR = "auth_error"
    CONNECTION_ERROR = "connection_error"
    MODEL_NOT_FOUND = "model_not_found"
    CONTEXT_LENGTH_EXCEEDED = "context_length_exceeded"
    SERVER_ERROR = "server_error"
    UNKNOWN = "unknown"


class LLMError(LLMAnkiError):
    """Classified failure of a single provider request.

    Created by the provider adapters, consumed by the orchestrator and the
    command line. The analysis run that hits one stops immediately.
    """

    def __init__(
        self,
        message: str,
        kind: ErrorKind,
        provider: str,
        status_code: int | None = None,
        retry_after: int | None = None,
        suggestion: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        self.kind = kind
        self.provider = provider
        self.status_code = status_code
        self.retry_after = retry_after
        super().__init__(message, suggestion=suggestion, context=context)

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update(
            {
                "kind": self.kind.value,
                "provider": self.provider,
                "status_code": self.status_code,
                "retry_after": self.retry_after,
            }
        )
        return data
