"""Classification of provider failures into ``ErrorKind``.

Status codes decide first (429, 401/403, 404), then case-insensitive wording
in the response body, then any 5xx status. Nothing is retried automatically;
the caller decides using ``LLMError.retry_after`` and the suggestion.
"""

import math
import re
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime

import httpx

from ..exceptions import ErrorKind, LLMError
from ..utils.logging import get_logger

logger = get_logger(__name__)

_RATE_LIMIT_WORDS = ("rate limit", "rate_limit", "too many requests", "quota exceeded")
_AUTH_WORDS = (
    "invalid api key",
    "unauthorized",
    "authentication",
    "invalid x-api-key",
    "permission",
)
_MODEL_WORDS = ("model not found", "does not exist", "model_not_found")
_CONTEXT_WORDS = (
    "context length",
    "context_length",
    "maximum context",
    "too many tokens",
    "token limit",
)

_RETRY_AFTER_PATTERNS = (
    re.compile(r"retry[-_ ]after\W{0,3}(\d+(?:\.\d+)?)\s*(ms|milliseconds?)?", re.IGNORECASE),
    re.compile(r"try again in\s+(\d+(?:\.\d+)?)\s*(ms|milliseconds?)?", re.IGNORECASE),
)

SUGGESTIONS: dict[ErrorKind, str] = {
    ErrorKind.RATE_LIMIT: (
        "You've exceeded the provider's rate limit. Wait before retrying, raise "
        "request_delay_ms, disable concurrent analysis, or switch providers."
    ),
    ErrorKind.AUTH_ERROR: (
        "Your API key appears to be invalid or expired. Check llm_api_key "
        "in config.yaml or the LLM_API_KEY environment variable."
    ),
    ErrorKind.CONNECTION_ERROR: (
        "Cannot connect to the API. Check your internet connection and "
        "llm_base_url, or try again later."
    ),
    ErrorKind.MODEL_NOT_FOUND: (
        "The selected model is not available. Pick another model with "
        "`llmanki providers`."
    ),
    ErrorKind.CONTEXT_LENGTH_EXCEEDED: (
        "The card content is too long for this model. Use a model with a larger "
        "context window or simplify the card."
    ),
    ErrorKind.SERVER_ERROR: (
        "The provider returned a server error. This is usually temporary; try "
        "again in a few minutes."
    ),
    ErrorKind.UNKNOWN: "An unexpected error occurred. Check the log for the raw response.",
}


def suggestion_for(kind: ErrorKind, provider: str, model: str = "") -> str:
    """Canned suggestion for an error kind, with local-server variants."""
    if provider == "ollama":
        if kind == ErrorKind.CONNECTION_ERROR:
            return 'Cannot connect to Ollama. Make sure it is running ("ollama serve").'
        if kind == ErrorKind.MODEL_NOT_FOUND and model:
            return f'Model "{model}" not found. Run "ollama pull {model}" to download it.'
    return SUGGESTIONS[kind]


def parse_retry_after_header(response: httpx.Response) -> float | None:
    """Parse the Retry-After header (seconds or HTTP date)."""
    retry_after = response.headers.get("Retry-After")
    if not retry_after:
        return None

    try:
        wait_seconds = float(retry_after)
        if wait_seconds > 0:
            return wait_seconds
    except ValueError:
        try:
            retry_datetime = parsedate_to_datetime(retry_after)
            if retry_datetime.tzinfo is None:
                retry_datetime = retry_datetime.replace(tzinfo=timezone.utc)
            delta = (retry_datetime - datetime.now(timezone.utc)).total_seconds()
            if delta > 0:
                return float(delta)
        except (TypeError, ValueError):
            logger.debug("retry_after_header_unparsed", value=retry_after)

    return None


def extract_retry_after(text: str) -> float | None:
    """Find a retry delay in seconds in provider error text."""
    for pattern in _RETRY_AFTER_PATTERNS:
        match = pattern.search(text)
        if match:
            value = float(match.group(1))
            if match.group(2):
                value /= 1000
            return value if value > 0 else None
    return None


def _contains(text: str, words: tuple[str, ...]) -> bool:
    return any(word in text for word in words)


def classify_kind(status_code: int | None, text: str) -> ErrorKind:
    lowered = text.lower()
    if status_code == 429:
        return ErrorKind.RATE_LIMIT
    if status_code in (401, 403):
        return ErrorKind.AUTH_ERROR
    if status_code == 404:
        return ErrorKind.MODEL_NOT_FOUND
    if _contains(lowered, _RATE_LIMIT_WORDS):
        return ErrorKind.RATE_LIMIT
    if _contains(lowered, _AUTH_WORDS):
        return ErrorKind.AUTH_ERROR
    if _contains(lowered, _MODEL_WORDS):
        return ErrorKind.MODEL_NOT_FOUND
    if _contains(lowered, _CONTEXT_WORDS):
        return ErrorKind.CONTEXT_LENGTH_EXCEEDED
    if status_code is not None and status_code >= 500:
        return ErrorKind.SERVER_ERROR
    return ErrorKind.UNKNOWN


def classify_http_error(
    response: httpx.Response, provider: str, model: str = ""
) -> LLMError:
    """Build an ``LLMError`` from a non-success HTTP response."""
    text = response.text
    kind = classify_kind(response.status_code, text)

    retry_after = None
    if kind == ErrorKind.RATE_LIMIT:
        seconds = parse_retry_after_header(response) or extract_retry_after(text)
        retry_after = math.ceil(seconds) if seconds else None

    return LLMError(
        f"{provider} API error ({response.status_code}): {text[:500]}",
        kind=kind,
        provider=provider,
        status_code=response.status_code,
        retry_after=retry_after,
        suggestion=suggestion_for(kind, provider, model),
        context={"model": model},
    )


def classify_transport_error(
    error: httpx.RequestError, provider: str, model: str = ""
) -> LLMError:
    """Build an ``LLMError`` for a request that never produced a response."""
    kind = ErrorKind.CONNECTION_ERROR
    return LLMError(
        f"Could not reach {provider}: {error}",
        kind=kind,
        provider=provider,
        suggestion=suggestion_for(kind, provider, model),
        context={"model": model, "error_type": type(error).__name__},
    )
