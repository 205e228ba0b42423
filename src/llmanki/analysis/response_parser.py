"""Turn provider free text into structured analysis results.

Parsing never raises. A ``ParseResult`` tells callers whether usable data
was recovered (``ok``) and, if not, why (``diagnostic``); the value is always
a usable default-filled result.
"""

import json
import re
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field as PydanticField, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from ..domain.entities import (
    CardFeedback,
    KnowledgeCoverage,
    LLMAnalysisResult,
    SuggestedCard,
)
from ..utils.logging import get_logger
from .json_utils import find_balanced_object, recover_json_object

logger = get_logger(__name__)

T = TypeVar("T")

_SUMMARY_FIELD = re.compile(r'"summary"\s*:\s*"((?:[^"\\]|\\.)*)"')


@dataclass(frozen=True)
class ParseResult(Generic[T]):
    """Outcome of a soft-failing parse."""

    value: T
    ok: bool
    diagnostic: str = ""
    strategy: str = field(default="none")


def unparsed_result(text: str) -> LLMAnalysisResult:
    """Default-valued result carrying the raw provider text."""
    return LLMAnalysisResult(
        feedback=CardFeedback(
            reasoning=f"Failed to parse LLM response. Raw response:\n\n{text}"
        )
    )


def _reclassify_card_records(data: dict[str, Any]) -> dict[str, Any]:
    """Move suggested-card records misplaced in feedback arrays to suggestedCards."""
    feedback = data.get("feedback")
    if not isinstance(feedback, dict):
        data["feedback"] = {}
        return data

    suggested = data.get("suggestedCards")
    suggested = list(suggested) if isinstance(suggested, list) else []
    moved = 0
    for key in ("issues", "suggestions"):
        items = feedback.get(key)
        if not isinstance(items, list):
            continue
        kept = []
        for item in items:
            if SuggestedCard.looks_like_card(item):
                suggested.append(item)
                moved += 1
            else:
                kept.append(item)
        feedback[key] = kept

    if moved:
        logger.debug("suggested_cards_reclassified", count=moved)
    data["suggestedCards"] = suggested
    return data


def parse_analysis_response(text: str) -> ParseResult[LLMAnalysisResult]:
    """Parse a per-card analysis response.

    Tolerates fenced JSON, prose around the JSON and suggested cards placed
    inside ``feedback.issues``/``feedback.suggestions``.
    """
    data, strategy = recover_json_object(text)
    if data is None:
        logger.warning("analysis_response_unparsed", text_length=len(text))
        return ParseResult(
            value=unparsed_result(text),
            ok=False,
            diagnostic="no JSON object found in response",
        )

    # An error marker is only ever set locally
    data.pop("error", None)
    data = _reclassify_card_records(data)
    try:
        result = LLMAnalysisResult.model_validate(data)
    except ValidationError as e:
        logger.warning("analysis_response_invalid", errors=e.error_count())
        return ParseResult(
            value=unparsed_result(text),
            ok=False,
            diagnostic=f"response JSON has an invalid shape: {e.error_count()} errors",
            strategy=strategy,
        )
    return ParseResult(value=result, ok=True, strategy=strategy)


class DeckInsightsPayload(BaseModel):
    """Deck-level coverage response."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    summary: str = ""
    knowledge_coverage: KnowledgeCoverage | None = None
    suggested_cards: list[SuggestedCard] = PydanticField(default_factory=list)

    @field_validator("summary", mode="before")
    @classmethod
    def normalize_summary(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("knowledge_coverage", mode="before")
    @classmethod
    def normalize_coverage(cls, v: Any) -> Any:
        return v if isinstance(v, (dict, KnowledgeCoverage)) else None

    @field_validator("suggested_cards", mode="before")
    @classmethod
    def normalize_cards(cls, v: Any) -> list[Any]:
        if not isinstance(v, list):
            return []
        return [item for item in v if isinstance(item, (dict, SuggestedCard))]


def _extract_summary(text: str) -> str | None:
    match = _SUMMARY_FIELD.search(text)
    if not match:
        return None
    try:
        return json.loads(f'"{match.group(1)}"')
    except json.JSONDecodeError:
        return match.group(1)


def parse_deck_insights_response(text: str) -> ParseResult[DeckInsightsPayload]:
    """Parse a deck coverage response.

    Brace matching first; when no object decodes, fall back to pulling just
    the ``summary`` string out with a regular expression.
    """
    candidate = find_balanced_object(text)
    data = None
    if candidate:
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError:
            data = None
    if not isinstance(data, dict):
        data, _ = recover_json_object(text)

    if isinstance(data, dict):
        try:
            return ParseResult(
                value=DeckInsightsPayload.model_validate(data),
                ok=True,
                strategy="brace_match",
            )
        except ValidationError as e:
            logger.warning("deck_insights_response_invalid", errors=e.error_count())

    summary = _extract_summary(text)
    if summary is not None:
        return ParseResult(
            value=DeckInsightsPayload(summary=summary),
            ok=True,
            diagnostic="only the summary could be recovered",
            strategy="summary_regex",
        )

    logger.warning("deck_insights_response_unparsed", text_length=len(text))
    return ParseResult(
        value=DeckInsightsPayload(summary=text.strip()[:1000]),
        ok=False,
        diagnostic="no JSON object found in response",
    )
