"""Analysis result models exchanged with LLM providers and the cache.

Provider output is untrusted: validators clamp scores, default enumerations
and coerce loosely-typed arrays instead of rejecting the payload. Wire and
persisted JSON use camelCase names.
"""

import json
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .collection import Field as CardField

SuggestedCardType = Literal["basic", "basic-reversed", "cloze"]
CoverageLevel = Literal["excellent", "good", "fair", "poor"]
Importance = Literal["high", "medium", "low"]

_SUGGESTED_TYPES = ("basic", "basic-reversed", "cloze")
_COVERAGE_LEVELS = ("excellent", "good", "fair", "poor")
_IMPORTANCE_LEVELS = ("high", "medium", "low")


def clamp_score(value: Any, default: float = 5.0) -> float:
    """Clamp a provider score to the 1-10 range."""
    try:
        score = float(value)
    except (TypeError, ValueError):
        return default
    if score != score:  # NaN
        return default
    return min(10.0, max(1.0, score))


def _coerce_bool(value: Any, default: bool = True) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "yes", "1"):
            return True
        if lowered in ("false", "no", "0"):
            return False
        return default
    return bool(value)


def _coerce_text_list(value: Any) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        value = [value]
    items = []
    for item in value:
        if item is None:
            continue
        if isinstance(item, str):
            items.append(item)
        elif isinstance(item, (dict, list)):
            items.append(json.dumps(item, ensure_ascii=False))
        else:
            items.append(str(item))
    return items


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_json_dict(self) -> dict[str, Any]:
        """Dump with camelCase keys, as persisted and sent over the wire."""
        return self.model_dump(by_alias=True, mode="json")


class CardFeedback(_CamelModel):
    """Per-criterion verdict on a single card."""

    is_unambiguous: bool = True
    is_atomic: bool = True
    is_recognizable: bool = True
    is_active_recall: bool = True
    overall_score: float = 5.0
    issues: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)
    reasoning: str = ""

    @field_validator(
        "is_unambiguous",
        "is_atomic",
        "is_recognizable",
        "is_active_recall",
        mode="before",
    )
    @classmethod
    def normalize_default_bool(cls, v: Any) -> bool:
        return _coerce_bool(v)

    @field_validator("overall_score", mode="before")
    @classmethod
    def normalize_clamp_score(cls, v: Any) -> float:
        return clamp_score(v)

    @field_validator("issues", "suggestions", mode="before")
    @classmethod
    def normalize_text_list(cls, v: Any) -> list[str]:
        return _coerce_text_list(v)

    @field_validator("reasoning", mode="before")
    @classmethod
    def normalize_text(cls, v: Any) -> str:
        return "" if v is None else str(v)


class SuggestedCard(_CamelModel):
    """A replacement or additional card proposed by a provider.

    Not a real card until accepted into a collection.
    """

    kind: Literal["suggested"] = "suggested"
    type: SuggestedCardType = "basic"
    fields: list[CardField] = Field(default_factory=list)
    explanation: str = ""

    @field_validator("kind", mode="before")
    @classmethod
    def normalize_kind(cls, v: Any) -> str:
        # Local view tag; providers sometimes echo their own
        return "suggested"

    @field_validator("type", mode="before")
    @classmethod
    def normalize_known_type(cls, v: Any) -> str:
        normalized = str(v or "").strip().lower().replace("_", "-").replace(" ", "-")
        return normalized if normalized in _SUGGESTED_TYPES else "basic"

    @field_validator("fields", mode="before")
    @classmethod
    def normalize_field_list(cls, v: Any) -> list[dict[str, str]]:
        if isinstance(v, dict):
            v = [{"name": k, "value": val} for k, val in v.items()]
        if not isinstance(v, list):
            return []
        fields = []
        for index, item in enumerate(v):
            if isinstance(item, dict):
                name = item.get("name") or f"Field {index + 1}"
                value = item.get("value", "")
            elif isinstance(item, CardField):
                name, value = item.name, item.value
            else:
                name, value = f"Field {index + 1}", item
            fields.append({"name": str(name), "value": "" if value is None else str(value)})
        return fields

    @field_validator("explanation", mode="before")
    @classmethod
    def normalize_text(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @classmethod
    def looks_like_card(cls, value: Any) -> bool:
        """True for dicts shaped like a full suggested-card record."""
        return (
            isinstance(value, dict)
            and "type" in value
            and isinstance(value.get("fields"), list)
        )


class LLMAnalysisResult(_CamelModel):
    """Complete analysis of one card."""

    feedback: CardFeedback = Field(default_factory=CardFeedback)
    suggested_cards: list[SuggestedCard] = Field(default_factory=list)
    delete_original: bool = False
    delete_reason: str | None = None
    error: str | None = None

    @field_validator("delete_original", mode="before")
    @classmethod
    def normalize_default_false(cls, v: Any) -> bool:
        return _coerce_bool(v, default=False)

    @field_validator("suggested_cards", mode="before")
    @classmethod
    def normalize_card_list(cls, v: Any) -> list[Any]:
        if v is None:
            return []
        if not isinstance(v, list):
            v = [v]
        return [item for item in v if isinstance(item, (dict, SuggestedCard))]

    @field_validator("delete_reason", mode="before")
    @classmethod
    def normalize_optional_text(cls, v: Any) -> str | None:
        return None if v is None else str(v)

    @property
    def is_error(self) -> bool:
        return self.error is not None

    @classmethod
    def from_error(cls, message: str) -> "LLMAnalysisResult":
        """Record a failed analysis so it is retried on the next run."""
        return cls(
            feedback=CardFeedback(reasoning=f"Analysis failed: {message}"),
            error=message,
        )


class CoverageGap(_CamelModel):
    topic: str = ""
    importance: Importance = "medium"
    description: str = ""

    @field_validator("importance", mode="before")
    @classmethod
    def normalize_known_importance(cls, v: Any) -> str:
        normalized = str(v or "").strip().lower()
        return normalized if normalized in _IMPORTANCE_LEVELS else "medium"

    @field_validator("topic", "description", mode="before")
    @classmethod
    def normalize_text(cls, v: Any) -> str:
        return "" if v is None else str(v)


class KnowledgeCoverage(_CamelModel):
    """Subject-matter coverage of a deck, as judged by a provider."""

    overall_coverage: CoverageLevel = "fair"
    coverage_score: int = 5
    summary: str = ""
    covered_topics: list[str] = Field(default_factory=list)
    gaps: list[CoverageGap] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)

    @field_validator("overall_coverage", mode="before")
    @classmethod
    def normalize_known_level(cls, v: Any) -> str:
        normalized = str(v or "").strip().lower()
        return normalized if normalized in _COVERAGE_LEVELS else "fair"

    @field_validator("coverage_score", mode="before")
    @classmethod
    def normalize_clamp(cls, v: Any) -> int:
        return round(clamp_score(v))

    @field_validator("covered_topics", "recommendations", mode="before")
    @classmethod
    def normalize_text_list(cls, v: Any) -> list[str]:
        return _coerce_text_list(v)

    @field_validator("gaps", mode="before")
    @classmethod
    def normalize_gap_list(cls, v: Any) -> list[Any]:
        if not isinstance(v, list):
            return []
        gaps = []
        for item in v:
            if isinstance(item, (dict, CoverageGap)):
                gaps.append(item)
            elif isinstance(item, str):
                gaps.append({"topic": item})
        return gaps

    @field_validator("summary", mode="before")
    @classmethod
    def normalize_text(cls, v: Any) -> str:
        return "" if v is None else str(v)


class ScoreBucket(_CamelModel):
    score: int
    count: int


class IssueCount(_CamelModel):
    issue: str
    count: int


class DeckAnalysisResult(_CamelModel):
    """Deck-level aggregate of per-card results plus coverage analysis."""

    deck_id: int
    deck_name: str
    total_cards: int
    analyzed_cards: int = 0
    average_score: float = 0.0
    score_distribution: list[ScoreBucket] = Field(default_factory=list)
    common_issues: list[IssueCount] = Field(default_factory=list)
    total_suggested_cards: int = 0
    deck_summary: str = ""
    knowledge_coverage: KnowledgeCoverage | None = None
    suggested_new_cards: list[SuggestedCard] = Field(default_factory=list)
    error: str | None = None
    error_kind: str | None = None
