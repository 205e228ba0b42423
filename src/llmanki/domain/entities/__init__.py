"""Domain entities."""

from .analysis import (
    CardFeedback,
    CoverageGap,
    DeckAnalysisResult,
    IssueCount,
    KnowledgeCoverage,
    LLMAnalysisResult,
    ScoreBucket,
    SuggestedCard,
)
from .collection import (
    Card,
    CardType,
    Collection,
    Deck,
    Field,
    FieldDef,
    Model,
    ModelKind,
    Note,
    SchedulingData,
    Template,
)
from .rendered_card import CardView, RenderedCard

__all__ = [
    "Card",
    "CardFeedback",
    "CardType",
    "CardView",
    "Collection",
    "CoverageGap",
    "Deck",
    "DeckAnalysisResult",
    "Field",
    "FieldDef",
    "IssueCount",
    "KnowledgeCoverage",
    "LLMAnalysisResult",
    "Model",
    "ModelKind",
    "Note",
    "RenderedCard",
    "SchedulingData",
    "ScoreBucket",
    "SuggestedCard",
    "Template",
]
