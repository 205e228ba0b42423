"""Card analysis, run orchestration and deck insights."""

from .card_analyzer import CardAnalysis, CardAnalyzer
from .deck_insights import aggregate, evenly_spaced_sample, score_bucket
from .orchestrator import (
    BATCH_SIZE,
    AnalysisOrchestrator,
    AnalysisProgress,
    AnalysisRun,
    ProgressStatus,
    RunSettings,
    RunState,
)
from .prompts import DEFAULT_SYSTEM_PROMPT, build_analysis_message, build_card_description
from .response_parser import (
    DeckInsightsPayload,
    ParseResult,
    parse_analysis_response,
    parse_deck_insights_response,
)

__all__ = [
    "BATCH_SIZE",
    "DEFAULT_SYSTEM_PROMPT",
    "AnalysisOrchestrator",
    "AnalysisProgress",
    "AnalysisRun",
    "CardAnalysis",
    "CardAnalyzer",
    "DeckInsightsPayload",
    "ParseResult",
    "ProgressStatus",
    "RunSettings",
    "RunState",
    "aggregate",
    "build_analysis_message",
    "build_card_description",
    "evenly_spaced_sample",
    "parse_analysis_response",
    "parse_deck_insights_response",
    "score_bucket",
]
