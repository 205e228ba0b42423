"""Deck-level insights: score statistics plus a subject coverage review."""

import math
from collections import Counter
from collections.abc import Iterable, Mapping, Sequence

from ..domain.entities import (
    CardView,
    DeckAnalysisResult,
    IssueCount,
    LLMAnalysisResult,
    ScoreBucket,
)
from ..exceptions import LLMError
from ..providers import LLMConfig, ProviderCaller, call_provider
from ..rendering import card_view_sides
from ..utils.logging import get_logger
from .prompts import DECK_INSIGHTS_SYSTEM_PROMPT, build_deck_insights_message
from .response_parser import parse_deck_insights_response

logger = get_logger(__name__)

MAX_SAMPLE_CARDS = 30
MAX_COMMON_ISSUES = 10


def score_bucket(score: float) -> int:
    return min(10, max(1, math.floor(score)))


def round_half_up(value: float, digits: int = 1) -> float:
    """Round halves away from zero for positive values (7.25 -> 7.3)."""
    scale = 10**digits
    return math.floor(value * scale + 0.5) / scale


def score_distribution(scores: Iterable[float]) -> list[ScoreBucket]:
    """Counts per score bucket 1-10, zero-filled."""
    buckets = Counter(score_bucket(s) for s in scores)
    return [ScoreBucket(score=s, count=buckets.get(s, 0)) for s in range(1, 11)]


def evenly_spaced_sample(items: Sequence[CardView], limit: int = MAX_SAMPLE_CARDS) -> list[CardView]:
    """Pick at most ``limit`` items spread evenly over ``items``, in order."""
    if len(items) <= limit:
        return list(items)
    step = len(items) / limit
    return [items[int(i * step)] for i in range(limit)]


def _statistics(
    results: Sequence[LLMAnalysisResult],
) -> tuple[float, list[ScoreBucket], list[IssueCount], int]:
    scores = [r.feedback.overall_score for r in results]
    average = round_half_up(sum(scores) / len(scores))
    distribution = score_distribution(scores)

    issues = Counter(
        issue.strip()
        for r in results
        for issue in r.feedback.issues
        if issue.strip()
    )
    common = [
        IssueCount(issue=issue, count=count)
        for issue, count in issues.most_common(MAX_COMMON_ISSUES)
    ]

    suggested = sum(len(r.suggested_cards) for r in results)
    return average, distribution, common, suggested


async def aggregate(
    deck_id: int,
    deck_name: str,
    total_card_count: int,
    cached_results: Mapping[int, LLMAnalysisResult] | Iterable[LLMAnalysisResult],
    sampled_cards: Sequence[CardView],
    config: LLMConfig,
    *,
    send_images: bool = True,
    caller: ProviderCaller = call_provider,
) -> DeckAnalysisResult:
    """Summarize per-card results and ask the provider about deck coverage.

    Needs at least one non-error result. A failed provider call is recorded
    on the returned result; the locally computed statistics are kept.
    """
    if isinstance(cached_results, Mapping):
        cached_results = cached_results.values()
    valid = [r for r in cached_results if not r.is_error]

    if not valid:
        return DeckAnalysisResult(
            deck_id=deck_id,
            deck_name=deck_name,
            total_cards=total_card_count,
            score_distribution=score_distribution(()),
            error="No analyzed cards in this deck. Analyze some cards before requesting deck insights.",
        )

    average, distribution, common, suggested = _statistics(valid)
    result = DeckAnalysisResult(
        deck_id=deck_id,
        deck_name=deck_name,
        total_cards=total_card_count,
        analyzed_cards=len(valid),
        average_score=average,
        score_distribution=distribution,
        common_issues=common,
        total_suggested_cards=suggested,
    )

    samples = [card_view_sides(view, send_images) for view in evenly_spaced_sample(sampled_cards)]
    message = build_deck_insights_message(
        deck_name=deck_name,
        total_cards=total_card_count,
        results=valid,
        average_score=average,
        common_issues=[(c.issue, c.count) for c in common],
        samples=samples,
    )

    try:
        text = await caller(DECK_INSIGHTS_SYSTEM_PROMPT, message, config)
    except LLMError as e:
        logger.warning("deck_insights_provider_failed", deck=deck_name, **e.to_dict())
        return result.model_copy(update={"error": e.message, "error_kind": e.kind.value})

    parsed = parse_deck_insights_response(text)
    payload = parsed.value
    result = result.model_copy(
        update={
            "deck_summary": payload.summary,
            "knowledge_coverage": payload.knowledge_coverage,
            "suggested_new_cards": payload.suggested_cards,
        }
    )

    logger.info(
        "deck_insights_completed",
        deck=deck_name,
        analyzed_cards=len(valid),
        average_score=average,
        coverage=payload.knowledge_coverage.overall_coverage if payload.knowledge_coverage else None,
        suggested_new_cards=len(payload.suggested_cards),
        parsed=parsed.ok,
    )
    return result
