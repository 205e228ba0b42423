"""Prompts for card analysis and deck coverage analysis."""

import re
from collections.abc import Sequence

from ..domain.entities import CardType, LLMAnalysisResult, RenderedCard
from ..rendering.html_text import strip_html_for_llm

DEFAULT_SYSTEM_PROMPT = """You are an expert Anki card reviewer and educator. Your task is to analyze flashcards and suggest improvements based on evidence-based learning principles.

## Card Quality Criteria

A good Anki card should be:

1. **Unambiguous**: Only one reasonable answer exists. The question should be precise enough that there's no confusion about what's being asked.

2. **Atomic**: Tests exactly one fact or concept. Complex information should be broken into multiple cards.

3. **Recognizable**: Uses context from the original source material. Cards should connect to how the information was originally learned.

4. **Active Recall**: Requires genuine recall, not just recognition. Avoid questions where the answer can be guessed from the question.

## Card Type Guidelines

- **Terminology/Definitions**: Use "What is X?" format
- **Description → Term**: Use Jeopardy-style ("This process involves..." → "What is photosynthesis?")
- **Concepts, formulas, lists, sentences**: Use cloze deletions

## Your Task

Analyze the provided card and:
1. Evaluate it against each criterion
2. Provide specific, actionable feedback
3. Suggest improved card(s) if needed
4. Recommend deletion of the original if your suggestions replace it completely

## Response Format

Respond with a JSON object in this exact format:
{
  "feedback": {
    "isUnambiguous": boolean,
    "isAtomic": boolean,
    "isRecognizable": boolean,
    "isActiveRecall": boolean,
    "overallScore": number (1-10),
    "issues": ["list of specific problems"],
    "suggestions": ["list of improvement suggestions"],
    "reasoning": "detailed explanation of your analysis"
  },
  "suggestedCards": [
    {
      "type": "basic" | "cloze" | "basic-reversed",
      "fields": [
        {"name": "Front", "value": "question text"},
        {"name": "Back", "value": "answer text"}
      ],
      "explanation": "why this card format works better"
    }
  ],
  "deleteOriginal": boolean,
  "deleteReason": "explanation if deletion is recommended"
}

For cloze cards, use the format {{c1::answer::optional hint}} in the fields.
Preserve any images by keeping the <img> tags exactly as they appear.
Keep media references intact."""

DECK_INSIGHTS_SYSTEM_PROMPT = """You are an expert educator reviewing a whole flashcard deck. Card quality has already been judged card by card; your task now is SUBJECT-MATTER COVERAGE: which topics the deck covers, which important topics are missing, and which new cards would close the gaps.

Respond with a JSON object in this exact format:
{
  "summary": "2-4 sentence overview of the deck's content and quality",
  "knowledgeCoverage": {
    "overallCoverage": "excellent" | "good" | "fair" | "poor",
    "coverageScore": number (1-10),
    "summary": "how well the deck covers its subject",
    "coveredTopics": ["topics the deck covers"],
    "gaps": [
      {"topic": "missing topic", "importance": "high" | "medium" | "low", "description": "why it matters"}
    ],
    "recommendations": ["concrete next steps"]
  },
  "suggestedCards": [
    {
      "type": "basic" | "cloze" | "basic-reversed",
      "fields": [
        {"name": "Front", "value": "question text"},
        {"name": "Back", "value": "answer text"}
      ],
      "explanation": "which gap this card closes"
    }
  ]
}

Do not re-review individual cards. Suggest at most 10 new cards, each filling a gap."""

ANALYSIS_REQUEST = "Please analyze this Anki card and provide feedback:\n\n"

MAX_SAMPLE_TEXT = 300

_IMG_TAG = re.compile(r"<img[^>]*>", re.IGNORECASE)


def _raw_field(value: str, send_images: bool) -> str:
    return value if send_images else _IMG_TAG.sub("", value)


def build_card_description(card: RenderedCard, send_images: bool = True) -> str:
    """Markdown description of a rendered card for the analysis prompt.

    Cloze cards are described by their raw fields, other cards by stripped
    front/back text plus the raw fields.
    """
    lines = [
        "## Card Information",
        f"- **Type**: {CardType(card.card_type).value}",
        f"- **Deck**: {card.deck_name}",
        f"- **Model**: {card.model_name}",
        f"- **Tags**: {', '.join(card.tags) or 'none'}",
        "",
        "## Card Content",
        "",
    ]

    if card.card_type == CardType.CLOZE:
        lines.append("### Fields:")
        for field in card.fields:
            lines.append(f"**{field.name}**:")
            lines.append(_raw_field(field.value, send_images))
            lines.append("")
    else:
        lines.append("### Front:")
        lines.append(strip_html_for_llm(card.front, send_images))
        lines.append("")
        lines.append("### Back:")
        lines.append(strip_html_for_llm(card.back, send_images))
        lines.append("")
        lines.append("### Raw Fields:")
        for field in card.fields:
            lines.append(f"**{field.name}**: {_raw_field(field.value, send_images)}")

    return "\n".join(lines)


def build_analysis_message(card: RenderedCard, send_images: bool = True) -> str:
    return ANALYSIS_REQUEST + build_card_description(card, send_images)


def _truncate(text: str, limit: int = MAX_SAMPLE_TEXT) -> str:
    return text if len(text) <= limit else text[:limit] + "..."


def build_deck_insights_message(
    deck_name: str,
    total_cards: int,
    results: Sequence[LLMAnalysisResult],
    average_score: float,
    common_issues: Sequence[tuple[str, int]],
    samples: Sequence[tuple[str, str]],
) -> str:
    """User message for the deck coverage request.

    Args:
        deck_name: Full deck path
        total_cards: Cards in the deck, analysed or not
        results: Non-error per-card results
        average_score: Mean card score
        common_issues: (issue, count) pairs, most frequent first
        samples: (front, back) plain-text pairs of sampled cards
    """
    lines = [
        f"# Deck: {deck_name}",
        "",
        "## Statistics",
        f"- Total cards: {total_cards}",
        f"- Analyzed cards: {len(results)}",
        f"- Average quality score: {average_score}/10",
        "",
    ]
    if common_issues:
        lines.append("## Most Common Card Issues")
        for issue, count in common_issues:
            lines.append(f"- {issue} ({count} cards)")
        lines.append("")

    lines.append(f"## Sample Cards ({len(samples)} of {total_cards})")
    lines.append("")
    for index, (front, back) in enumerate(samples, start=1):
        lines.append(f"### Card {index}")
        lines.append(f"Front: {_truncate(front)}")
        lines.append(f"Back: {_truncate(back)}")
        lines.append("")

    lines.append(
        "Analyze the subject-matter coverage of this deck and respond with the JSON format described."
    )
    return "\n".join(lines)
