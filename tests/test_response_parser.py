"""Tests for soft-failing response parsing."""

import json

from llmanki.analysis import parse_analysis_response, parse_deck_insights_response
from llmanki.analysis.json_utils import find_balanced_object, recover_json_object
from tests.fixtures import analysis_json

BODY = analysis_json(
    score=6,
    suggestedCards=[
        {
            "type": "cloze",
            "fields": [{"name": "Text", "value": "{{c1::ATP}} stores energy"}],
            "explanation": "Split into atomic facts",
        }
    ],
)


class TestJsonRecovery:
    def test_balanced_object_ignores_braces_in_strings(self) -> None:
        text = 'Result: {"a": "}{", "b": {"c": 1}} trailing {"x": 2}'
        assert find_balanced_object(text) == '{"a": "}{", "b": {"c": 1}}'

    def test_unbalanced(self) -> None:
        assert find_balanced_object('{"a": 1') is None
        assert find_balanced_object("no braces") is None

    def test_strategies(self) -> None:
        assert recover_json_object('{"a": 1}') == ({"a": 1}, "whole_text")
        assert recover_json_object('```json\n{"a": 1}\n```') == ({"a": 1}, "fenced_block")
        assert recover_json_object('Sure! {"a": 1} Hope it helps.') == ({"a": 1}, "brace_match")
        assert recover_json_object("[1, 2]") == (None, "none")


class TestAnalysisResponse:
    def test_fenced_and_bare_parse_equal(self) -> None:
        bare = parse_analysis_response(BODY)
        fenced = parse_analysis_response(f"Here is my analysis:\n```json\n{BODY}\n```\nThanks")
        assert bare.ok and fenced.ok
        assert bare.value == fenced.value
        assert bare.value.suggested_cards[0].type == "cloze"

    def test_prose_around_json(self) -> None:
        result = parse_analysis_response(f"Analysis follows. {BODY} Let me know!")
        assert result.ok
        assert result.value.feedback.overall_score == 6

    def test_unparseable_text_is_soft_failure(self) -> None:
        result = parse_analysis_response("I cannot analyze this card.")
        assert not result.ok
        assert result.diagnostic
        assert result.value.error is None
        assert result.value.feedback.reasoning.startswith("Failed to parse LLM response.")
        assert "I cannot analyze this card." in result.value.feedback.reasoning

    def test_defaults_and_clamping(self) -> None:
        text = json.dumps(
            {
                "feedback": {"overallScore": 42, "isAtomic": "false", "issues": "single issue"},
                "suggestedCards": [{"type": "weird", "fields": {"Front": "q", "Back": "a"}}, "junk"],
                "deleteOriginal": "yes",
            }
        )
        value = parse_analysis_response(text).value
        assert value.feedback.overall_score == 10
        assert value.feedback.is_atomic is False
        assert value.feedback.is_unambiguous is True
        assert value.feedback.issues == ["single issue"]
        assert len(value.suggested_cards) == 1
        card = value.suggested_cards[0]
        assert card.type == "basic"
        assert [(f.name, f.value) for f in card.fields] == [("Front", "q"), ("Back", "a")]
        assert value.delete_original is True

    def test_low_score_clamped(self) -> None:
        value = parse_analysis_response('{"feedback": {"overallScore": -3}}').value
        assert value.feedback.overall_score == 1

    def test_misplaced_card_records_are_moved(self) -> None:
        card = {"type": "basic", "fields": [{"name": "Front", "value": "q"}]}
        text = json.dumps(
            {"feedback": {"overallScore": 5, "issues": ["vague", card], "suggestions": [card]}}
        )
        value = parse_analysis_response(text).value
        assert value.feedback.issues == ["vague"]
        assert value.feedback.suggestions == []
        assert len(value.suggested_cards) == 2

    def test_provider_kind_on_suggested_card_is_ignored(self) -> None:
        text = json.dumps(
            {
                "feedback": {"overallScore": 3, "issues": ["vague"]},
                "suggestedCards": [
                    {"kind": "basic", "type": "basic", "fields": [{"name": "Front", "value": "q"}]}
                ],
            }
        )
        parsed = parse_analysis_response(text)
        assert parsed.ok
        assert parsed.value.feedback.overall_score == 3
        assert parsed.value.feedback.issues == ["vague"]
        assert parsed.value.suggested_cards[0].kind == "suggested"

    def test_provider_error_field_ignored(self) -> None:
        value = parse_analysis_response('{"error": "oops", "feedback": {}}').value
        assert value.error is None
        assert not value.is_error

    def test_non_object_feedback(self) -> None:
        value = parse_analysis_response('{"feedback": "great card"}').value
        assert value.feedback.overall_score == 5


class TestDeckInsightsResponse:
    def test_full_payload(self) -> None:
        text = json.dumps(
            {
                "summary": "Solid cell biology basics.",
                "knowledgeCoverage": {
                    "overallCoverage": "GOOD",
                    "coverageScore": 7.6,
                    "coveredTopics": ["organelles"],
                    "gaps": [{"topic": "Krebs cycle", "importance": "critical"}, "Glycolysis"],
                    "recommendations": ["Add metabolism cards"],
                },
                "suggestedCards": [
                    {"type": "basic", "fields": [{"name": "Front", "value": "What is glycolysis?"}]}
                ],
            }
        )
        result = parse_deck_insights_response(f"```json\n{text}\n```")
        assert result.ok
        coverage = result.value.knowledge_coverage
        assert coverage.overall_coverage == "good"
        assert coverage.coverage_score == 8
        assert coverage.gaps[0].importance == "medium"
        assert coverage.gaps[1].topic == "Glycolysis"
        assert len(result.value.suggested_cards) == 1

    def test_summary_fallback(self) -> None:
        text = 'Broken: {"summary": "Good \\"core\\" coverage", "knowledgeCoverage": {'
        result = parse_deck_insights_response(text)
        assert result.ok
        assert result.strategy == "summary_regex"
        assert result.value.summary == 'Good "core" coverage'
        assert result.value.knowledge_coverage is None

    def test_total_failure_keeps_text(self) -> None:
        result = parse_deck_insights_response("  The deck looks fine overall.  ")
        assert not result.ok
        assert result.value.summary == "The deck looks fine overall."
