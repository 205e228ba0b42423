"""Tests for the single-card analysis pipeline."""

import pytest

from llmanki.analysis import DEFAULT_SYSTEM_PROMPT, CardAnalyzer
from llmanki.domain.entities import Card
from llmanki.exceptions import LLMError, RenderError
from llmanki.rendering import render_card
from tests.fixtures import MockProvider, analysis_json

SCOPE = "biology.json"


@pytest.mark.asyncio
async def test_analyze_calls_provider_and_caches(collection, analysis_cache, llm_config) -> None:
    provider = MockProvider([analysis_json(score=7)])
    analyzer = CardAnalyzer(collection, analysis_cache, llm_config, caller=provider)

    analysis = await analyzer.analyze(collection.cards[1], SCOPE)

    assert analysis.result.feedback.overall_score == 7
    assert not analysis.from_cache
    assert analysis.parsed
    system, message, config = provider.call_history[0]
    assert system == DEFAULT_SYSTEM_PROMPT
    assert message.startswith("Please analyze this Anki card")
    assert "Question 1" in message
    assert config is llm_config

    rendered = await render_card(collection, collection.cards[1])
    cached = analysis_cache.get(SCOPE, 1, rendered.fields, rendered.deck_name)
    assert cached == analysis.result


@pytest.mark.asyncio
async def test_cache_hit_skips_provider(collection, analysis_cache, llm_config) -> None:
    provider = MockProvider()
    analyzer = CardAnalyzer(collection, analysis_cache, llm_config, caller=provider)

    await analyzer.analyze(collection.cards[1], SCOPE)
    second = await analyzer.analyze(collection.cards[1], SCOPE)

    assert second.from_cache
    assert provider.call_count == 1


@pytest.mark.asyncio
async def test_cached_error_result_is_retried(collection, analysis_cache, llm_config) -> None:
    from llmanki.domain.entities import LLMAnalysisResult

    rendered = await render_card(collection, collection.cards[1])
    analysis_cache.put(
        SCOPE, 1, rendered.fields, LLMAnalysisResult.from_error("timeout"), rendered.deck_name
    )
    provider = MockProvider()
    analyzer = CardAnalyzer(collection, analysis_cache, llm_config, caller=provider)

    analysis = await analyzer.analyze(collection.cards[1], SCOPE)

    assert provider.call_count == 1
    assert not analysis.result.is_error


@pytest.mark.asyncio
async def test_unparsed_response_is_kept(collection, analysis_cache, llm_config) -> None:
    provider = MockProvider(["Sorry, I can't do that."])
    analyzer = CardAnalyzer(collection, analysis_cache, llm_config, caller=provider)

    analysis = await analyzer.analyze(collection.cards[1], SCOPE)

    assert not analysis.parsed
    assert "Sorry, I can't do that." in analysis.result.feedback.reasoning


@pytest.mark.asyncio
async def test_custom_system_prompt(collection, analysis_cache, llm_config) -> None:
    provider = MockProvider()
    config = llm_config.model_copy(update={"system_prompt": "Be brief."})
    analyzer = CardAnalyzer(collection, analysis_cache, config, caller=provider)

    await analyzer.analyze(collection.cards[1], SCOPE)

    assert provider.call_history[0][0] == "Be brief."


@pytest.mark.asyncio
async def test_provider_error_propagates(collection, analysis_cache, llm_config) -> None:
    analyzer = CardAnalyzer(
        collection, analysis_cache, llm_config, caller=MockProvider(fail_on={1})
    )
    with pytest.raises(LLMError):
        await analyzer.analyze(collection.cards[1], SCOPE)


@pytest.mark.asyncio
async def test_render_error_propagates(collection, analysis_cache, llm_config) -> None:
    analyzer = CardAnalyzer(collection, analysis_cache, llm_config, caller=MockProvider())
    with pytest.raises(RenderError):
        await analyzer.analyze(Card(id=99, note_id=999, deck_id=1, ordinal=0), SCOPE)
