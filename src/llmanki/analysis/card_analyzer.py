"""Single-card analysis: render, consult the cache, call the provider, parse, store."""

from dataclasses import dataclass

from ..domain.entities import Card, Collection, LLMAnalysisResult, RenderedCard
from ..infrastructure.cache import AnalysisCache
from ..providers import LLMConfig, ProviderCaller, call_provider
from ..rendering import render_card
from ..utils.logging import get_logger
from .prompts import DEFAULT_SYSTEM_PROMPT, build_analysis_message
from .response_parser import parse_analysis_response

logger = get_logger(__name__)


@dataclass(frozen=True)
class CardAnalysis:
    card: RenderedCard
    result: LLMAnalysisResult
    from_cache: bool = False
    parsed: bool = True


class CardAnalyzer:
    """Analyze cards of one collection with one provider configuration."""

    def __init__(
        self,
        collection: Collection,
        cache: AnalysisCache,
        llm_config: LLMConfig,
        *,
        send_images: bool = True,
        caller: ProviderCaller = call_provider,
    ):
        self.collection = collection
        self.cache = cache
        self.llm_config = llm_config
        self.send_images = send_images
        self._caller = caller

    @property
    def system_prompt(self) -> str:
        return self.llm_config.system_prompt or DEFAULT_SYSTEM_PROMPT

    async def analyze(self, card: Card, scope_file: str) -> CardAnalysis:
        """Analyze one card, reusing a cached result when the content is unchanged.

        Raises:
            RenderError: If the card cannot be rendered
            LLMError: If the provider call fails
        """
        rendered = await render_card(self.collection, card)

        cached = self.cache.get(scope_file, rendered.id, rendered.fields, rendered.deck_name)
        if cached is not None and not cached.is_error:
            logger.debug("card_analysis_cache_hit", card_id=card.id)
            return CardAnalysis(card=rendered, result=cached, from_cache=True)

        text = await self._caller(
            self.system_prompt,
            build_analysis_message(rendered, self.send_images),
            self.llm_config,
        )
        parsed = parse_analysis_response(text)
        if not parsed.ok:
            logger.warning(
                "card_analysis_unparsed", card_id=card.id, diagnostic=parsed.diagnostic
            )

        self.cache.put(scope_file, rendered.id, rendered.fields, parsed.value, rendered.deck_name)
        logger.debug(
            "card_analyzed",
            card_id=card.id,
            score=parsed.value.feedback.overall_score,
            suggested_cards=len(parsed.value.suggested_cards),
        )
        return CardAnalysis(card=rendered, result=parsed.value, parsed=parsed.ok)
