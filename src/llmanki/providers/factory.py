"""Provider factory and the single-call entry point."""

from collections.abc import Awaitable, Callable

import httpx

from ..utils.logging import get_logger
from .anthropic import AnthropicProvider
from .base import BaseLLMProvider
from .config_models import LLMConfig
from .openai_compatible import ChatCompletionsProvider
from .registry import get_provider_info

logger = get_logger(__name__)

# (system_prompt, user_message, config) -> completion text
ProviderCaller = Callable[[str, str, LLMConfig], Awaitable[str]]


class ProviderFactory:
    """Creates the adapter matching a provider's wire shape.

    The shape is chosen by provider identity, never by response content.
    """

    PROVIDER_MAP: dict[str, type[BaseLLMProvider]] = {
        "anthropic": AnthropicProvider,
    }
    DEFAULT_PROVIDER = ChatCompletionsProvider

    @classmethod
    def create_provider(
        cls, config: LLMConfig, client: httpx.AsyncClient | None = None
    ) -> BaseLLMProvider:
        """Create a provider instance for ``config.provider_id``.

        Raises:
            ConfigurationError: If the provider id is unknown
        """
        info = get_provider_info(config.provider_id)
        if info.requires_api_key and not config.api_key.get_secret_value():
            logger.warning("provider_missing_api_key", provider=info.id)
        provider_class = cls.PROVIDER_MAP.get(info.id, cls.DEFAULT_PROVIDER)
        return provider_class(config, info, client=client)


async def call_provider(
    system_prompt: str,
    user_message: str,
    config: LLMConfig,
    client: httpx.AsyncClient | None = None,
) -> str:
    """Issue one request to the configured provider and return its text.

    Raises:
        LLMError: Classified provider failure
        ConfigurationError: If the provider id is unknown
    """
    provider = ProviderFactory.create_provider(config, client=client)
    return await provider.complete(system_prompt, user_message)
