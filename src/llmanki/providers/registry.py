"""Known provider backends."""

from dataclasses import dataclass

from ..exceptions import ConfigurationError


@dataclass(frozen=True)
class ProviderInfo:
    id: str
    name: str
    base_url: str
    models: tuple[str, ...]
    requires_api_key: bool
    description: str = ""
    api_key_url: str = ""
    pricing: str = ""

    @property
    def default_model(self) -> str:
        return self.models[0]


PROVIDERS: dict[str, ProviderInfo] = {
    info.id: info
    for info in (
        ProviderInfo(
            id="openai",
            name="OpenAI",
            base_url="https://api.openai.com/v1",
            models=("gpt-4o", "gpt-4o-mini", "gpt-4-turbo", "gpt-3.5-turbo"),
            requires_api_key=True,
            description="GPT-4 and GPT-3.5 models with strong reasoning.",
            api_key_url="https://platform.openai.com/api-keys",
            pricing="Pay-per-use. gpt-4o-mini is cheapest.",
        ),
        ProviderInfo(
            id="anthropic",
            name="Anthropic",
            base_url="https://api.anthropic.com/v1",
            models=(
                "claude-3-5-sonnet-20241022",
                "claude-3-5-haiku-20241022",
                "claude-3-opus-20240229",
            ),
            requires_api_key=True,
            description="Claude models, good at nuanced analysis and complex instructions.",
            api_key_url="https://console.anthropic.com/settings/keys",
            pricing="Pay-per-use. Claude 3.5 Haiku is most affordable.",
        ),
        ProviderInfo(
            id="groq",
            name="Groq (Free Tier)",
            base_url="https://api.groq.com/openai/v1",
            models=("llama-3.3-70b-versatile", "llama-3.1-8b-instant", "mixtral-8x7b-32768"),
            requires_api_key=True,
            description="Very fast inference on open models.",
            api_key_url="https://console.groq.com/keys",
            pricing="Free tier with generous limits.",
        ),
        ProviderInfo(
            id="together",
            name="Together AI",
            base_url="https://api.together.xyz/v1",
            models=(
                "meta-llama/Llama-3.3-70B-Instruct-Turbo",
                "mistralai/Mixtral-8x7B-Instruct-v0.1",
            ),
            requires_api_key=True,
            description="Many open-source models at competitive prices.",
            api_key_url="https://api.together.xyz/settings/api-keys",
            pricing="Free credit on signup, pay-per-use after.",
        ),
        ProviderInfo(
            id="openrouter",
            name="OpenRouter",
            base_url="https://openrouter.ai/api/v1",
            models=(
                "openai/gpt-4o",
                "anthropic/claude-3.5-sonnet",
                "meta-llama/llama-3.3-70b-instruct",
                "google/gemini-2.0-flash-exp:free",
            ),
            requires_api_key=True,
            description="One key for many upstream providers.",
            api_key_url="https://openrouter.ai/keys",
            pricing="Some models are free, others pay-per-use.",
        ),
        ProviderInfo(
            id="ollama",
            name="Ollama (Local)",
            base_url="http://localhost:11434/v1",
            models=("llama3.2", "mistral", "qwen2.5"),
            requires_api_key=False,
            description="Models running on your own machine.",
            api_key_url="https://ollama.ai/download",
            pricing="Free, runs on your own hardware.",
        ),
    )
}


def get_provider_info(provider_id: str) -> ProviderInfo:
    """Look up a provider by id.

    Raises:
        ConfigurationError: If the provider id is unknown
    """
    try:
        return PROVIDERS[provider_id.lower()]
    except KeyError:
        raise ConfigurationError(
            f"Unknown provider: {provider_id}",
            suggestion=f"Use one of: {', '.join(sorted(PROVIDERS))}",
        ) from None
