"""LLM provider adapters."""

from .anthropic import AnthropicProvider
from .base import BaseLLMProvider
from .config_models import LLMConfig
from .errors import SUGGESTIONS, classify_http_error, classify_kind, extract_retry_after
from .factory import ProviderCaller, ProviderFactory, call_provider
from .openai_compatible import ChatCompletionsProvider
from .registry import PROVIDERS, ProviderInfo, get_provider_info

__all__ = [
    "PROVIDERS",
    "SUGGESTIONS",
    "AnthropicProvider",
    "BaseLLMProvider",
    "ChatCompletionsProvider",
    "LLMConfig",
    "ProviderCaller",
    "ProviderFactory",
    "ProviderInfo",
    "call_provider",
    "classify_http_error",
    "classify_kind",
    "extract_retry_after",
    "get_provider_info",
]
