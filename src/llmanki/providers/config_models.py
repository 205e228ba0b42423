"""Provider configuration model."""

from pydantic import BaseModel, Field, SecretStr

DEFAULT_MAX_TOKENS = 4096
DEFAULT_TEMPERATURE = 0.7


class LLMConfig(BaseModel):
    """Everything a provider adapter needs for one request."""

    provider_id: str = Field(default="groq", description="Registry id of the provider")
    model: str = Field(default="llama-3.3-70b-versatile", description="Model identifier")
    api_key: SecretStr = Field(default=SecretStr(""), description="Provider API key")
    base_url: str | None = Field(
        default=None, description="Override for the registry base URL"
    )
    system_prompt: str = Field(default="", description="System prompt for card analysis")
    timeout: float = Field(default=120.0, ge=1.0, description="Request timeout in seconds")
    max_tokens: int = Field(default=DEFAULT_MAX_TOKENS, ge=1)
    temperature: float = Field(default=DEFAULT_TEMPERATURE, ge=0.0, le=2.0)
