"""Settings model for llmanki."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .analysis.prompts import DEFAULT_SYSTEM_PROMPT
from .exceptions import ConfigurationError
from .providers import PROVIDERS, LLMConfig, get_provider_info

DEFAULT_CACHE_DIR = Path.home() / ".cache" / "llmanki"


class Config(BaseSettings):
    """Application configuration using pydantic-settings.

    Values come from (highest first): explicit keyword arguments (the YAML
    file, via ``load_config``), environment variables, ``.env``, defaults.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=False,
        extra="ignore",
        validate_assignment=True,
    )

    # LLM provider
    llm_provider: str = Field(default="groq", description="Provider id from the registry")
    llm_model: str = Field(
        default="", description="Model identifier (provider default when empty)"
    )
    llm_api_key: str = Field(default="", description="Provider API key")
    llm_base_url: str | None = Field(
        default=None, description="Override for the provider base URL"
    )
    llm_timeout: float = Field(default=120.0, ge=1.0, description="Request timeout in seconds")
    system_prompt: str = Field(
        default=DEFAULT_SYSTEM_PROMPT, description="System prompt for card analysis"
    )

    # Analysis runs
    send_images: bool = Field(
        default=True,
        description="Describe images by filename in prompts instead of omitting them",
    )
    max_analysis_cards: int = Field(
        default=100, ge=1, description="Maximum cards analysed per run"
    )
    concurrent_analysis: bool = Field(
        default=False, description="Analyse cards in concurrent batches of 5"
    )
    request_delay_ms: int = Field(
        default=2000, ge=0, description="Pause between requests (serial) or batches"
    )

    # Storage and logging
    cache_dir: Path = Field(
        default=DEFAULT_CACHE_DIR, description="Directory of the persistent analysis cache"
    )
    log_level: str = Field(default="INFO", description="Log level")
    log_dir: Path | None = Field(
        default=None, description="Directory for the rotating JSON log file"
    )

    @field_validator("llm_provider", mode="before")
    @classmethod
    def normalize_provider(cls, v: Any) -> str:
        return str(v or "groq").strip().lower()

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: Any) -> str:
        return str(v or "INFO").strip().upper()

    @field_validator("cache_dir", mode="before")
    @classmethod
    def parse_cache_dir(cls, v: Any) -> Path:
        if v is None or v == "":
            return DEFAULT_CACHE_DIR
        return Path(str(v)).expanduser()

    @field_validator("log_dir", mode="before")
    @classmethod
    def parse_log_dir(cls, v: Any) -> Path | None:
        """Convert string to Path."""
        if v is None or v == "":
            return None
        return Path(str(v)).expanduser()

    @model_validator(mode="after")
    def validate_config(self) -> Config:
        """Validate configuration values after initialization."""
        if self.llm_provider not in PROVIDERS:
            msg = f"Unknown LLM provider: {self.llm_provider}"
            raise ConfigurationError(
                msg,
                suggestion=f"Set llm_provider to one of: {', '.join(sorted(PROVIDERS))}",
            )
        return self

    @property
    def effective_model(self) -> str:
        return self.llm_model or get_provider_info(self.llm_provider).default_model

    def llm_config(self) -> LLMConfig:
        """Provider settings for the configured backend."""
        return LLMConfig(
            provider_id=self.llm_provider,
            model=self.effective_model,
            api_key=SecretStr(self.llm_api_key),
            base_url=self.llm_base_url,
            system_prompt=self.system_prompt or DEFAULT_SYSTEM_PROMPT,
            timeout=self.llm_timeout,
        )

    def require_api_key(self) -> None:
        """Fail early when the provider needs a key and none is set.

        Raises:
            ConfigurationError: If the key is missing
        """
        info = get_provider_info(self.llm_provider)
        if info.requires_api_key and not self.llm_api_key:
            msg = f"{info.name} requires an API key."
            raise ConfigurationError(
                msg,
                suggestion=(
                    "Set the LLM_API_KEY environment variable or llm_api_key in "
                    f"config.yaml. Get a key at {info.api_key_url}"
                ),
            )
