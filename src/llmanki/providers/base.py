"""Base LLM provider interface."""

import time
from abc import ABC, abstractmethod
from typing import Any

import httpx

from ..exceptions import ErrorKind, LLMError
from ..utils.logging import get_logger
from .config_models import LLMConfig
from .errors import classify_http_error, classify_transport_error, suggestion_for
from .registry import ProviderInfo

logger = get_logger(__name__)


class BaseLLMProvider(ABC):
    """Abstract base class for provider adapters.

    Subclasses describe one wire shape (endpoint, headers, payload and how
    to read the text back); sending the request and classifying failures is
    shared. A provider makes exactly one attempt per call.
    """

    def __init__(
        self,
        config: LLMConfig,
        info: ProviderInfo,
        client: httpx.AsyncClient | None = None,
    ):
        """Initialize the provider.

        Args:
            config: Model, key and prompt settings
            info: Registry entry of the provider
            client: Shared async HTTP client; a short-lived one is created per
                call when omitted
        """
        self.config = config
        self.info = info
        self.base_url = (config.base_url or info.base_url).rstrip("/")
        self._client = client
        logger.debug(
            "provider_initialized",
            provider=info.id,
            config=self._safe_config_for_logging(),
        )

    def _safe_config_for_logging(self) -> dict[str, Any]:
        """Return config with sensitive data redacted for logging."""
        safe_config = self.config.model_dump(exclude={"system_prompt"})
        for key in ["api_key", "token", "password"]:
            if key in safe_config:
                safe_config[key] = "***REDACTED***"
        safe_config["base_url"] = self.base_url
        return safe_config

    @property
    def provider_id(self) -> str:
        return self.info.id

    @property
    def api_key(self) -> str:
        return self.config.api_key.get_secret_value()

    @abstractmethod
    def endpoint(self) -> str:
        """Full URL the request is posted to."""

    @abstractmethod
    def build_headers(self) -> dict[str, str]:
        """Request headers, including authentication."""

    @abstractmethod
    def build_payload(self, system_prompt: str, user_message: str) -> dict[str, Any]:
        """JSON request body."""

    @abstractmethod
    def extract_text(self, data: Any) -> str:
        """Pull the completion text out of a decoded response body.

        Raises:
            KeyError, IndexError, TypeError: If the body has an unexpected shape
        """

    async def _post(self, payload: dict[str, Any]) -> httpx.Response:
        headers = self.build_headers()
        if self._client is not None:
            return await self._client.post(
                self.endpoint(), json=payload, headers=headers, timeout=self.config.timeout
            )
        async with httpx.AsyncClient(timeout=httpx.Timeout(self.config.timeout)) as client:
            return await client.post(self.endpoint(), json=payload, headers=headers)

    async def complete(self, system_prompt: str, user_message: str) -> str:
        """Send one analysis request and return the raw completion text.

        Raises:
            LLMError: On transport failure, non-success status or an
                unreadable response body
        """
        payload = self.build_payload(system_prompt, user_message)
        request_start_time = time.time()

        logger.info(
            "provider_request",
            provider=self.provider_id,
            model=self.config.model,
            system_length=len(system_prompt),
            prompt_length=len(user_message),
        )

        try:
            response = await self._post(payload)
        except httpx.RequestError as e:
            error = classify_transport_error(e, self.provider_id, self.config.model)
            logger.error("provider_request_failed", **error.to_dict())
            raise error from e

        duration = round(time.time() - request_start_time, 2)

        if response.is_error:
            error = classify_http_error(response, self.provider_id, self.config.model)
            logger.error("provider_http_error", duration=duration, **error.to_dict())
            raise error

        try:
            text = self.extract_text(response.json())
        except (ValueError, KeyError, IndexError, TypeError, AttributeError) as e:
            logger.error(
                "provider_parse_error",
                provider=self.provider_id,
                error=str(e),
                response_text=response.text[:500],
            )
            raise LLMError(
                f"Unreadable response from {self.provider_id}: {e}",
                kind=ErrorKind.CONNECTION_ERROR,
                provider=self.provider_id,
                status_code=response.status_code,
                suggestion=suggestion_for(ErrorKind.CONNECTION_ERROR, self.provider_id),
            ) from e

        logger.info(
            "provider_response",
            provider=self.provider_id,
            model=self.config.model,
            response_length=len(text),
            duration=duration,
        )
        return text
