"""Chat-completions wire shape (OpenAI, Groq, Together, OpenRouter, Ollama)."""

from typing import Any

from .base import BaseLLMProvider

OPENROUTER_REFERER = "https://github.com/llmanki/llmanki"
OPENROUTER_TITLE = "LLMAnki"


class ChatCompletionsProvider(BaseLLMProvider):
    """``POST {base}/chat/completions`` with a system and a user message.

    Bearer authentication is sent only when a key is configured, so local
    servers work without one.
    """

    def endpoint(self) -> str:
        return f"{self.base_url}/chat/completions"

    def build_headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        if self.provider_id == "openrouter":
            headers["HTTP-Referer"] = OPENROUTER_REFERER
            headers["X-Title"] = OPENROUTER_TITLE
        return headers

    def build_payload(self, system_prompt: str, user_message: str) -> dict[str, Any]:
        return {
            "model": self.config.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_message},
            ],
            "temperature": self.config.temperature,
            "max_tokens": self.config.max_tokens,
        }

    def extract_text(self, data: Any) -> str:
        content = data["choices"][0]["message"]["content"]
        if not isinstance(content, str):
            raise TypeError("message content is not text")
        return content
