"""Anthropic Messages API wire shape."""

from typing import Any

from .base import BaseLLMProvider

ANTHROPIC_API_VERSION = "2023-06-01"


class AnthropicProvider(BaseLLMProvider):
    """``POST {base}/messages`` with a top-level ``system`` field.

    Authenticates with ``x-api-key``; the message list holds only the user
    turn.
    """

    def endpoint(self) -> str:
        return f"{self.base_url}/messages"

    def build_headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "x-api-key": self.api_key,
            "anthropic-version": ANTHROPIC_API_VERSION,
        }

    def build_payload(self, system_prompt: str, user_message: str) -> dict[str, Any]:
        return {
            "model": self.config.model,
            "max_tokens": self.config.max_tokens,
            "system": system_prompt,
            "messages": [{"role": "user", "content": user_message}],
        }

    def extract_text(self, data: Any) -> str:
        content = data["content"]
        if not content:
            raise ValueError("No content in response")
        texts = [
            str(block.get("text", ""))
            for block in content
            if isinstance(block, dict) and block.get("type") == "text"
        ]
        if not texts:
            raise ValueError("No text blocks in response")
        return "".join(texts)
