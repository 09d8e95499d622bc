"""OpenAI chat completions adapter (and the shared OpenAI-compatible wire format)."""

from __future__ import annotations

from typing import Any

from ai_engine.adapters.outbound.llm.base import HttpProviderAdapter, usage_tokens
from ai_engine.domain.exceptions import ProviderError
from ai_engine.domain.value_objects import AIResponse, ChatRequest


class OpenAICompatibleAdapter(HttpProviderAdapter):
    """``POST {base_url}/chat/completions`` with bearer auth."""

    async def complete(self, request: ChatRequest) -> AIResponse:
        data = await self._post_json(
            f"{self._base_url}/chat/completions",
            headers={
                "Authorization": f"Bearer {self._api_key}",
                "Content-Type": "application/json",
            },
            body=self._build_body(request),
        )
        self._check_body(data)
        return AIResponse(
            content=self._first_choice_text(data),
            provider=self.display_name,
            model=self.model,
            tokens_used=usage_tokens((data.get("usage") or {}).get("total_tokens")),
        )

    def _build_body(self, request: ChatRequest) -> dict[str, Any]:
        return {
            "model": self.model,
            "messages": [
                {"role": m.role.value, "content": m.content} for m in request.conversation()
            ],
            "max_tokens": self._defaults.max_tokens_for(request),
            "temperature": self._defaults.temperature_for(request),
        }

    def _check_body(self, data: dict[str, Any]) -> None:
        """Hook for providers that report errors inside a 2xx body."""

    def _first_choice_text(self, data: dict[str, Any]) -> str:
        choices = data.get("choices")
        if not isinstance(choices, list) or not choices:
            return ""
        first = choices[0]
        if not isinstance(first, dict):
            raise ProviderError(self.display_name, f"Malformed choice entry: {first!r}")
        message = first.get("message") or {}
        content = message.get("content") if isinstance(message, dict) else None
        return content if isinstance(content, str) else ""


class OpenAIAdapter(OpenAICompatibleAdapter):
    identifier = "openai"
    display_name = "OpenAI"
