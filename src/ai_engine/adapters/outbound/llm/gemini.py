"""Google Gemini ``generateContent`` adapter."""

from __future__ import annotations

from typing import Any

from ai_engine.adapters.outbound.llm.base import HttpProviderAdapter, usage_tokens
from ai_engine.domain.enums import Role
from ai_engine.domain.exceptions import ProviderError
from ai_engine.domain.value_objects import AIResponse, ChatRequest


class GeminiAdapter(HttpProviderAdapter):
    """System turns go to ``system_instruction``; assistant turns use role ``model``."""

    identifier = "gemini"
    display_name = "Google Gemini"

    async def complete(self, request: ChatRequest) -> AIResponse:
        data = await self._post_json(
            f"{self._base_url}/models/{self.model}:generateContent",
            headers={
                "x-goog-api-key": self._api_key,
                "Content-Type": "application/json",
            },
            body=self._build_body(request),
        )
        usage = data.get("usageMetadata")
        tokens = usage.get("totalTokenCount") if isinstance(usage, dict) else None
        return AIResponse(
            content=self._candidate_text(data),
            provider=self.display_name,
            model=self.model,
            tokens_used=usage_tokens(tokens),
        )

    def _build_body(self, request: ChatRequest) -> dict[str, Any]:
        system_parts: list[str] = []
        contents: list[dict[str, Any]] = []
        for message in request.conversation():
            if message.role == Role.SYSTEM:
                system_parts.append(message.content)
                continue
            contents.append(
                {
                    "role": "model" if message.role == Role.ASSISTANT else "user",
                    "parts": [{"text": message.content}],
                }
            )

        if not contents:
            # generateContent rejects an empty conversation
            contents.append({"role": "user", "parts": [{"text": "\n\n".join(system_parts)}]})
            system_parts = []

        body: dict[str, Any] = {
            "contents": contents,
            "generationConfig": {
                "temperature": self._defaults.temperature_for(request),
                "maxOutputTokens": self._defaults.max_tokens_for(request),
            },
        }
        if system_parts:
            body["system_instruction"] = {"parts": [{"text": "\n\n".join(system_parts)}]}
        return body

    def _candidate_text(self, data: dict[str, Any]) -> str:
        candidates = data.get("candidates")
        if not isinstance(candidates, list) or not candidates:
            return ""
        first = candidates[0]
        if not isinstance(first, dict):
            raise ProviderError(self.display_name, f"Malformed candidate entry: {first!r}")
        content = first.get("content") or {}
        parts = content.get("parts") if isinstance(content, dict) else None
        if parts is None:
            return ""
        if not isinstance(parts, list):
            raise ProviderError(self.display_name, f"Malformed content parts: {parts!r}")
        return "".join(str(p.get("text") or "") for p in parts if isinstance(p, dict))
