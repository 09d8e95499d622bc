"""Perplexity adapter — OpenAI-compatible, but errors can arrive in a 2xx body."""

from __future__ import annotations

from typing import Any

from ai_engine.adapters.outbound.llm.base import error_message_from
from ai_engine.adapters.outbound.llm.openai import OpenAICompatibleAdapter
from ai_engine.domain.exceptions import ProviderError


class PerplexityAdapter(OpenAICompatibleAdapter):
    identifier = "perplexity"
    display_name = "Perplexity"

    def _check_body(self, data: dict[str, Any]) -> None:
        if data.get("error"):
            message = error_message_from(data) or "Perplexity API error"
            raise ProviderError(self.display_name, f"Perplexity API error: {message}")
