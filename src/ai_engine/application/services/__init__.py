"""AI engine service — the in-process entry-point for completions.

Request handlers call this facade; it converts convenience requests into
``ChatRequest`` values, dispatches them through the fallback orchestrator
and, for structured output, extracts the embedded JSON value.
"""

from __future__ import annotations

from typing import Any, Mapping

import httpx
import structlog

from ai_engine.domain.enums import TravelContentKind
from ai_engine.domain.exceptions import ExtractionError, ValidationError
from ai_engine.domain.value_objects import (
    AIResponse,
    ChatRequest,
    GenerateRequest,
    StructuredResult,
)
from ai_engine.shared.extraction import extract_json
from ai_engine.shared.providers.health import ProviderHealthMonitor
from ai_engine.shared.providers.orchestrator import FallbackOrchestrator
from ai_engine.shared.providers.types import ProviderHealth

logger = structlog.get_logger(__name__)

DEFAULT_STRUCTURED_TEMPERATURE = 0.3

JSON_SYSTEM_PROMPT = "You are a helpful assistant that responds ONLY in valid JSON format."

TRAVEL_SYSTEM_PROMPT = (
    "You are an expert travel content writer with deep knowledge of destinations worldwide."
)

TRAVEL_PROMPTS: dict[TravelContentKind, str] = {
    TravelContentKind.ITINERARY: (
        "Create a detailed travel itinerary for {destination} for {days} days. "
        "Include activities, restaurants, and transportation tips."
    ),
    TravelContentKind.DESCRIPTION: (
        "Write an engaging travel description for {destination}. "
        "Include highlights, best time to visit, and what makes it unique."
    ),
    TravelContentKind.TIPS: (
        "Provide practical travel tips for visiting {destination}. "
        "Include local customs, safety, currency, and insider recommendations."
    ),
    TravelContentKind.TEMPLATE: (
        "Generate a modern travel website template structure for a {type} website. "
        "Include sections, color scheme suggestions, and content placeholders."
    ),
}
TRAVEL_MAX_TOKENS = 2000


class _ContextDict(dict):  # type: ignore[type-arg]
    def __missing__(self, key: str) -> str:
        raise ValidationError(f"Travel content context is missing {key!r}")


def structured_system_prompt(schema: str | None = None) -> str:
    if schema:
        return f"{JSON_SYSTEM_PROMPT} Follow this schema: {schema}"
    return JSON_SYSTEM_PROMPT


class AIEngine:
    """Facade over the fallback orchestrator."""

    def __init__(
        self,
        orchestrator: FallbackOrchestrator,
        *,
        health_monitor: ProviderHealthMonitor | None = None,
        structured_temperature: float = DEFAULT_STRUCTURED_TEMPERATURE,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._orchestrator = orchestrator
        self._health = health_monitor
        self._structured_temperature = structured_temperature
        self._http_client = http_client

    @property
    def orchestrator(self) -> FallbackOrchestrator:
        return self._orchestrator

    # ── Completions ──────────────────────────────────────────
    async def chat_completion(self, request: ChatRequest) -> AIResponse:
        return await self._orchestrator.execute(request)

    async def generate_text(self, request: GenerateRequest) -> AIResponse:
        return await self._orchestrator.execute(request.to_chat_request())

    async def generate_structured(
        self, prompt: str, schema: str | None = None
    ) -> StructuredResult:
        """Generate a JSON value.

        The model is told to answer in JSON only (following ``schema`` when
        given) at a low temperature; the first balanced object or array in
        its reply is parsed.

        Raises:
            AllProvidersExhaustedError: no provider answered.
            ExtractionError: the reply held no parseable JSON value.
        """
        response = await self.generate_text(
            GenerateRequest(
                prompt=prompt,
                system_prompt=structured_system_prompt(schema),
                temperature=self._structured_temperature,
            )
        )
        try:
            data = extract_json(response.content)
        except ExtractionError as exc:
            logger.warning(
                "structured_extraction_failed",
                provider=response.provider,
                reason=exc.reason,
                content_length=len(response.content),
            )
            raise
        return StructuredResult(data=data, provider=response.provider)

    async def generate_travel_content(
        self, kind: TravelContentKind | str, context: Mapping[str, Any]
    ) -> AIResponse:
        """Travel copy for the travel template generator.

        ``kind`` selects a canned prompt filled from ``context``; an unknown
        kind falls back to ``context["prompt"]``.
        """
        try:
            template: str | None = TRAVEL_PROMPTS[TravelContentKind(kind)]
        except ValueError:
            template = None

        if template is not None:
            prompt = template.format_map(_ContextDict(context))
        elif context.get("prompt"):
            prompt = str(context["prompt"])
        else:
            raise ValidationError(f"Unknown travel content kind {kind!r} and no prompt given")

        return await self.generate_text(
            GenerateRequest(
                prompt=prompt,
                system_prompt=TRAVEL_SYSTEM_PROMPT,
                max_tokens=TRAVEL_MAX_TOKENS,
            )
        )

    # ── Introspection ────────────────────────────────────────
    def get_providers_status(self) -> dict[str, dict[str, object]]:
        return self._orchestrator.registry.status()

    def get_providers_health(self) -> list[ProviderHealth]:
        if self._health is None:
            return []
        return self._health.snapshot()

    async def close(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()


__all__ = ["AIEngine", "structured_system_prompt"]
