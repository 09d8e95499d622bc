"""LLM provider adapters and registry construction.

Each adapter is a thin translation layer over one provider's HTTP API.
``build_registry`` turns settings into the ordered fallback chain; a
provider without a usable key is registered as disabled and never called.
"""

from __future__ import annotations

import httpx
import structlog

from ai_engine.adapters.outbound.llm.base import CompletionDefaults, HttpProviderAdapter
from ai_engine.adapters.outbound.llm.gemini import GeminiAdapter
from ai_engine.adapters.outbound.llm.openai import OpenAIAdapter, OpenAICompatibleAdapter
from ai_engine.adapters.outbound.llm.perplexity import PerplexityAdapter
from ai_engine.config import Settings
from ai_engine.domain.enums import LLMProvider
from ai_engine.domain.exceptions import NotConfiguredError
from ai_engine.shared.providers.registry import ProviderRegistry, RegistryEntry
from ai_engine.shared.providers.types import ProviderDescriptor

logger = structlog.get_logger(__name__)

ADAPTER_TYPES: dict[LLMProvider, type[HttpProviderAdapter]] = {
    LLMProvider.OPENAI: OpenAIAdapter,
    LLMProvider.GEMINI: GeminiAdapter,
    LLMProvider.PERPLEXITY: PerplexityAdapter,
}


def _adapter_options(settings: Settings, provider: LLMProvider) -> dict[str, str]:
    if provider == LLMProvider.OPENAI:
        return {"model": settings.openai_model, "base_url": settings.openai_base_url}
    if provider == LLMProvider.GEMINI:
        return {"model": settings.gemini_model, "base_url": settings.gemini_base_url}
    return {"model": settings.perplexity_model, "base_url": settings.perplexity_base_url}


def build_registry(settings: Settings, client: httpx.AsyncClient) -> ProviderRegistry:
    """Build the fallback chain in ``settings.ai_provider_priority`` order."""
    defaults = CompletionDefaults(
        max_tokens=settings.ai_default_max_tokens,
        temperature=settings.ai_default_temperature,
    )
    entries: list[RegistryEntry] = []

    for provider in settings.provider_order:
        adapter_type = ADAPTER_TYPES[provider]
        adapter: HttpProviderAdapter | None
        try:
            adapter = adapter_type(
                client,
                settings.api_key_for(provider),
                defaults=defaults,
                **_adapter_options(settings, provider),
            )
        except NotConfiguredError as exc:
            logger.warning("provider_not_configured", provider=provider.value, reason=exc.message)
            adapter = None

        entries.append(
            (
                ProviderDescriptor(
                    identifier=provider.value,
                    display_name=adapter_type.display_name,
                    enabled=adapter is not None,
                    timeout_ms=settings.timeout_ms_for(provider),
                ),
                adapter,
            )
        )

    return ProviderRegistry(entries)


__all__ = [
    "ADAPTER_TYPES",
    "CompletionDefaults",
    "GeminiAdapter",
    "HttpProviderAdapter",
    "OpenAIAdapter",
    "OpenAICompatibleAdapter",
    "PerplexityAdapter",
    "build_registry",
]
