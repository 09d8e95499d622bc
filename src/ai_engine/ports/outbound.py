"""Outbound ports — interfaces that infrastructure adapters must implement.

The orchestrator depends only on these abstractions, never on a concrete
provider client.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from ai_engine.domain.value_objects import AIResponse, ChatRequest


# ═══════════════════════════════════════════════════════════════
#  LLM provider port
# ═══════════════════════════════════════════════════════════════
class ProviderAdapter(ABC):
    """One external language-model provider.

    Implementations perform exactly one outbound call per ``complete`` and
    keep no per-call state between invocations.
    """

    identifier: str
    display_name: str
    model: str

    @abstractmethod
    async def complete(self, request: ChatRequest) -> AIResponse:
        """Send the request and return a normalized response.

        Raises:
            ProviderError: transport failure or provider-reported error.
        """
        ...
