"""Domain enumerations for the completion engine."""

from __future__ import annotations

import enum


class Role(str, enum.Enum):
    """Author of a conversation message."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class LLMProvider(str, enum.Enum):
    """Supported language-model providers."""

    OPENAI = "openai"
    GEMINI = "gemini"
    PERPLEXITY = "perplexity"


class AttemptOutcome(str, enum.Enum):
    """Result of one provider attempt inside a fallback chain."""

    SUCCESS = "success"
    TIMEOUT = "timeout"
    PROVIDER_ERROR = "provider_error"
    TRANSPORT_ERROR = "transport_error"
    UNEXPECTED_ERROR = "unexpected_error"


class TravelContentKind(str, enum.Enum):
    """Canned travel content prompts."""

    ITINERARY = "itinerary"
    DESCRIPTION = "description"
    TIPS = "tips"
    TEMPLATE = "template"
