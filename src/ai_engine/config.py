"""Completion engine — application configuration."""

from __future__ import annotations

import enum
import warnings
from typing import Any

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ai_engine.domain.enums import LLMProvider

# Values shipped in example .env files; treated as "no key".
PLACEHOLDER_API_KEYS = frozenset(
    {
        "your-openai-key-here",
        "your-gemini-key-here",
        "your-perplexity-key-here",
        "sk-dummy-key",
        "changeme",
    }
)


class Environment(str, enum.Enum):
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class Settings(BaseSettings):
    """Centralised, validated configuration loaded from environment / .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Application ──────────────────────────────────────────
    app_env: Environment = Environment.DEVELOPMENT
    log_level: str = "INFO"

    # ── OpenAI ───────────────────────────────────────────────
    openai_api_key: str = ""
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model: str = "gpt-4o"
    openai_timeout_ms: int = Field(30_000, gt=0)

    # ── Gemini ───────────────────────────────────────────────
    gemini_api_key: str = ""
    google_ai_api_key: str = ""  # legacy name, used when GEMINI_API_KEY is unset
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    gemini_model: str = "gemini-2.0-flash-exp"
    gemini_timeout_ms: int = Field(30_000, gt=0)

    # ── Perplexity ───────────────────────────────────────────
    perplexity_api_key: str = ""
    perplexity_base_url: str = "https://api.perplexity.ai"
    perplexity_model: str = "llama-3.1-sonar-large-128k-online"
    perplexity_timeout_ms: int = Field(30_000, gt=0)

    # ── Fallback chain ───────────────────────────────────────
    ai_provider_priority: str = "openai,gemini,perplexity"

    # Completion defaults applied when a request leaves them unset
    ai_default_max_tokens: int = Field(2000, gt=0)
    ai_default_temperature: float = Field(0.7, ge=0.0, le=2.0)
    ai_structured_temperature: float = Field(0.3, ge=0.0, le=2.0)

    # ── Observability ────────────────────────────────────────
    prometheus_enabled: bool = True

    # ── Derived helpers ──────────────────────────────────────
    @property
    def is_production(self) -> bool:
        return self.app_env == Environment.PRODUCTION

    @property
    def provider_order(self) -> list[LLMProvider]:
        return [LLMProvider(name) for name in _split_priority(self.ai_provider_priority)]

    @property
    def effective_gemini_api_key(self) -> str:
        return self.gemini_api_key or self.google_ai_api_key

    def api_key_for(self, provider: LLMProvider) -> str:
        """Configured key for ``provider``; blank when unset or a placeholder."""
        key = {
            LLMProvider.OPENAI: self.openai_api_key,
            LLMProvider.GEMINI: self.effective_gemini_api_key,
            LLMProvider.PERPLEXITY: self.perplexity_api_key,
        }[provider].strip()
        return "" if key.lower() in PLACEHOLDER_API_KEYS else key

    def timeout_ms_for(self, provider: LLMProvider) -> int:
        return {
            LLMProvider.OPENAI: self.openai_timeout_ms,
            LLMProvider.GEMINI: self.gemini_timeout_ms,
            LLMProvider.PERPLEXITY: self.perplexity_timeout_ms,
        }[provider]

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, v: str) -> str:
        return v.upper()

    @field_validator("ai_provider_priority")
    @classmethod
    def _validate_priority(cls, v: str) -> str:
        names = _split_priority(v)
        known = {p.value for p in LLMProvider}
        unknown = [n for n in names if n not in known]
        if unknown:
            raise ValueError(f"Unknown providers in ai_provider_priority: {', '.join(unknown)}")
        if len(set(names)) != len(names):
            raise ValueError("ai_provider_priority lists a provider more than once")
        return ",".join(names)

    @model_validator(mode="after")
    def _warn_without_providers(self) -> Settings:
        """Starting with no provider is allowed, but never silently."""
        if not any(self.api_key_for(p) for p in self.provider_order):
            warnings.warn(
                "No AI provider API key configured; every completion will fail",
                UserWarning,
                stacklevel=2,
            )
        return self


def _split_priority(value: str) -> list[str]:
    return [name.strip().lower() for name in value.split(",") if name.strip()]


def get_settings(**overrides: Any) -> Settings:
    """Factory that allows test-time overrides."""
    return Settings(**overrides)
