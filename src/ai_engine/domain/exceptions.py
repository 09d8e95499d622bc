"""Domain-specific exception hierarchy.

All exceptions inherit from ``DomainError`` so callers can catch the entire
family in one clause while still discriminating on subclass.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ai_engine.domain.enums import AttemptOutcome

if TYPE_CHECKING:
    from ai_engine.domain.value_objects import FailureRecord


class DomainError(Exception):
    """Base class for all domain-layer errors."""

    def __init__(self, message: str, *, code: str = "DOMAIN_ERROR") -> None:
        self.message = message
        self.code = code
        super().__init__(message)


# ── Validation ───────────────────────────────────────────────
class ValidationError(DomainError):
    """Input failed domain validation rules."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="VALIDATION_ERROR")


# ── Provider configuration ──────────────────────────────────
class NotConfiguredError(DomainError):
    """A provider lacks the credentials it needs to be registered."""

    def __init__(self, provider: str, detail: str = "missing API key") -> None:
        self.provider = provider
        super().__init__(
            f"{provider} not configured: {detail}", code="PROVIDER_NOT_CONFIGURED"
        )


# ── Single-provider failures ────────────────────────────────
class ProviderFailure(DomainError):
    """Base for failures attributed to one named provider."""

    outcome: AttemptOutcome = AttemptOutcome.UNEXPECTED_ERROR

    def __init__(self, provider: str, message: str, *, code: str = "PROVIDER_FAILURE") -> None:
        self.provider = provider
        super().__init__(message, code=code)


class ProviderTimeoutError(ProviderFailure):
    """Provider did not answer within its time budget."""

    outcome = AttemptOutcome.TIMEOUT

    def __init__(self, provider: str, timeout_ms: int) -> None:
        self.timeout_ms = timeout_ms
        super().__init__(
            provider, f"{provider} timeout after {timeout_ms}ms", code="PROVIDER_TIMEOUT"
        )


class ProviderError(ProviderFailure):
    """Provider was reachable (or not) and the call failed.

    ``outcome`` separates transport failures from errors the provider
    reported itself. ``status_code`` is set when an HTTP status was received.
    """

    def __init__(
        self,
        provider: str,
        message: str,
        *,
        status_code: int | None = None,
        outcome: AttemptOutcome = AttemptOutcome.PROVIDER_ERROR,
    ) -> None:
        self.status_code = status_code
        self.outcome = outcome
        super().__init__(provider, message, code="PROVIDER_ERROR")


# ── Aggregate ───────────────────────────────────────────────
class AllProvidersExhaustedError(DomainError):
    """Raised when no provider produced a response.

    Either every enabled provider was attempted and failed, or no provider
    was enabled in the first place (``no_providers``).
    """

    def __init__(self, failures: tuple[FailureRecord, ...] | list[FailureRecord] = ()) -> None:
        self.failures = tuple(failures)
        self.no_providers = not self.failures
        if self.no_providers:
            message = "No AI providers configured: set at least one provider API key"
        else:
            lines = "\n".join(f"{f.provider_name}: {f.message}" for f in self.failures)
            message = f"All AI providers failed:\n{lines}"
        super().__init__(message, code="ALL_PROVIDERS_EXHAUSTED")

    @property
    def errors(self) -> dict[str, str]:
        return {f.provider_name: f.message for f in self.failures}


# ── Structured output ───────────────────────────────────────
class ExtractionError(DomainError):
    """A completion succeeded but held no parseable structured value."""

    SAMPLE_LIMIT = 500

    def __init__(self, reason: str, raw: str) -> None:
        self.reason = reason
        self.raw_sample = raw[: self.SAMPLE_LIMIT]
        super().__init__(
            f"{reason}; response sample: {self.raw_sample!r}", code="EXTRACTION_ERROR"
        )
