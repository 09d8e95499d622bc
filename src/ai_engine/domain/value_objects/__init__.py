"""Domain value objects — immutable, self-validating types.

Value objects have *no identity*; two instances with equal fields are equal.
They enforce invariants at construction time so the orchestrator and the
adapters can trust their contents without re-checking.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ai_engine.domain.enums import AttemptOutcome, Role
from ai_engine.domain.exceptions import ValidationError

MIN_TEMPERATURE = 0.0
MAX_TEMPERATURE = 2.0


def _check_max_tokens(value: int | None) -> None:
    if value is None:
        return
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValidationError(f"max_tokens must be a positive integer, got {value!r}")


def _check_temperature(value: float | None) -> None:
    if value is None:
        return
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"temperature must be a number, got {value!r}")
    if not MIN_TEMPERATURE <= value <= MAX_TEMPERATURE:
        raise ValidationError(
            f"temperature must be within [{MIN_TEMPERATURE}, {MAX_TEMPERATURE}], got {value}"
        )


# ═══════════════════════════════════════════════════════════════
#  Requests
# ═══════════════════════════════════════════════════════════════
@dataclass(frozen=True, slots=True)
class Message:
    """One turn of a conversation."""

    role: Role
    content: str

    def __post_init__(self) -> None:
        if not isinstance(self.role, Role):
            try:
                object.__setattr__(self, "role", Role(self.role))
            except ValueError:
                raise ValidationError(f"Unknown message role: {self.role!r}") from None
        if not isinstance(self.content, str):
            raise ValidationError("Message content must be text")

    @classmethod
    def system(cls, content: str) -> Message:
        return cls(Role.SYSTEM, content)

    @classmethod
    def user(cls, content: str) -> Message:
        return cls(Role.USER, content)

    @classmethod
    def assistant(cls, content: str) -> Message:
        return cls(Role.ASSISTANT, content)


@dataclass(frozen=True, slots=True)
class ChatRequest:
    """A normalized, provider-agnostic chat completion request.

    ``messages`` keeps caller order. ``system_prompt`` is an optional extra
    instruction that adapters place ahead of the conversation.
    """

    messages: tuple[Message, ...]
    max_tokens: int | None = None
    temperature: float | None = None
    system_prompt: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "messages", tuple(self.messages))
        if not self.messages:
            raise ValidationError("ChatRequest.messages must not be empty")
        if not all(isinstance(m, Message) for m in self.messages):
            raise ValidationError("ChatRequest.messages must contain Message instances")
        _check_max_tokens(self.max_tokens)
        _check_temperature(self.temperature)

    def conversation(self) -> tuple[Message, ...]:
        """Messages with ``system_prompt`` (if any) prepended as a system turn."""
        if self.system_prompt:
            return (Message.system(self.system_prompt), *self.messages)
        return self.messages


@dataclass(frozen=True, slots=True)
class GenerateRequest:
    """Single-prompt convenience form of :class:`ChatRequest`."""

    prompt: str
    max_tokens: int | None = None
    temperature: float | None = None
    system_prompt: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.prompt, str):
            raise ValidationError("GenerateRequest.prompt must be text")
        _check_max_tokens(self.max_tokens)
        _check_temperature(self.temperature)

    def to_chat_request(self) -> ChatRequest:
        messages: list[Message] = []
        if self.system_prompt:
            messages.append(Message.system(self.system_prompt))
        messages.append(Message.user(self.prompt))
        return ChatRequest(
            messages=tuple(messages),
            max_tokens=self.max_tokens,
            temperature=self.temperature,
        )


# ═══════════════════════════════════════════════════════════════
#  Results
# ═══════════════════════════════════════════════════════════════
@dataclass(frozen=True, slots=True)
class AIResponse:
    """Normalized completion returned to callers."""

    content: str
    provider: str
    model: str
    tokens_used: int | None = None
    error: str | None = None

    def __post_init__(self) -> None:
        if self.tokens_used is not None and self.tokens_used < 0:
            raise ValidationError(f"tokens_used must be non-negative, got {self.tokens_used}")


@dataclass(frozen=True, slots=True)
class StructuredResult:
    """Parsed structured value plus the provider that produced it."""

    data: Any
    provider: str


@dataclass(frozen=True, slots=True)
class FailureRecord:
    """Why one provider in a fallback chain failed."""

    provider_name: str
    message: str
    outcome: AttemptOutcome = AttemptOutcome.UNEXPECTED_ERROR

    def __str__(self) -> str:
        return f"{self.provider_name}: {self.message}"


__all__ = [
    "AIResponse",
    "ChatRequest",
    "FailureRecord",
    "GenerateRequest",
    "Message",
    "StructuredResult",
]
