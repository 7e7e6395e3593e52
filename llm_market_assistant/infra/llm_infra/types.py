"""Request/result types and protocols for completion providers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol, Tuple

from llm_market_assistant.core.cancellation import CancellationToken
from llm_market_assistant.core.errors import CompletionError, FailureKind
from llm_market_assistant.core.models import CompletionRole


@dataclass(frozen=True, slots=True)
class CompletionMessage:
    role: CompletionRole
    content: str


@dataclass(frozen=True, slots=True)
class CompletionRequest:
    """A single logical "generate text" request.

    Attributes:
        model: Model identifier (e.g., "deepseek-chat")
        messages: Ordered role-tagged turns
        temperature: Sampling temperature
        max_tokens: Maximum output tokens
        stream: Streaming flag (always False)
    """

    model: str
    messages: Tuple[CompletionMessage, ...]
    temperature: float = 0.7
    max_tokens: int = 2000
    stream: bool = False

    def to_payload(self) -> Dict[str, Any]:
        return {
            "model": self.model,
            "messages": [{"role": m.role, "content": m.content} for m in self.messages],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "stream": self.stream,
        }


@dataclass(frozen=True, slots=True)
class CompletionResult:
    """Terminal outcome of a completion call: text or a classified error."""

    text: Optional[str] = None
    error: Optional[CompletionError] = None
    attempts: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None and bool(self.text)

    @property
    def failure_kind(self) -> Optional[FailureKind]:
        return None if self.error is None else self.error.kind


class CompletionProvider(Protocol):
    """Protocol for asynchronous completion providers."""

    async def complete(
        self,
        request: CompletionRequest,
        cancel_token: Optional[CancellationToken] = None,
    ) -> CompletionResult:
        """Run one logical completion with retries.

        Args:
            request: Request to send.
            cancel_token: Optional token aborting the call.

        Returns:
            Classified completion result.
        """
        ...
