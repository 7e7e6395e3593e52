"""LLM infrastructure - completion client with retry, backoff and response validation."""

from .types import CompletionMessage, CompletionProvider, CompletionRequest, CompletionResult
from .retry import BackoffPolicy
from .providers_openai import ChatCompletionClient, validate_api_key

__all__ = [
    "CompletionMessage",
    "CompletionProvider",
    "CompletionRequest",
    "CompletionResult",
    "BackoffPolicy",
    "ChatCompletionClient",
    "validate_api_key",
]
