"""Error taxonomy for the market assistant pipeline.

Everything raised below the orchestrator is an instance of
``MarketAssistantError`` carrying a classification, so callers can decide the
degraded path without inspecting messages.
"""

from __future__ import annotations

from enum import Enum
from typing import Mapping


class FailureKind(str, Enum):
    """Classification of a completion failure."""

    CONFIG = "config"
    NETWORK = "network"
    AUTH = "auth"
    RATE_LIMIT = "rate_limit"
    VALIDATION = "validation"
    SERVER_REJECTION = "server_rejection"
    CANCELLED = "cancelled"
    UNKNOWN = "unknown"


class SourceFailure(str, Enum):
    """Classification of a market data source failure."""

    RATE_LIMITED = "rate_limited"
    UNSUPPORTED_SYMBOL = "unsupported_symbol"
    TIMEOUT = "timeout"
    UNKNOWN = "unknown"


class MarketAssistantError(Exception):
    """Base class for all classified errors."""


class ConfigError(MarketAssistantError):
    """Missing or malformed configuration (fatal, never retried)."""

    kind = FailureKind.CONFIG


# ============================================================================
# Completion errors
# ============================================================================


class CompletionError(MarketAssistantError):
    """A classified failure of one completion attempt."""

    kind: FailureKind = FailureKind.UNKNOWN
    retryable: bool = True

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class NetworkError(CompletionError):
    """Transport level failure (connection refused, DNS, timeout)."""

    kind = FailureKind.NETWORK


class AuthError(CompletionError):
    """The endpoint rejected the credential (HTTP 401)."""

    kind = FailureKind.AUTH
    retryable = False


class RateLimitError(CompletionError):
    """The endpoint throttled the request (HTTP 429)."""

    kind = FailureKind.RATE_LIMIT


class ResponseValidationError(CompletionError):
    """Malformed, empty or structurally invalid response."""

    kind = FailureKind.VALIDATION


class ServerRejectionError(CompletionError):
    """Explicit error payload returned by the endpoint."""

    kind = FailureKind.SERVER_REJECTION
    retryable = False

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        error_type: str | None = None,
        code: str | None = None,
    ) -> None:
        super().__init__(message, status_code)
        self.error_type = error_type
        self.code = code


class CompletionCancelledError(CompletionError):
    """The caller cancelled the request."""

    kind = FailureKind.CANCELLED
    retryable = False


# ============================================================================
# Market data errors
# ============================================================================


class MarketDataError(MarketAssistantError):
    """A classified failure of one market data source."""

    def __init__(self, message: str, kind: SourceFailure = SourceFailure.UNKNOWN) -> None:
        super().__init__(message)
        self.message = message
        self.kind = kind


class UnsupportedSymbolError(MarketDataError):
    """The source does not know the requested symbol."""

    def __init__(self, symbol: str, message: str | None = None) -> None:
        super().__init__(
            message or f"Unsupported cryptocurrency symbol: {symbol}",
            SourceFailure.UNSUPPORTED_SYMBOL,
        )
        self.symbol = symbol


class SourceRateLimitError(MarketDataError):
    """The source throttled the request."""

    def __init__(self, message: str = "Rate limit exceeded") -> None:
        super().__init__(message, SourceFailure.RATE_LIMITED)


class AllSourcesFailedError(MarketAssistantError):
    """Every market data branch failed for a symbol."""

    def __init__(self, symbol: str, errors: Mapping[str, MarketDataError]) -> None:
        summary = ", ".join(f"{name}={err.kind.value}" for name, err in errors.items())
        super().__init__(f"All market data sources failed for {symbol}: {summary}")
        self.symbol = symbol
        self.errors = dict(errors)
