"""OpenAI-compatible chat completion client with retries and response validation."""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional

import requests

from llm_market_assistant.core.cancellation import CancellationToken, run_cancellable
from llm_market_assistant.core.errors import (
    AuthError,
    CompletionCancelledError,
    CompletionError,
    ConfigError,
    NetworkError,
    RateLimitError,
    ResponseValidationError,
    ServerRejectionError,
)
from llm_market_assistant.infra.llm_infra.retry import BackoffPolicy
from llm_market_assistant.infra.llm_infra.types import CompletionRequest, CompletionResult

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.deepseek.com/v1"
DEFAULT_KEY_PREFIX = "sk-"


def validate_api_key(api_key: Optional[str], prefix: str = DEFAULT_KEY_PREFIX) -> str:
    """Return the trimmed credential or raise ConfigError.

    Args:
        api_key: Raw credential from configuration.
        prefix: Expected credential prefix (empty string disables the check).

    Returns:
        Trimmed credential.

    Raises:
        ConfigError: If the credential is missing, blank or malformed.
    """
    cleaned = (api_key or "").strip()
    if not cleaned:
        raise ConfigError("API key is missing. Set DEEPSEEK_API_KEY in the environment.")
    if prefix and not cleaned.startswith(prefix):
        raise ConfigError(f"API key is malformed: expected it to start with '{prefix}'")
    if len(cleaned) <= len(prefix):
        raise ConfigError("API key is malformed: too short")
    return cleaned


@dataclass(frozen=True, slots=True)
class AttemptOutcome:
    """Result of a single send/receive/validate cycle."""

    text: Optional[str] = None
    error: Optional[CompletionError] = None


class ChatCompletionClient:
    """Client for OpenAI-compatible ``/chat/completions`` endpoints (DeepSeek, OpenAI, vLLM).

    Each ``complete`` call is independent: the request body is serialised once
    and resent verbatim on every attempt, and no state survives between calls.
    """

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 60,
        backoff: Optional[BackoffPolicy] = None,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        key_prefix: str = DEFAULT_KEY_PREFIX,
    ):
        """Initialize completion client.

        Args:
            api_key: Bearer credential for the endpoint (validated per call).
            base_url: Base URL for the API endpoint.
            timeout: Request timeout in seconds.
            backoff: Attempt budget and backoff policy (default: 3 attempts, 1s/2s).
            session: HTTP session to use (default: a new requests.Session).
            sleep: Awaitable sleep used between attempts.
            key_prefix: Expected credential prefix.
        """
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.backoff = backoff or BackoffPolicy()
        self.session = session or requests.Session()
        self.key_prefix = key_prefix
        self._sleep = sleep

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/chat/completions"

    async def complete(
        self,
        request: CompletionRequest,
        cancel_token: Optional[CancellationToken] = None,
    ) -> CompletionResult:
        """Generate a completion, retrying retryable failures with backoff.

        Args:
            request: Completion request to send.
            cancel_token: Optional token that aborts the in-flight call and
                skips any further attempts.

        Returns:
            CompletionResult with trimmed text, or the classified terminal error.

        Raises:
            ConfigError: If the credential is missing or malformed. Raised
                before any network attempt.
        """
        api_key = validate_api_key(self.api_key, self.key_prefix)
        headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        body = json.dumps(request.to_payload(), ensure_ascii=False).encode("utf-8")

        outcome = AttemptOutcome()
        attempt = 0
        for attempt in range(1, self.backoff.max_attempts + 1):
            try:
                outcome = await run_cancellable(self._attempt(headers, body), cancel_token)
            except CompletionCancelledError as exc:
                logger.info("Completion cancelled during attempt %d", attempt)
                return CompletionResult(error=exc, attempts=attempt)

            if outcome.error is None:
                if attempt > 1:
                    logger.info("Completion succeeded on attempt %d", attempt)
                return CompletionResult(text=outcome.text, attempts=attempt)

            error = outcome.error
            if not self.backoff.should_retry(attempt, error):
                break

            delay = self.backoff.delay_for(attempt)
            logger.warning(
                "Attempt %d/%d failed with %s: %s. Retrying in %.1fs...",
                attempt,
                self.backoff.max_attempts,
                type(error).__name__,
                error.message,
                delay,
            )
            try:
                await run_cancellable(self._sleep(delay), cancel_token)
            except CompletionCancelledError as exc:
                logger.info("Completion cancelled while backing off after attempt %d", attempt)
                return CompletionResult(error=exc, attempts=attempt)

        error = outcome.error
        if error is not None and not error.retryable:
            logger.error("Non-retryable %s from %s: %s", type(error).__name__, self.base_url, error.message)
        else:
            logger.error("All %d completion attempts failed for %s", attempt, self.base_url)
        return CompletionResult(error=error, attempts=attempt)

    async def _attempt(self, headers: Dict[str, str], body: bytes) -> AttemptOutcome:
        """Send the request once and run every validation gate."""
        try:
            response = await asyncio.to_thread(
                self.session.post,
                self.endpoint,
                headers=headers,
                data=body,
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout as exc:
            return AttemptOutcome(error=NetworkError(f"Timeout calling {self.base_url}: {exc}"))
        except requests.exceptions.RequestException as exc:
            return AttemptOutcome(error=NetworkError(f"Connection error calling {self.base_url}: {exc}"))

        try:
            return AttemptOutcome(text=self._validate(response))
        except CompletionError as exc:
            return AttemptOutcome(error=exc)

    def _validate(self, response: requests.Response) -> str:
        """Apply the ordered response gates; the first failing gate raises.

        Returns:
            Trimmed message text of the first choice.

        Raises:
            CompletionError: Classified failure of the first failing gate.
        """
        status = response.status_code
        raw: bytes = response.content or b""

        if not 200 <= status < 300:
            message = _extract_error_message(raw) or f"HTTP {status}"
            if status == 401:
                raise AuthError(f"Authentication failed: {message}", status_code=status)
            if status == 429:
                raise RateLimitError(f"Rate limit exceeded: {message}", status_code=status)
            raise ResponseValidationError(f"HTTP {status} from endpoint: {message}", status_code=status)

        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ResponseValidationError(f"Response is not valid UTF-8: {exc}", status_code=status) from exc

        content_type = response.headers.get("Content-Type", "")
        if "json" not in content_type.lower():
            raise ResponseValidationError(
                f"Unexpected content type: {content_type or 'missing'}", status_code=status
            )

        if not text.strip():
            raise ResponseValidationError("Empty response body", status_code=status)

        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ResponseValidationError(f"Invalid JSON response: {exc}", status_code=status) from exc
        if not isinstance(data, dict):
            raise ResponseValidationError(
                f"Expected JSON object, got {type(data).__name__}", status_code=status
            )

        if data.get("error") is not None:
            error = data["error"]
            if isinstance(error, dict):
                raise ServerRejectionError(
                    str(error.get("message") or "Unknown error"),
                    status_code=status,
                    error_type=error.get("type"),
                    code=None if error.get("code") is None else str(error.get("code")),
                )
            raise ServerRejectionError(str(error) or "Unknown error", status_code=status)

        choices = data.get("choices")
        if not isinstance(choices, list) or not choices:
            raise ResponseValidationError("Missing or empty 'choices' in response", status_code=status)

        choice = choices[0]
        message = choice.get("message") if isinstance(choice, dict) else None
        content = message.get("content") if isinstance(message, dict) else None
        if not isinstance(content, str) or not content.strip():
            raise ResponseValidationError("First choice has no message content", status_code=status)

        return content.strip()


def _extract_error_message(raw: bytes) -> Optional[str]:
    """Best-effort extraction of ``error.message`` from an error body."""
    try:
        data: Any = json.loads(raw.decode("utf-8", errors="replace"))
    except ValueError:
        return None
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str):
            return error
    return None
