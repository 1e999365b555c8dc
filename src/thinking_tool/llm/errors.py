"""Classified failures raised while talking to generative-text providers."""

from __future__ import annotations

__all__ = [
    "ProviderFailure",
    "AuthError",
    "RateLimitError",
    "ProviderError",
    "MalformedResponseError",
    "ContentBlockedError",
    "ProviderTimeoutError",
    "ExhaustedRetriesError",
    "TopicParseError",
]

SNIPPET_LIMIT = 200


class ProviderFailure(RuntimeError):
    """Base error for every classified provider outcome."""

    retryable: bool = True

    def __init__(self, message: str, *, provider: str | None = None) -> None:
        super().__init__(message)
        self.provider = provider


class AuthError(ProviderFailure):
    """The provider rejected (or never received) a usable credential."""

    retryable = False

    def __init__(self, provider: str, detail: str | None = None) -> None:
        message = f"{provider} credential invalid. Check the configured API key."
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message, provider=provider)


class RateLimitError(ProviderFailure):
    """Usage or rate limit signalled by the provider."""

    def __init__(self, provider: str) -> None:
        super().__init__(
            f"{provider} rate limit reached. Wait a moment and try again.",
            provider=provider,
        )


class ProviderError(ProviderFailure):
    """Non-success status that does not map onto a more specific failure."""

    def __init__(self, provider: str, status: int | None, body: str | None = None) -> None:
        self.status = status
        self.snippet = (body or "").strip()[:SNIPPET_LIMIT]
        label = f"{provider} request failed"
        if status is not None:
            label = f"{label} ({status})"
        super().__init__(f"{label}: {self.snippet or 'unknown error'}", provider=provider)


class MalformedResponseError(ProviderFailure):
    """Successful status but the generated text was not where it should be."""

    def __init__(self, provider: str) -> None:
        super().__init__(f"{provider} returned an unexpected response shape.", provider=provider)


class ContentBlockedError(ProviderFailure):
    """The provider's safety filter refused to answer."""

    retryable = False

    def __init__(self, provider: str, reason: str | None = None) -> None:
        message = f"{provider} blocked the response with its safety filter. Try different materials."
        if reason:
            message = f"{message} (reason: {reason})"
        super().__init__(message, provider=provider)
        self.reason = reason


class ProviderTimeoutError(ProviderFailure, TimeoutError):
    """A single attempt did not finish within its deadline."""

    def __init__(self, provider: str, timeout: float) -> None:
        super().__init__(f"{provider} request timed out ({timeout:g}s).", provider=provider)
        self.timeout = timeout


class ExhaustedRetriesError(ProviderFailure):
    """Every permitted attempt failed; wraps the last classified failure."""

    retryable = False

    def __init__(self, last_error: ProviderFailure, attempts: int) -> None:
        super().__init__(
            f"AI call failed after {attempts} attempts: {last_error}",
            provider=last_error.provider,
        )
        self.last_error = last_error
        self.attempts = attempts


class TopicParseError(ValueError):
    """Topic suggestions could not be read out of the provider's answer."""

    def __init__(self, message: str = "Topic suggestion parsing failed: the AI response was not in the expected format.") -> None:
        super().__init__(message)
