"""Provider clients: one outbound call to one generative-text backend.

Every backend shares the same request/classify/extract cycle implemented by
:class:`ProviderClient`; subclasses only describe the wire format (endpoint,
authentication style, request body) and where the generated text lives in a
successful payload. The retry and deadline policy lives one layer up in
:mod:`thinking_tool.llm.invoker`, so clients stay stateless between calls.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
import logging
from typing import Any, Mapping

import httpx
from langchain_core.messages import HumanMessage
from langchain_openai import ChatOpenAI

from ..config import API_TIMEOUT, ProviderCredentials, ThinkingToolConfig
from .errors import (
    AuthError,
    ContentBlockedError,
    MalformedResponseError,
    ProviderError,
    ProviderFailure,
    ProviderTimeoutError,
    RateLimitError,
)

__all__ = [
    "ProviderRequest",
    "ProviderClient",
    "OpenAIClient",
    "AnthropicClient",
    "GeminiClient",
    "LangChainCompatibleClient",
    "PROVIDER_CLIENTS",
    "build_provider_client",
]

logger = logging.getLogger(__name__)

RATE_LIMIT_STATUS = 429
TEMPERATURE = 0.7


@dataclass(slots=True)
class ProviderRequest:
    """Fully described outbound POST."""

    url: str
    json: dict[str, Any]
    headers: dict[str, str] = field(default_factory=dict)
    params: dict[str, str] = field(default_factory=dict)


def _dig(payload: Any, *path: str | int) -> Any:
    """Walk dict keys / list indices, returning ``None`` on the first miss."""

    current = payload
    for key in path:
        if isinstance(key, int):
            if not isinstance(current, list) or len(current) <= key:
                return None
            current = current[key]
        else:
            if not isinstance(current, Mapping):
                return None
            current = current.get(key)
    return current


class ProviderClient(ABC):
    """Shared request/classification cycle for HTTP-backed providers."""

    name: str = "provider"
    auth_statuses: frozenset[int] = frozenset({401, 403})

    def __init__(
        self,
        credentials: ProviderCredentials,
        *,
        timeout: float | None = API_TIMEOUT,
        http_client: httpx.Client | None = None,
    ) -> None:
        self.credentials = credentials
        self.timeout = timeout
        self._client = http_client
        self._owns_client = http_client is None

    @property
    def model(self) -> str:
        return self.credentials.model

    # Lifecycle -------------------------------------------------------------

    def _get_client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(timeout=self.timeout)
        return self._client

    def close(self) -> None:
        if self._client is not None and self._owns_client:
            self._client.close()
            self._client = None

    def __enter__(self) -> "ProviderClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # Public API ------------------------------------------------------------

    def invoke(self, prompt: str) -> str:
        """Send *prompt* and return the generated text or raise a classified failure."""

        if not prompt or not prompt.strip():
            raise ValueError("prompt must not be empty")
        if not self.credentials.api_key:
            raise AuthError(self.name, "API key is not configured")

        request = self.build_request(prompt)
        try:
            response = self._get_client().post(
                request.url,
                headers=request.headers,
                params=request.params or None,
                json=request.json,
                timeout=self.timeout,
            )
        except httpx.TimeoutException as exc:
            raise ProviderTimeoutError(self.name, self.timeout or 0.0) from exc
        except httpx.HTTPError as exc:
            raise ProviderError(self.name, None, str(exc)) from exc

        return self.classify(response)

    def classify(self, response: httpx.Response) -> str:
        status = response.status_code
        if status in self.auth_statuses:
            raise AuthError(self.name)
        if status == RATE_LIMIT_STATUS:
            raise RateLimitError(self.name)
        if status != 200:
            raise ProviderError(self.name, status, response.text)
        try:
            payload = response.json()
        except ValueError as exc:
            raise MalformedResponseError(self.name) from exc
        if not isinstance(payload, Mapping):
            raise MalformedResponseError(self.name)
        return self.extract_text(payload)

    # Wire format -----------------------------------------------------------

    @abstractmethod
    def build_request(self, prompt: str) -> ProviderRequest:
        """Describe the POST for *prompt*."""

    @abstractmethod
    def extract_text(self, payload: Mapping[str, Any]) -> str:
        """Return the generated text from a successful payload."""


class OpenAIClient(ProviderClient):
    """Chat completions endpoint, bearer-token authentication."""

    name = "OpenAI"
    base_url = "https://api.openai.com/v1"

    def build_request(self, prompt: str) -> ProviderRequest:
        base = (self.credentials.base_url or self.base_url).rstrip("/")
        return ProviderRequest(
            url=f"{base}/chat/completions",
            headers={
                "Authorization": f"Bearer {self.credentials.api_key}",
                "Content-Type": "application/json",
            },
            json={
                "model": self.model,
                "messages": [{"role": "user", "content": prompt}],
                "max_tokens": 4000,
                "temperature": TEMPERATURE,
            },
        )

    def extract_text(self, payload: Mapping[str, Any]) -> str:
        content = _dig(payload, "choices", 0, "message", "content")
        if isinstance(content, str) and content:
            return content
        if _dig(payload, "choices", 0, "finish_reason") == "content_filter":
            raise ContentBlockedError(self.name, "content_filter")
        raise MalformedResponseError(self.name)


class AnthropicClient(ProviderClient):
    """Messages endpoint, API-key header authentication."""

    name = "Anthropic"
    base_url = "https://api.anthropic.com/v1"
    api_version = "2023-06-01"

    def build_request(self, prompt: str) -> ProviderRequest:
        base = (self.credentials.base_url or self.base_url).rstrip("/")
        return ProviderRequest(
            url=f"{base}/messages",
            headers={
                "x-api-key": self.credentials.api_key or "",
                "Content-Type": "application/json",
                "anthropic-version": self.api_version,
            },
            json={
                "model": self.model,
                "max_tokens": 4000,
                "messages": [{"role": "user", "content": prompt}],
            },
        )

    def extract_text(self, payload: Mapping[str, Any]) -> str:
        content = _dig(payload, "content", 0, "text")
        if isinstance(content, str) and content:
            return content
        if payload.get("stop_reason") == "refusal":
            raise ContentBlockedError(self.name, "refusal")
        raise MalformedResponseError(self.name)


class GeminiClient(ProviderClient):
    """generateContent endpoint, key passed as a query parameter."""

    name = "Gemini"
    base_url = "https://generativelanguage.googleapis.com/v1beta"
    # Gemini reports an invalid key as a 400 rather than a 401.
    auth_statuses = frozenset({400, 401, 403})

    def build_request(self, prompt: str) -> ProviderRequest:
        base = (self.credentials.base_url or self.base_url).rstrip("/")
        return ProviderRequest(
            url=f"{base}/models/{self.model}:generateContent",
            headers={"Content-Type": "application/json"},
            params={"key": self.credentials.api_key or ""},
            json={
                "contents": [{"parts": [{"text": prompt}]}],
                "generationConfig": {
                    "maxOutputTokens": 8000,
                    "temperature": TEMPERATURE,
                },
            },
        )

    def extract_text(self, payload: Mapping[str, Any]) -> str:
        content = _dig(payload, "candidates", 0, "content", "parts", 0, "text")
        if isinstance(content, str) and content:
            return content
        finish_reason = _dig(payload, "candidates", 0, "finishReason")
        if finish_reason == "SAFETY":
            raise ContentBlockedError(self.name, finish_reason)
        block_reason = _dig(payload, "promptFeedback", "blockReason")
        if block_reason:
            raise ContentBlockedError(self.name, str(block_reason))
        raise MalformedResponseError(self.name)


class LangChainCompatibleClient:
    """OpenAI-compatible endpoint driven through ``langchain_openai.ChatOpenAI``.

    The OpenAI SDK underneath raises status-bearing exceptions rather than
    returning responses, so classification works on ``status_code``.
    """

    name = "OpenAI-compatible"
    auth_statuses: frozenset[int] = frozenset({401, 403})

    def __init__(self, credentials: ProviderCredentials, *, timeout: float | None = API_TIMEOUT) -> None:
        self.credentials = credentials
        self.timeout = timeout
        self._chat_model: Any = None

    @property
    def model(self) -> str:
        return self.credentials.model

    def _build_chat_model(self) -> Any:
        kwargs: dict[str, Any] = {
            "model": self.credentials.model,
            "temperature": TEMPERATURE,
            "api_key": self.credentials.api_key,
            "max_retries": 0,
        }
        if self.credentials.base_url:
            kwargs["base_url"] = self.credentials.base_url
        if self.timeout is not None:
            kwargs["timeout"] = self.timeout
        return ChatOpenAI(**kwargs)

    def invoke(self, prompt: str) -> str:
        if not prompt or not prompt.strip():
            raise ValueError("prompt must not be empty")
        if not self.credentials.api_key:
            raise AuthError(self.name, "API key is not configured")
        if self._chat_model is None:
            self._chat_model = self._build_chat_model()

        try:
            message = self._chat_model.invoke([HumanMessage(content=prompt)])
        except ProviderFailure:
            raise
        except Exception as exc:
            raise self._classify_exception(exc) from exc

        content = getattr(message, "content", None)
        if isinstance(content, list):
            content = "".join(
                str(item.get("text", "")) if isinstance(item, Mapping) else str(item) for item in content
            )
        if isinstance(content, str) and content:
            return content
        metadata = getattr(message, "response_metadata", None) or {}
        if metadata.get("finish_reason") == "content_filter":
            raise ContentBlockedError(self.name, "content_filter")
        raise MalformedResponseError(self.name)

    def _classify_exception(self, exc: Exception) -> ProviderFailure:
        if isinstance(exc, TimeoutError) or "timeout" in type(exc).__name__.lower():
            return ProviderTimeoutError(self.name, self.timeout or 0.0)
        status = getattr(exc, "status_code", None)
        if status in self.auth_statuses:
            return AuthError(self.name)
        if status == RATE_LIMIT_STATUS:
            return RateLimitError(self.name)
        return ProviderError(self.name, status, str(exc))

    def close(self) -> None:
        self._chat_model = None


PROVIDER_CLIENTS: dict[str, type] = {
    "openai": OpenAIClient,
    "anthropic": AnthropicClient,
    "gemini": GeminiClient,
    "compatible": LangChainCompatibleClient,
}


def build_provider_client(
    config: ThinkingToolConfig,
    *,
    provider: str | None = None,
    http_client: httpx.Client | None = None,
):
    """Factory selecting the client implementation named by configuration."""

    name = provider or config.provider
    client_cls = PROVIDER_CLIENTS.get(name)
    if client_cls is None:
        raise ValueError(f"Unknown provider '{name}'")
    credentials = config.credentials(name)
    logger.debug("Building %s client for model %s", name, credentials.model)
    if client_cls is LangChainCompatibleClient:
        return client_cls(credentials, timeout=config.retry.timeout)
    return client_cls(credentials, timeout=config.retry.timeout, http_client=http_client)
