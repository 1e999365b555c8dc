"""Dataclass-driven configuration for the thinking tool."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Iterable, Literal

__all__ = [
    "ProviderName",
    "PROVIDER_NAMES",
    "ProviderCredentials",
    "RetryPolicy",
    "ThinkingToolConfig",
]

ProviderName = Literal["gemini", "openai", "anthropic", "compatible"]
PROVIDER_NAMES: tuple[str, ...] = ("gemini", "openai", "anthropic", "compatible")

DEFAULT_PROVIDER = "gemini"
DEFAULT_LANGUAGE = "English"
DEFAULT_MODELS: dict[str, str] = {
    "openai": "gpt-4o",
    "anthropic": "claude-sonnet-4-20250514",
    "gemini": "gemini-2.5-flash-preview-05-20",
    "compatible": "gpt-4o-mini",
}
API_KEY_ENVS: dict[str, tuple[str, ...]] = {
    "openai": ("THINKING_TOOL_OPENAI_API_KEY", "OPENAI_API_KEY"),
    "anthropic": ("THINKING_TOOL_ANTHROPIC_API_KEY", "ANTHROPIC_API_KEY"),
    "gemini": ("THINKING_TOOL_GEMINI_API_KEY", "GEMINI_API_KEY", "GOOGLE_API_KEY"),
    "compatible": ("THINKING_TOOL_COMPATIBLE_API_KEY", "OPENAI_API_KEY"),
}

API_TIMEOUT = 60.0
MAX_RETRIES = 3
RETRY_DELAY = 1.0


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:  # pragma: no cover - malformed env value
        return default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:  # pragma: no cover - malformed env value
        return default


def _first_env(names: Iterable[str]) -> str | None:
    for name in names:
        value = os.getenv(name)
        if value:
            return value
    return None


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Attempt budget and per-attempt deadline applied to every provider call."""

    max_attempts: int = MAX_RETRIES
    base_delay: float = RETRY_DELAY
    timeout: float = API_TIMEOUT

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay < 0:
            raise ValueError("base_delay must not be negative")
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")

    def delay_for(self, attempt: int) -> float:
        """Backoff before the attempt following *attempt* (1-based)."""

        return self.base_delay * (2 ** (attempt - 1))

    @classmethod
    def from_env(cls) -> "RetryPolicy":
        return cls(
            max_attempts=_env_int("THINKING_TOOL_MAX_ATTEMPTS", MAX_RETRIES),
            base_delay=_env_float("THINKING_TOOL_RETRY_DELAY", RETRY_DELAY),
            timeout=_env_float("THINKING_TOOL_TIMEOUT", API_TIMEOUT),
        )


@dataclass(slots=True)
class ProviderCredentials:
    """Credential, model id and optional endpoint override for one provider."""

    api_key: str | None = None
    model: str = ""
    base_url: str | None = None

    @classmethod
    def from_env(cls, provider: str) -> "ProviderCredentials":
        prefix = f"THINKING_TOOL_{provider.upper()}"
        return cls(
            api_key=_first_env(API_KEY_ENVS.get(provider, ())),
            model=os.getenv(f"{prefix}_MODEL") or DEFAULT_MODELS.get(provider, ""),
            base_url=os.getenv(f"{prefix}_BASE_URL") or None,
        )


def _default_providers() -> dict[str, ProviderCredentials]:
    return {name: ProviderCredentials.from_env(name) for name in PROVIDER_NAMES}


@dataclass(slots=True)
class ThinkingToolConfig:
    """Primary configuration entry point, read-only from the core's perspective."""

    provider: str = field(default_factory=lambda: os.getenv("THINKING_TOOL_PROVIDER", DEFAULT_PROVIDER))
    providers: dict[str, ProviderCredentials] = field(default_factory=_default_providers)
    output_language: str = field(default_factory=lambda: os.getenv("THINKING_TOOL_LANGUAGE") or DEFAULT_LANGUAGE)
    retry: RetryPolicy = field(default_factory=RetryPolicy.from_env)
    material_folder: Path | None = field(
        default_factory=lambda: Path(os.environ["THINKING_TOOL_MATERIAL_FOLDER"]).expanduser()
        if os.getenv("THINKING_TOOL_MATERIAL_FOLDER")
        else None
    )

    def __post_init__(self) -> None:
        if self.provider not in PROVIDER_NAMES:
            raise ValueError(
                f"Unknown provider '{self.provider}'; expected one of {', '.join(PROVIDER_NAMES)}"
            )

    def credentials(self, provider: str | None = None) -> ProviderCredentials:
        name = provider or self.provider
        creds = self.providers.get(name)
        if creds is None:
            creds = ProviderCredentials(model=DEFAULT_MODELS.get(name, ""))
        return creds

    def with_overrides(
        self,
        *,
        provider: str | None = None,
        model: str | None = None,
        api_key: str | None = None,
        base_url: str | None = None,
        output_language: str | None = None,
    ) -> "ThinkingToolConfig":
        """Return a copy with CLI-level overrides applied to the active provider."""

        name = provider or self.provider
        providers = dict(self.providers)
        current = self.credentials(name)
        providers[name] = replace(
            current,
            model=model or current.model,
            api_key=api_key if api_key is not None else current.api_key,
            base_url=base_url or current.base_url,
        )
        return replace(
            self,
            provider=name,
            providers=providers,
            output_language=output_language or self.output_language,
        )
