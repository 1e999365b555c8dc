"""Shared fixtures for the test suite."""
from __future__ import annotations

from typing import Callable, Iterable

import pytest

from thinking_tool.config import RetryPolicy
from thinking_tool.llm.invoker import ResilientInvoker
from thinking_tool.writing.io import InMemoryMaterialStore

ENV_VARS = {
    "THINKING_TOOL_PROVIDER",
    "THINKING_TOOL_LANGUAGE",
    "THINKING_TOOL_MATERIAL_FOLDER",
    "THINKING_TOOL_MAX_ATTEMPTS",
    "THINKING_TOOL_RETRY_DELAY",
    "THINKING_TOOL_TIMEOUT",
    "THINKING_TOOL_OPENAI_API_KEY",
    "THINKING_TOOL_ANTHROPIC_API_KEY",
    "THINKING_TOOL_GEMINI_API_KEY",
    "THINKING_TOOL_COMPATIBLE_API_KEY",
    "THINKING_TOOL_OPENAI_MODEL",
    "THINKING_TOOL_ANTHROPIC_MODEL",
    "THINKING_TOOL_GEMINI_MODEL",
    "THINKING_TOOL_COMPATIBLE_MODEL",
    "THINKING_TOOL_OPENAI_BASE_URL",
    "THINKING_TOOL_ANTHROPIC_BASE_URL",
    "THINKING_TOOL_GEMINI_BASE_URL",
    "THINKING_TOOL_COMPATIBLE_BASE_URL",
    "OPENAI_API_KEY",
    "ANTHROPIC_API_KEY",
    "GEMINI_API_KEY",
    "GOOGLE_API_KEY",
}


@pytest.fixture(autouse=True)
def _clear_provider_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Ensure provider-related environment variables do not leak between tests."""

    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class ScriptedClient:
    """Provider client stub replaying a list of results or exceptions."""

    name = "Stub"

    def __init__(self, outcomes: Iterable[object]) -> None:
        self._outcomes = list(outcomes)
        self.prompts: list[str] = []

    def invoke(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if not self._outcomes:
            raise AssertionError("No scripted outcomes remaining")
        outcome = self._outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return str(outcome)


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def make_invoker(recording_sleep: RecordingSleep) -> Callable[..., ResilientInvoker]:
    """Build an invoker around scripted outcomes that never really sleeps."""

    def _factory(outcomes: Iterable[object], **policy_kwargs: float) -> ResilientInvoker:
        return ResilientInvoker(
            ScriptedClient(outcomes),
            policy=RetryPolicy(**policy_kwargs),
            sleep=recording_sleep,
        )

    return _factory


@pytest.fixture
def two_materials() -> InMemoryMaterialStore:
    store = InMemoryMaterialStore(source_reference="Reading Notes.md")
    store.append("Quote A", "Reading Notes.md", "First thought")
    store.append("Quote B", "Reading Notes.md", "")
    return store
