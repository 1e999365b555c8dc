from __future__ import annotations

import time

import pytest

from thinking_tool.config import RetryPolicy
from thinking_tool.llm.errors import (
    AuthError,
    ContentBlockedError,
    ExhaustedRetriesError,
    MalformedResponseError,
    ProviderError,
    ProviderTimeoutError,
    RateLimitError,
)
from thinking_tool.llm.invoker import ResilientInvoker


def test_first_attempt_success_makes_one_call_and_one_progress(make_invoker, recording_sleep) -> None:
    invoker = make_invoker(["done"])
    progress: list[str] = []

    assert invoker.call("prompt", progress.append) == "done"

    assert len(invoker.client.prompts) == 1
    assert len(progress) == 1
    assert recording_sleep.delays == []


def test_retry_law_backs_off_one_then_two_seconds(make_invoker, recording_sleep) -> None:
    invoker = make_invoker(
        [
            ProviderError("Stub", 500, "boom"),
            RateLimitError("Stub"),
            "third time lucky",
        ]
    )
    progress: list[str] = []

    assert invoker.call("prompt", progress.append) == "third time lucky"

    assert len(invoker.client.prompts) == 3
    assert recording_sleep.delays == [1.0, 2.0]
    assert progress == [
        "Calling AI... (attempt 1/3)",
        "Waiting to retry... (1s)",
        "Calling AI... (attempt 2/3)",
        "Waiting to retry... (2s)",
        "Calling AI... (attempt 3/3)",
    ]


@pytest.mark.parametrize("error", [AuthError("Stub"), ContentBlockedError("Stub", "SAFETY")])
def test_non_retryable_errors_short_circuit(make_invoker, recording_sleep, error) -> None:
    invoker = make_invoker([error, "never reached"])

    with pytest.raises(type(error)):
        invoker.call("prompt")

    assert len(invoker.client.prompts) == 1
    assert recording_sleep.delays == []


def test_exhaustion_wraps_last_error(make_invoker, recording_sleep) -> None:
    last = MalformedResponseError("Stub")
    invoker = make_invoker([ProviderError("Stub", 502, "bad gateway"), RateLimitError("Stub"), last])

    with pytest.raises(ExhaustedRetriesError) as exc_info:
        invoker.call("prompt")

    assert exc_info.value.last_error is last
    assert exc_info.value.attempts == 3
    assert "after 3 attempts" in str(exc_info.value)
    assert recording_sleep.delays == [1.0, 2.0]


def test_single_attempt_budget_exhausts_without_waiting(make_invoker, recording_sleep) -> None:
    cause = RateLimitError("Stub")
    invoker = make_invoker([cause, "never reached"], max_attempts=1)
    progress: list[str] = []

    with pytest.raises(ExhaustedRetriesError) as exc_info:
        invoker.call("prompt", progress.append)

    assert exc_info.value.last_error is cause
    assert exc_info.value.__cause__ is cause
    assert exc_info.value.attempts == 1
    assert len(invoker.client.prompts) == 1
    assert progress == ["Calling AI... (attempt 1/1)"]
    assert recording_sleep.delays == []


def test_attempt_deadline_counts_as_retryable_timeout(recording_sleep) -> None:
    class SlowThenFast:
        name = "Slow"

        def __init__(self) -> None:
            self.calls = 0

        def invoke(self, prompt: str) -> str:
            self.calls += 1
            if self.calls == 1:
                time.sleep(0.5)
                return "too late"
            return "in time"

    client = SlowThenFast()
    invoker = ResilientInvoker(client, policy=RetryPolicy(timeout=0.05), sleep=recording_sleep)

    assert invoker.call("prompt") == "in time"
    assert client.calls == 2
    assert recording_sleep.delays == [1.0]


def test_all_attempts_timing_out_reports_timeout(recording_sleep) -> None:
    class Hanging:
        name = "Hanging"

        def invoke(self, prompt: str) -> str:
            time.sleep(0.2)
            return "late"

    invoker = ResilientInvoker(
        Hanging(),
        policy=RetryPolicy(max_attempts=2, base_delay=0.5, timeout=0.01),
        sleep=recording_sleep,
    )
    with pytest.raises(ExhaustedRetriesError) as exc_info:
        invoker.call("prompt")
    assert isinstance(exc_info.value.last_error, ProviderTimeoutError)
    assert recording_sleep.delays == [0.5]


def test_failing_progress_sink_does_not_affect_call(make_invoker) -> None:
    def broken_sink(status: str) -> None:
        raise RuntimeError("ui went away")

    invoker = make_invoker(["ok"])
    assert invoker.call("prompt", broken_sink) == "ok"


def test_retry_policy_validation() -> None:
    with pytest.raises(ValueError):
        RetryPolicy(max_attempts=0)
    with pytest.raises(ValueError):
        RetryPolicy(timeout=0)
    assert RetryPolicy(base_delay=1.0).delay_for(3) == 4.0
