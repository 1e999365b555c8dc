"""Bounded retry with exponential backoff around a single provider client."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
import logging
import time
from typing import Callable, Protocol

from ..config import RetryPolicy
from .errors import ExhaustedRetriesError, ProviderFailure, ProviderTimeoutError

__all__ = ["ProgressSink", "TextProvider", "ResilientInvoker", "notify"]

logger = logging.getLogger(__name__)

ProgressSink = Callable[[str], None]
Sleeper = Callable[[float], None]


class TextProvider(Protocol):
    """Capability shared by every provider client."""

    name: str

    def invoke(self, prompt: str) -> str:
        """Return generated text for *prompt*."""


def notify(sink: ProgressSink | None, status: str) -> None:
    """Fire-and-forget progress update; a failing sink never interrupts the call."""

    if sink is None:
        return
    try:
        sink(status)
    except Exception as exc:  # pragma: no cover - advisory channel only
        logger.debug("Progress sink raised %r; ignoring", exc)


class ResilientInvoker:
    """Sole retry boundary for provider calls.

    Attempts run strictly one after another. Each attempt gets its own
    deadline; an attempt that overruns it is abandoned (the worker thread is
    not interrupted) and counted as a retryable timeout. Non-retryable
    failures (authentication, safety blocks) surface immediately.
    """

    def __init__(
        self,
        client: TextProvider,
        *,
        policy: RetryPolicy | None = None,
        sleep: Sleeper = time.sleep,
    ) -> None:
        self.client = client
        self.policy = policy or RetryPolicy()
        self._sleep = sleep

    @property
    def provider_name(self) -> str:
        return getattr(self.client, "name", type(self.client).__name__)

    def call(self, prompt: str, on_progress: ProgressSink | None = None) -> str:
        max_attempts = self.policy.max_attempts

        for attempt in range(1, max_attempts + 1):
            notify(on_progress, f"Calling AI... (attempt {attempt}/{max_attempts})")
            try:
                return self._attempt(prompt)
            except ProviderFailure as exc:
                if not exc.retryable:
                    logger.warning("%s call failed without retry: %s", self.provider_name, exc)
                    raise
                logger.warning(
                    "%s call attempt %d/%d failed: %s",
                    self.provider_name,
                    attempt,
                    max_attempts,
                    exc,
                )
                if attempt == max_attempts:
                    logger.error("%s call exhausted %d attempts", self.provider_name, max_attempts)
                    raise ExhaustedRetriesError(exc, max_attempts) from exc

            delay = self.policy.delay_for(attempt)
            notify(on_progress, f"Waiting to retry... ({delay:g}s)")
            self._sleep(delay)

        raise RuntimeError("unreachable: the retry loop always returns or raises")

    def _attempt(self, prompt: str) -> str:
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="provider-call")
        try:
            future = executor.submit(self.client.invoke, prompt)
            try:
                return future.result(timeout=self.policy.timeout)
            # ProviderTimeoutError is itself a TimeoutError; keep the client's classification.
            except ProviderFailure:
                raise
            except FutureTimeoutError as exc:
                raise ProviderTimeoutError(self.provider_name, self.policy.timeout) from exc
        finally:
            executor.shutdown(wait=False)
