"""Explicitly owned thinking session: one material note and where articles go."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from pathlib import Path
from typing import Optional

from .config import ThinkingToolConfig
from .llm.invoker import ResilientInvoker
from .llm.providers import build_provider_client
from .writing.article_agent import ArticleComposer
from .writing.io import MarkdownMaterialStore, MarkdownNoteSink
from .writing.topic_agent import TopicSynthesizer
from .writing.wizard import Listener, WizardController

__all__ = ["SessionInactiveError", "ThinkingSession", "build_agents"]

logger = logging.getLogger(__name__)


class SessionInactiveError(RuntimeError):
    """Raised when a session is used after it has ended."""


def build_agents(config: ThinkingToolConfig, *, invoker: ResilientInvoker | None = None) -> tuple[TopicSynthesizer, ArticleComposer]:
    """Wire synthesizer and composer to the configured provider."""

    if invoker is None:
        invoker = ResilientInvoker(build_provider_client(config), policy=config.retry)
    return (
        TopicSynthesizer(invoker, output_language=config.output_language),
        ArticleComposer(invoker, output_language=config.output_language),
    )


@dataclass
class ThinkingSession:
    """Session context with an explicit start/end lifecycle.

    Sessions hold no process-wide state, so several may coexist.
    """

    source_path: Path
    material_store: MarkdownMaterialStore
    config: ThinkingToolConfig = field(default_factory=ThinkingToolConfig)
    is_active: bool = True

    @classmethod
    def start(
        cls,
        source_path: Path | str,
        config: Optional[ThinkingToolConfig] = None,
        *,
        folder: Path | str | None = None,
    ) -> "ThinkingSession":
        config = config or ThinkingToolConfig()
        source = Path(source_path).expanduser()
        store = MarkdownMaterialStore.create(source, folder=folder or config.material_folder)
        logger.info("Thinking session started for %s", source)
        return cls(source_path=source, material_store=store, config=config)

    @classmethod
    def resume(cls, material_path: Path | str, config: Optional[ThinkingToolConfig] = None) -> "ThinkingSession":
        """Attach to an existing material note."""

        store = MarkdownMaterialStore(material_path)
        if not store.path.exists():
            raise FileNotFoundError(f"Material note not found: {store.path}")
        return cls(source_path=store.path, material_store=store, config=config or ThinkingToolConfig())

    @property
    def material_note_path(self) -> Path:
        return self.material_store.path

    @property
    def note_sink(self) -> MarkdownNoteSink:
        return MarkdownNoteSink(self.material_note_path.parent)

    def _ensure_active(self) -> None:
        if not self.is_active:
            raise SessionInactiveError("The thinking session has ended; start a new one.")

    def add_material(self, quote: str, source_ref: str | Path | None = None, thought: str = "") -> None:
        self._ensure_active()
        self.material_store.append(quote, str(source_ref or self.source_path), thought)

    def open_wizard(
        self,
        *,
        synthesizer: TopicSynthesizer | None = None,
        composer: ArticleComposer | None = None,
        listener: Listener | None = None,
    ) -> WizardController:
        self._ensure_active()
        if synthesizer is None or composer is None:
            default_synthesizer, default_composer = build_agents(self.config)
            synthesizer = synthesizer or default_synthesizer
            composer = composer or default_composer
        return WizardController(
            self.material_store,
            synthesizer,
            composer,
            self.note_sink,
            listener=listener,
        )

    def end(self) -> None:
        if self.is_active:
            logger.info("Thinking session ended for %s", self.source_path)
        self.is_active = False

    def __enter__(self) -> "ThinkingSession":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.end()
