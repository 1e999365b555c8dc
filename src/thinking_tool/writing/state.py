"""Wizard state and the events that drive it."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any, Optional

from .schema import ArticleLength, Persona, TopicSuggestion

__all__ = [
    "WizardStep",
    "WizardStatus",
    "PendingCall",
    "WizardState",
    "WizardEvent",
    "Open",
    "SelectTopic",
    "EnterCustomTopic",
    "RegenerateTopics",
    "Next",
    "Back",
    "EditOutlineItem",
    "AddOutlineItem",
    "DeleteOutlineItem",
    "SelectPersona",
    "SelectLength",
    "SetCustomInstructions",
    "Generate",
    "RetryAfterError",
    "Close",
    "Progress",
    "TopicsLoaded",
    "TopicsFailed",
    "ArticleCreated",
    "GenerationFailed",
    "CALL_RESULT_EVENTS",
]


class WizardStep(IntEnum):
    TOPIC_SELECTION = 1
    OUTLINE_EDITING = 2
    STYLE_SELECTION = 3
    GENERATING = 4


class WizardStatus(str, Enum):
    OPEN = "open"
    EMPTY = "empty"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PendingCall(str, Enum):
    """Provider-backed work the state asks its driver to perform."""

    SYNTHESIZE_TOPICS = "synthesize_topics"
    COMPOSE_ARTICLE = "compose_article"


@dataclass(frozen=True, slots=True)
class WizardState:
    """Snapshot of one wizard instance; transitions always return a new snapshot."""

    material_count: int = 0
    step: WizardStep = WizardStep.TOPIC_SELECTION
    topics: tuple[TopicSuggestion, ...] = ()
    selected_topic: Optional[TopicSuggestion] = None
    edited_outline: tuple[str, ...] = ()
    persona: Persona = Persona.ESSAY
    length: ArticleLength = ArticleLength.MEDIUM
    custom_instructions: str = ""
    is_loading: bool = False
    loading_status: str = ""
    last_error: Optional[str] = None
    notice: Optional[str] = None
    status: WizardStatus = WizardStatus.OPEN
    pending: Optional[PendingCall] = None
    note_handle: Any = None

    @classmethod
    def initial(cls, material_count: int) -> "WizardState":
        status = WizardStatus.OPEN if material_count >= 1 else WizardStatus.EMPTY
        return cls(material_count=material_count, status=status)

    @property
    def is_empty(self) -> bool:
        return self.status is WizardStatus.EMPTY

    @property
    def is_closed(self) -> bool:
        return self.status in (WizardStatus.COMPLETED, WizardStatus.CANCELLED)


class WizardEvent:
    """Marker base for everything :func:`~thinking_tool.writing.wizard.transition` accepts."""

    __slots__ = ()


# User events ---------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Open(WizardEvent):
    pass


@dataclass(frozen=True, slots=True)
class SelectTopic(WizardEvent):
    index: int


@dataclass(frozen=True, slots=True)
class EnterCustomTopic(WizardEvent):
    title: str


@dataclass(frozen=True, slots=True)
class RegenerateTopics(WizardEvent):
    pass


@dataclass(frozen=True, slots=True)
class Next(WizardEvent):
    pass


@dataclass(frozen=True, slots=True)
class Back(WizardEvent):
    pass


@dataclass(frozen=True, slots=True)
class EditOutlineItem(WizardEvent):
    index: int
    text: str


@dataclass(frozen=True, slots=True)
class AddOutlineItem(WizardEvent):
    text: str = "New item"


@dataclass(frozen=True, slots=True)
class DeleteOutlineItem(WizardEvent):
    index: int


@dataclass(frozen=True, slots=True)
class SelectPersona(WizardEvent):
    persona: Persona


@dataclass(frozen=True, slots=True)
class SelectLength(WizardEvent):
    length: ArticleLength


@dataclass(frozen=True, slots=True)
class SetCustomInstructions(WizardEvent):
    text: str


@dataclass(frozen=True, slots=True)
class Generate(WizardEvent):
    pass


@dataclass(frozen=True, slots=True)
class RetryAfterError(WizardEvent):
    pass


@dataclass(frozen=True, slots=True)
class Close(WizardEvent):
    pass


# Call results --------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Progress(WizardEvent):
    status: str


@dataclass(frozen=True, slots=True)
class TopicsLoaded(WizardEvent):
    topics: tuple[TopicSuggestion, ...]


@dataclass(frozen=True, slots=True)
class TopicsFailed(WizardEvent):
    message: str


@dataclass(frozen=True, slots=True)
class ArticleCreated(WizardEvent):
    handle: Any
    article: str = ""


@dataclass(frozen=True, slots=True)
class GenerationFailed(WizardEvent):
    message: str


CALL_RESULT_EVENTS = (Progress, TopicsLoaded, TopicsFailed, ArticleCreated, GenerationFailed)
