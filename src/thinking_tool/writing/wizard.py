"""Article wizard: a pure state-transition function plus the driver that runs its calls.

:func:`transition` maps ``(WizardState, WizardEvent)`` onto the next state and
never performs I/O. When a transition needs the provider it sets
``state.pending``; :class:`WizardController` notices, performs exactly that one
call, and feeds the outcome back in as a result event. The controller is the
presentation boundary: every failure ends up in ``state.last_error``.
"""

from __future__ import annotations

from dataclasses import replace
import logging
from typing import Callable, Optional

from ..llm.errors import ExhaustedRetriesError, ProviderFailure, TopicParseError
from .article_agent import ArticleComposer
from .io import MaterialStore, NoteSink, render_article_note
from .schema import MIN_OUTLINE_ITEMS, GenerationOptions, TopicSuggestion
from .state import (
    CALL_RESULT_EVENTS,
    AddOutlineItem,
    ArticleCreated,
    Back,
    Close,
    DeleteOutlineItem,
    EditOutlineItem,
    EnterCustomTopic,
    Generate,
    GenerationFailed,
    Next,
    Open,
    PendingCall,
    Progress,
    RegenerateTopics,
    RetryAfterError,
    SelectLength,
    SelectPersona,
    SelectTopic,
    SetCustomInstructions,
    TopicsFailed,
    TopicsLoaded,
    WizardEvent,
    WizardState,
    WizardStatus,
    WizardStep,
)
from .topic_agent import TopicSynthesizer

__all__ = ["transition", "describe_failure", "WizardController"]

logger = logging.getLogger(__name__)

Listener = Callable[[WizardState], None]

MIN_OUTLINE_NOTICE = f"At least {MIN_OUTLINE_ITEMS} outline items are required."


# ---------------------------------------------------------------------------
# Pure transitions
# ---------------------------------------------------------------------------


def _request_topics(state: WizardState) -> WizardState:
    return replace(
        state,
        step=WizardStep.TOPIC_SELECTION,
        topics=(),
        selected_topic=None,
        edited_outline=(),
        is_loading=True,
        loading_status="Analyzing materials...",
        last_error=None,
        notice=None,
        pending=PendingCall.SYNTHESIZE_TOPICS,
    )


def _on_topic_step(state: WizardState, event: WizardEvent) -> WizardState:
    if isinstance(event, SelectTopic):
        if not 0 <= event.index < len(state.topics):
            return replace(state, notice="Choose one of the suggested topics.")
        topic = state.topics[event.index]
        return replace(state, selected_topic=topic, edited_outline=tuple(topic.outline), notice=None)

    if isinstance(event, EnterCustomTopic):
        title = (event.title or "").strip()
        if not title:
            return replace(state, notice="Please enter a topic.")
        topic = TopicSuggestion.custom(title)
        return replace(
            state,
            step=WizardStep.OUTLINE_EDITING,
            selected_topic=topic,
            edited_outline=tuple(topic.outline),
            last_error=None,
            notice=None,
        )

    if isinstance(event, RegenerateTopics):
        return _request_topics(state)

    if isinstance(event, Next):
        if state.selected_topic is None:
            return replace(state, notice="Select a topic first.")
        if not state.edited_outline:
            return replace(state, notice="The selected topic has no outline to edit.")
        return replace(state, step=WizardStep.OUTLINE_EDITING, notice=None)

    return state


def _on_outline_step(state: WizardState, event: WizardEvent) -> WizardState:
    outline = list(state.edited_outline)

    if isinstance(event, EditOutlineItem):
        if not 0 <= event.index < len(outline):
            return state
        outline[event.index] = event.text
        return replace(state, edited_outline=tuple(outline), notice=None)

    if isinstance(event, AddOutlineItem):
        outline.append(event.text)
        return replace(state, edited_outline=tuple(outline), notice=None)

    if isinstance(event, DeleteOutlineItem):
        if len(outline) <= MIN_OUTLINE_ITEMS:
            return replace(state, notice=MIN_OUTLINE_NOTICE)
        if not 0 <= event.index < len(outline):
            return state
        del outline[event.index]
        return replace(state, edited_outline=tuple(outline), notice=None)

    if isinstance(event, Back):
        back = replace(state, step=WizardStep.TOPIC_SELECTION, notice=None)
        if not state.topics and state.last_error is None:
            # Step 1 without suggestions always loads them; the chosen topic stays selected.
            return replace(
                _request_topics(back),
                selected_topic=state.selected_topic,
                edited_outline=state.edited_outline,
            )
        return back

    if isinstance(event, Next):
        if state.selected_topic is None:
            return replace(state, step=WizardStep.TOPIC_SELECTION, notice="Select a topic first.")
        if len(outline) < MIN_OUTLINE_ITEMS:
            return replace(state, notice=MIN_OUTLINE_NOTICE)
        return replace(
            state,
            step=WizardStep.STYLE_SELECTION,
            selected_topic=state.selected_topic.with_outline(outline),
            notice=None,
        )

    return state


def _on_style_step(state: WizardState, event: WizardEvent) -> WizardState:
    if isinstance(event, SelectPersona):
        return replace(state, persona=event.persona, notice=None)
    if isinstance(event, SelectLength):
        return replace(state, length=event.length, notice=None)
    if isinstance(event, SetCustomInstructions):
        return replace(state, custom_instructions=event.text)
    if isinstance(event, Back):
        return replace(state, step=WizardStep.OUTLINE_EDITING, notice=None)
    if isinstance(event, Generate):
        if state.selected_topic is None or len(state.selected_topic.outline) < MIN_OUTLINE_ITEMS:
            return replace(state, notice="Complete the topic and outline before generating.")
        return replace(
            state,
            step=WizardStep.GENERATING,
            is_loading=True,
            loading_status="Preparing article generation...",
            last_error=None,
            notice=None,
            pending=PendingCall.COMPOSE_ARTICLE,
        )
    return state


def _on_call_result(state: WizardState, event: WizardEvent) -> WizardState:
    if isinstance(event, Progress):
        if not state.is_loading:
            return state
        return replace(state, loading_status=event.status)

    if isinstance(event, TopicsLoaded):
        if state.pending is not PendingCall.SYNTHESIZE_TOPICS:
            return state
        return replace(
            state,
            topics=tuple(event.topics),
            is_loading=False,
            loading_status="",
            last_error=None,
            pending=None,
        )

    if isinstance(event, TopicsFailed):
        if state.pending is not PendingCall.SYNTHESIZE_TOPICS:
            return state
        return replace(
            state,
            step=WizardStep.TOPIC_SELECTION,
            is_loading=False,
            loading_status="",
            last_error=event.message,
            pending=None,
        )

    if isinstance(event, ArticleCreated):
        if state.pending is not PendingCall.COMPOSE_ARTICLE:
            return state
        return replace(
            state,
            is_loading=False,
            loading_status="",
            pending=None,
            status=WizardStatus.COMPLETED,
            note_handle=event.handle,
        )

    if isinstance(event, GenerationFailed):
        if state.pending is not PendingCall.COMPOSE_ARTICLE:
            return state
        return replace(
            state,
            step=WizardStep.STYLE_SELECTION,
            is_loading=False,
            loading_status="",
            last_error=event.message,
            pending=None,
        )

    return state


def transition(state: WizardState, event: WizardEvent) -> WizardState:
    """Return the state that follows *event*; illegal events leave *state* unchanged."""

    if state.is_closed:
        return state

    if isinstance(event, Close):
        if state.status is WizardStatus.EMPTY:
            return replace(state, status=WizardStatus.CANCELLED)
        return replace(state, status=WizardStatus.CANCELLED, is_loading=False, pending=None)

    if state.is_empty:
        return state

    if isinstance(event, CALL_RESULT_EVENTS):
        return _on_call_result(state, event)

    # No second provider call may start while one is outstanding.
    if state.is_loading:
        return state

    if isinstance(event, Open):
        if state.step is WizardStep.TOPIC_SELECTION and not state.topics and state.last_error is None:
            return _request_topics(state)
        return state

    if isinstance(event, RetryAfterError):
        cleared = replace(state, last_error=None, notice=None)
        if state.step is WizardStep.TOPIC_SELECTION and not state.topics:
            return _request_topics(cleared)
        return cleared

    if state.step is WizardStep.TOPIC_SELECTION:
        return _on_topic_step(state, event)
    if state.step is WizardStep.OUTLINE_EDITING:
        return _on_outline_step(state, event)
    if state.step is WizardStep.STYLE_SELECTION:
        return _on_style_step(state, event)
    return state


def describe_failure(exc: BaseException, action: str) -> str:
    """User-facing message naming the failed action and, when known, the fix."""

    detail = str(exc) or type(exc).__name__
    sentence = detail if detail.endswith((".", "!", "?")) else f"{detail}."
    if isinstance(exc, ExhaustedRetriesError) and isinstance(exc.last_error, ProviderFailure):
        return f"{action} failed: {sentence} Try again in a moment or check the provider settings."
    if isinstance(exc, TopicParseError):
        return f"{action} failed: {sentence} Request new suggestions to try again."
    return f"{action} failed: {detail}"


# ---------------------------------------------------------------------------
# Driver
# ---------------------------------------------------------------------------


class WizardController:
    """Owns one wizard state and performs the provider calls it requests.

    Calls run synchronously inside :meth:`dispatch`; listeners are notified
    after every state change, including progress updates while loading.
    """

    def __init__(
        self,
        materials: MaterialStore,
        synthesizer: TopicSynthesizer,
        composer: ArticleComposer,
        note_sink: NoteSink,
        *,
        listener: Optional[Listener] = None,
    ) -> None:
        self.materials = materials
        self.synthesizer = synthesizer
        self.composer = composer
        self.note_sink = note_sink
        self.listener = listener
        self.article: Optional[str] = None
        self._state = WizardState.initial(materials.count())

    @property
    def state(self) -> WizardState:
        return self._state

    def open(self) -> WizardState:
        return self.dispatch(Open())

    def dispatch(self, event: WizardEvent) -> WizardState:
        if self._state.is_loading and not isinstance(event, (Close, *CALL_RESULT_EVENTS)):
            logger.debug("Ignoring %s while a provider call is in flight", type(event).__name__)
            return self._state
        self._apply(event)
        self._run_pending()
        return self._state

    # Internal helpers ------------------------------------------------------

    def _apply(self, event: WizardEvent) -> None:
        previous = self._state
        self._state = transition(previous, event)
        if self._state is not previous:
            logger.debug(
                "%s: step %d -> %d (%s)",
                type(event).__name__,
                previous.step,
                self._state.step,
                self._state.status.value,
            )
            if self.listener is not None:
                self.listener(self._state)

    def _progress(self, status: str) -> None:
        self._apply(Progress(status))

    def _run_pending(self) -> None:
        while self._state.pending is not None and not self._state.is_closed:
            if self._state.pending is PendingCall.SYNTHESIZE_TOPICS:
                self._apply(self._synthesize())
            else:
                self._apply(self._compose())

    def _synthesize(self) -> WizardEvent:
        materials_content = self.materials.read_all()
        try:
            topics = self.synthesizer.suggest(materials_content, on_progress=self._progress)
        except Exception as exc:
            logger.info("Topic suggestion failed: %s", exc)
            return TopicsFailed(describe_failure(exc, "Topic suggestion"))
        return TopicsLoaded(tuple(topics))

    def _compose(self) -> WizardEvent:
        state = self._state
        topic = state.selected_topic
        materials_content = self.materials.read_all()
        if topic is None:
            return GenerationFailed("Article generation failed: no topic selected.")
        if not materials_content.strip():
            return GenerationFailed("Article generation failed: no materials collected yet.")

        options = GenerationOptions(
            topic=topic,
            persona=state.persona,
            length=state.length,
            custom_instructions=state.custom_instructions or None,
        )
        try:
            article = self.composer.compose(materials_content, options, on_progress=self._progress)
            body = render_article_note(topic.title, article, self.materials.reference)
            handle = self.note_sink.create_note(topic.title, body)
        except Exception as exc:
            logger.info("Article generation failed: %s", exc)
            return GenerationFailed(describe_failure(exc, "Article generation"))
        if handle is None:
            return GenerationFailed("Article generation failed: the note could not be created.")
        self.article = article
        return ArticleCreated(handle, article)
