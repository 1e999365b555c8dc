"""LangGraph batch pipeline: materials -> topics -> article -> note, without a wizard."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Any, List, Optional, TypedDict

from langgraph.graph import END, START, StateGraph

from ..llm.invoker import ProgressSink
from .article_agent import ArticleComposer
from .io import MaterialStore, NoteSink, render_article_note
from .schema import ArticleLength, GenerationOptions, Persona, TopicSuggestion
from .topic_agent import TopicSynthesizer

__all__ = ["PipelineRequest", "PipelineResult", "ArticlePipeline"]

logger = logging.getLogger(__name__)


class PipelineState(TypedDict, total=False):
    topic_index: int
    custom_topic: Optional[str]
    persona: Persona
    length: ArticleLength
    custom_instructions: Optional[str]
    materials_content: str
    material_count: int
    topics: List[TopicSuggestion]
    topic: TopicSuggestion
    article: str
    note_handle: Any


@dataclass(slots=True)
class PipelineRequest:
    topic_index: int = 1
    custom_topic: Optional[str] = None
    persona: Persona = Persona.ESSAY
    length: ArticleLength = ArticleLength.MEDIUM
    custom_instructions: Optional[str] = None


@dataclass(slots=True)
class PipelineResult:
    topic: TopicSuggestion
    article: str
    note_handle: Any
    topics: List[TopicSuggestion] = field(default_factory=list)


class ArticlePipeline:
    """Non-interactive rendition of the wizard for CLI and batch use."""

    def __init__(
        self,
        materials: MaterialStore,
        synthesizer: TopicSynthesizer,
        composer: ArticleComposer,
        note_sink: NoteSink,
        *,
        on_progress: ProgressSink | None = None,
    ) -> None:
        self.materials = materials
        self.synthesizer = synthesizer
        self.composer = composer
        self.note_sink = note_sink
        self.on_progress = on_progress
        self._graph = self._build_graph()

    def _build_graph(self):
        graph = StateGraph(PipelineState)
        graph.add_node("load_materials", self._node_load_materials)
        graph.add_node("suggest_topics", self._node_suggest_topics)
        graph.add_node("select_topic", self._node_select_topic)
        graph.add_node("compose_article", self._node_compose_article)
        graph.add_node("create_note", self._node_create_note)

        graph.add_edge(START, "load_materials")
        graph.add_conditional_edges(
            "load_materials",
            self._route_after_load,
            {"suggest": "suggest_topics", "select": "select_topic"},
        )
        graph.add_edge("suggest_topics", "select_topic")
        graph.add_edge("select_topic", "compose_article")
        graph.add_edge("compose_article", "create_note")
        graph.add_edge("create_note", END)
        return graph.compile()

    def run(self, request: PipelineRequest | None = None) -> PipelineResult:
        request = request or PipelineRequest()
        initial_state: PipelineState = {
            "topic_index": request.topic_index,
            "custom_topic": request.custom_topic,
            "persona": request.persona,
            "length": request.length,
            "custom_instructions": request.custom_instructions,
        }
        final_state = self._graph.invoke(initial_state)
        return PipelineResult(
            topic=final_state["topic"],
            article=final_state["article"],
            note_handle=final_state["note_handle"],
            topics=list(final_state.get("topics") or []),
        )

    # LangGraph node implementations -------------------------------------------------

    def _route_after_load(self, state: PipelineState) -> str:
        return "select" if (state.get("custom_topic") or "").strip() else "suggest"

    def _node_load_materials(self, state: PipelineState) -> PipelineState:
        count = self.materials.count()
        if count < 1:
            raise ValueError("No materials collected yet; add materials before generating.")
        updated = dict(state)
        updated["materials_content"] = self.materials.read_all()
        updated["material_count"] = count
        return updated

    def _node_suggest_topics(self, state: PipelineState) -> PipelineState:
        topics = self.synthesizer.suggest(state["materials_content"], on_progress=self.on_progress)
        updated = dict(state)
        updated["topics"] = topics
        return updated

    def _node_select_topic(self, state: PipelineState) -> PipelineState:
        custom_title = (state.get("custom_topic") or "").strip()
        if custom_title:
            topic = TopicSuggestion.custom(custom_title)
        else:
            topics = state.get("topics") or []
            index = state.get("topic_index", 1)
            if not 1 <= index <= len(topics):
                raise ValueError(f"Topic index {index} is out of range (1-{len(topics)}).")
            topic = topics[index - 1]
        logger.info("Selected topic: %s", topic.title)
        updated = dict(state)
        updated["topic"] = topic
        return updated

    def _node_compose_article(self, state: PipelineState) -> PipelineState:
        options = GenerationOptions(
            topic=state["topic"],
            persona=state.get("persona", Persona.ESSAY),
            length=state.get("length", ArticleLength.MEDIUM),
            custom_instructions=state.get("custom_instructions"),
        )
        article = self.composer.compose(state["materials_content"], options, on_progress=self.on_progress)
        updated = dict(state)
        updated["article"] = article
        return updated

    def _node_create_note(self, state: PipelineState) -> PipelineState:
        topic = state["topic"]
        body = render_article_note(topic.title, state["article"], self.materials.reference)
        updated = dict(state)
        updated["note_handle"] = self.note_sink.create_note(topic.title, body)
        return updated
