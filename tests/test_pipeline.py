from __future__ import annotations

import json

import pytest

from thinking_tool.writing.article_agent import ArticleComposer
from thinking_tool.writing.io import InMemoryMaterialStore, InMemoryNoteSink
from thinking_tool.writing.pipeline import ArticlePipeline, PipelineRequest
from thinking_tool.writing.schema import ArticleLength, Persona
from thinking_tool.writing.topic_agent import TopicSynthesizer

TOPICS_JSON = json.dumps(
    [
        {"title": "Alpha", "description": "first", "outline": ["a1", "a2", "a3", "a4"]},
        {"title": "Beta", "description": "second", "outline": ["b1", "b2", "b3", "b4"]},
    ]
)


def _pipeline(materials, invoker, sink, progress=None) -> ArticlePipeline:
    return ArticlePipeline(
        materials,
        TopicSynthesizer(invoker),
        ArticleComposer(invoker),
        sink,
        on_progress=progress,
    )


def test_pipeline_suggests_then_writes_selected_topic(two_materials, make_invoker) -> None:
    invoker = make_invoker([TOPICS_JSON, "Beta article"])
    sink = InMemoryNoteSink()
    progress: list[str] = []

    result = _pipeline(two_materials, invoker, sink, progress.append).run(
        PipelineRequest(topic_index=2, persona=Persona.BLOG, length=ArticleLength.SHORT)
    )

    assert result.topic.title == "Beta"
    assert [topic.title for topic in result.topics] == ["Alpha", "Beta"]
    assert result.article == "Beta article"
    assert result.note_handle == "Beta"
    assert "Beta article" in sink.notes["Beta"]
    assert "> Materials: [[Reading Notes - Materials]]" in sink.notes["Beta"]
    assert progress[0] == "Analyzing materials..."
    assert "Generating article..." in progress
    assert "800-1200" in invoker.client.prompts[1]


def test_custom_topic_skips_synthesis(two_materials, make_invoker) -> None:
    invoker = make_invoker(["Custom article"])
    sink = InMemoryNoteSink()

    result = _pipeline(two_materials, invoker, sink).run(PipelineRequest(custom_topic="My idea"))

    assert result.topics == []
    assert result.topic.outline == ["Introduction", "Main point 1", "Main point 2", "Conclusion"]
    assert len(invoker.client.prompts) == 1
    assert "- **Title**: My idea" in invoker.client.prompts[0]
    assert sink.notes["My idea"].startswith("# My idea\n")


def test_pipeline_refuses_empty_materials(make_invoker) -> None:
    invoker = make_invoker([])
    with pytest.raises(ValueError, match="No materials"):
        _pipeline(InMemoryMaterialStore(), invoker, InMemoryNoteSink()).run()
    assert invoker.client.prompts == []


def test_pipeline_rejects_out_of_range_index(two_materials, make_invoker) -> None:
    invoker = make_invoker([TOPICS_JSON])
    sink = InMemoryNoteSink()
    with pytest.raises(ValueError, match="out of range"):
        _pipeline(two_materials, invoker, sink).run(PipelineRequest(topic_index=4))
    assert sink.notes == {}
