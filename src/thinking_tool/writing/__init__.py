"""Topic synthesis, article composition and the wizard that sequences them."""

from .article_agent import ArticleComposer, ArticlePromptBuilder
from .io import (
    InMemoryMaterialStore,
    InMemoryNoteSink,
    MarkdownMaterialStore,
    MarkdownNoteSink,
    Material,
    MaterialStore,
    NoteCreationError,
    NoteSink,
    render_article_note,
)
from .pipeline import ArticlePipeline, PipelineRequest, PipelineResult
from .schema import ArticleLength, GenerationOptions, Persona, TopicSuggestion
from .state import WizardState, WizardStatus, WizardStep
from .topic_agent import TopicPromptBuilder, TopicSynthesizer, parse_topics
from .view import WizardView, render_view
from .wizard import WizardController, describe_failure, transition

__all__ = [
    "ArticleComposer",
    "ArticlePromptBuilder",
    "InMemoryMaterialStore",
    "InMemoryNoteSink",
    "MarkdownMaterialStore",
    "MarkdownNoteSink",
    "Material",
    "MaterialStore",
    "NoteCreationError",
    "NoteSink",
    "render_article_note",
    "ArticlePipeline",
    "PipelineRequest",
    "PipelineResult",
    "ArticleLength",
    "GenerationOptions",
    "Persona",
    "TopicSuggestion",
    "WizardState",
    "WizardStatus",
    "WizardStep",
    "TopicPromptBuilder",
    "TopicSynthesizer",
    "parse_topics",
    "WizardView",
    "render_view",
    "WizardController",
    "describe_failure",
    "transition",
]
