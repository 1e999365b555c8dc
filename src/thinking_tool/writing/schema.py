"""Structured records exchanged between the synthesizer, composer and wizard."""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

__all__ = [
    "FrozenBaseModel",
    "Persona",
    "ArticleLength",
    "TopicSuggestion",
    "GenerationOptions",
    "DEFAULT_CUSTOM_OUTLINE",
    "CUSTOM_TOPIC_DESCRIPTION",
    "MIN_OUTLINE_ITEMS",
]

MIN_OUTLINE_ITEMS = 2
DEFAULT_CUSTOM_OUTLINE = ("Introduction", "Main point 1", "Main point 2", "Conclusion")
CUSTOM_TOPIC_DESCRIPTION = "Topic entered by the user"


class FrozenBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


class Persona(str, Enum):
    """Named writing-style directive."""

    ESSAY = "essay"
    BLOG = "blog"
    ACADEMIC = "academic"
    TWITTER = "twitter"
    NEWSLETTER = "newsletter"
    STORYTELLING = "storytelling"
    CUSTOM = "custom"


class ArticleLength(str, Enum):
    SHORT = "short"
    MEDIUM = "medium"
    LONG = "long"


class TopicSuggestion(FrozenBaseModel):
    """A candidate framing for the article."""

    title: str = Field(..., description="Engaging article title.")
    description: str = Field(default="", description="Why this angle is compelling.")
    outline: List[str] = Field(default_factory=list, description="Ordered key points.")

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("title must not be empty")
        return value

    @field_validator("outline", mode="before")
    @classmethod
    def _coerce_outline(cls, value: object) -> object:
        if value is None:
            return []
        if isinstance(value, list):
            return [str(item) for item in value]
        return value

    @classmethod
    def custom(cls, title: str) -> "TopicSuggestion":
        """Topic typed in by the user, seeded with the default four-point outline."""

        return cls(
            title=title,
            description=CUSTOM_TOPIC_DESCRIPTION,
            outline=list(DEFAULT_CUSTOM_OUTLINE),
        )

    def with_outline(self, outline: List[str]) -> "TopicSuggestion":
        return self.model_copy(update={"outline": list(outline)})


class GenerationOptions(FrozenBaseModel):
    """Inputs fixed for one article-drafting attempt."""

    topic: TopicSuggestion
    persona: Persona = Persona.ESSAY
    length: ArticleLength = ArticleLength.MEDIUM
    custom_instructions: Optional[str] = None

    @field_validator("custom_instructions")
    @classmethod
    def _blank_is_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        return value or None
