"""Topic synthesis: propose distinct article angles from collected materials."""

from __future__ import annotations

import json
import logging
from typing import Any, List, Sequence

from pydantic import ValidationError

from ..llm.errors import TopicParseError
from ..llm.invoker import ProgressSink, ResilientInvoker, notify
from .schema import TopicSuggestion

__all__ = ["MAX_TOPICS", "TOPIC_ANGLES", "TopicPromptBuilder", "TopicSynthesizer", "extract_json_array", "parse_topics"]

logger = logging.getLogger(__name__)

MAX_TOPICS = 5
TOPIC_ANGLES: tuple[tuple[str, str], ...] = (
    ("Mainstream Angle", "A conventional, accessible approach that most readers would expect"),
    ("Contrarian Angle", "A perspective that challenges common assumptions or conventional wisdom"),
    ("Personal/Emotional Angle", "A deeply personal, story-driven approach"),
    ("Analytical/Deep-dive Angle", "A thorough, research-oriented perspective"),
    ("Provocative/Bold Angle", "A daring, attention-grabbing take that sparks discussion"),
)


def extract_json_array(text: str) -> str | None:
    """Return the first balanced ``[...]`` substring of *text*.

    Brackets inside JSON string literals do not count towards the balance, so
    outlines containing ``]`` survive intact.
    """

    start = text.find("[")
    if start < 0:
        return None
    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "[":
            depth += 1
        elif char == "]":
            depth -= 1
            if depth == 0:
                return text[start : index + 1]
    return None


def parse_topics(response: str, *, limit: int = MAX_TOPICS) -> List[TopicSuggestion]:
    """Interpret a provider answer as at most *limit* topic suggestions, in order."""

    candidate = extract_json_array(response or "")
    if candidate is None:
        raise TopicParseError()
    try:
        payload: Any = json.loads(candidate)
    except json.JSONDecodeError as exc:
        raise TopicParseError() from exc
    if not isinstance(payload, list):
        raise TopicParseError()

    topics: List[TopicSuggestion] = []
    for index, item in enumerate(payload):
        try:
            topics.append(TopicSuggestion.model_validate(item))
        except ValidationError as exc:
            logger.warning("Skipping topic %d with invalid structure: %s", index, exc.errors()[:1])
    if not topics:
        raise TopicParseError("Topic suggestion parsing failed: the AI did not return any usable topics.")
    return topics[:limit]


class TopicPromptBuilder:
    """Assemble the single prompt used for topic synthesis."""

    def __init__(self, angles: Sequence[tuple[str, str]] = TOPIC_ANGLES) -> None:
        self.angles = tuple(angles)

    def build(self, materials_content: str, language: str) -> str:
        angle_lines = [
            f"{idx}. **{label}**: {description}"
            for idx, (label, description) in enumerate(self.angles, start=1)
        ]
        prompt_lines = [
            "You are a creative writing assistant helping a writer craft compelling articles from their collected materials.",
            "",
            f"**CRITICAL: All output must be written in {language}.**",
            "",
            "## Collected Materials:",
            materials_content,
            "",
            "## Your Task:",
            f"Analyze the materials deeply and suggest **{len(self.angles)} unique topic angles** for an article. "
            "Each suggestion should offer a distinct perspective:",
            "",
            *angle_lines,
            "",
            "For each suggestion, provide:",
            "- **title**: An engaging, click-worthy title (10-15 words max)",
            "- **description**: A 2-3 sentence description of the angle and why it's compelling",
            "- **outline**: 4-6 key points that structure the article",
            "",
            "Respond ONLY with valid JSON (no markdown, no explanation):",
            "[",
            "  {",
            '    "title": "Title",',
            '    "description": "Description",',
            '    "outline": ["Point 1", "Point 2", "Point 3", "Point 4"]',
            "  }",
            "]",
        ]
        return "\n".join(prompt_lines)


class TopicSynthesizer:
    """Turns raw materials text into ordered topic suggestions."""

    def __init__(
        self,
        invoker: ResilientInvoker,
        *,
        output_language: str = "English",
        prompt_builder: TopicPromptBuilder | None = None,
    ) -> None:
        self.invoker = invoker
        self.output_language = output_language
        self.prompt_builder = prompt_builder or TopicPromptBuilder()

    def suggest(self, materials_content: str, on_progress: ProgressSink | None = None) -> List[TopicSuggestion]:
        if not materials_content or not materials_content.strip():
            raise ValueError("materials content is empty; collect materials first")

        prompt = self.prompt_builder.build(materials_content, self.output_language)
        notify(on_progress, "Analyzing materials...")
        response = self.invoker.call(prompt, on_progress)
        try:
            return parse_topics(response)
        except TopicParseError:
            logger.warning("Failed to parse topic suggestions from response: %.200s", response)
            raise
