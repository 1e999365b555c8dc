"""Article composition from a chosen topic, style and collected materials."""

from __future__ import annotations

import logging
from typing import Mapping

from ..llm.invoker import ProgressSink, ResilientInvoker, notify
from .schema import ArticleLength, GenerationOptions, Persona

__all__ = ["PERSONA_DIRECTIVES", "LENGTH_DIRECTIVES", "ArticlePromptBuilder", "ArticleComposer"]

logger = logging.getLogger(__name__)

PERSONA_DIRECTIVES: Mapping[Persona, str] = {
    Persona.ESSAY: (
        "A deep, reflective essay style. Use literary techniques and personal insight. "
        "Employ metaphor and analogy where fitting and appeal to the reader's emotions."
    ),
    Persona.BLOG: (
        "A friendly, conversational blog style. Accessible but substantial. "
        "Keep a tone that speaks directly to the reader."
    ),
    Persona.ACADEMIC: (
        "An academic, argumentative style. Clear logical structure with supporting evidence. "
        "Keep an objective tone and write systematically."
    ),
    Persona.TWITTER: (
        "A Twitter/X thread format. Short, punchy sentences. Number each tweet, open with a hook "
        "and keep the tension going. Use emoji sparingly."
    ),
    Persona.NEWSLETTER: (
        "A newsletter style. Deliver valuable insight to the reader. "
        "Make the key points explicit and include actionable advice."
    ),
    Persona.STORYTELLING: (
        "A storytelling style. Open with a story that draws the reader in. "
        "Use concrete examples and vivid description."
    ),
    Persona.CUSTOM: "A clear, professional style. Balance accessibility and depth.",
}

LENGTH_DIRECTIVES: Mapping[ArticleLength, str] = {
    ArticleLength.SHORT: "A concise piece of about 800-1200 characters. Deliver only the essentials, clearly.",
    ArticleLength.MEDIUM: "A moderate piece of about 2000-3000 characters. Include enough explanation and examples.",
    ArticleLength.LONG: (
        "An in-depth piece of about 4000-5000 characters. Include detailed analysis, "
        "multiple perspectives and rich examples."
    ),
}


class ArticlePromptBuilder:
    """Assemble the single prompt used for article drafting."""

    def build(self, materials_content: str, options: GenerationOptions, language: str) -> str:
        topic = options.topic
        outline_lines = [f"  {idx}. {point}" for idx, point in enumerate(topic.outline, start=1)]
        guideline_lines = [
            f"- **Style**: {PERSONA_DIRECTIVES[options.persona]}",
            f"- **Length**: {LENGTH_DIRECTIVES[options.length]}",
        ]
        if options.custom_instructions:
            guideline_lines.append(f"- **Additional instructions**: {options.custom_instructions}")

        prompt_lines = [
            f"You are a skilled writer who writes in {language}.",
            "",
            "## Article Details",
            f"- **Title**: {topic.title}",
            f"- **Approach**: {topic.description}",
            "- **Outline**:",
            *outline_lines,
            "",
            "## Reference Materials",
            materials_content,
            "",
            "## Writing Guidelines",
            *guideline_lines,
            "",
            "## Important Rules",
            f"1. Write entirely in {language}",
            "2. Weave the collected materials and the author's thoughts in naturally",
            "3. Do not add anything that contradicts the materials",
            "4. Keep the author's own perspective and voice",
            "5. Follow the outline structure while keeping a natural flow",
            "6. Capture the reader's interest in the opening and leave a lasting impression in the conclusion",
            "",
            "Write the finished article now:",
        ]
        return "\n".join(prompt_lines)


class ArticleComposer:
    """Produces article text for a topic; output is returned untouched."""

    def __init__(
        self,
        invoker: ResilientInvoker,
        *,
        output_language: str = "English",
        prompt_builder: ArticlePromptBuilder | None = None,
    ) -> None:
        self.invoker = invoker
        self.output_language = output_language
        self.prompt_builder = prompt_builder or ArticlePromptBuilder()

    def compose(
        self,
        materials_content: str,
        options: GenerationOptions,
        on_progress: ProgressSink | None = None,
    ) -> str:
        if not materials_content or not materials_content.strip():
            raise ValueError("materials content is empty; collect materials first")

        prompt = self.prompt_builder.build(materials_content, options, self.output_language)
        logger.debug(
            "Composing article '%s' (persona=%s, length=%s)",
            options.topic.title,
            options.persona.value,
            options.length.value,
        )
        notify(on_progress, "Generating article...")
        return self.invoker.call(prompt, on_progress)
