"""Presentation-neutral projection of the wizard state."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from .schema import ArticleLength, Persona
from .state import WizardState, WizardStatus, WizardStep

__all__ = ["STEP_LABELS", "PERSONA_LABELS", "LENGTH_LABELS", "WizardView", "render_view"]

STEP_LABELS = ("Topic", "Outline", "Style", "Generate")

PERSONA_LABELS: dict[Persona, str] = {
    Persona.ESSAY: "Essay - deep, reflective writing",
    Persona.BLOG: "Blog - friendly and conversational",
    Persona.NEWSLETTER: "Newsletter - insight delivery",
    Persona.STORYTELLING: "Storytelling - told through a story",
    Persona.ACADEMIC: "Academic - argumentative, systematic",
    Persona.TWITTER: "Twitter thread - short and punchy",
}

LENGTH_LABELS: dict[ArticleLength, str] = {
    ArticleLength.SHORT: "Short (800-1200 characters)",
    ArticleLength.MEDIUM: "Medium (2000-3000 characters)",
    ArticleLength.LONG: "Long (4000-5000 characters)",
}

OUTLINE_PREVIEW = 3


@dataclass(slots=True)
class WizardView:
    heading: str
    steps: List[str] = field(default_factory=list)
    lines: List[str] = field(default_factory=list)
    actions: List[str] = field(default_factory=list)
    banner: str | None = None


def _step_markers(state: WizardState) -> List[str]:
    markers = []
    for number, label in enumerate(STEP_LABELS, start=1):
        if number < state.step:
            markers.append(f"[x] {label}")
        elif number == state.step:
            markers.append(f"[>] {label}")
        else:
            markers.append(f"[ ] {label}")
    return markers


def render_view(state: WizardState) -> WizardView:
    """Describe what a front end should show for *state*; performs no I/O."""

    if state.status is WizardStatus.EMPTY:
        return WizardView(
            heading="No materials yet",
            lines=["Select text in a note and add it as material first."],
            actions=["close"],
        )
    if state.status is WizardStatus.COMPLETED:
        return WizardView(heading="Article created", lines=[f"Note: {state.note_handle}"])
    if state.status is WizardStatus.CANCELLED:
        return WizardView(heading="Wizard closed")

    view = WizardView(heading="Write an article", steps=_step_markers(state))
    if state.last_error:
        view.banner = state.last_error
        view.actions.append("retry")
    if state.notice:
        view.lines.append(f"! {state.notice}")

    if state.is_loading:
        view.lines.append(state.loading_status or "Working...")
        view.actions.append("close")
        return view

    if state.step is WizardStep.TOPIC_SELECTION:
        view.lines.append(f"Collected materials: {state.material_count}")
        for index, topic in enumerate(state.topics, start=1):
            marker = "*" if topic == state.selected_topic else " "
            view.lines.append(f"{marker}{index}. {topic.title}")
            if topic.description:
                view.lines.append(f"    {topic.description}")
            for point in topic.outline[:OUTLINE_PREVIEW]:
                view.lines.append(f"    - {point}")
            if len(topic.outline) > OUTLINE_PREVIEW:
                view.lines.append(f"    +{len(topic.outline) - OUTLINE_PREVIEW} more...")
        view.actions.extend(["select", "custom", "regenerate", "next", "close"])
    elif state.step is WizardStep.OUTLINE_EDITING:
        if state.selected_topic is not None:
            view.lines.append(state.selected_topic.title)
            view.lines.append(state.selected_topic.description)
        for index, point in enumerate(state.edited_outline, start=1):
            view.lines.append(f"{index}. {point}")
        view.actions.extend(["edit", "add", "delete", "back", "next", "close"])
    elif state.step is WizardStep.STYLE_SELECTION:
        for persona, label in PERSONA_LABELS.items():
            marker = "*" if persona is state.persona else " "
            view.lines.append(f"{marker} {persona.value}: {label}")
        for length, label in LENGTH_LABELS.items():
            marker = "*" if length is state.length else " "
            view.lines.append(f"{marker} {length.value}: {label}")
        if state.custom_instructions:
            view.lines.append(f"Instructions: {state.custom_instructions}")
        view.actions.extend(["persona", "length", "instructions", "back", "generate", "close"])
    return view
