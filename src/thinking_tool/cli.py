"""Command line interface for the thinking tool."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Callable, Sequence, TextIO

from dotenv import load_dotenv

from .config import PROVIDER_NAMES, ThinkingToolConfig
from .llm.errors import ProviderFailure, TopicParseError
from .session import ThinkingSession, build_agents
from .writing.io import MarkdownMaterialStore, NoteCreationError
from .writing.pipeline import ArticlePipeline, PipelineRequest
from .writing.schema import ArticleLength, Persona
from .writing.state import (
    AddOutlineItem,
    Back,
    Close,
    DeleteOutlineItem,
    EditOutlineItem,
    EnterCustomTopic,
    Generate,
    Next,
    RegenerateTopics,
    RetryAfterError,
    SelectLength,
    SelectPersona,
    SelectTopic,
    SetCustomInstructions,
    WizardEvent,
    WizardState,
)
from .writing.view import render_view

__all__ = ["main", "build_parser", "parse_wizard_command"]

logger = logging.getLogger(__name__)

PERSONA_CHOICES = [persona.value for persona in Persona]
LENGTH_CHOICES = [length.value for length in ArticleLength]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="thinking-tool",
        description="Collect highlighted materials and turn them into finished articles.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
        allow_abbrev=False,
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    subparsers = parser.add_subparsers(dest="command")

    materials_parser = subparsers.add_parser(
        "materials",
        help="Create material notes and append excerpts to them.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
        allow_abbrev=False,
    )
    materials_sub = materials_parser.add_subparsers(dest="materials_command", required=True)

    init_parser = materials_sub.add_parser("init", help="Start a material note for a source note.")
    init_parser.add_argument("--source", required=True, help="Path to the note being read.")
    init_parser.add_argument("--folder", default=None, help="Folder for the material note.")

    add_parser = materials_sub.add_parser("add", help="Append a quote and your thought.")
    add_parser.add_argument("--materials", required=True, help="Path to the material note.")
    add_parser.add_argument("--quote", required=True, help="Highlighted text.")
    add_parser.add_argument("--source", required=True, help="Note the quote was taken from.")
    add_parser.add_argument("--thought", default="", help="Your reflection on the quote.")

    topics_parser = subparsers.add_parser(
        "topics",
        help="Suggest topic angles for the collected materials.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
        allow_abbrev=False,
    )
    _register_materials_argument(topics_parser)
    _register_provider_arguments(topics_parser)

    generate_parser = subparsers.add_parser(
        "generate",
        help="Suggest topics, draft an article and write it as a note.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
        allow_abbrev=False,
    )
    _register_materials_argument(generate_parser)
    _register_provider_arguments(generate_parser)
    topic_group = generate_parser.add_mutually_exclusive_group()
    topic_group.add_argument("--topic-index", type=_positive_int, default=1, help="Suggested topic to use (1-based).")
    topic_group.add_argument("--custom-topic", default=None, help="Skip suggestions and write about this title.")
    generate_parser.add_argument("--persona", choices=PERSONA_CHOICES, default=Persona.ESSAY.value)
    generate_parser.add_argument("--length", choices=LENGTH_CHOICES, default=ArticleLength.MEDIUM.value)
    generate_parser.add_argument("--instructions", default=None, help="Additional free-text instructions.")

    wizard_parser = subparsers.add_parser(
        "wizard",
        help="Interactive step-by-step article wizard.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
        allow_abbrev=False,
    )
    _register_materials_argument(wizard_parser)
    _register_provider_arguments(wizard_parser)

    return parser


def _register_materials_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--materials", required=True, help="Path to the material note.")


def _register_provider_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--provider", choices=PROVIDER_NAMES, default=None, help="Generative-text provider.")
    parser.add_argument("--model", default=None, help="Model identifier for the provider.")
    parser.add_argument("--base-url", dest="base_url", default=None, help="Endpoint override.")
    parser.add_argument("--language", default=None, help="Output language for topics and articles.")


def _positive_int(token: str) -> int:
    try:
        value = int(token)
    except ValueError as exc:  # pragma: no cover - argparse formatting
        raise argparse.ArgumentTypeError(f"Invalid integer value: {token}") from exc
    if value <= 0:
        raise argparse.ArgumentTypeError("Values must be positive integers")
    return value


def _build_config(args: argparse.Namespace) -> ThinkingToolConfig:
    return ThinkingToolConfig().with_overrides(
        provider=getattr(args, "provider", None),
        model=getattr(args, "model", None),
        base_url=getattr(args, "base_url", None),
        output_language=getattr(args, "language", None),
    )


def _progress_printer(stream: TextIO) -> Callable[[str], None]:
    def _print(status: str) -> None:
        print(f"... {status}", file=stream)

    return _print


# Commands -------------------------------------------------------------------


def _run_materials(args: argparse.Namespace) -> int:
    if args.materials_command == "init":
        store = MarkdownMaterialStore.create(args.source, folder=args.folder)
        print(store.path)
        return 0
    store = MarkdownMaterialStore(args.materials)
    if not store.path.exists():
        raise FileNotFoundError(f"Material note not found: {store.path}")
    store.append(args.quote, args.source, args.thought)
    print(f"Material added ({store.count()} total).")
    return 0


def _run_topics(args: argparse.Namespace) -> int:
    session = ThinkingSession.resume(args.materials, _build_config(args))
    if session.material_store.count() < 1:
        raise ValueError("No materials collected yet; add materials first.")
    synthesizer, _ = build_agents(session.config)
    topics = synthesizer.suggest(session.material_store.read_all(), on_progress=_progress_printer(sys.stderr))
    for index, topic in enumerate(topics, start=1):
        print(f"{index}. {topic.title}")
        print(f"   {topic.description}")
        for point in topic.outline:
            print(f"   - {point}")
    return 0


def _run_generate(args: argparse.Namespace) -> int:
    session = ThinkingSession.resume(args.materials, _build_config(args))
    synthesizer, composer = build_agents(session.config)
    pipeline = ArticlePipeline(
        session.material_store,
        synthesizer,
        composer,
        session.note_sink,
        on_progress=_progress_printer(sys.stderr),
    )
    result = pipeline.run(
        PipelineRequest(
            topic_index=args.topic_index,
            custom_topic=args.custom_topic,
            persona=Persona(args.persona),
            length=ArticleLength(args.length),
            custom_instructions=args.instructions,
        )
    )
    print(result.note_handle)
    return 0


def parse_wizard_command(line: str) -> WizardEvent | None:
    """Translate one line typed at the wizard prompt into an event."""

    command, _, rest = line.strip().partition(" ")
    command = command.lower()
    rest = rest.strip()
    try:
        if command == "select":
            return SelectTopic(int(rest) - 1)
        if command == "custom":
            return EnterCustomTopic(rest)
        if command in {"regen", "regenerate"}:
            return RegenerateTopics()
        if command == "next":
            return Next()
        if command == "back":
            return Back()
        if command == "edit":
            index, _, text = rest.partition(" ")
            return EditOutlineItem(int(index) - 1, text.strip())
        if command == "add":
            return AddOutlineItem(rest) if rest else AddOutlineItem()
        if command == "delete":
            return DeleteOutlineItem(int(rest) - 1)
        if command == "persona":
            return SelectPersona(Persona(rest.lower()))
        if command == "length":
            return SelectLength(ArticleLength(rest.lower()))
        if command == "instructions":
            return SetCustomInstructions(rest)
        if command == "generate":
            return Generate()
        if command == "retry":
            return RetryAfterError()
        if command in {"close", "quit", "exit"}:
            return Close()
    except ValueError:
        return None
    return None


def _print_state(state: WizardState, stream: TextIO) -> None:
    view = render_view(state)
    print("", file=stream)
    print(f"== {view.heading} ==", file=stream)
    if view.steps:
        print("  ".join(view.steps), file=stream)
    if view.banner:
        print(f"!! {view.banner}", file=stream)
    for line in view.lines:
        print(line, file=stream)
    if view.actions:
        print(f"[{' | '.join(view.actions)}]", file=stream)


def _run_wizard(args: argparse.Namespace, *, stdin: TextIO | None = None, stdout: TextIO | None = None) -> int:
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout

    def _show_progress(state: WizardState) -> None:
        if state.is_loading:
            print(f"... {state.loading_status}", file=stdout)

    session = ThinkingSession.resume(args.materials, _build_config(args))
    with session:
        controller = session.open_wizard(listener=_show_progress)
        state = controller.open()
        while not state.is_closed:
            _print_state(state, stdout)
            line = stdin.readline()
            if not line:
                state = controller.dispatch(Close())
                break
            event = parse_wizard_command(line)
            if event is None:
                print("Unrecognised command.", file=stdout)
                continue
            state = controller.dispatch(event)
        _print_state(state, stdout)
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    command_map: dict[str, Callable[[argparse.Namespace], int]] = {
        "materials": _run_materials,
        "topics": _run_topics,
        "generate": _run_generate,
        "wizard": _run_wizard,
    }
    runner = command_map.get(args.command)
    if runner is None:
        parser.print_help()
        return 0

    try:
        return runner(args)
    except (ProviderFailure, TopicParseError, NoteCreationError, FileNotFoundError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
