"""Material collection and note creation collaborators.

Both come in two flavours: a markdown-file backed implementation used by the
CLI and sessions, and an in-memory one for hosts that keep materials
elsewhere. The core only ever reads materials through :class:`MaterialStore`
and writes articles through :class:`NoteSink`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
import logging
from pathlib import Path
import re
from typing import Protocol

__all__ = [
    "MATERIAL_NOTE_SUFFIX",
    "Material",
    "MaterialStore",
    "InMemoryMaterialStore",
    "MarkdownMaterialStore",
    "NoteSink",
    "NoteCreationError",
    "MarkdownNoteSink",
    "InMemoryNoteSink",
    "count_materials",
    "render_material_block",
    "render_material_header",
    "render_article_note",
    "sanitize_note_title",
    "note_basename",
]

logger = logging.getLogger(__name__)

MATERIAL_NOTE_SUFFIX = " - Materials"
QUOTE_MARKER_PATTERN = re.compile(r">\s*\[!quote\]")
INVALID_TITLE_PATTERN = re.compile(r'[\\/:*?"<>|]')
TITLE_LIMIT = 50


class NoteCreationError(RuntimeError):
    """The note sink could not persist the generated article."""


def note_basename(reference: str | Path) -> str:
    """``folder/Some Note.md`` -> ``Some Note``."""

    name = str(reference).replace("\\", "/").rsplit("/", 1)[-1]
    if name.endswith(".md"):
        name = name[: -len(".md")]
    return name


def count_materials(content: str | None) -> int:
    if not content:
        return 0
    return len(QUOTE_MARKER_PATTERN.findall(content))


def render_material_header(source_basename: str) -> str:
    return (
        f"# Materials from [[{source_basename}]]\n\n"
        "> [!info] Thinking Tool Session\n"
        "> This note collects materials for article generation.\n"
        f"> Source: [[{source_basename}]]\n\n"
        "---\n\n"
    )


def render_material_block(quote: str, source_ref: str, thought: str | None) -> str:
    quoted = "\n> ".join(quote.split("\n"))
    return (
        f"\n> [!quote] [[{note_basename(source_ref)}]]\n"
        f"> {quoted}\n"
        ">\n"
        f"> **My Thought**: {thought or '_No thought added_'}\n"
        "\n---\n\n"
    )


def render_article_note(title: str, article: str, materials_ref: str, generated_on: date | None = None) -> str:
    """Wrap a generated article in the fixed note template."""

    materials = note_basename(materials_ref)
    stamp = (generated_on or date.today()).isoformat()
    return (
        f"# {title}\n"
        "\n"
        "> [!info] Generated with Thinking Tool\n"
        f"> Materials: [[{materials}]]\n"
        f"> Generated: {stamp}\n"
        "\n"
        "---\n"
        "\n"
        f"{article}\n"
        "\n"
        "---\n"
        "\n"
        "## Sources\n"
        "\n"
        f"- Materials: [[{materials}]]\n"
    )


def sanitize_note_title(title: str) -> str:
    cleaned = INVALID_TITLE_PATTERN.sub("-", title)[:TITLE_LIMIT].strip()
    return cleaned or "Untitled"


def _unique_path(folder: Path, base_name: str) -> Path:
    candidate = folder / f"{base_name}.md"
    counter = 1
    while candidate.exists():
        candidate = folder / f"{base_name} {counter}.md"
        counter += 1
    return candidate


# ---------------------------------------------------------------------------
# Material stores
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Material:
    """A captured excerpt plus the user's reflection on it."""

    quote_text: str
    source_reference: str
    user_thought: str
    insertion_order: int

    def render(self) -> str:
        return render_material_block(self.quote_text, self.source_reference, self.user_thought)


class MaterialStore(Protocol):
    """Append-only material aggregate as seen by the generation core."""

    @property
    def reference(self) -> str:
        """Name used for backlinks to the materials."""

    def append(self, quote: str, source_ref: str, thought: str = "") -> None:
        ...

    def read_all(self) -> str:
        ...

    def count(self) -> int:
        ...


@dataclass
class InMemoryMaterialStore:
    """Materials kept in process, rendered exactly like the markdown note."""

    source_reference: str = "Untitled"
    materials: list[Material] = field(default_factory=list)

    @property
    def reference(self) -> str:
        return f"{note_basename(self.source_reference)}{MATERIAL_NOTE_SUFFIX}"

    def append(self, quote: str, source_ref: str, thought: str = "") -> None:
        if not quote or not quote.strip():
            raise ValueError("quote must not be empty")
        self.materials.append(
            Material(
                quote_text=quote,
                source_reference=source_ref,
                user_thought=thought,
                insertion_order=len(self.materials),
            )
        )

    def read_all(self) -> str:
        if not self.materials:
            return ""
        header = render_material_header(note_basename(self.source_reference))
        return header + "".join(material.render() for material in self.materials)

    def count(self) -> int:
        return len(self.materials)


class MarkdownMaterialStore:
    """Material note persisted as a markdown file."""

    def __init__(self, path: Path | str, *, encoding: str = "utf-8") -> None:
        self.path = Path(path).expanduser()
        self.encoding = encoding

    @classmethod
    def create(
        cls,
        source_path: Path | str,
        *,
        folder: Path | str | None = None,
        encoding: str = "utf-8",
    ) -> "MarkdownMaterialStore":
        """Create a fresh material note for *source_path* and return its store."""

        source = Path(source_path).expanduser()
        target_folder = Path(folder).expanduser() if folder else source.parent
        target_folder.mkdir(parents=True, exist_ok=True)
        base_name = f"{source.stem}{MATERIAL_NOTE_SUFFIX}"
        path = _unique_path(target_folder, base_name)
        path.write_text(render_material_header(source.stem), encoding=encoding)
        logger.info("Created material note %s", path)
        return cls(path, encoding=encoding)

    @property
    def reference(self) -> str:
        return note_basename(self.path)

    def append(self, quote: str, source_ref: str, thought: str = "") -> None:
        if not quote or not quote.strip():
            raise ValueError("quote must not be empty")
        current = self.read_all()
        self.path.write_text(current + render_material_block(quote, source_ref, thought), encoding=self.encoding)

    def read_all(self) -> str:
        if not self.path.exists():
            return ""
        return self.path.read_text(encoding=self.encoding)

    def count(self) -> int:
        return count_materials(self.read_all())


# ---------------------------------------------------------------------------
# Note sinks
# ---------------------------------------------------------------------------


class NoteSink(Protocol):
    def create_note(self, title: str, body: str) -> object:
        """Persist the note and return a handle; raise ``NoteCreationError`` on failure."""


class MarkdownNoteSink:
    """Writes generated articles next to the material note."""

    def __init__(self, folder: Path | str, *, encoding: str = "utf-8") -> None:
        self.folder = Path(folder).expanduser()
        self.encoding = encoding

    def create_note(self, title: str, body: str) -> Path:
        try:
            self.folder.mkdir(parents=True, exist_ok=True)
            path = _unique_path(self.folder, sanitize_note_title(title))
            path.write_text(body, encoding=self.encoding)
        except OSError as exc:
            raise NoteCreationError(f"Failed to create the article note: {exc}") from exc
        logger.info("Created article note %s", path)
        return path


@dataclass
class InMemoryNoteSink:
    notes: dict[str, str] = field(default_factory=dict)

    def create_note(self, title: str, body: str) -> str:
        base_name = sanitize_note_title(title)
        handle = base_name
        counter = 1
        while handle in self.notes:
            handle = f"{base_name} {counter}"
            counter += 1
        self.notes[handle] = body
        return handle
