from __future__ import annotations

import io
import json
from pathlib import Path

import pytest

from thinking_tool import cli, session as session_module
from thinking_tool.writing.article_agent import ArticleComposer
from thinking_tool.writing.schema import ArticleLength, Persona, TopicSuggestion
from thinking_tool.writing.state import (
    AddOutlineItem,
    Close,
    DeleteOutlineItem,
    EditOutlineItem,
    EnterCustomTopic,
    Generate,
    RegenerateTopics,
    SelectLength,
    SelectPersona,
    SelectTopic,
    SetCustomInstructions,
    WizardState,
    WizardStatus,
    WizardStep,
)
from thinking_tool.writing.topic_agent import TopicSynthesizer
from thinking_tool.writing.view import render_view

TOPICS_JSON = json.dumps([{"title": "Quiet focus", "description": "d", "outline": ["p1", "p2", "p3"]}])


@pytest.mark.parametrize(
    ("line", "expected"),
    [
        ("select 2", SelectTopic(1)),
        ("custom My own idea", EnterCustomTopic("My own idea")),
        ("regen", RegenerateTopics()),
        ("edit 1 A sharper opening", EditOutlineItem(0, "A sharper opening")),
        ("add", AddOutlineItem()),
        ("add Closing thoughts", AddOutlineItem("Closing thoughts")),
        ("delete 3", DeleteOutlineItem(2)),
        ("persona Blog", SelectPersona(Persona.BLOG)),
        ("length long", SelectLength(ArticleLength.LONG)),
        ("instructions Keep it light", SetCustomInstructions("Keep it light")),
        ("generate", Generate()),
        ("  QUIT  ", Close()),
    ],
)
def test_parse_wizard_command(line: str, expected) -> None:
    assert cli.parse_wizard_command(line) == expected


@pytest.mark.parametrize("line", ["", "select two", "persona poet", "delete", "dance"])
def test_parse_wizard_command_rejects_garbage(line: str) -> None:
    assert cli.parse_wizard_command(line) is None


@pytest.fixture
def material_note(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> Path:
    source = tmp_path / "Deep Work.md"
    source.write_text("# Deep Work\n", encoding="utf-8")
    assert cli.main(["materials", "init", "--source", str(source)]) == 0
    path = Path(capsys.readouterr().out.strip())
    return path


def test_materials_init_and_add(material_note: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert material_note.name == "Deep Work - Materials.md"

    exit_code = cli.main(
        [
            "materials",
            "add",
            "--materials",
            str(material_note),
            "--quote",
            "Focus is a skill",
            "--source",
            "Deep Work.md",
            "--thought",
            "Practice daily",
        ]
    )

    assert exit_code == 0
    assert "Material added (1 total)." in capsys.readouterr().out
    assert "> **My Thought**: Practice daily" in material_note.read_text(encoding="utf-8")


def test_missing_material_note_is_reported(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = cli.main(["topics", "--materials", str(tmp_path / "nope.md")])
    assert exit_code == 1
    assert "Error: Material note not found" in capsys.readouterr().err


def test_topics_without_materials_is_an_error(material_note: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main(["topics", "--materials", str(material_note)]) == 1
    assert "No materials collected yet" in capsys.readouterr().err


def _add_quote(material_note: Path) -> None:
    cli.main(["materials", "add", "--materials", str(material_note), "--quote", "Q", "--source", "Deep Work.md"])


def test_generate_writes_article_note(
    material_note: Path,
    make_invoker,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    _add_quote(material_note)
    invoker = make_invoker(["Generated body"])
    monkeypatch.setattr(
        cli,
        "build_agents",
        lambda config: (TopicSynthesizer(invoker), ArticleComposer(invoker)),
    )
    capsys.readouterr()

    exit_code = cli.main(
        ["generate", "--materials", str(material_note), "--custom-topic", "Focus", "--persona", "blog"]
    )

    assert exit_code == 0
    note_path = Path(capsys.readouterr().out.strip())
    assert note_path == material_note.parent / "Focus.md"
    assert "Generated body" in note_path.read_text(encoding="utf-8")


def test_topics_command_prints_suggestions(
    material_note: Path,
    make_invoker,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    _add_quote(material_note)
    invoker = make_invoker([TOPICS_JSON])
    monkeypatch.setattr(cli, "build_agents", lambda config: (TopicSynthesizer(invoker), ArticleComposer(invoker)))
    capsys.readouterr()

    assert cli.main(["topics", "--materials", str(material_note), "--language", "Dutch"]) == 0

    out = capsys.readouterr().out
    assert "1. Quiet focus" in out
    assert "   - p3" in out


def test_generate_rejects_conflicting_topic_options(material_note: Path) -> None:
    with pytest.raises(SystemExit):
        cli.main(["generate", "--materials", str(material_note), "--topic-index", "2", "--custom-topic", "X"])


def test_wizard_runs_to_completion(
    material_note: Path,
    make_invoker,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    _add_quote(material_note)
    invoker = make_invoker([TOPICS_JSON, "Wizard article"])
    monkeypatch.setattr(
        session_module,
        "build_agents",
        lambda config: (TopicSynthesizer(invoker), ArticleComposer(invoker)),
    )
    monkeypatch.setattr("sys.stdin", io.StringIO("select 1\nhop\nnext\nnext\npersona blog\ngenerate\n"))
    capsys.readouterr()

    assert cli.main(["wizard", "--materials", str(material_note)]) == 0

    out = capsys.readouterr().out
    assert "Unrecognised command." in out
    assert "... Analyzing materials..." in out
    assert "== Article created ==" in out
    assert (material_note.parent / "Quiet focus.md").exists()


def test_wizard_with_no_materials_only_offers_close(
    material_note: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    monkeypatch.setattr("sys.stdin", io.StringIO("generate\nclose\n"))

    assert cli.main(["wizard", "--materials", str(material_note)]) == 0

    out = capsys.readouterr().out
    assert "== No materials yet ==" in out
    assert "[close]" in out
    assert "== Wizard closed ==" in out


def test_render_view_for_topic_step() -> None:
    topic = TopicSuggestion(title="Quiet focus", description="desc", outline=["a", "b", "c", "d", "e"])
    state = WizardState(material_count=2, topics=(topic,), selected_topic=topic, last_error="boom")

    view = render_view(state)

    assert view.heading == "Write an article"
    assert view.steps[0] == "[>] Topic"
    assert view.steps[1] == "[ ] Outline"
    assert view.banner == "boom"
    assert "retry" in view.actions
    assert "Collected materials: 2" in view.lines
    assert "*1. Quiet focus" in view.lines
    assert "    +2 more..." in view.lines


def test_render_view_while_loading_and_after_completion() -> None:
    loading = WizardState(material_count=1, step=WizardStep.GENERATING, is_loading=True, loading_status="Calling AI... (attempt 1/3)")
    view = render_view(loading)
    assert view.lines == ["Calling AI... (attempt 1/3)"]
    assert view.actions == ["close"]
    assert view.steps[:3] == ["[x] Topic", "[x] Outline", "[x] Style"]

    done = WizardState(material_count=1, status=WizardStatus.COMPLETED, note_handle="Quiet focus")
    assert render_view(done).lines == ["Note: Quiet focus"]
