from __future__ import annotations

from pathlib import Path

import pytest

from thinking_tool.config import ThinkingToolConfig
from thinking_tool.session import SessionInactiveError, ThinkingSession, build_agents
from thinking_tool.writing.article_agent import ArticleComposer
from thinking_tool.writing.state import Generate, Next, SelectTopic, WizardStatus
from thinking_tool.writing.topic_agent import TopicSynthesizer


@pytest.fixture
def source_note(tmp_path: Path) -> Path:
    path = tmp_path / "vault" / "Deep Work.md"
    path.parent.mkdir()
    path.write_text("# Deep Work\n", encoding="utf-8")
    return path


def test_session_collects_materials_next_to_source(source_note: Path) -> None:
    session = ThinkingSession.start(source_note)

    session.add_material("Focus is a skill", thought="Practice daily")
    session.add_material("Shallow work is easy", source_ref="Other.md")

    assert session.material_note_path == source_note.parent / "Deep Work - Materials.md"
    assert session.material_store.count() == 2
    content = session.material_store.read_all()
    assert "> [!quote] [[Deep Work]]\n> Focus is a skill" in content
    assert "> [!quote] [[Other]]\n> Shallow work is easy" in content


def test_session_honours_configured_material_folder(source_note: Path, tmp_path: Path) -> None:
    config = ThinkingToolConfig(material_folder=tmp_path / "materials")
    session = ThinkingSession.start(source_note, config)
    assert session.material_note_path.parent == tmp_path / "materials"
    assert session.note_sink.folder == tmp_path / "materials"


def test_ended_session_rejects_further_use(source_note: Path) -> None:
    with ThinkingSession.start(source_note) as session:
        session.add_material("Inside the session")
    assert not session.is_active

    with pytest.raises(SessionInactiveError):
        session.add_material("Too late")
    with pytest.raises(SessionInactiveError):
        session.open_wizard()


def test_sessions_are_independent(source_note: Path, tmp_path: Path) -> None:
    other_source = tmp_path / "Other Book.md"
    first = ThinkingSession.start(source_note)
    second = ThinkingSession.start(other_source)

    first.add_material("Only in the first")
    first.end()
    second.add_material("Only in the second")

    assert first.material_store.count() == 1
    assert second.material_store.count() == 1
    assert "Only in the first" not in second.material_store.read_all()


def test_resume_requires_existing_note(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        ThinkingSession.resume(tmp_path / "missing - Materials.md")


def test_resume_and_run_wizard(source_note: Path, make_invoker) -> None:
    started = ThinkingSession.start(source_note)
    started.add_material("Focus is a skill", thought="Practice daily")

    resumed = ThinkingSession.resume(started.material_note_path)
    invoker = make_invoker(
        ['[{"title": "Depth beats breadth", "description": "d", "outline": ["one", "two"]}]', "Body text"]
    )
    controller = resumed.open_wizard(
        synthesizer=TopicSynthesizer(invoker),
        composer=ArticleComposer(invoker),
    )

    controller.open()
    controller.dispatch(SelectTopic(0))
    controller.dispatch(Next())
    controller.dispatch(Next())
    state = controller.dispatch(Generate())

    assert state.status is WizardStatus.COMPLETED
    note_path = Path(state.note_handle)
    assert note_path == source_note.parent / "Depth beats breadth.md"
    text = note_path.read_text(encoding="utf-8")
    assert "> Materials: [[Deep Work - Materials]]" in text
    assert "Body text" in text


def test_build_agents_share_language() -> None:
    config = ThinkingToolConfig(output_language="Italian")
    synthesizer, composer = build_agents(config)
    assert synthesizer.output_language == "Italian"
    assert composer.output_language == "Italian"
    assert synthesizer.invoker is composer.invoker
    assert synthesizer.invoker.policy == config.retry
