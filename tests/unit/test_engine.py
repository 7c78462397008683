"""Tests for the host-facing engine."""

from pathlib import Path

import pytest

from mastgref.config import WorkspaceConfig
from mastgref.engine import ReferenceEngine
from mastgref.index import RebuildStatus


def _write(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


@pytest.fixture
def engine(tmp_path: Path) -> ReferenceEngine:
    _write(tmp_path / "tools" / "MASTG-TOOL-0001.md", "---\ntitle: Frida\n---\n")
    _write(tmp_path / "techniques" / "MASTG-TECH-0002.md", "---\ntitle: Root Detection\n---\n")
    return ReferenceEngine(tmp_path)


@pytest.mark.unit
class TestActivation:
    def test_activate_without_snapshot(self, engine: ReferenceEngine) -> None:
        result = engine.activate("notes.md", "@MASTG-TOOL-0001")
        assert result.loaded == 0
        assert result.error is None
        assert [s.display_text for s in result.spans] == ["Unknown Reference"]

    def test_activate_loads_snapshot(self, engine: ReferenceEngine) -> None:
        engine.on_rebuild_requested()
        fresh = ReferenceEngine(engine.root)
        result = fresh.activate("notes.md", "@MASTG-TOOL-0001")
        assert result.loaded == 2
        assert [s.display_text for s in result.spans] == ["Frida"]

    def test_activate_reports_corrupt_snapshot(self, engine: ReferenceEngine) -> None:
        engine.snapshot_path.write_text("{broken", encoding="utf-8")
        result = engine.activate()
        assert result.error is not None
        assert len(engine.store) == 0


@pytest.mark.unit
class TestDocumentEvents:
    def test_edits_to_active_document_recompute(self, engine: ReferenceEngine) -> None:
        engine.on_rebuild_requested()
        engine.on_active_document_changed("notes.md", "@MASTG-TOOL-0001")
        spans = engine.on_document_changed("notes.md", "nothing here")
        assert spans == []
        assert engine.spans_for("notes.md") == []

    def test_edits_to_inactive_document_ignored(self, engine: ReferenceEngine) -> None:
        engine.on_active_document_changed("a.md", "@MASTG-TOOL-0001")
        assert engine.on_document_changed("b.md", "@MASTG-TOOL-0001") is None
        assert engine.spans_for("b.md") == []

    def test_rebuild_refreshes_shown_documents(self, engine: ReferenceEngine) -> None:
        engine.on_active_document_changed("notes.md", "See @MASTG-TECH-0002")
        assert engine.spans_for("notes.md")[0].resolved is False

        result = engine.on_rebuild_requested()

        assert result.status is RebuildStatus.SUCCESS
        assert engine.spans_for("notes.md")[0].display_text == "Root Detection"

    def test_non_target_document_has_no_spans(self, engine: ReferenceEngine) -> None:
        assert engine.on_active_document_changed("script.py", "@MASTG-TOOL-0001") == []

    def test_close_document_forgets_state(self, engine: ReferenceEngine) -> None:
        engine.on_active_document_changed("notes.md", "@MASTG-TOOL-0001")
        engine.close_document("notes.md")
        assert engine.active_path is None
        assert engine.spans_for("notes.md") == []


@pytest.mark.unit
class TestNavigation:
    def test_search_and_resolve(self, engine: ReferenceEngine) -> None:
        engine.on_rebuild_requested()
        items = engine.search()
        assert [item.label for item in items if item.is_separator] == ["TECH", "TOOL"]
        entry = engine.search("TOOL")[0]
        request = engine.resolve(entry)
        assert request.key == "MASTG-TOOL-0001"
        assert request.path.endswith("MASTG-TOOL-0001.md")

    def test_search_query(self, engine: ReferenceEngine) -> None:
        engine.on_rebuild_requested()
        assert [item.label for item in engine.search(query="root")] == ["TECH", "MASTG-TECH-0002 - Root Detection"]

    def test_complete(self, engine: ReferenceEngine) -> None:
        engine.on_rebuild_requested()
        assert [item.insert_text for item in engine.complete("see @")] == ["MASTG-TECH-0002", "MASTG-TOOL-0001"]

    def test_commands(self, engine: ReferenceEngine) -> None:
        assert engine.commands()[0].type_filter is None


@pytest.mark.unit
class TestConfiguredEngine:
    def test_custom_taxonomy_and_sigil(self, tmp_path: Path) -> None:
        _write(tmp_path / "A-TOOL-0002.md", '---\ntitle: "Root Detection"\n---\n')
        config = WorkspaceConfig.model_validate(
            {
                "taxonomy": {"subtyped": {"A": ["TOOL"]}, "plain": []},
                "annotations": {"sigil": "#"},
                "snapshot": "refs.json",
            }
        )
        engine = ReferenceEngine(tmp_path, config)

        result = engine.on_rebuild_requested()

        assert result.snapshot_path == tmp_path.resolve() / "refs.json"
        spans = engine.on_active_document_changed("n.md", "see #A-TOOL-0002")
        assert (spans[0].start, spans[0].display_text) == (5, "Root Detection")
        assert [item.label for item in engine.search()] == ["TOOL", "A-TOOL-0002 - Root Detection"]

    def test_from_workspace_reads_config_file(self, tmp_path: Path) -> None:
        _write(tmp_path / "mastgref.yml", "snapshot: custom.json\n")
        engine = ReferenceEngine.from_workspace(tmp_path)
        assert engine.snapshot_path == tmp_path.resolve() / "custom.json"
