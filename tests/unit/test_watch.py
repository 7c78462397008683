"""Tests for the rebuild-on-change watcher."""

import time
from pathlib import Path

import pytest
from watchdog.events import DirModifiedEvent, FileCreatedEvent, FileModifiedEvent, FileMovedEvent

from mastgref.engine import ReferenceEngine
from mastgref.index import RebuildStatus
from mastgref.watch import ReferenceWatcher


def _write(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


@pytest.fixture
def watcher(tmp_path: Path) -> ReferenceWatcher:
    _write(tmp_path / "tools" / "MASTG-TOOL-0001.md", "---\ntitle: Frida\n---\n")
    return ReferenceWatcher(ReferenceEngine(tmp_path), debounce_seconds=60.0)


@pytest.mark.unit
class TestRelevance:
    def test_candidate_document_is_relevant(self, watcher: ReferenceWatcher, tmp_path: Path) -> None:
        assert watcher.is_rebuild_relevant(tmp_path / "tools" / "MASTG-TOOL-0001.md")

    @pytest.mark.parametrize(
        "rel",
        [
            "tools/README.md",
            "references.json",
            "docs/MASTG-TOOL-0003.md",
            ".git/MASTG-TOOL-0003.md",
            "tools/MASTG-TOOL-0001.md.swp",
        ],
    )
    def test_other_paths_ignored(self, watcher: ReferenceWatcher, tmp_path: Path, rel: str) -> None:
        assert not watcher.is_rebuild_relevant(tmp_path / rel)

    def test_outside_root_ignored(self, watcher: ReferenceWatcher, tmp_path: Path) -> None:
        assert not watcher.is_rebuild_relevant(tmp_path.parent / "MASTG-TOOL-0001.md")


@pytest.mark.unit
class TestEvents:
    def test_relevant_change_rebuilds(self, watcher: ReferenceWatcher, tmp_path: Path) -> None:
        watcher.on_any_event(FileModifiedEvent(str(tmp_path / "tools" / "MASTG-TOOL-0001.md")))
        assert watcher.last_result is not None
        assert watcher.last_result.status is RebuildStatus.SUCCESS
        assert "MASTG-TOOL-0001" in watcher.engine.store

    def test_irrelevant_change_ignored(self, watcher: ReferenceWatcher, tmp_path: Path) -> None:
        watcher.on_any_event(FileModifiedEvent(str(tmp_path / "tools" / "notes.txt")))
        watcher.on_any_event(DirModifiedEvent(str(tmp_path / "tools")))
        assert watcher.last_result is None

    def test_move_into_candidate_name_rebuilds(self, watcher: ReferenceWatcher, tmp_path: Path) -> None:
        src = str(tmp_path / "tools" / "draft.md")
        dest = str(tmp_path / "tools" / "MASTG-TOOL-0002.md")
        watcher.on_any_event(FileMovedEvent(src, dest))
        assert watcher.last_result is not None

    def test_burst_is_debounced_then_flushed(self, watcher: ReferenceWatcher, tmp_path: Path) -> None:
        path = tmp_path / "tools" / "MASTG-TOOL-0002.md"
        watcher.on_any_event(FileCreatedEvent(str(path)))
        first = watcher.last_result
        _write(path, "---\ntitle: objection\n---\n")
        watcher.on_any_event(FileModifiedEvent(str(path)))

        assert watcher.last_result is first
        assert watcher.pending is True
        assert "MASTG-TOOL-0002" not in watcher.engine.store

        watcher.last_run_time = time.monotonic() - watcher.debounce_seconds
        watcher.flush_pending()

        assert watcher.pending is False
        assert watcher.engine.store.current["MASTG-TOOL-0002"].title == "objection"

    def test_flush_without_pending_is_noop(self, watcher: ReferenceWatcher) -> None:
        watcher.flush_pending()
        assert watcher.last_result is None
