"""Tests for the mastgref command line."""

import json
from pathlib import Path

import pytest

from mastgref import cli


def _write(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def _quiet_logging(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli, "setup_logging", lambda level=None: None)


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    _write(tmp_path / "tools" / "MASTG-TOOL-0001.md", "---\ntitle: Frida\n---\n")
    _write(tmp_path / "techniques" / "MASTG-TECH-0002.md", "---\ntitle: Root Detection\n---\n")
    return tmp_path


def _run(root: Path, *args: str) -> int:
    return cli.main(["--root", str(root), *args])


@pytest.mark.unit
class TestRebuild:
    def test_success_writes_snapshot(self, workspace: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert _run(workspace, "rebuild") == cli.EXIT_OK
        out = capsys.readouterr().out
        assert "References updated: 2 entries" in out
        data = json.loads((workspace / "references.json").read_text(encoding="utf-8"))
        assert data["MASTG-TOOL-0001"]["title"] == "Frida"

    def test_empty_workspace(self, tmp_path: Path) -> None:
        assert _run(tmp_path, "rebuild") == cli.EXIT_EMPTY
        assert not (tmp_path / "references.json").exists()

    def test_invalid_config(self, workspace: Path, capsys: pytest.CaptureFixture[str]) -> None:
        _write(workspace / "mastgref.yml", "annotations:\n  sigil: '@@'\n")
        assert _run(workspace, "rebuild") == cli.EXIT_FAILED
        assert capsys.readouterr().err


@pytest.mark.unit
class TestReadCommands:
    def test_search_lists_groups(self, workspace: Path, capsys: pytest.CaptureFixture[str]) -> None:
        _run(workspace, "rebuild")
        capsys.readouterr()

        assert _run(workspace, "search", "--type", "TOOL") == cli.EXIT_OK

        out = capsys.readouterr().out
        assert "TOOL" in out
        assert "MASTG-TOOL-0001 - Frida" in out
        assert "Root Detection" not in out

    def test_search_json(self, workspace: Path, capsys: pytest.CaptureFixture[str]) -> None:
        _run(workspace, "rebuild")
        capsys.readouterr()

        assert _run(workspace, "search", "--json", "--query", "frida") == cli.EXIT_OK

        items = json.loads(capsys.readouterr().out)
        assert [item["kind"] for item in items] == ["separator", "entry"]
        assert items[1]["key"] == "MASTG-TOOL-0001"

    def test_search_without_snapshot(self, workspace: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert _run(workspace, "search") == cli.EXIT_OK
        assert "No references." in capsys.readouterr().out

    def test_corrupt_snapshot(self, workspace: Path, capsys: pytest.CaptureFixture[str]) -> None:
        (workspace / "references.json").write_text("{broken", encoding="utf-8")
        assert _run(workspace, "search") == cli.EXIT_FAILED
        assert "mastgref rebuild" in capsys.readouterr().err

    def test_annotate(self, workspace: Path, capsys: pytest.CaptureFixture[str]) -> None:
        _run(workspace, "rebuild")
        note = _write(workspace / "notes.md", "See @MASTG-TOOL-0001 and @MASTG-TEST-0009.\n")
        capsys.readouterr()

        assert _run(workspace, "annotate", str(note)) == cli.EXIT_OK

        assert capsys.readouterr().out == (
            "See @MASTG-TOOL-0001 [Frida] and @MASTG-TEST-0009 [Unknown Reference].\n"
        )

    def test_annotate_missing_file(self, workspace: Path) -> None:
        assert _run(workspace, "annotate", str(workspace / "absent.md")) == cli.EXIT_FAILED

    def test_complete(self, workspace: Path, capsys: pytest.CaptureFixture[str]) -> None:
        _run(workspace, "rebuild")
        capsys.readouterr()

        assert _run(workspace, "complete", "see @") == cli.EXIT_OK

        assert capsys.readouterr().out.splitlines() == [
            "MASTG-TECH-0002 - Root Detection",
            "MASTG-TOOL-0001 - Frida",
        ]
