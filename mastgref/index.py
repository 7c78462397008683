"""Build, persist and load the reference index.

The live index is owned by an ``IndexStore``. Rebuilds construct a complete
new mapping first and swap it in with a single assignment, so readers see
either the old index or the new one, never a partial one.

Snapshot format (``references.json``)::

    {
        "MASTG-TECH-0001": {"title": "...", "filePath": "/abs/path/MASTG-TECH-0001.md"},
        "MASTG-TOOL-0002": "Legacy title-only entry"
    }
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Iterable, Mapping

from mastgref.constants import (
    DEFAULT_EXCLUDED_DIRS,
    DEFAULT_EXTENSION,
    DEFAULT_SNAPSHOT_NAME,
    SNAPSHOT_INDENT,
)
from mastgref.errors import EmptyRebuildWarning, IndexParseError, ScanDirectoryError
from mastgref.scanner import scan
from mastgref.taxonomy import DEFAULT_TAXONOMY, Taxonomy
from mastgref.titles import extract_title

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReferenceEntry:
    key: str
    title: str
    path: str


ReferenceIndex = Mapping[str, ReferenceEntry]

_EMPTY: ReferenceIndex = MappingProxyType({})


class IndexStore:
    """Holder of the one live reference index."""

    def __init__(self, entries: Mapping[str, ReferenceEntry] | None = None) -> None:
        self._index: ReferenceIndex = _EMPTY
        if entries:
            self.replace(entries)

    @property
    def current(self) -> ReferenceIndex:
        return self._index

    def replace(self, entries: Mapping[str, ReferenceEntry]) -> None:
        """Swap in a new index."""
        self._index = MappingProxyType(dict(entries))

    def clear(self) -> None:
        self._index = _EMPTY

    def __len__(self) -> int:
        return len(self._index)

    def __contains__(self, key: object) -> bool:
        return key in self._index


class RebuildStatus(str, Enum):
    SUCCESS = "success"
    EMPTY = "empty"
    FAILED = "failed"


@dataclass
class RebuildResult:
    status: RebuildStatus
    count: int
    snapshot_path: Path
    message: str
    scan_errors: list[ScanDirectoryError] = field(default_factory=list)
    warning: EmptyRebuildWarning | None = None

    @property
    def ok(self) -> bool:
        return self.status is RebuildStatus.SUCCESS


# ---------------------------------------------------------------------------
# Snapshot I/O
# ---------------------------------------------------------------------------


def dump_snapshot(index: ReferenceIndex) -> str:
    """Render the canonical snapshot text: sorted keys, fixed indent."""
    payload = {key: {"title": entry.title, "filePath": entry.path} for key, entry in index.items()}
    return json.dumps(payload, indent=SNAPSHOT_INDENT, sort_keys=True, ensure_ascii=False) + "\n"


def write_snapshot(path: Path, index: ReferenceIndex) -> bool:
    """Write the snapshot. Returns False when the file already had this content."""
    rendered = dump_snapshot(index)
    if path.exists():
        try:
            if path.read_text(encoding="utf-8") == rendered:
                return False
        except (OSError, UnicodeDecodeError):
            pass

    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(rendered)
        os.replace(tmp_name, path)
    except OSError:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    return True


def normalize_entry(key: str, value: object, *, source: Path) -> ReferenceEntry:
    """Turn either persisted entry shape into a ReferenceEntry."""
    if isinstance(value, str):
        return ReferenceEntry(key=key, title=value, path="")
    if isinstance(value, dict):
        title = value.get("title", "")
        file_path = value.get("filePath", "")
        if title is None:
            title = ""
        if file_path is None:
            file_path = ""
        if not isinstance(title, str) or not isinstance(file_path, str):
            raise IndexParseError(source, f"entry {key!r} has non-string fields")
        return ReferenceEntry(key=key, title=title, path=file_path)
    raise IndexParseError(source, f"entry {key!r} is neither a title nor an object")


def load_snapshot(path: Path) -> dict[str, ReferenceEntry]:
    """Read a snapshot. Missing file → empty; anything unreadable → IndexParseError."""
    if not path.exists():
        return {}
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise IndexParseError(path, str(exc)) from exc
    if not isinstance(raw, dict):
        raise IndexParseError(path, f"expected an object, got {type(raw).__name__}")
    return {key: normalize_entry(key, value, source=path) for key, value in raw.items()}


def load(store: IndexStore, path: Path) -> int:
    """Populate ``store`` from a snapshot and return the entry count.

    On a corrupt snapshot the store is emptied and the error re-raised.
    """
    try:
        entries = load_snapshot(path)
    except IndexParseError:
        store.clear()
        raise
    store.replace(entries)
    logger.debug("Loaded %d references from %s", len(entries), path)
    return len(entries)


# ---------------------------------------------------------------------------
# Index building
# ---------------------------------------------------------------------------


def build_index(
    root: Path,
    taxonomy: Taxonomy = DEFAULT_TAXONOMY,
    *,
    excluded_dirs: Iterable[str] = DEFAULT_EXCLUDED_DIRS,
    extension: str = DEFAULT_EXTENSION,
    scan_errors: list[ScanDirectoryError] | None = None,
) -> dict[str, ReferenceEntry]:
    """Scan ``root`` and map each titled document's stem to its entry."""
    entries: dict[str, ReferenceEntry] = {}
    for file_path in scan(root, taxonomy, excluded_dirs=excluded_dirs, extension=extension, errors=scan_errors):
        try:
            text = file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Could not read %s: %s", file_path, exc)
            continue
        title = extract_title(text, source=str(file_path))
        if not title:
            continue
        key = file_path.name[: -len(extension)]
        entries[key] = ReferenceEntry(key=key, title=title, path=str(file_path))
    return entries


def rebuild(
    root: Path,
    store: IndexStore,
    snapshot_path: Path | None = None,
    *,
    taxonomy: Taxonomy = DEFAULT_TAXONOMY,
    excluded_dirs: Iterable[str] = DEFAULT_EXCLUDED_DIRS,
    extension: str = DEFAULT_EXTENSION,
) -> RebuildResult:
    """Rebuild the index from ``root``, swap it into ``store`` and persist it.

    A rebuild that finds nothing leaves an existing snapshot untouched.
    """
    target = snapshot_path or (root / DEFAULT_SNAPSHOT_NAME)
    scan_errors: list[ScanDirectoryError] = []
    entries = build_index(
        root, taxonomy, excluded_dirs=excluded_dirs, extension=extension, scan_errors=scan_errors
    )
    store.replace(entries)

    if not entries:
        warning = EmptyRebuildWarning(f"No documents with a front-matter title found under {root}")
        logger.warning("%s", warning)
        return RebuildResult(
            status=RebuildStatus.EMPTY,
            count=0,
            snapshot_path=target,
            message=str(warning),
            scan_errors=scan_errors,
            warning=warning,
        )

    try:
        written = write_snapshot(target, store.current)
    except OSError as exc:
        logger.error("Failed to write snapshot %s: %s", target, exc)
        return RebuildResult(
            status=RebuildStatus.FAILED,
            count=len(entries),
            snapshot_path=target,
            message=f"Index rebuilt but snapshot could not be written: {exc}",
            scan_errors=scan_errors,
        )

    logger.info("Rebuilt index: %d references (snapshot %s)", len(entries), "written" if written else "unchanged")
    return RebuildResult(
        status=RebuildStatus.SUCCESS,
        count=len(entries),
        snapshot_path=target,
        message=f"References updated: {len(entries)} entries",
        scan_errors=scan_errors,
    )
