"""Host-facing event interface.

An editor integration (or the CLI) wires its own events to these calls:

- ``activate`` once at startup,
- ``on_active_document_changed`` when the user switches documents,
- ``on_document_changed`` on every edit,
- ``on_rebuild_requested`` for the "rebuild index" command or a file change,
- ``search`` / ``resolve`` / ``complete`` for navigation and completion.

The engine keeps the last span set per shown document and replaces it
wholesale on every computation, so stale annotations never survive.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from mastgref.annotator import AnnotationSpan, annotate_document
from mastgref.completion import CompletionItem, complete
from mastgref.config import WorkspaceConfig, load_workspace_config
from mastgref.errors import IndexParseError
from mastgref.index import IndexStore, RebuildResult, load, rebuild
from mastgref.search import (
    ListingItem,
    OpenRequest,
    SearchCommand,
    filter_items,
    list_references,
    resolve,
    search_commands,
)

logger = logging.getLogger(__name__)


@dataclass
class ActivationResult:
    loaded: int
    error: IndexParseError | None = None
    spans: list[AnnotationSpan] = field(default_factory=list)


class ReferenceEngine:
    """Reference index plus per-document annotation state for one workspace."""

    def __init__(self, root: Path, config: WorkspaceConfig | None = None, store: IndexStore | None = None) -> None:
        self.root = root.expanduser().resolve()
        self.config = config or WorkspaceConfig()
        self.store = store or IndexStore()
        self.taxonomy = self.config.taxonomy.build()
        self.active_path: str | None = None
        self._texts: dict[str, str] = {}
        self._spans: dict[str, list[AnnotationSpan]] = {}

    @classmethod
    def from_workspace(cls, root: Path) -> "ReferenceEngine":
        resolved = root.expanduser().resolve()
        return cls(resolved, load_workspace_config(resolved))

    @property
    def snapshot_path(self) -> Path:
        return self.config.snapshot_path(self.root)

    # ------------------------------------------------------------------
    # Index lifecycle
    # ------------------------------------------------------------------

    def load_index(self) -> int:
        """Load the snapshot into the store. Raises IndexParseError on a corrupt file."""
        return load(self.store, self.snapshot_path)

    def activate(self, active_path: str | Path | None = None, text: str | None = None) -> ActivationResult:
        """Load the persisted index and annotate the initially active document."""
        result = ActivationResult(loaded=0)
        try:
            result.loaded = self.load_index()
        except IndexParseError as exc:
            logger.error("%s", exc)
            result.error = exc
        if active_path is not None and text is not None:
            result.spans = self.on_active_document_changed(active_path, text)
        return result

    def on_rebuild_requested(self, root: Path | None = None) -> RebuildResult:
        """Rebuild from ``root`` (default: the workspace) and refresh every shown document."""
        target_root = root.expanduser().resolve() if root is not None else self.root
        result = rebuild(
            target_root,
            self.store,
            self.snapshot_path if root is None else self.config.snapshot_path(target_root),
            taxonomy=self.taxonomy,
            excluded_dirs=self.config.scan.excluded_dirs,
            extension=self.config.scan.extension,
        )
        for path, text in list(self._texts.items()):
            self._recompute(path, text)
        return result

    # ------------------------------------------------------------------
    # Annotation
    # ------------------------------------------------------------------

    def _recompute(self, path: str, text: str) -> list[AnnotationSpan]:
        spans = annotate_document(
            path,
            text,
            self.store.current,
            self.taxonomy,
            extension=self.config.scan.extension,
            sigil=self.config.annotations.sigil,
            placeholder=self.config.annotations.placeholder,
        )
        self._texts[path] = text
        self._spans[path] = spans
        return list(spans)

    def on_active_document_changed(self, path: str | Path, text: str) -> list[AnnotationSpan]:
        self.active_path = str(path)
        return self._recompute(self.active_path, text)

    def on_document_changed(self, path: str | Path, text: str) -> list[AnnotationSpan] | None:
        """Recompute spans after an edit. Edits to inactive documents are ignored (None)."""
        if str(path) != self.active_path:
            return None
        return self._recompute(self.active_path, text)

    def spans_for(self, path: str | Path) -> list[AnnotationSpan]:
        return list(self._spans.get(str(path), []))

    def close_document(self, path: str | Path) -> None:
        key = str(path)
        self._texts.pop(key, None)
        self._spans.pop(key, None)
        if self.active_path == key:
            self.active_path = None

    # ------------------------------------------------------------------
    # Search, navigation and completion
    # ------------------------------------------------------------------

    def commands(self) -> list[SearchCommand]:
        return search_commands(self.taxonomy)

    def search(self, type_filter: str | None = None, query: str = "") -> list[ListingItem]:
        items = list_references(self.store.current, self.taxonomy, type_filter)
        return filter_items(items, query) if query else items

    def resolve(self, item: ListingItem) -> OpenRequest:
        return resolve(item)

    def complete(self, line_prefix: str) -> list[CompletionItem]:
        return complete(line_prefix, self.store.current, self.config.annotations.sigil)
