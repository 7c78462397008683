"""Rebuild the reference index when candidate documents change."""

from __future__ import annotations

import logging
import threading
import time
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from mastgref.constants import WATCH_DEBOUNCE_SECONDS
from mastgref.engine import ReferenceEngine
from mastgref.index import RebuildResult
from mastgref.scanner import candidate_key, is_excluded_dir

logger = logging.getLogger(__name__)


class ReferenceWatcher(FileSystemEventHandler):
    """Watch a workspace and rebuild on changes to reference documents."""

    _REBUILD_EVENT_TYPES = {"created", "modified", "moved", "deleted"}

    def __init__(self, engine: ReferenceEngine, debounce_seconds: float = WATCH_DEBOUNCE_SECONDS):
        self.engine = engine
        self.debounce_seconds = debounce_seconds
        self.last_run_time: float | None = None
        self.pending = False
        self.last_result: RebuildResult | None = None
        self._lock = threading.Lock()

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        if event.event_type not in self._REBUILD_EVENT_TYPES:
            return

        paths = [event.src_path]
        moved_dest = getattr(event, "dest_path", None)
        if event.event_type == "moved" and moved_dest:
            paths.append(moved_dest)

        for raw in paths:
            path_str = raw.decode() if isinstance(raw, bytes) else str(raw)
            if self.is_rebuild_relevant(Path(path_str)):
                logger.info("Change detected: %s", path_str)
                self.trigger_rebuild()
                return

    def is_rebuild_relevant(self, path: Path) -> bool:
        """Return True when a change to ``path`` can alter the index."""
        try:
            rel_path = path.resolve().relative_to(self.engine.root)
        except ValueError:
            return False
        scan = self.engine.config.scan
        if any(is_excluded_dir(part, scan.excluded_dirs) for part in rel_path.parts[:-1]):
            return False
        return candidate_key(rel_path.name, self.engine.taxonomy, scan.extension) is not None

    def trigger_rebuild(self) -> None:
        now = time.monotonic()
        if self.last_run_time is not None and now - self.last_run_time < self.debounce_seconds:
            logger.debug("Rebuild deferred (debounce active)")
            self.pending = True
            return
        self.rebuild()

    def flush_pending(self) -> None:
        """Run a deferred rebuild once the debounce window has passed."""
        if not self.pending:
            return
        if self.last_run_time is None or time.monotonic() - self.last_run_time >= self.debounce_seconds:
            self.rebuild()

    def rebuild(self) -> RebuildResult:
        with self._lock:
            self.pending = False
            self.last_run_time = time.monotonic()
            result = self.engine.on_rebuild_requested()
            self.last_result = result
        logger.info("Rebuild %s: %s", result.status.value, result.message)
        return result


def run_watch(engine: ReferenceEngine, debounce_seconds: float = WATCH_DEBOUNCE_SECONDS) -> None:
    """Rebuild once, then keep rebuilding on changes until interrupted."""
    handler = ReferenceWatcher(engine, debounce_seconds=debounce_seconds)
    handler.rebuild()
    observer = Observer()
    observer.schedule(handler, str(engine.root), recursive=True)
    observer.start()

    logger.info("Watching %s for reference changes...", engine.root)
    try:
        while True:
            time.sleep(1)
            handler.flush_pending()
    except KeyboardInterrupt:
        observer.stop()
    observer.join()
