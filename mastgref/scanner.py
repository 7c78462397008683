"""Find candidate reference documents under a workspace root."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Collection, Iterable

from mastgref.constants import DEFAULT_EXCLUDED_DIRS, DEFAULT_EXTENSION, HIDDEN_DIR_MARKER
from mastgref.errors import ScanDirectoryError
from mastgref.taxonomy import DEFAULT_TAXONOMY, Taxonomy

logger = logging.getLogger(__name__)


def is_excluded_dir(name: str, excluded_dirs: Collection[str]) -> bool:
    """Return True for reserved documentation folders and hidden directories."""
    return name.startswith(HIDDEN_DIR_MARKER) or name in excluded_dirs


def candidate_key(name: str, taxonomy: Taxonomy, extension: str = DEFAULT_EXTENSION) -> str | None:
    """Return the identifier a file name stands for, or None if it is not a candidate."""
    if not name.endswith(extension):
        return None
    stem = name[: -len(extension)]
    return stem if taxonomy.is_valid(stem) else None


def _list_dir(directory: Path) -> list[os.DirEntry[str]]:
    try:
        with os.scandir(directory) as it:
            return list(it)
    except OSError as exc:
        raise ScanDirectoryError(directory, exc) from exc


def scan(
    root: Path,
    taxonomy: Taxonomy = DEFAULT_TAXONOMY,
    *,
    excluded_dirs: Iterable[str] = DEFAULT_EXCLUDED_DIRS,
    extension: str = DEFAULT_EXTENSION,
    errors: list[ScanDirectoryError] | None = None,
) -> list[Path]:
    """Walk ``root`` and return candidate document paths.

    Excluded directories are pruned before descending. Unreadable directories
    are logged, recorded in ``errors`` when given, and contribute nothing.

    Returns:
        Absolute, deduplicated paths ordered by identifier number, then name.
    """
    root = root.expanduser().resolve()
    if not root.is_dir():
        logger.warning("Scan root is not a directory: %s", root)
        return []

    excluded = frozenset(excluded_dirs)
    candidates: list[tuple[int, str, bool, str, Path]] = []
    pending = [root]
    while pending:
        directory = pending.pop()
        try:
            entries = _list_dir(directory)
        except ScanDirectoryError as err:
            logger.warning("%s", err)
            if errors is not None:
                errors.append(err)
            continue

        for entry in entries:
            try:
                if entry.is_dir(follow_symlinks=False):
                    if not is_excluded_dir(entry.name, excluded):
                        pending.append(Path(entry.path))
                    continue
                if not entry.is_file():
                    continue
            except OSError as exc:
                logger.warning("Cannot stat %s: %s", entry.path, exc)
                continue
            key = candidate_key(entry.name, taxonomy, extension)
            if key is None:
                continue
            candidates.append((taxonomy.parse(key).number, key, entry.is_symlink(), entry.path, Path(entry.path)))

    # A file reached through several links is reported once, preferring a non-link path.
    seen: set[Path] = set()
    result: list[Path] = []
    for *_, path in sorted(candidates):
        target = path.resolve()
        if target in seen:
            continue
        seen.add(target)
        result.append(path)
    return result
