"""Public package surface."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

from mastgref.annotator import AnnotationSpan, annotate
from mastgref.engine import ReferenceEngine
from mastgref.index import IndexStore, RebuildResult, RebuildStatus, ReferenceEntry, load, rebuild
from mastgref.search import ListingItem, list_references, resolve
from mastgref.taxonomy import IdParts, Taxonomy


def _resolve_version() -> str:
    """Read runtime version from installed package metadata."""
    try:
        return version("mastgref")
    except PackageNotFoundError:
        return "0.0.0"


__version__ = _resolve_version()

__all__ = [
    "AnnotationSpan",
    "IdParts",
    "IndexStore",
    "ListingItem",
    "RebuildResult",
    "RebuildStatus",
    "ReferenceEngine",
    "ReferenceEntry",
    "Taxonomy",
    "__version__",
    "annotate",
    "list_references",
    "load",
    "rebuild",
    "resolve",
]
