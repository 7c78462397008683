"""Find identifier mentions in a document and resolve them to titles."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePath
from typing import Sequence

from mastgref.constants import DEFAULT_EXTENSION, DEFAULT_SIGIL, UNRESOLVED_PLACEHOLDER
from mastgref.index import ReferenceIndex
from mastgref.taxonomy import DEFAULT_TAXONOMY, Taxonomy


@dataclass(frozen=True)
class AnnotationSpan:
    """Character range of a mention plus the text to show next to it."""

    start: int
    end: int
    display_text: str
    key: str
    resolved: bool


def annotate(
    text: str,
    index: ReferenceIndex,
    taxonomy: Taxonomy = DEFAULT_TAXONOMY,
    *,
    sigil: str = DEFAULT_SIGIL,
    placeholder: str = UNRESOLVED_PLACEHOLDER,
) -> list[AnnotationSpan]:
    """Return one span per mention in ``text``.

    Spans cover the identifier only; a leading sigil is consumed but not
    included. Unknown identifiers still get a span with ``placeholder``.
    """
    spans: list[AnnotationSpan] = []
    for match in taxonomy.mention_pattern(sigil).finditer(text):
        key = match.group("key")
        entry = index.get(key)
        title = entry.title if entry is not None else ""
        spans.append(
            AnnotationSpan(
                start=match.start("key"),
                end=match.end("key"),
                display_text=title or placeholder,
                key=key,
                resolved=bool(title),
            )
        )
    return spans


def is_target_document(path: str | PurePath, extension: str = DEFAULT_EXTENSION) -> bool:
    return PurePath(path).suffix == extension


def annotate_document(
    path: str | PurePath,
    text: str,
    index: ReferenceIndex,
    taxonomy: Taxonomy = DEFAULT_TAXONOMY,
    *,
    extension: str = DEFAULT_EXTENSION,
    sigil: str = DEFAULT_SIGIL,
    placeholder: str = UNRESOLVED_PLACEHOLDER,
) -> list[AnnotationSpan]:
    """Annotate ``text`` if ``path`` is a target document, else return no spans."""
    if not is_target_document(path, extension):
        return []
    return annotate(text, index, taxonomy, sigil=sigil, placeholder=placeholder)


def render_inline(text: str, spans: Sequence[AnnotationSpan]) -> str:
    """Insert `` [display text]`` after each span."""
    pieces: list[str] = []
    cursor = 0
    for span in sorted(spans, key=lambda item: item.start):
        pieces.append(text[cursor : span.end])
        pieces.append(f" [{span.display_text}]")
        cursor = span.end
    pieces.append(text[cursor:])
    return "".join(pieces)
