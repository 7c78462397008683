"""Identifier completion triggered by the sigil character."""

from __future__ import annotations

from dataclasses import dataclass

from mastgref.constants import DEFAULT_SIGIL, LABEL_SEPARATOR, UNKNOWN_TITLE
from mastgref.index import ReferenceIndex


@dataclass(frozen=True)
class CompletionItem:
    label: str
    insert_text: str


def complete(line_prefix: str, index: ReferenceIndex, sigil: str = DEFAULT_SIGIL) -> list[CompletionItem]:
    """Offer every key when the text before the cursor ends with ``sigil``.

    Selecting an item inserts the bare key; the sigil is already typed.
    """
    if not line_prefix.endswith(sigil):
        return []
    return [
        CompletionItem(label=f"{key}{LABEL_SEPARATOR}{index[key].title or UNKNOWN_TITLE}", insert_text=key)
        for key in sorted(index)
    ]
