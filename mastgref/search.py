"""Grouped, ordered listing of the index for search and navigation."""

from __future__ import annotations

from dataclasses import dataclass
from itertools import groupby
from typing import Literal, Sequence

from mastgref.constants import LABEL_SEPARATOR, UNRESOLVED_PLACEHOLDER
from mastgref.index import ReferenceEntry, ReferenceIndex
from mastgref.taxonomy import DEFAULT_TAXONOMY, IdParts, Taxonomy

ItemKind = Literal["entry", "separator"]


@dataclass(frozen=True)
class ListingItem:
    label: str
    kind: ItemKind = "entry"
    key: str | None = None
    path: str | None = None

    @property
    def is_separator(self) -> bool:
        return self.kind == "separator"


@dataclass(frozen=True)
class OpenRequest:
    """Ask the host to open a document."""

    key: str
    path: str


@dataclass(frozen=True)
class SearchCommand:
    """One search action exposed to the host."""

    name: str
    title: str
    type_filter: str | None


def entry_label(entry: ReferenceEntry) -> str:
    return f"{entry.key}{LABEL_SEPARATOR}{entry.title or UNRESOLVED_PLACEHOLDER}"


def _entry_item(entry: ReferenceEntry) -> ListingItem:
    return ListingItem(label=entry_label(entry), key=entry.key, path=entry.path)


def list_references(
    index: ReferenceIndex,
    taxonomy: Taxonomy = DEFAULT_TAXONOMY,
    type_filter: str | None = None,
) -> list[ListingItem]:
    """List index entries for browsing.

    Keys outside the grammar are left out. With ``type_filter`` the result is
    a flat list of that type; otherwise every type gets a separator followed
    by its entries, types in lexicographic order.
    """
    classified: list[tuple[IdParts, ReferenceEntry]] = []
    for key, entry in index.items():
        parts = taxonomy.classify(key)
        if parts is None:
            continue
        if type_filter is not None and parts.type != type_filter:
            continue
        classified.append((parts, entry))

    classified.sort(key=lambda item: (item[0].type, item[0].number, item[0].key))

    if type_filter is not None:
        return [_entry_item(entry) for _, entry in classified]

    items: list[ListingItem] = []
    for type_name, group in groupby(classified, key=lambda item: item[0].type):
        items.append(ListingItem(label=type_name, kind="separator"))
        items.extend(_entry_item(entry) for _, entry in group)
    return items


def filter_items(items: Sequence[ListingItem], query: str) -> list[ListingItem]:
    """Case-insensitive label filter that drops separators left without entries."""
    needle = query.strip().casefold()
    if not needle:
        return list(items)

    result: list[ListingItem] = []
    pending_separator: ListingItem | None = None
    for item in items:
        if item.is_separator:
            pending_separator = item
            continue
        if needle not in item.label.casefold():
            continue
        if pending_separator is not None:
            result.append(pending_separator)
            pending_separator = None
        result.append(item)
    return result


def resolve(item: ListingItem) -> OpenRequest:
    """Map a chosen listing entry to an open request. No filesystem access."""
    if item.is_separator or item.key is None:
        raise ValueError(f"Cannot open separator {item.label!r}")
    return OpenRequest(key=item.key, path=item.path or "")


def search_commands(taxonomy: Taxonomy = DEFAULT_TAXONOMY) -> list[SearchCommand]:
    """One unfiltered search action plus one per identifier type."""
    commands = [SearchCommand(name="search", title="Search references", type_filter=None)]
    for type_name in taxonomy.types:
        commands.append(
            SearchCommand(
                name=f"search.{type_name.lower()}",
                title=f"Search {type_name} references",
                type_filter=type_name,
            )
        )
    return commands
