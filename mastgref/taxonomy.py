"""Identifier grammar: ``PREFIX-[SUBTYPE-]NNNN``.

Validation (``is_valid``) and classification (``parse``) are separate so each
can be exercised on its own. ``classify`` combines the two for callers that
only care about well-formed keys.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Mapping

from mastgref.constants import DEFAULT_PLAIN_PREFIXES, DEFAULT_SIGIL, DEFAULT_SUBTYPED_PREFIXES, ID_DIGITS
from mastgref.errors import InvalidIdentifierError

_SEPARATOR = "-"

# Prefixes and subtype codes; no separator allowed so keys split unambiguously.
CODE_PATTERN = re.compile(r"[A-Z][A-Z0-9]*")


@dataclass(frozen=True)
class IdParts:
    """Classified identifier."""

    domain: str
    subtype: str | None
    digits: str

    @property
    def number(self) -> int:
        return int(self.digits)

    @property
    def type(self) -> str:
        """Grouping type: the subtype when present, else the domain."""
        return self.subtype or self.domain

    @property
    def key(self) -> str:
        if self.subtype:
            return _SEPARATOR.join((self.domain, self.subtype, self.digits))
        return _SEPARATOR.join((self.domain, self.digits))


def _alternation(values: Iterable[str]) -> str:
    # Longest first so overlapping alternatives never shadow each other.
    ordered = sorted(set(values), key=lambda value: (-len(value), value))
    return "|".join(re.escape(value) for value in ordered)


class Taxonomy:
    """Closed sets of domain prefixes and subtype codes."""

    def __init__(
        self,
        subtyped: Mapping[str, Iterable[str]] | None = None,
        plain: Iterable[str] | None = None,
    ) -> None:
        source = DEFAULT_SUBTYPED_PREFIXES if subtyped is None else subtyped
        self.subtyped: dict[str, frozenset[str]] = {prefix: frozenset(codes) for prefix, codes in source.items()}
        self.plain: frozenset[str] = frozenset(DEFAULT_PLAIN_PREFIXES if plain is None else plain)
        if not self.subtyped and not self.plain:
            raise ValueError("Taxonomy needs at least one prefix")
        overlap = self.plain.intersection(self.subtyped)
        if overlap:
            raise ValueError(f"Prefixes cannot be both plain and subtyped: {sorted(overlap)}")
        for prefix, codes in self.subtyped.items():
            if not codes:
                raise ValueError(f"Subtyped prefix {prefix} has no subtypes")
        all_codes = set(self.plain).union(self.subtyped, *self.subtyped.values())
        for code in sorted(all_codes):
            if not CODE_PATTERN.fullmatch(code):
                raise ValueError(f"Invalid code {code!r}: expected upper-case letters and digits")

        self.pattern_body = self._build_pattern_body()
        self.id_pattern = re.compile(self.pattern_body)

    def _build_pattern_body(self) -> str:
        branches: list[str] = []
        for prefix in sorted(self.subtyped, key=lambda value: (-len(value), value)):
            codes = _alternation(self.subtyped[prefix])
            branches.append(f"{re.escape(prefix)}{_SEPARATOR}(?:{codes})")
        if self.plain:
            branches.append(f"(?:{_alternation(self.plain)})")
        return f"(?:{'|'.join(branches)}){_SEPARATOR}[0-9]{{{ID_DIGITS}}}"

    def __repr__(self) -> str:
        subtyped = {prefix: sorted(codes) for prefix, codes in sorted(self.subtyped.items())}
        return f"Taxonomy(subtyped={subtyped!r}, plain={sorted(self.plain)!r})"

    @property
    def types(self) -> list[str]:
        """Every grouping type the grammar can produce, sorted."""
        values: set[str] = set(self.plain)
        for codes in self.subtyped.values():
            values.update(codes)
        return sorted(values)

    def is_valid(self, key: str) -> bool:
        return self.id_pattern.fullmatch(key) is not None

    def parse(self, key: str) -> IdParts:
        """Classify a key. Raises InvalidIdentifierError when it is malformed."""
        if not self.is_valid(key):
            raise InvalidIdentifierError(key)
        parts = key.split(_SEPARATOR)
        if len(parts) == 3:
            return IdParts(domain=parts[0], subtype=parts[1], digits=parts[2])
        return IdParts(domain=parts[0], subtype=None, digits=parts[1])

    def classify(self, key: str) -> IdParts | None:
        if not self.is_valid(key):
            return None
        return self.parse(key)

    def mention_pattern(self, sigil: str = DEFAULT_SIGIL) -> re.Pattern[str]:
        """Pattern for in-text mentions: optional sigil, then an identifier.

        Group ``key`` holds the identifier without the sigil. A mention glued
        to a preceding letter or digit, or followed by another digit, is not a
        mention. Markdown emphasis such as ``_KEY_`` still matches.
        """
        return re.compile(
            rf"(?<![A-Za-z0-9])(?P<sigil>{re.escape(sigil)})?(?P<key>{self.pattern_body})(?![0-9])"
        )


DEFAULT_TAXONOMY = Taxonomy()
