"""Read the declared ``title`` from a document's front matter."""

from __future__ import annotations

import logging
import re

import yaml
from frontmatter.default_handlers import YAMLHandler

from mastgref.errors import FrontMatterParseError, NoFrontMatterError

logger = logging.getLogger(__name__)

# Block must open at offset 0; delimiter lines are exactly three dashes.
_FRONTMATTER_BLOCK = re.compile(
    r"\A---[ \t]*\r?\n(?P<body>.*?)(?:\r?\n)?^---[ \t]*(?:\r?\n|\Z)",
    re.DOTALL | re.MULTILINE,
)
_HANDLER = YAMLHandler()


def split_frontmatter(text: str) -> str | None:
    """Return the raw front-matter block, or None when the document has none."""
    match = _FRONTMATTER_BLOCK.match(text)
    if match is None:
        return None
    return match.group("body")


def read_title(text: str) -> str | None:
    """Return the front-matter title.

    Raises:
        NoFrontMatterError: The document does not start with a block.
        FrontMatterParseError: The block is not a YAML mapping.
    """
    block = split_frontmatter(text)
    if block is None:
        raise NoFrontMatterError("document has no leading front-matter block")
    try:
        metadata = _HANDLER.load(block)
    except yaml.YAMLError as exc:
        raise FrontMatterParseError(str(exc)) from exc
    if metadata is None:
        return None
    if not isinstance(metadata, dict):
        raise FrontMatterParseError(f"expected a mapping, got {type(metadata).__name__}")

    title = metadata.get("title")
    if title is None:
        return None
    title_str = str(title).strip()
    return title_str or None


def extract_title(text: str, *, source: str | None = None) -> str | None:
    """Like ``read_title`` but never raises; problems are logged."""
    where = source or "<text>"
    try:
        title = read_title(text)
    except NoFrontMatterError:
        logger.debug("No front matter in %s", where)
    except FrontMatterParseError as exc:
        logger.warning("Failed to parse front matter in %s: %s", where, exc)
    else:
        if title is None:
            logger.info("Front matter in %s declares no title", where)
        return title
    return None
