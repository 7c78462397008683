"""mastgref logging configuration.

Log level comes from ``MASTGREF_LOG_LEVEL`` (default ``INFO``). Output goes to
stderr so command output on stdout stays machine-readable.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

from mastgref.constants import DEFAULT_LOG_LEVEL, LOG_LEVEL_ENV


def setup_logging(level: Optional[str] = None) -> None:
    """Configure mastgref logging.

    Args:
        level: Optional override for `MASTGREF_LOG_LEVEL`.
    """
    if level:
        os.environ[LOG_LEVEL_ENV] = level

    resolved = os.environ.get(LOG_LEVEL_ENV, DEFAULT_LOG_LEVEL).upper()
    logging.basicConfig(
        level=resolved if resolved in logging.getLevelNamesMapping() else DEFAULT_LOG_LEVEL,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )
