"""Constants used across mastgref.

Defaults here mirror the OWASP MASTG naming scheme. Every value that a
workspace may want to change is also exposed through ``mastgref.yml``.
"""

# Identifier taxonomy
DEFAULT_SUBTYPED_PREFIXES: dict[str, tuple[str, ...]] = {
    "MASTG": ("TECH", "TOOL", "TEST"),
}
DEFAULT_PLAIN_PREFIXES: tuple[str, ...] = ("MASWE",)
ID_DIGITS = 4

# Scanning
DEFAULT_EXTENSION = ".md"
DEFAULT_EXCLUDED_DIRS: tuple[str, ...] = ("docs",)
HIDDEN_DIR_MARKER = "."

# Annotation and completion
DEFAULT_SIGIL = "@"
UNRESOLVED_PLACEHOLDER = "Unknown Reference"
UNKNOWN_TITLE = "Unknown Title"
LABEL_SEPARATOR = " - "

# Persistence
DEFAULT_SNAPSHOT_NAME = "references.json"
SNAPSHOT_INDENT = 4
CONFIG_FILENAME = "mastgref.yml"

# Watcher
WATCH_DEBOUNCE_SECONDS = 2.0

# Environment
LOG_LEVEL_ENV = "MASTGREF_LOG_LEVEL"
DEFAULT_LOG_LEVEL = "INFO"

MAIN_MODULE = "__main__"
