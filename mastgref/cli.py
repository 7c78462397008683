"""mastgref: command line for the reference index."""

from __future__ import annotations

import argparse
import json
import os
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Sequence

from rich.console import Console
from rich.markup import escape

from mastgref.annotator import render_inline
from mastgref.constants import MAIN_MODULE
from mastgref.engine import ReferenceEngine
from mastgref.errors import ConfigError, IndexParseError
from mastgref.index import RebuildStatus
from mastgref.logging_config import setup_logging
from mastgref.watch import run_watch

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_EMPTY = 2

_REBUILD_EXIT_CODES = {
    RebuildStatus.SUCCESS: EXIT_OK,
    RebuildStatus.EMPTY: EXIT_EMPTY,
    RebuildStatus.FAILED: EXIT_FAILED,
}


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="mastgref", description="Reference index for MASTG-style documents.")
    parser.add_argument("--root", default=os.getcwd(), help="Workspace root (default: cwd)")
    parser.add_argument("--log-level", default=None, help="Override MASTGREF_LOG_LEVEL")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("rebuild", help="Rescan the workspace and rewrite the snapshot")

    search = sub.add_parser("search", help="List references grouped by type")
    search.add_argument("--type", dest="type_filter", default=None, help="Only list this type (e.g. TECH)")
    search.add_argument("--query", default="", help="Case-insensitive filter on labels")
    search.add_argument("--json", action="store_true", help="Emit JSON instead of a listing")

    annotate = sub.add_parser("annotate", help="Print a document with reference titles inlined")
    annotate.add_argument("file", help="Document to annotate")

    complete = sub.add_parser("complete", help="Show completion candidates for a line prefix")
    complete.add_argument("prefix", help="Text before the cursor")

    sub.add_parser("watch", help="Rebuild whenever a reference document changes")
    return parser


def _cmd_rebuild(engine: ReferenceEngine, console: Console) -> int:
    result = engine.on_rebuild_requested()
    for err in result.scan_errors:
        console.print(f"[yellow]Skipped:[/yellow] {escape(str(err))}")
    style = {RebuildStatus.SUCCESS: "green", RebuildStatus.EMPTY: "yellow", RebuildStatus.FAILED: "red"}
    console.print(f"[{style[result.status]}]{escape(result.message)}[/]")
    if result.ok:
        console.print(f"Snapshot: {escape(str(result.snapshot_path))}")
    return _REBUILD_EXIT_CODES[result.status]


def _cmd_search(engine: ReferenceEngine, console: Console, args: argparse.Namespace) -> int:
    items = engine.search(args.type_filter, args.query)
    if args.json:
        console.print_json(json.dumps([asdict(item) for item in items]))
        return EXIT_OK
    if not items:
        console.print("[dim]No references.[/dim]")
        return EXIT_OK
    for item in items:
        if item.is_separator:
            console.print(f"[bold]── {escape(item.label)} ──[/bold]")
        else:
            console.print(f"  {escape(item.label)}  [dim]{escape(item.path or '')}[/dim]")
    return EXIT_OK


def _cmd_annotate(engine: ReferenceEngine, console: Console, file: str) -> int:
    path = Path(file).expanduser().resolve()
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        console.print(f"[red]Cannot read {escape(str(path))}: {escape(str(exc))}[/red]")
        return EXIT_FAILED
    spans = engine.on_active_document_changed(path, text)
    console.out(render_inline(text, spans), highlight=False, end="")
    return EXIT_OK


def _cmd_complete(engine: ReferenceEngine, console: Console, prefix: str) -> int:
    for item in engine.complete(prefix):
        console.out(item.label, highlight=False)
    return EXIT_OK


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    setup_logging(args.log_level)
    console = Console(soft_wrap=True)
    err_console = Console(stderr=True)

    try:
        engine = ReferenceEngine.from_workspace(Path(args.root))
    except ConfigError as exc:
        err_console.print(f"[red]{escape(str(exc))}[/red]")
        return EXIT_FAILED

    if args.command == "rebuild":
        return _cmd_rebuild(engine, console)
    if args.command == "watch":
        run_watch(engine)
        return EXIT_OK

    try:
        engine.load_index()
    except IndexParseError as exc:
        err_console.print(f"[red]{escape(str(exc))}[/red]")
        err_console.print("Run `mastgref rebuild` to regenerate the snapshot.")
        return EXIT_FAILED

    if args.command == "search":
        return _cmd_search(engine, console, args)
    if args.command == "annotate":
        return _cmd_annotate(engine, console, args.file)
    return _cmd_complete(engine, console, args.prefix)


if __name__ == MAIN_MODULE:
    sys.exit(main())
