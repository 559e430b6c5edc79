from __future__ import annotations

import argparse
import json
import logging
import os
import shlex
import subprocess
import sys
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import curses

from picklist import __version__
from picklist.config import (
    ENV_PICKLIST_CACHE,
    ENV_PICKLIST_DEBOUNCE_MS,
    ENV_PICKLIST_SIZE,
    PickerOptions,
)
from picklist.errors import ConfigurationError, PickerError
from picklist.models import Item
from picklist.tui import run_picker

logger = logging.getLogger(__name__)


def _items_from_text(text: str) -> List[Item]:
    return [{"label": ln} for ln in (raw.rstrip("\r") for raw in text.split("\n")) if ln.strip()]


def load_items(path: str) -> Callable[[], Any]:
    """
    Dataset loader for FILE: one item per non-empty line, or a JSON array for
    *.json files. Returned as a callable so it runs off the UI thread.
    """
    p = Path(path).expanduser()

    def _load() -> Any:
        text = p.read_text(encoding="utf-8")
        if p.suffix.lower() == ".json":
            return json.loads(text)
        return _items_from_text(text)

    return _load


def _reattach_tty_stdin() -> None:
    # The dataset came from a pipe; curses needs the terminal on fd 0.
    fd = os.open("/dev/tty", os.O_RDONLY)
    try:
        os.dup2(fd, 0)
    finally:
        os.close(fd)


def search_command(cmd: str) -> Callable[[str, int], Dict[str, Any]]:
    """
    Search collaborator backed by an external command.

    The command gets the query and the 1-based page number as two extra
    arguments and must print {"data": [...], "total": N, "more": bool} as JSON.
    """
    argv = shlex.split(cmd)
    if not argv:
        raise ConfigurationError("--search-cmd must not be empty")

    def _search(query: str, page: int) -> Dict[str, Any]:
        p = subprocess.run(
            argv + [query, str(page)],
            stdin=subprocess.DEVNULL,
            capture_output=True,
            text=True,
        )
        if p.returncode != 0:
            detail = (p.stderr or "").strip().splitlines()
            raise RuntimeError(f"exit status {p.returncode}" + (f": {detail[-1]}" if detail else ""))
        payload = json.loads(p.stdout or "{}")
        if not isinstance(payload, dict):
            raise ValueError("search command must print a JSON object")
        return payload

    return _search


def _configure_logging(log_file: Optional[str], *, debug: bool) -> None:
    # Curses owns the terminal: only log to a file, and only when asked.
    if not log_file:
        logging.getLogger("picklist").addHandler(logging.NullHandler())
        return
    logging.basicConfig(
        filename=log_file,
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _print_selection(item: Item, *, as_json: bool) -> None:
    if as_json:
        payload = {k: v for k, v in item.items() if k not in ("index", "highlight")}
        sys.stdout.write(json.dumps(payload, ensure_ascii=False) + "\n")
    else:
        sys.stdout.write(str(item.get("label", "")) + "\n")


def cmd_pick(args: argparse.Namespace) -> int:
    options = PickerOptions.from_env().with_overrides(
        size=args.size,
        debounce_delay=args.debounce_ms,
        cache=False if args.no_cache else None,
        fuzzy_on_search=True if args.fuzzy_on_search else None,
        debug=bool(args.debug),
    )

    data: Any = None
    search = None
    if args.search_cmd:
        search = search_command(args.search_cmd)
    elif args.file == "-":
        text = sys.stdin.read()
        data = _items_from_text(text)
        _reattach_tty_stdin()
    elif args.file:
        data = load_items(args.file)

    try:
        item = run_picker(data=data, search=search, options=options)
    except curses.error as e:
        term = os.environ.get("TERM")
        print(f"Error: failed to initialize terminal UI: {str(e) or 'curses error'}", file=sys.stderr)
        if term:
            print(f"Tip: your TERM is {term!r}. If this system lacks terminfo for it, try:", file=sys.stderr)
        else:
            print("Tip: TERM is not set. Try:", file=sys.stderr)
        print("  TERM=xterm-256color picklist ...", file=sys.stderr)
        return 2

    if item is None:
        return 1
    _print_selection(item, as_json=bool(args.json))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="picklist", description="Interactive terminal list picker")
    parser.add_argument("file", nargs="?", default=None, help="Items file (one per line, or a .json array); '-' for stdin.")
    parser.add_argument(
        "--search-cmd",
        dest="search_cmd",
        default=None,
        help="Command run as `CMD QUERY PAGE` that prints {data, total, more} JSON (search mode).",
    )
    parser.add_argument("--size", type=int, default=None, help=f"Visible rows (or set ${ENV_PICKLIST_SIZE}).")
    parser.add_argument(
        "--debounce-ms",
        dest="debounce_ms",
        type=int,
        default=None,
        help=f"Keystroke coalescing delay in ms (or set ${ENV_PICKLIST_DEBOUNCE_MS}).",
    )
    parser.add_argument(
        "--no-cache", dest="no_cache", action="store_true", help=f"Disable query caching (or set {ENV_PICKLIST_CACHE}=0)."
    )
    parser.add_argument(
        "--fuzzy-on-search",
        dest="fuzzy_on_search",
        action="store_true",
        help="Highlight fuzzy matches in search results too.",
    )
    parser.add_argument("--json", action="store_true", help="Print the selected item as JSON.")
    parser.add_argument("--debug", action="store_true", help="Log decoded input events (needs --log-file).")
    parser.add_argument("--log-file", dest="log_file", default=None, help="Write logs to this file.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    args = parser.parse_args(argv)
    _configure_logging(args.log_file, debug=bool(args.debug))

    if not args.file and not args.search_cmd:
        parser.print_usage(sys.stderr)
        print("picklist: error: an items FILE or --search-cmd is required", file=sys.stderr)
        return 2

    try:
        return cmd_pick(args)
    except PickerError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
