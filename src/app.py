"""Application entry point for termhistory."""

from __future__ import annotations

import argparse
import logging
import os
import time
from datetime import datetime
from logging.handlers import RotatingFileHandler
from typing import Optional

from art import tprint

import settings
from adapters.sqlite_storage import SQLiteStorage
from core.history import restore_history
from core.models import CommandUse, ScreenMark

NAME = "TERMHISTORY"
FONT = "tarty-1"


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


def _configure_logging() -> None:
    config = settings.LOGGING or {}
    if not config.get("enabled", False):
        return

    level_name = str(config.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    formatter = logging.Formatter(fmt=fmt, datefmt=datefmt)

    handlers: list[logging.Handler] = []

    if config.get("console", True):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = settings.resolve_path(file_cfg.get("path", "logs/termhistory.log"))
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        max_bytes = int(file_cfg.get("max_bytes", 5 * 1024 * 1024))
        backup_count = int(file_cfg.get("backup_count", 5))
        file_handler = RotatingFileHandler(
            path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if not handlers:
        return

    logging.basicConfig(level=level, handlers=handlers)


def _open_storage(db_path: Optional[str]) -> SQLiteStorage:
    storage = SQLiteStorage(db_path or settings.DB_PATH)
    storage.init_db()
    return storage


def _record(storage: SQLiteStorage, command: str, directory: Optional[str], line: Optional[int]) -> None:
    logger = logging.getLogger(__name__)

    if line is None:
        # New output lands below everything already marked.
        marks = storage.load_marks()
        line = marks[-1].line + 1 if marks else 0

    mark = ScreenMark(line=line, command=command)
    use = CommandUse.for_mark(time.time(), directory or os.getcwd(), mark)

    # The buffer layer persists its marks on its own; we only mimic that here.
    storage.save_mark(mark)
    storage.save_command_use(command, use)
    logger.info("Recorded %r at line %s (mark %s)", command, line, mark.guid)


def _format_use(command: str, use: CommandUse) -> str:
    try:
        timestamp = datetime.fromtimestamp(use.time).strftime("%H:%M:%S %Y-%m-%d")
    except (ValueError, OverflowError, OSError):
        # Outside what datetime can represent; show the raw seconds.
        timestamp = f"{use.time:.0f}s"
    directory = use.directory or "?"
    mark = use.mark
    if mark is None:
        location = "unresolved"
    else:
        location = f"line {mark.line}"
    return f"[{timestamp}] {directory} $ {command} ({location})"


def _history(storage: SQLiteStorage) -> None:
    # marks must outlive the listing: uses only reference them weakly.
    history, marks = restore_history(storage)

    pairs = history.all_uses()
    if not pairs:
        print("No command history recorded.")
        return

    for command, use in pairs:
        print(_format_use(command, use))


def _prune(storage: SQLiteStorage, line: int) -> None:
    removed = storage.delete_marks_before(line)
    logging.getLogger(__name__).info("Pruned %s marks before line %s", removed, line)
    print(f"Removed {removed} marks.")


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="termhistory")
    parser.add_argument("--db", help="SQLite database path (defaults to config.json)")
    subparsers = parser.add_subparsers(dest="command")

    record_parser = subparsers.add_parser("record", help="Record a command use with a new mark")
    record_parser.add_argument("text", help="Command text")
    record_parser.add_argument("--directory", help="Working directory (defaults to the current one)")
    record_parser.add_argument("--line", type=int, help="Buffer line of the new mark")

    subparsers.add_parser("history", help="Restore and list command history")

    prune_parser = subparsers.add_parser("prune", help="Drop marks trimmed from scrollback")
    prune_parser.add_argument("line", type=int, help="Marks above this line are removed")

    args = parser.parse_args(argv)

    _print_banner()
    _configure_logging()
    storage = _open_storage(args.db)

    if args.command == "record":
        _record(storage, args.text, args.directory, args.line)
        return
    if args.command == "prune":
        _prune(storage, args.line)
        return
    _history(storage)


if __name__ == "__main__":
    main()
