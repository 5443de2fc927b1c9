from __future__ import annotations

import sqlite3

from adapters.sqlite_storage import SQLiteStorage
from core.history import CommandHistory
from core.models import CommandUse, ScreenMark


def _storage(tmp_path) -> SQLiteStorage:
    storage = SQLiteStorage(str(tmp_path / "history.db"))
    storage.init_db()
    return storage


def test_command_uses_are_stored_in_positional_form(tmp_path) -> None:
    storage = _storage(tmp_path)
    mark = ScreenMark(guid="g1", line=3)
    storage.save_command_use("ls -la", CommandUse.for_mark(100.5, "/home/u", mark))
    storage.save_command_use("pwd", CommandUse(time=101.0))

    assert storage.load_command_uses() == [
        ("ls -la", [100.5, "/home/u", "g1"]),
        ("pwd", [101.0, None, None]),
    ]


def test_unreadable_payload_is_skipped(tmp_path) -> None:
    storage = _storage(tmp_path)
    storage.save_command_use("ls", CommandUse(time=1.0))
    with sqlite3.connect(str(tmp_path / "history.db")) as conn:
        conn.execute("INSERT INTO command_uses (command, payload) VALUES (?, ?)", ("make", "{not json"))
    storage.save_command_use("pwd", CommandUse(time=2.0))

    assert [command for command, _ in storage.load_command_uses()] == ["ls", "pwd"]


def test_marks_upsert_and_load_by_line(tmp_path) -> None:
    storage = _storage(tmp_path)
    storage.save_mark(ScreenMark(guid="b", line=20, command="make"))
    storage.save_mark(ScreenMark(guid="a", line=10))
    storage.save_mark(ScreenMark(guid="b", line=30, command="make test"))

    marks = storage.load_marks()

    assert [(mark.guid, mark.line, mark.command) for mark in marks] == [
        ("a", 10, None),
        ("b", 30, "make test"),
    ]


def test_delete_marks_before_line(tmp_path) -> None:
    storage = _storage(tmp_path)
    for guid, line in (("a", 1), ("b", 5), ("c", 9)):
        storage.save_mark(ScreenMark(guid=guid, line=line))

    assert storage.delete_marks_before(6) == 2
    assert [mark.guid for mark in storage.load_marks()] == ["c"]


def test_restart_restores_and_relinks_marks(tmp_path) -> None:
    storage = _storage(tmp_path)
    for line, command in enumerate(["ls", "make", "git log"]):
        mark = ScreenMark(line=line, command=command)
        storage.save_mark(mark)
        storage.save_command_use(command, CommandUse.for_mark(1000.0 + line, "/repo", mark))
    storage.delete_marks_before(1)

    # A fresh storage object stands in for the restarted process.
    reopened = SQLiteStorage(str(tmp_path / "history.db"))
    history = CommandHistory()
    assert history.restore(reopened.load_command_uses()) == 3
    marks = reopened.load_marks()

    assert history.resolve_marks(marks) == 2
    assert history.uses_for("ls")[0].mark is None
    assert history.uses_for("make")[0].mark is marks[0]
    assert history.uses_for("git log")[0].mark is marks[1]
