"""Command history owned by a session.

Restoring happens in two phases. Uses are rebuilt first and carry only the
guid of their mark; once the buffer layer has rebuilt its marks, the history
matches them up by guid. Marks lost to scrollback trimming simply never match.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

from core.models import CommandUse, ScreenMark
from core.ports import HistoryStoragePort, Marker

LOGGER = logging.getLogger(__name__)


def build_marker_registry(markers: Iterable[Marker]) -> dict[str, Marker]:
    """Index markers by guid.

    Guids are unique within a session; a duplicate means the buffer layer
    handed us bad data, so it is reported rather than guessed at.
    """

    registry: dict[str, Marker] = {}
    for marker in markers:
        if marker.guid in registry:
            raise ValueError(f"Duplicate marker guid: {marker.guid}")
        registry[marker.guid] = marker
    return registry


class CommandHistory:
    """Uses grouped by command text, in the order they were added."""

    def __init__(self) -> None:
        self._uses: dict[str, list[CommandUse]] = {}

    def add_use(self, command: str, use: CommandUse) -> None:
        self._uses.setdefault(command, []).append(use)

    def uses_for(self, command: str) -> list[CommandUse]:
        return list(self._uses.get(command, []))

    def commands(self) -> list[str]:
        """Return command texts, most recently used first."""

        return sorted(
            (command for command, uses in self._uses.items() if uses),
            key=lambda command: max(use.time for use in self._uses[command]),
            reverse=True,
        )

    def all_uses(self) -> list[tuple[str, CommandUse]]:
        """Return every (command, use) pair ordered by time."""

        pairs = [(command, use) for command, uses in self._uses.items() for use in uses]
        return sorted(pairs, key=lambda pair: pair[1].time)

    def unresolved(self) -> list[CommandUse]:
        return [use for _, use in self.all_uses() if not use.is_resolved]

    def restore(self, rows: Iterable[tuple[str, Any]]) -> int:
        """Add uses from (command, serialized_value) rows.

        A corrupt row is skipped so the rest of the history still loads.
        Returns the number of uses restored.
        """

        restored = 0
        for index, (command, value) in enumerate(rows):
            use: Optional[CommandUse] = CommandUse.from_serialized_value(value)
            if use is None:
                LOGGER.warning("Skipping malformed command use #%s for %r: %r", index, command, value)
                continue
            self.add_use(command, use)
            restored += 1
        LOGGER.debug("Restored %s command uses", restored)
        return restored

    def resolve_marks(self, markers: Iterable[Marker]) -> int:
        """Bind restored uses to the markers rebuilt by the buffer layer.

        Returns how many uses were newly resolved.
        """

        registry = build_marker_registry(markers)
        resolved = 0
        for use in self.unresolved():
            if use.resolve_mark(registry.get):
                resolved += 1

        remaining = len(self.unresolved())
        if remaining:
            # Expected after scrollback trimming: those marks no longer exist.
            LOGGER.info("%s command uses have no matching mark", remaining)
        return resolved


def restore_history(storage: HistoryStoragePort) -> tuple[CommandHistory, list[ScreenMark]]:
    """Rebuild a history from storage and relink it to the stored marks.

    Uses only hold their marks weakly, so the caller must keep the returned
    marks alive for as long as it wants the links to hold.
    """

    history = CommandHistory()
    restored = history.restore(storage.load_command_uses())
    # Marks come back after the uses, the way a restarted session rebuilds them.
    marks = storage.load_marks()
    resolved = history.resolve_marks(marks)
    LOGGER.info("Restored %s command uses, %s matched to marks", restored, resolved)
    return history, marks
