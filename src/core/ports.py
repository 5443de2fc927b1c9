"""Ports (interfaces) used by the command history core.

Markers and their persistence belong to the terminal buffer layer; the core
only needs a stable guid from them and somewhere to keep serialized uses.
"""

from __future__ import annotations

from typing import Any, Callable, Optional, Protocol

from core.models import CommandUse, ScreenMark


class Marker(Protocol):
    """A buffer position with an identifier that survives restarts."""

    @property
    def guid(self) -> str:
        ...


MarkerLookup = Callable[[str], Optional[Marker]]


class HistoryStoragePort(Protocol):
    """Storage operations required to save and restore command history."""

    def save_command_use(self, command: str, use: CommandUse) -> None:
        ...

    def load_command_uses(self) -> list[tuple[str, Any]]:
        ...

    def save_mark(self, mark: ScreenMark) -> None:
        ...

    def load_marks(self) -> list[ScreenMark]:
        ...
