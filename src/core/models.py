"""Core domain models.

A CommandUse records that a command ran at some time in some directory and
that its output starts at a marker in the terminal buffer. Markers are owned
by the buffer layer, so a use only ever holds a weak reference to one.
"""

from __future__ import annotations

import copy
import math
import uuid
import weakref
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Optional

if TYPE_CHECKING:
    from core.ports import Marker


@dataclass(eq=False)
class ScreenMark:
    """A position in the terminal buffer that can be referenced by guid."""

    guid: str = field(default_factory=lambda: str(uuid.uuid4()))
    line: int = 0
    command: Optional[str] = None


@dataclass(eq=False)
class CommandUse:
    """One use of a command, serializable to a positional list.

    A use built from serialized data starts unresolved: only ``mark_guid`` is
    known until the owning history binds the matching marker.
    """

    time: float
    directory: Optional[str] = None
    mark_guid: Optional[str] = None
    _mark_ref: Optional[weakref.ReferenceType] = field(default=None, init=False, repr=False)

    @classmethod
    def for_mark(cls, time: float, directory: Optional[str], mark: Optional[Marker]) -> "CommandUse":
        """Build a live use whose guid is taken from the marker right away."""

        use = cls(time=time, directory=directory)
        if mark is not None:
            use.mark = mark
        return use

    @property
    def mark(self) -> Optional[Marker]:
        if self._mark_ref is None:
            return None
        return self._mark_ref()

    @mark.setter
    def mark(self, mark: Optional[Marker]) -> None:
        if mark is None:
            if self._mark_ref is not None:
                raise ValueError("Cannot unbind the mark of a resolved command use")
            return
        self._mark_ref = weakref.ref(mark)
        self.mark_guid = mark.guid

    @property
    def is_resolved(self) -> bool:
        return self._mark_ref is not None

    def resolve_mark(self, lookup: Callable[[str], Optional[Marker]]) -> bool:
        """Bind the marker matching ``mark_guid``, if the lookup has one."""

        if self.is_resolved:
            return True
        if not self.mark_guid:
            return False
        mark = lookup(self.mark_guid)
        if mark is None:
            return False
        self.mark = mark
        return True

    def serialized_value(self) -> list[Any]:
        """Return ``[time, directory, mark_guid]``; the mark itself is never stored."""

        return [self.time, self.directory, self.mark_guid]

    @classmethod
    def from_serialized_value(cls, value: Any) -> Optional["CommandUse"]:
        """Rebuild an unresolved use, or return None if the value is malformed.

        Older rows may be shorter than the current format; missing trailing
        fields read as None. Elements past the third are ignored.
        """

        if not isinstance(value, (list, tuple)) or not value:
            return None

        raw_time = value[0]
        if isinstance(raw_time, bool) or not isinstance(raw_time, (int, float)):
            return None
        try:
            time = float(raw_time)
        except OverflowError:
            return None
        if not math.isfinite(time) or time < 0:
            return None

        directory = value[1] if len(value) > 1 else None
        mark_guid = value[2] if len(value) > 2 else None
        for item in (directory, mark_guid):
            if item is not None and not isinstance(item, str):
                return None

        return cls(time=time, directory=directory, mark_guid=mark_guid)

    def copy(self) -> "CommandUse":
        """Return a copy that shares the same marker."""

        return copy.copy(self)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CommandUse):
            return NotImplemented
        return (
            self.time == other.time
            and self.directory == other.directory
            and self.mark is other.mark
        )

    __hash__ = None  # type: ignore[assignment]
