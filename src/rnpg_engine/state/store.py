"""
Activity log abstraction.

The engine only appends; retention and persistence belong to the caller.
"""

from typing import Iterable, Protocol, runtime_checkable

from .schema import Activity


@runtime_checkable
class ActivitySink(Protocol):
    """
    Append-only destination for activities.

    Implementations:
    - MemoryActivitySink: In-memory log (testing, scripts)
    - Caller-provided adapters for a database or remote backend
    """

    def append(self, activity: Activity) -> None:
        """Record one activity."""
        ...

    def extend(self, activities: Iterable[Activity]) -> None:
        """Record several activities in order."""
        ...


class MemoryActivitySink:
    """
    In-memory activity log.

    No I/O, ordering preserved.
    """

    def __init__(self):
        self.activities: list[Activity] = []

    def append(self, activity: Activity) -> None:
        self.activities.append(activity)

    def extend(self, activities: Iterable[Activity]) -> None:
        for activity in activities:
            self.append(activity)

    def for_character(self, character_id: str) -> list[Activity]:
        """Activities belonging to one character, oldest first."""
        return [a for a in self.activities if a.character_id == character_id]

    def major_events(self) -> list[Activity]:
        return [a for a in self.activities if a.is_major_event]

    def __len__(self) -> int:
        return len(self.activities)
