"""Linear undo/redo history of full-canvas snapshots."""
from typing import List, Optional

Snapshot = bytes

DEFAULT_CAPACITY = 50


class HistoryBuffer:
    """
    Append-only log of snapshots with a movable cursor.

    The cursor is always a valid index, or -1 while the log is empty. Pushing
    after one or more undos drops every entry past the cursor first, and the
    oldest entry is evicted once the log grows past ``capacity``.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity < 1:
            raise ValueError("History capacity must be at least 1")
        self.capacity = capacity
        self._entries: List[Snapshot] = []
        self._cursor = -1

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def current(self) -> Optional[Snapshot]:
        if self._cursor < 0:
            return None
        return self._entries[self._cursor]

    @property
    def can_undo(self) -> bool:
        return self._cursor > 0

    @property
    def can_redo(self) -> bool:
        return self._cursor < len(self._entries) - 1

    def push(self, snapshot: Snapshot) -> None:
        del self._entries[self._cursor + 1:]
        self._entries.append(snapshot)
        if len(self._entries) > self.capacity:
            del self._entries[0]
        self._cursor = len(self._entries) - 1

    def undo(self) -> Optional[Snapshot]:
        """Step back one entry; None when already at the oldest."""
        if not self.can_undo:
            return None
        self._cursor -= 1
        return self._entries[self._cursor]

    def redo(self) -> Optional[Snapshot]:
        """Step forward one entry; None when already at the newest."""
        if not self.can_redo:
            return None
        self._cursor += 1
        return self._entries[self._cursor]

    def clear(self) -> None:
        self._entries.clear()
        self._cursor = -1
