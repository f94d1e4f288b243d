from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional


class ReadWriteLock:
    """Many concurrent readers, one writer, writers exclude readers."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writing = False

    @contextmanager
    def reading(self) -> Iterator[None]:
        with self._cond:
            while self._writing:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def writing(self) -> Iterator[None]:
        with self._cond:
            while self._writing or self._readers:
                self._cond.wait()
            self._writing = True
        try:
            yield
        finally:
            with self._cond:
                self._writing = False
                self._cond.notify_all()


@dataclass
class ScrollCursor:
    """Per-prompt position while browsing history.

    ``index == len(lines)`` means the prompt shows the live edit buffer.
    ``pending_snapshot`` holds that live buffer while an older line is shown.
    """

    index: int
    pending_snapshot: Optional[str] = None


class HistoryStore:
    """Process-wide, append-only log of accepted input lines."""

    def __init__(self) -> None:
        self._lines: list[str] = []
        self._lock = ReadWriteLock()

    def __len__(self) -> int:
        with self._lock.reading():
            return len(self._lines)

    def lines(self) -> list[str]:
        with self._lock.reading():
            return list(self._lines)

    def append(self, line: str) -> bool:
        """Record ``line`` unless it is blank or repeats the newest entry."""
        if not line.strip():
            return False
        with self._lock.writing():
            if self._lines and self._lines[-1] == line:
                return False
            self._lines.append(line)
            return True

    def new_cursor(self) -> ScrollCursor:
        with self._lock.reading():
            return ScrollCursor(index=len(self._lines))

    def previous(self, cursor: ScrollCursor) -> Optional[str]:
        with self._lock.reading():
            cursor.index = min(cursor.index, len(self._lines))
            if cursor.index == 0 or not self._lines:
                return None
            cursor.index -= 1
            return self._lines[cursor.index]

    def next(self, cursor: ScrollCursor) -> Optional[str]:
        with self._lock.reading():
            if cursor.index >= len(self._lines):
                return None
            cursor.index += 1
            if cursor.index == len(self._lines):
                return None
            return self._lines[cursor.index]
