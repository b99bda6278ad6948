# Licensed under the Apache License, Version 2.0
from __future__ import annotations

import threading
from typing import Iterable


class HighlightDataStore:
    """
    Aggregate attribution result: file -> ascending line indices, and
    file -> count of attributed lines (present only when the count is > 0).

    Each update replaces one file's entry; callers never merge.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._lines: dict[str, list[int]] = {}
        self._counts: dict[str, int] = {}

    def update(self, file: str, lines: Iterable[int]) -> int:
        ordered = sorted(set(lines))
        with self._lock:
            if ordered:
                self._lines[file] = ordered
                self._counts[file] = len(ordered)
            else:
                self._lines.pop(file, None)
                self._counts.pop(file, None)
        return len(ordered)

    def count(self, file: str) -> int:
        with self._lock:
            return self._counts.get(file, 0)

    def is_watched(self, file: str) -> bool:
        with self._lock:
            return file in self._lines

    def clear(self) -> None:
        with self._lock:
            self._lines = {}
            self._counts = {}

    def data(self) -> dict[str, list[int]]:
        with self._lock:
            return {f: list(lines) for f, lines in self._lines.items()}

    def files(self) -> dict[str, int]:
        with self._lock:
            return dict(self._counts)

    def __len__(self) -> int:
        with self._lock:
            return len(self._lines)
