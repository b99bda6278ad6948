# Licensed under the Apache License, Version 2.0
from __future__ import annotations

from dataclasses import dataclass, field

SENTINEL_HASH = "0" * 40
UNCOMMITTED_MESSAGE = "Uncommitted changes"
# Sorts after any real commit date.
SENTINEL_DATE = "9999-12-31T00:00:00"


def make_label(sequence: int, message: str) -> str:
    """Display label: the sequence number is always prepended so labels stay unique."""
    return f"{sequence}) {message}"


@dataclass(frozen=True)
class HistoryEntry:
    """One raw record from the history query, newest-first."""

    hash: str
    parents: tuple[str, ...]
    date: str
    message: str


@dataclass(frozen=True)
class Commit:
    """
    An indexed commit as shown to the user.

    `sequence` is the display number also embedded in `label`; it is kept as a
    separate field so nothing has to parse labels back.
    """

    label: str
    hash: str
    date: str
    sequence: int
    message: str = ""
    parents: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_merge(self) -> bool:
        return len(self.parents) > 1

    @property
    def is_uncommitted(self) -> bool:
        return self.hash == SENTINEL_HASH

    @classmethod
    def uncommitted(cls, sequence: int = 1) -> Commit:
        return cls(
            label=make_label(sequence, UNCOMMITTED_MESSAGE),
            hash=SENTINEL_HASH,
            date=SENTINEL_DATE,
            sequence=sequence,
            message=UNCOMMITTED_MESSAGE,
        )
