"""Append-only log of notes captured while a session runs."""

from __future__ import annotations

from datetime import datetime
from typing import Iterator

from bills.models import Tag


class TagLog:
    """Ordered Tags for one session. There is no way to remove a tag."""

    def __init__(self) -> None:
        self._tags: list[Tag] = []

    def append(self, note: str, at: datetime) -> Tag | None:
        """Record `note` at `at`. Blank notes are ignored and return None."""
        note = note.strip()
        if not note:
            return None
        tag = Tag(note=note, timestamp=at)
        self._tags.append(tag)
        return tag

    def list(self) -> list[Tag]:
        return list(self._tags)

    def __len__(self) -> int:
        return len(self._tags)

    def __iter__(self) -> Iterator[Tag]:
        return iter(self._tags)
