"""
Storage Models
==============
Dataclasses for the current-schema records.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional


EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def from_millis(millis: int) -> datetime:
    """Convert epoch milliseconds to an aware UTC datetime."""
    return EPOCH + timedelta(milliseconds=millis)


def to_millis(moment: datetime) -> int:
    """Convert an aware datetime to epoch milliseconds."""
    return (moment - EPOCH) // timedelta(milliseconds=1)


def now() -> datetime:
    """Current time at the millisecond precision the store keeps."""
    return from_millis(to_millis(datetime.now(timezone.utc)))


@dataclass(frozen=True)
class BookId:
    """Stable book identity, derived from the book's root locator."""
    value: str

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class ChapterId:
    """Chapter identity; the chapter's content locator."""
    value: str

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class BookmarkId:
    """Bookmark identity."""
    value: str

    @classmethod
    def random(cls) -> "BookmarkId":
        return cls(str(uuid.uuid4()))

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Chapter:
    """A media file belonging to a book, as discovered by a scan."""
    id: ChapterId
    duration_ms: int = 0
    name: Optional[str] = None
    file_last_modified: datetime = EPOCH


@dataclass(frozen=True)
class BookContent:
    """Canonical book record in the current schema."""
    id: BookId
    name: str
    chapters: list[ChapterId]
    current_chapter: ChapterId
    position_in_chapter: int = 0
    playback_speed: float = 1.0
    skip_silence: bool = False
    is_active: bool = True
    author: Optional[str] = None
    added_at: datetime = field(default_factory=now)
    last_played_at: datetime = EPOCH
    cover: Optional[Path] = None


@dataclass(frozen=True)
class Bookmark:
    """A saved position inside a chapter."""
    id: BookmarkId
    book_id: BookId
    chapter_id: ChapterId
    time: int
    title: Optional[str]
    added_at: datetime
    set_by_sleep_timer: bool = False
