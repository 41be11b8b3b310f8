"""
Legacy Models
=============
Read-only records of the previous database schema. Files are absolute
paths as they were stored by older app versions.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class LegacyBookMetaData:
    """One per legacy book."""
    id: str
    root: str
    name: str
    added_at_millis: int


@dataclass(frozen=True)
class LegacyBookSettings:
    """Playback state of a legacy book, 1:1 with its metadata by id."""
    id: str
    current_file: str
    position_in_chapter: int
    playback_speed: float
    skip_silence: bool
    last_played_at_millis: int


@dataclass(frozen=True)
class LegacyChapter:
    """A media file belonging to a legacy book."""
    book_id: str
    file: str


@dataclass(frozen=True)
class LegacyBookmark:
    """A bookmark keyed by the absolute path of its media file."""
    media_file: str
    time: int
    title: Optional[str]
    added_at: datetime
    set_by_sleep_timer: bool
