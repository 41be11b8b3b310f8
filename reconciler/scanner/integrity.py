"""
Book Integrity
==============
A ``Book`` pairs a content record with its chapters and refuses to exist in
an inconsistent state. Building one is the integrity check every new record
passes before it is persisted.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from reconciler.errors import IntegrityError
from reconciler.storage.models import BookContent, Chapter


@dataclass(frozen=True)
class Book:
    """Content record together with its chapters."""
    content: BookContent
    chapters: list[Chapter]

    def __post_init__(self):
        content = self.content
        if not self.chapters:
            raise IntegrityError(f"Book {content.id} has no chapters")
        if not content.chapters:
            raise IntegrityError(f"Book {content.id} lists no chapters")

        chapter_ids = [chapter.id for chapter in self.chapters]
        if chapter_ids != content.chapters:
            raise IntegrityError(
                f"Chapters of book {content.id} do not match its content",
                details=f"{len(chapter_ids)} scanned, {len(content.chapters)} recorded",
            )
        if content.current_chapter not in content.chapters:
            raise IntegrityError(
                f"Current chapter of book {content.id} is not one of its chapters",
                details=content.current_chapter.value,
            )
        if content.position_in_chapter < 0:
            raise IntegrityError(
                f"Negative position in chapter for book {content.id}",
                details=str(content.position_in_chapter),
            )
        if content.playback_speed <= 0:
            raise IntegrityError(
                f"Non-positive playback speed for book {content.id}",
                details=str(content.playback_speed),
            )

    @property
    def current_chapter(self) -> Chapter:
        return next(c for c in self.chapters if c.id == self.content.current_chapter)

    @property
    def duration_ms(self) -> int:
        return sum(chapter.duration_ms for chapter in self.chapters)


def validate_integrity(content: BookContent, chapters: Sequence[Chapter]) -> Book:
    """
    Check that ``content`` is consistent with ``chapters``.

    Raises:
        IntegrityError: if any structural invariant is violated
    """
    return Book(content, list(chapters))
