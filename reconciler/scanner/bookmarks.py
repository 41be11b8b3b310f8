"""
Bookmark Migration
==================
Re-keys legacy bookmarks from absolute file paths onto current chapter ids.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from reconciler.legacy.dao import ILegacyBookDao
from reconciler.legacy.models import LegacyBookMetaData, LegacyBookmark, LegacyChapter
from reconciler.scanner.locator import suffix_matches
from reconciler.storage.models import BookId, Bookmark, BookmarkId, Chapter
from reconciler.storage.repository import IBookmarkRepository

logger = logging.getLogger(__name__)


class BookmarkMigrator:
    """
    Copies the bookmarks of a matched legacy book into the bookmark store.

    Migration is best effort: a bookmark whose legacy chapter or current
    chapter cannot be found is dropped without affecting the others. Calling
    ``migrate`` twice for the same book inserts the bookmarks twice.
    """

    def __init__(self, legacy_dao: ILegacyBookDao, bookmark_repo: IBookmarkRepository):
        self.legacy_dao = legacy_dao
        self.bookmark_repo = bookmark_repo

    async def migrate(
        self,
        legacy_metadata: LegacyBookMetaData,
        chapters: Sequence[Chapter],
        book_id: BookId,
    ) -> list[Bookmark]:
        """
        Migrate all bookmarks of a legacy book.

        Args:
            legacy_metadata: The matched legacy book
            chapters: Scanned chapters of the current book
            book_id: Id of the book being created

        Returns:
            The inserted bookmarks
        """
        legacy_chapters = [
            chapter for chapter in await self.legacy_dao.chapters()
            if chapter.book_id == legacy_metadata.id
        ]
        legacy_bookmarks = await self.legacy_dao.bookmarks_by_files(
            [chapter.file for chapter in legacy_chapters]
        )

        resolved = [
            self._rekey(legacy_bookmark, legacy_chapters, chapters, book_id)
            for legacy_bookmark in legacy_bookmarks
        ]
        migrated = [bookmark for bookmark in resolved if bookmark is not None]

        for bookmark in migrated:
            await self.bookmark_repo.add_bookmark(bookmark)

        dropped = len(legacy_bookmarks) - len(migrated)
        logger.debug(
            f"Migrated {len(migrated)} bookmarks of legacy book {legacy_metadata.id}"
            f" into {book_id}, dropped {dropped}"
        )
        return migrated

    @staticmethod
    def _rekey(
        legacy_bookmark: LegacyBookmark,
        legacy_chapters: Sequence[LegacyChapter],
        chapters: Sequence[Chapter],
        book_id: BookId,
    ) -> Optional[Bookmark]:
        legacy_chapter = next(
            (c for c in legacy_chapters if c.file == legacy_bookmark.media_file),
            None,
        )
        if legacy_chapter is None:
            return None

        matching_chapter = next(
            (c for c in chapters if suffix_matches(legacy_chapter.file, c.id.value)),
            None,
        )
        if matching_chapter is None:
            return None

        return Bookmark(
            id=BookmarkId.random(),
            book_id=book_id,
            chapter_id=matching_chapter.id,
            time=legacy_bookmark.time,
            title=legacy_bookmark.title,
            added_at=legacy_bookmark.added_at,
            set_by_sleep_timer=legacy_bookmark.set_by_sleep_timer,
        )
