"""
Book Parser
===========
Turns a scanned book into its canonical content record.

For a book seen for the first time, the parser looks for the same book in
the legacy database, carries over its playback state, cover and bookmarks,
fills the rest from media tags or defaults, validates the result and stores
it. All of that happens at most once per book id; later and concurrent
calls get the stored record.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Sequence
from urllib.parse import quote

import aiofiles

from reconciler.errors import IntegrityError
from reconciler.legacy.dao import ILegacyBookDao
from reconciler.legacy.models import LegacyBookMetaData, LegacyBookSettings
from reconciler.scanner.analyzer import MediaAnalyzer
from reconciler.scanner.bookmarks import BookmarkMigrator
from reconciler.scanner.integrity import validate_integrity
from reconciler.scanner.locator import DocumentFile, file_path
from reconciler.scanner.matcher import find_legacy_metadata, find_migrated_playback_position
from reconciler.storage.models import (
    EPOCH,
    BookContent,
    BookId,
    Chapter,
    from_millis,
    now,
)
from reconciler.storage.repository import IBookContentRepository, IBookmarkRepository

logger = logging.getLogger(__name__)


def cover_file(covers_dir: Path, book_id: BookId) -> Path:
    """Local cover location of a book."""
    return covers_dir / quote(book_id.value, safe="")


async def _readable(path: Path) -> bool:
    try:
        async with aiofiles.open(path, "rb"):
            return True
    except OSError:
        return False


class BookParser:
    """
    Reconciles scanned chapters with legacy data into a ``BookContent``.

    Example:
        parser = BookParser(content_repo, analyzer, legacy_dao, bookmark_repo, covers_dir)
        content = await parser.parse_and_store(chapters, DocumentFile(uri, "Book1"))
    """

    def __init__(
        self,
        content_repo: IBookContentRepository,
        media_analyzer: MediaAnalyzer,
        legacy_dao: ILegacyBookDao,
        bookmark_repo: IBookmarkRepository,
        covers_dir: Path | str,
    ):
        self.content_repo = content_repo
        self.media_analyzer = media_analyzer
        self.legacy_dao = legacy_dao
        self.bookmark_migrator = BookmarkMigrator(legacy_dao, bookmark_repo)
        self.covers_dir = Path(covers_dir)

    async def parse_and_store(self, chapters: Sequence[Chapter], file: DocumentFile) -> BookContent:
        """
        Get the content record of a book, creating it on first sight.

        Args:
            chapters: Scanned chapters in play order, non-empty
            file: Root of the book

        Returns:
            The stored record

        Raises:
            IntegrityError: if the constructed record is inconsistent; nothing
                is stored in that case
        """
        chapters = list(chapters)
        book_id = BookId(file.uri)
        if not chapters:
            raise IntegrityError(f"Book {book_id} has no chapters")

        async def construct() -> BookContent:
            return await self._construct(book_id, chapters, file)

        return await self.content_repo.get_or_put(book_id, construct)

    async def _construct(
        self,
        book_id: BookId,
        chapters: list[Chapter],
        file: DocumentFile,
    ) -> BookContent:
        analyzed = await self.media_analyzer.analyze(chapters[0].id)

        migration_meta_data = await self._find_migration_meta_data(file)
        migration_settings: Optional[LegacyBookSettings] = None
        if migration_meta_data is not None:
            migration_settings = await self.legacy_dao.settings_by_id(migration_meta_data.id)

        migrated_position = None
        if migration_settings is not None:
            migrated_position = find_migrated_playback_position(migration_settings, chapters)

        name = None
        if migration_meta_data is not None:
            name = migration_meta_data.name
        elif analyzed is not None and analyzed.book_name is not None:
            name = analyzed.book_name
        if name is None:
            name = file.book_name()

        cover = None
        if migration_settings is not None:
            candidate = cover_file(self.covers_dir, book_id)
            if await _readable(candidate):
                cover = candidate

        content = BookContent(
            id=book_id,
            is_active=True,
            added_at=(
                from_millis(migration_meta_data.added_at_millis)
                if migration_meta_data is not None else now()
            ),
            author=analyzed.author if analyzed is not None else None,
            last_played_at=(
                from_millis(migration_settings.last_played_at_millis)
                if migration_settings is not None else EPOCH
            ),
            name=name,
            playback_speed=(
                migration_settings.playback_speed
                if migration_settings is not None else 1.0
            ),
            skip_silence=(
                migration_settings.skip_silence
                if migration_settings is not None else False
            ),
            chapters=[chapter.id for chapter in chapters],
            position_in_chapter=(
                migrated_position.playback_position
                if migrated_position is not None else 0
            ),
            current_chapter=(
                migrated_position.chapter_id
                if migrated_position is not None else chapters[0].id
            ),
            cover=cover,
        )
        book = validate_integrity(content, chapters)
        logger.debug(
            f"Validated {book_id}: {len(book.chapters)} chapters, {book.duration_ms}ms total, "
            f"resuming in {book.current_chapter.id}"
        )

        # Only validated records migrate bookmarks, before the record is stored.
        if migration_meta_data is not None:
            await self.bookmark_migrator.migrate(migration_meta_data, chapters, book_id)
        return content

    async def _find_migration_meta_data(self, file: DocumentFile) -> Optional[LegacyBookMetaData]:
        if file_path(file.uri) is None:
            return None
        metadata = find_legacy_metadata(file.uri, await self.legacy_dao.book_meta_data())
        if metadata is None:
            logger.debug(f"No legacy book matches {file.uri}")
        else:
            logger.info(f"Migrating legacy book {metadata.id} ({metadata.root}) into {file.uri}")
        return metadata
