"""
Application Controller
======================
Central controller wiring the reconciler's collaborators.

Keeps construction of stores, analyzer and parser in one place so the CLI
(and tests) only deal with book locators.
"""

from typing import Optional, Sequence

from reconciler.app.config import AppConfig
from reconciler.legacy.dao import ILegacyBookDao, SQLiteLegacyBookDao
from reconciler.scanner.analyzer import FFprobeMediaAnalyzer, MediaAnalyzer
from reconciler.scanner.locator import DocumentFile
from reconciler.scanner.parser import BookParser
from reconciler.storage.models import BookContent, BookId, Bookmark, Chapter, ChapterId
from reconciler.storage.repository import IBookContentRepository, IBookmarkRepository
from reconciler.storage.sqlite_repo import SQLiteBookContentRepository, SQLiteBookmarkRepository


class AppController:
    """
    Central controller for the reconciler.

    Responsibilities:
        - Building the SQLite stores and the legacy DAO from configuration
        - Reconciling books
        - Library and bookmark queries

    Example:
        controller = AppController(AppConfig(data_dir=Path("data")))
        content = await controller.reconcile(book_uri, chapter_uris, name="Book1")
    """

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        content_repo: Optional[IBookContentRepository] = None,
        bookmark_repo: Optional[IBookmarkRepository] = None,
        legacy_dao: Optional[ILegacyBookDao] = None,
        analyzer: Optional[MediaAnalyzer] = None,
    ):
        """
        Initialize the application controller.

        Args:
            config: Application configuration
            content_repo: Content store (SQLite at config.db_path if None)
            bookmark_repo: Bookmark store (SQLite at config.db_path if None)
            legacy_dao: Legacy store (SQLite at config.legacy_db_path if None)
            analyzer: Media analyzer (ffprobe if None)
        """
        self.config = config or AppConfig()
        self.content_repo = content_repo or SQLiteBookContentRepository(self.config.db_path)
        self.bookmark_repo = bookmark_repo or SQLiteBookmarkRepository(self.config.db_path)
        self.legacy_dao = legacy_dao or SQLiteLegacyBookDao(self.config.legacy_db_path)
        self.analyzer = analyzer or FFprobeMediaAnalyzer(
            binary=self.config.ffprobe_binary,
            timeout=self.config.analyzer_timeout,
        )
        self.parser = BookParser(
            content_repo=self.content_repo,
            media_analyzer=self.analyzer,
            legacy_dao=self.legacy_dao,
            bookmark_repo=self.bookmark_repo,
            covers_dir=self.config.covers_dir,
        )

    async def reconcile(
        self,
        book_uri: str,
        chapter_uris: Sequence[str],
        name: Optional[str] = None,
        is_file: bool = False,
    ) -> BookContent:
        """
        Reconcile a book given by locators.

        Args:
            book_uri: Locator of the book root
            chapter_uris: Chapter locators in play order
            name: Display name of the book root, if known
            is_file: Whether the root is a single file

        Returns:
            The stored book record
        """
        chapters = [Chapter(id=ChapterId(uri)) for uri in chapter_uris]
        return await self.parser.parse_and_store(
            chapters,
            DocumentFile(uri=book_uri, name=name, is_file=is_file),
        )

    async def get_book(self, book_uri: str) -> Optional[BookContent]:
        """Get the stored record of a book, None if it was never reconciled."""
        return await self.content_repo.get(BookId(book_uri))

    async def bookmarks(self, book_uri: str) -> list[Bookmark]:
        """Get the bookmarks of a book."""
        return await self.bookmark_repo.bookmarks_for_book(BookId(book_uri))

    async def library(self) -> list[BookContent]:
        """Get all active books."""
        return await self.content_repo.all_active()
