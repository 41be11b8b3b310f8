"""
Repository Pattern Interface
============================
Abstract base classes for current-schema storage.
Enables swapping storage backends (SQLite, in-memory fakes, etc.)
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Optional

from reconciler.concurrency import SingleFlight
from reconciler.storage.models import BookContent, BookId, Bookmark

logger = logging.getLogger(__name__)


class IBookContentRepository(ABC):
    """
    Repository interface for book content records.

    Implementations provide ``get`` and ``_insert``; ``get_or_put`` is the
    shared get-or-create primitive and guarantees the construction closure
    runs at most once per id, even under concurrent callers.

    Implementations:
        - SQLiteBookContentRepository: Local SQLite storage
    """

    def __init__(self):
        self._flights: SingleFlight[BookId, BookContent] = SingleFlight()

    @abstractmethod
    async def get(self, book_id: BookId) -> Optional[BookContent]:
        """
        Get a book content record by id.

        Returns:
            BookContent if found, None otherwise
        """
        pass

    @abstractmethod
    async def _insert(self, content: BookContent) -> BookContent:
        """
        Insert ``content`` unless a record with its id already exists.

        Returns:
            The record stored under the id after the insert
        """
        pass

    @abstractmethod
    async def all_active(self) -> list[BookContent]:
        """List all active book records."""
        pass

    @abstractmethod
    async def set_active(self, book_id: BookId, active: bool) -> bool:
        """
        Mark a book active or inactive.

        Returns:
            True if updated, False if not found
        """
        pass

    async def get_or_put(
        self,
        book_id: BookId,
        factory: Callable[[], Awaitable[BookContent]],
    ) -> BookContent:
        """
        Return the record for ``book_id``, constructing it if absent.

        Args:
            book_id: Record identity
            factory: Coroutine function building the record; called at most
                once per id while a record is missing

        Returns:
            The stored record
        """
        existing = await self.get(book_id)
        if existing is not None:
            return existing
        return await self._flights.do(book_id, lambda: self._create(book_id, factory))

    async def _create(
        self,
        book_id: BookId,
        factory: Callable[[], Awaitable[BookContent]],
    ) -> BookContent:
        # A previous flight may have finished between our read and joining.
        existing = await self.get(book_id)
        if existing is not None:
            return existing

        content = await factory()
        if content.id != book_id:
            raise ValueError(f"Factory for {book_id} produced a record for {content.id}")
        stored = await self._insert(content)
        logger.info(f"Stored book content {book_id}")
        return stored


class IBookmarkRepository(ABC):
    """Repository interface for bookmarks. Append-only during reconciliation."""

    @abstractmethod
    async def add_bookmark(self, bookmark: Bookmark) -> None:
        """Insert a bookmark."""
        pass

    @abstractmethod
    async def bookmarks_for_book(self, book_id: BookId) -> list[Bookmark]:
        """
        Get all bookmarks of a book.

        Returns:
            Bookmarks ordered by chapter and time
        """
        pass
