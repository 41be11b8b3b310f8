"""
SQLite Repository Implementation
================================
Concrete implementations of the content and bookmark repositories using
SQLite. Every operation opens its own connection and runs on the default
executor so the event loop never blocks on disk I/O.
"""

from __future__ import annotations

import asyncio
import functools
import json
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Optional, TypeVar

from reconciler.errors import ContentStoreError
from reconciler.storage.models import (
    BookContent,
    BookId,
    Bookmark,
    BookmarkId,
    ChapterId,
    from_millis,
    to_millis,
)
from reconciler.storage.repository import IBookContentRepository, IBookmarkRepository

T = TypeVar('T')


SCHEMA = """
    CREATE TABLE IF NOT EXISTS book_content (
        id TEXT PRIMARY KEY NOT NULL,
        is_active INTEGER NOT NULL DEFAULT 1,
        added_at INTEGER NOT NULL,
        author TEXT,
        last_played_at INTEGER NOT NULL,
        name TEXT NOT NULL,
        playback_speed REAL NOT NULL,
        skip_silence INTEGER NOT NULL,
        chapters TEXT NOT NULL,
        position_in_chapter INTEGER NOT NULL,
        current_chapter TEXT NOT NULL,
        cover TEXT
    );

    CREATE TABLE IF NOT EXISTS bookmark (
        id TEXT PRIMARY KEY NOT NULL,
        book_id TEXT NOT NULL,
        chapter_id TEXT NOT NULL,
        time INTEGER NOT NULL,
        title TEXT,
        added_at INTEGER NOT NULL,
        set_by_sleep_timer INTEGER NOT NULL DEFAULT 0
    );

    CREATE INDEX IF NOT EXISTS idx_bookmark_book_id ON bookmark(book_id);
"""


class _SQLiteStore:
    """Connection handling shared by the SQLite repositories."""

    def __init__(self, db_path: Path | str):
        """
        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._connection() as conn:
            conn.executescript(SCHEMA)

    @contextmanager
    def _connection(self):
        """Context manager for database connections."""
        try:
            conn = sqlite3.connect(self.db_path)
        except sqlite3.Error as e:
            raise ContentStoreError("Could not open database", str(e), self.db_path) from e
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise ContentStoreError("Database operation failed", str(e), self.db_path) from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    async def _run(self, func: Callable[..., T], *args) -> T:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, functools.partial(func, *args))


class SQLiteBookContentRepository(_SQLiteStore, IBookContentRepository):
    """SQLite implementation of the book content repository."""

    def __init__(self, db_path: Path | str = "data/library.db"):
        _SQLiteStore.__init__(self, db_path)
        IBookContentRepository.__init__(self)

    def _row_to_content(self, row: sqlite3.Row) -> BookContent:
        """Convert database row to BookContent dataclass."""
        return BookContent(
            id=BookId(row["id"]),
            is_active=bool(row["is_active"]),
            added_at=from_millis(row["added_at"]),
            author=row["author"],
            last_played_at=from_millis(row["last_played_at"]),
            name=row["name"],
            playback_speed=row["playback_speed"],
            skip_silence=bool(row["skip_silence"]),
            chapters=[ChapterId(c) for c in json.loads(row["chapters"])],
            position_in_chapter=row["position_in_chapter"],
            current_chapter=ChapterId(row["current_chapter"]),
            cover=Path(row["cover"]) if row["cover"] else None,
        )

    def _get_sync(self, book_id: BookId) -> Optional[BookContent]:
        with self._connection() as conn:
            row = conn.execute(
                "SELECT * FROM book_content WHERE id = ?",
                (book_id.value,)
            ).fetchone()

            if row:
                return self._row_to_content(row)
            return None

    def _insert_sync(self, content: BookContent) -> BookContent:
        with self._connection() as conn:
            conn.execute(
                """
                INSERT OR IGNORE INTO book_content (
                    id, is_active, added_at, author, last_played_at, name,
                    playback_speed, skip_silence, chapters,
                    position_in_chapter, current_chapter, cover
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    content.id.value,
                    int(content.is_active),
                    to_millis(content.added_at),
                    content.author,
                    to_millis(content.last_played_at),
                    content.name,
                    content.playback_speed,
                    int(content.skip_silence),
                    json.dumps([c.value for c in content.chapters]),
                    content.position_in_chapter,
                    content.current_chapter.value,
                    str(content.cover) if content.cover else None,
                )
            )

            # Fetch whatever won the insert
            row = conn.execute(
                "SELECT * FROM book_content WHERE id = ?",
                (content.id.value,)
            ).fetchone()

            return self._row_to_content(row)

    def _all_active_sync(self) -> list[BookContent]:
        with self._connection() as conn:
            rows = conn.execute(
                "SELECT * FROM book_content WHERE is_active = 1 ORDER BY name"
            ).fetchall()
            return [self._row_to_content(row) for row in rows]

    def _set_active_sync(self, book_id: BookId, active: bool) -> bool:
        with self._connection() as conn:
            cursor = conn.execute(
                "UPDATE book_content SET is_active = ? WHERE id = ?",
                (int(active), book_id.value)
            )
            return cursor.rowcount > 0

    async def get(self, book_id: BookId) -> Optional[BookContent]:
        """Get a book content record by id."""
        return await self._run(self._get_sync, book_id)

    async def _insert(self, content: BookContent) -> BookContent:
        return await self._run(self._insert_sync, content)

    async def all_active(self) -> list[BookContent]:
        """List all active book records, ordered by name."""
        return await self._run(self._all_active_sync)

    async def set_active(self, book_id: BookId, active: bool) -> bool:
        """Mark a book active or inactive."""
        return await self._run(self._set_active_sync, book_id, active)


class SQLiteBookmarkRepository(_SQLiteStore, IBookmarkRepository):
    """SQLite implementation of the bookmark repository."""

    def __init__(self, db_path: Path | str = "data/library.db"):
        super().__init__(db_path)

    def _row_to_bookmark(self, row: sqlite3.Row) -> Bookmark:
        """Convert database row to Bookmark dataclass."""
        return Bookmark(
            id=BookmarkId(row["id"]),
            book_id=BookId(row["book_id"]),
            chapter_id=ChapterId(row["chapter_id"]),
            time=row["time"],
            title=row["title"],
            added_at=from_millis(row["added_at"]),
            set_by_sleep_timer=bool(row["set_by_sleep_timer"]),
        )

    def _add_sync(self, bookmark: Bookmark) -> None:
        with self._connection() as conn:
            conn.execute(
                """
                INSERT INTO bookmark (
                    id, book_id, chapter_id, time, title, added_at, set_by_sleep_timer
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    bookmark.id.value,
                    bookmark.book_id.value,
                    bookmark.chapter_id.value,
                    bookmark.time,
                    bookmark.title,
                    to_millis(bookmark.added_at),
                    int(bookmark.set_by_sleep_timer),
                )
            )

    def _for_book_sync(self, book_id: BookId) -> list[Bookmark]:
        with self._connection() as conn:
            rows = conn.execute(
                "SELECT * FROM bookmark WHERE book_id = ? ORDER BY chapter_id, time",
                (book_id.value,)
            ).fetchall()
            return [self._row_to_bookmark(row) for row in rows]

    async def add_bookmark(self, bookmark: Bookmark) -> None:
        """Insert a bookmark."""
        await self._run(self._add_sync, bookmark)

    async def bookmarks_for_book(self, book_id: BookId) -> list[Bookmark]:
        """Get all bookmarks of a book, ordered by chapter and time."""
        return await self._run(self._for_book_sync, book_id)
