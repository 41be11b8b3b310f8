"""
Legacy Book DAO
===============
Read access to the frozen legacy database.

The reconciler only ever reads from it; the SQLite implementation opens the
file in read-only mode and treats a missing file as an empty legacy store,
which is the normal state of a fresh install.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import sqlite3
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Optional, Sequence, TypeVar

from reconciler.errors import LegacyStoreError
from reconciler.legacy.models import (
    LegacyBookMetaData,
    LegacyBookSettings,
    LegacyBookmark,
    LegacyChapter,
)
from reconciler.storage.models import from_millis

logger = logging.getLogger(__name__)

T = TypeVar('T')

# SQLite refuses statements with more than 999 bound parameters on older builds.
MAX_BIND_VARIABLES = 999

# Table layout of the legacy database as far as it is read here.
LEGACY_SCHEMA = """
    CREATE TABLE IF NOT EXISTS bookMetaData (
        id TEXT PRIMARY KEY NOT NULL,
        root TEXT NOT NULL,
        name TEXT NOT NULL,
        addedAtMillis INTEGER NOT NULL
    );

    CREATE TABLE IF NOT EXISTS bookSettings (
        id TEXT PRIMARY KEY NOT NULL,
        currentFile TEXT NOT NULL,
        positionInChapter INTEGER NOT NULL,
        playbackSpeed REAL NOT NULL,
        skipSilence INTEGER NOT NULL,
        lastPlayedAtMillis INTEGER NOT NULL
    );

    CREATE TABLE IF NOT EXISTS chapters (
        bookId TEXT NOT NULL,
        file TEXT NOT NULL
    );

    CREATE TABLE IF NOT EXISTS bookmark (
        mediaFile TEXT NOT NULL,
        time INTEGER NOT NULL,
        title TEXT,
        addedAt INTEGER NOT NULL,
        setBySleepTimer INTEGER NOT NULL DEFAULT 0
    );
"""


class ILegacyBookDao(ABC):
    """
    Read contract for the legacy datastore.

    Implementations:
        - SQLiteLegacyBookDao: legacy SQLite database file
    """

    @abstractmethod
    async def book_meta_data(self) -> list[LegacyBookMetaData]:
        """List every legacy book."""
        pass

    @abstractmethod
    async def settings_by_id(self, book_id: str) -> Optional[LegacyBookSettings]:
        """Get the settings of a legacy book, None if it has none."""
        pass

    @abstractmethod
    async def chapters(self) -> list[LegacyChapter]:
        """List every legacy chapter of every book."""
        pass

    @abstractmethod
    async def bookmarks_by_files(self, files: Sequence[str]) -> list[LegacyBookmark]:
        """
        Batch lookup of bookmarks.

        Args:
            files: Absolute media file paths

        Returns:
            All bookmarks whose media file is one of ``files``
        """
        pass


class SQLiteLegacyBookDao(ILegacyBookDao):
    """Read-only SQLite implementation of the legacy DAO."""

    def __init__(self, db_path: Path | str):
        """
        Args:
            db_path: Path to the legacy SQLite database file
        """
        self.db_path = Path(db_path)

    @property
    def available(self) -> bool:
        """Whether a legacy database exists at all."""
        return self.db_path.is_file()

    @contextmanager
    def _connection(self):
        """Context manager for read-only database connections."""
        try:
            conn = sqlite3.connect(f"{self.db_path.resolve().as_uri()}?mode=ro", uri=True)
        except sqlite3.Error as e:
            raise LegacyStoreError("Could not open legacy database", str(e), self.db_path) from e
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        except sqlite3.Error as e:
            raise LegacyStoreError("Legacy query failed", str(e), self.db_path) from e
        finally:
            conn.close()

    async def _run(self, func: Callable[..., T], *args) -> T:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, functools.partial(func, *args))

    def _meta_data_sync(self) -> list[LegacyBookMetaData]:
        if not self.available:
            return []
        with self._connection() as conn:
            rows = conn.execute(
                "SELECT id, root, name, addedAtMillis FROM bookMetaData"
            ).fetchall()
            return [
                LegacyBookMetaData(
                    id=row["id"],
                    root=row["root"],
                    name=row["name"],
                    added_at_millis=row["addedAtMillis"],
                )
                for row in rows
            ]

    def _settings_sync(self, book_id: str) -> Optional[LegacyBookSettings]:
        if not self.available:
            return None
        with self._connection() as conn:
            row = conn.execute(
                "SELECT * FROM bookSettings WHERE id = ?",
                (book_id,)
            ).fetchone()
            if row is None:
                return None
            return LegacyBookSettings(
                id=row["id"],
                current_file=row["currentFile"],
                position_in_chapter=row["positionInChapter"],
                playback_speed=row["playbackSpeed"],
                skip_silence=bool(row["skipSilence"]),
                last_played_at_millis=row["lastPlayedAtMillis"],
            )

    def _chapters_sync(self) -> list[LegacyChapter]:
        if not self.available:
            return []
        with self._connection() as conn:
            rows = conn.execute("SELECT bookId, file FROM chapters").fetchall()
            return [LegacyChapter(book_id=row["bookId"], file=row["file"]) for row in rows]

    def _bookmarks_sync(self, files: Sequence[str]) -> list[LegacyBookmark]:
        if not self.available or not files:
            return []
        bookmarks = []
        with self._connection() as conn:
            for start in range(0, len(files), MAX_BIND_VARIABLES):
                batch = list(files[start:start + MAX_BIND_VARIABLES])
                placeholders = ", ".join("?" for _ in batch)
                rows = conn.execute(
                    f"SELECT * FROM bookmark WHERE mediaFile IN ({placeholders})",
                    batch
                ).fetchall()
                bookmarks.extend(
                    LegacyBookmark(
                        media_file=row["mediaFile"],
                        time=row["time"],
                        title=row["title"],
                        added_at=from_millis(row["addedAt"]),
                        set_by_sleep_timer=bool(row["setBySleepTimer"]),
                    )
                    for row in rows
                )
        logger.debug(f"Loaded {len(bookmarks)} legacy bookmarks for {len(files)} files")
        return bookmarks

    async def book_meta_data(self) -> list[LegacyBookMetaData]:
        return await self._run(self._meta_data_sync)

    async def settings_by_id(self, book_id: str) -> Optional[LegacyBookSettings]:
        return await self._run(self._settings_sync, book_id)

    async def chapters(self) -> list[LegacyChapter]:
        return await self._run(self._chapters_sync)

    async def bookmarks_by_files(self, files: Sequence[str]) -> list[LegacyBookmark]:
        return await self._run(self._bookmarks_sync, files)
