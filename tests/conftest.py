import asyncio
import sqlite3
import sys
from pathlib import Path
from typing import Optional
from urllib.parse import quote

import pytest

# Add project root to path
sys.path.append(str(Path(__file__).parent.parent))

from reconciler.legacy.dao import LEGACY_SCHEMA, SQLiteLegacyBookDao
from reconciler.scanner.analyzer import MediaAnalyzer, Metadata
from reconciler.scanner.parser import BookParser
from reconciler.storage.models import Chapter, ChapterId
from reconciler.storage.sqlite_repo import SQLiteBookContentRepository, SQLiteBookmarkRepository

TREE = "content://com.android.externalstorage.documents/tree/"


def tree_uri(relative: str) -> str:
    """Document tree locator of a folder below the primary volume."""
    return TREE + quote(f"primary:{relative}", safe="")


def document_uri(book_relative: str, relative: str) -> str:
    """Document locator of a file inside a document tree."""
    return (
        tree_uri(book_relative)
        + "/document/"
        + quote(f"primary:{book_relative}/{relative}", safe="")
    )


def make_chapters(book_relative: str, *names: str) -> list[Chapter]:
    return [
        Chapter(id=ChapterId(document_uri(book_relative, name)), duration_ms=60_000, name=name)
        for name in names
    ]


class FakeAnalyzer(MediaAnalyzer):
    """Analyzer returning canned metadata and counting calls."""

    def __init__(self, metadata: Optional[Metadata] = None, delay: float = 0.0):
        self.metadata = metadata
        self.delay = delay
        self.calls = []

    async def analyze(self, chapter_id):
        self.calls.append(chapter_id)
        if self.delay:
            await asyncio.sleep(self.delay)
        return self.metadata


class LegacySeeder:
    """Writes rows into a legacy database for tests."""

    def __init__(self, path: Path):
        self.path = path
        conn = sqlite3.connect(path)
        try:
            conn.executescript(LEGACY_SCHEMA)
        finally:
            conn.close()

    def _insert(self, sql: str, params: tuple) -> None:
        conn = sqlite3.connect(self.path)
        try:
            with conn:
                conn.execute(sql, params)
        finally:
            conn.close()

    def add_book(self, book_id: str, root: str, name: str, added_at_millis: int = 1_500_000_000_000):
        self._insert(
            "INSERT INTO bookMetaData (id, root, name, addedAtMillis) VALUES (?, ?, ?, ?)",
            (book_id, root, name, added_at_millis),
        )

    def add_settings(
        self,
        book_id: str,
        current_file: str,
        position_in_chapter: int = 0,
        playback_speed: float = 1.0,
        skip_silence: bool = False,
        last_played_at_millis: int = 0,
    ):
        self._insert(
            "INSERT INTO bookSettings VALUES (?, ?, ?, ?, ?, ?)",
            (book_id, current_file, position_in_chapter, playback_speed,
             int(skip_silence), last_played_at_millis),
        )

    def add_chapter(self, book_id: str, file: str):
        self._insert("INSERT INTO chapters (bookId, file) VALUES (?, ?)", (book_id, file))

    def add_bookmark(
        self,
        media_file: str,
        time: int,
        title: Optional[str] = None,
        added_at_millis: int = 1_600_000_000_000,
        set_by_sleep_timer: bool = False,
    ):
        self._insert(
            "INSERT INTO bookmark VALUES (?, ?, ?, ?, ?)",
            (media_file, time, title, added_at_millis, int(set_by_sleep_timer)),
        )


@pytest.fixture
def legacy(tmp_path):
    """Empty legacy database with its seeder."""
    return LegacySeeder(tmp_path / "legacy.db")


@pytest.fixture
def legacy_dao(legacy):
    return SQLiteLegacyBookDao(legacy.path)


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "library.db"


@pytest.fixture
def content_repo(db_path):
    return SQLiteBookContentRepository(db_path)


@pytest.fixture
def bookmark_repo(db_path):
    return SQLiteBookmarkRepository(db_path)


@pytest.fixture
def covers_dir(tmp_path):
    path = tmp_path / "covers"
    path.mkdir()
    return path


@pytest.fixture
def analyzer():
    return FakeAnalyzer()


@pytest.fixture
def parser(content_repo, analyzer, legacy_dao, bookmark_repo, covers_dir):
    return BookParser(
        content_repo=content_repo,
        media_analyzer=analyzer,
        legacy_dao=legacy_dao,
        bookmark_repo=bookmark_repo,
        covers_dir=covers_dir,
    )
