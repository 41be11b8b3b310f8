"""
Storage Module
==============
Handles SQLite persistence of current-schema records.

Repository Pattern:
    - IBookContentRepository: Abstract interface with get-or-create
    - IBookmarkRepository: Abstract append-only bookmark store
    - SQLiteBookContentRepository / SQLiteBookmarkRepository: SQLite backends
"""

from .repository import IBookContentRepository, IBookmarkRepository
from .sqlite_repo import SQLiteBookContentRepository, SQLiteBookmarkRepository
from .models import (
    BookContent,
    BookId,
    Bookmark,
    BookmarkId,
    Chapter,
    ChapterId,
)

__all__ = [
    # Repository Pattern
    "IBookContentRepository",
    "IBookmarkRepository",
    "SQLiteBookContentRepository",
    "SQLiteBookmarkRepository",
    # Models
    "BookContent",
    "BookId",
    "Bookmark",
    "BookmarkId",
    "Chapter",
    "ChapterId",
]
