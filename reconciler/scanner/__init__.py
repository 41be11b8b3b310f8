"""
Scanner Module
==============
Reconciliation of scanned books with the legacy database.

Key Components:
    - BookParser: Creates the canonical record of a book exactly once
    - BookmarkMigrator: Re-keys legacy bookmarks onto current chapters
    - find_legacy_metadata / find_migrated_playback_position: Legacy matching
    - validate_integrity: Structural check of a record against its chapters
"""

from .analyzer import FFprobeMediaAnalyzer, MediaAnalyzer, Metadata
from .bookmarks import BookmarkMigrator
from .integrity import Book, validate_integrity
from .locator import DocumentFile, file_path
from .matcher import (
    MigratedPlaybackPosition,
    find_legacy_metadata,
    find_migrated_playback_position,
)
from .parser import BookParser

__all__ = [
    "BookParser",
    "BookmarkMigrator",
    "Book",
    "validate_integrity",
    "DocumentFile",
    "file_path",
    "MigratedPlaybackPosition",
    "find_legacy_metadata",
    "find_migrated_playback_position",
    "MediaAnalyzer",
    "FFprobeMediaAnalyzer",
    "Metadata",
]
