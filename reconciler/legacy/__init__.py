"""
Legacy Module
=============
Read-only access to the database of older app versions.
"""

from .dao import ILegacyBookDao, SQLiteLegacyBookDao, LEGACY_SCHEMA
from .models import (
    LegacyBookMetaData,
    LegacyBookSettings,
    LegacyBookmark,
    LegacyChapter,
)

__all__ = [
    "ILegacyBookDao",
    "SQLiteLegacyBookDao",
    "LEGACY_SCHEMA",
    "LegacyBookMetaData",
    "LegacyBookSettings",
    "LegacyBookmark",
    "LegacyChapter",
]
