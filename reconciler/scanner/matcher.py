"""
Legacy Matching
===============
Finds the legacy records that correspond to a freshly scanned book.

Matching is a plain string suffix test of a locator key against the stored
absolute path, which tolerates storage roots that moved between versions.
The first match in input order wins; ambiguous suffixes are not
disambiguated further.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from reconciler.legacy.models import LegacyBookMetaData, LegacyBookSettings
from reconciler.scanner.locator import file_path, suffix_matches
from reconciler.storage.models import Chapter, ChapterId


@dataclass(frozen=True)
class MigratedPlaybackPosition:
    """Chapter and offset recovered from legacy settings."""
    chapter_id: ChapterId
    playback_position: int


def find_legacy_metadata(
    locator: str,
    index: Iterable[LegacyBookMetaData],
) -> Optional[LegacyBookMetaData]:
    """
    Find the legacy book whose root ends with the key of ``locator``.

    Args:
        locator: Book root locator
        index: All legacy book metadata

    Returns:
        First matching record, None if the locator has no key or nothing
        matches
    """
    key = file_path(locator)
    if key is None:
        return None
    return next((metadata for metadata in index if metadata.root.endswith(key)), None)


def find_migrated_playback_position(
    settings: LegacyBookSettings,
    chapters: Sequence[Chapter],
) -> Optional[MigratedPlaybackPosition]:
    """
    Map the legacy current file onto one of the scanned chapters.

    Returns:
        Position in the first chapter whose key is a suffix of
        ``settings.current_file``, or None
    """
    current = next(
        (chapter for chapter in chapters if suffix_matches(settings.current_file, chapter.id.value)),
        None,
    )
    if current is None:
        return None
    return MigratedPlaybackPosition(current.id, settings.position_in_chapter)
