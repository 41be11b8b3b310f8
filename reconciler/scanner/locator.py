"""
Locators
========
Helpers around opaque content locators (URIs).

Current records address media by content URI, the legacy store by absolute
file path. ``file_path`` extracts the comparable tail of a URI: for document
URIs such as ``content://.../document/primary%3AAudiobooks%2FBook1%2Fch1.mp3``
the last path segment decodes to ``primary:Audiobooks/Book1/ch1.mp3`` and the
key is ``Audiobooks/Book1/ch1.mp3``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from urllib.parse import unquote, urlsplit

logger = logging.getLogger(__name__)

# Removed in order from locators without a display name.
STORAGE_ROOT_PREFIXES = (
    "/storage/emulated/0/",
    "/storage/emulated/",
    "/storage/",
)


def path_segments(locator: str) -> list[str]:
    """Decoded, non-empty path segments of a locator."""
    path = urlsplit(locator).path
    return [unquote(segment) for segment in path.split("/") if segment]


def file_path(locator: str) -> Optional[str]:
    """
    Extract the legacy-comparable key of a locator.

    Args:
        locator: Content URI

    Returns:
        Text after the first ':' of the last path segment, or None when
        there is no such text
    """
    segments = path_segments(locator)
    if not segments:
        return None
    _, colon, key = segments[-1].partition(":")
    if not colon or not key:
        return None
    return key


def suffix_matches(path: str, locator: str) -> bool:
    """Whether the key of ``locator`` is a string suffix of ``path``."""
    key = file_path(locator)
    return key is not None and path.endswith(key)


@dataclass(frozen=True)
class DocumentFile:
    """
    A book root as handed over by the scanner.

    Attributes:
        uri: Locator of the file or directory
        name: Display name, if the provider exposes one
        is_file: True for single-file books, False for folders
    """
    uri: str
    name: Optional[str] = None
    is_file: bool = False

    @classmethod
    def from_path(cls, path: Path | str) -> "DocumentFile":
        """Describe a local file or directory."""
        path = Path(path).absolute()
        return cls(uri=path.as_uri(), name=path.name or None, is_file=path.is_file())

    def book_name(self) -> str:
        """
        Name to use when neither legacy data nor tags provide one.

        Files lose their extension, folders keep their name. Without a
        display name the locator text is used with storage roots removed.
        """
        if self.name is None:
            fallback = self.uri
            for prefix in STORAGE_ROOT_PREFIXES:
                fallback = fallback.removeprefix(prefix)
            logger.error(f"Could not parse fileName from {self}. Fallback to {fallback}")
            return fallback

        if self.is_file:
            stem, dot, _ = self.name.rpartition(".")
            return stem if dot else self.name
        return self.name
