"""
Media Analyzer
==============
Extracts book-level tags from a chapter file.

Analysis is optional input to reconciliation: analyzers return None instead
of raising when a file cannot be probed.
"""

from __future__ import annotations

import asyncio
import functools
import json
import logging
import shutil
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional
from urllib.parse import unquote, urlsplit

from reconciler.errors import AnalyzerNotFoundError
from reconciler.storage.models import ChapterId

logger = logging.getLogger(__name__)

AUTHOR_TAGS = ("artist", "album_artist", "author", "composer")


@dataclass(frozen=True)
class Metadata:
    """Tags read from a media file."""
    duration_ms: int
    author: Optional[str] = None
    book_name: Optional[str] = None
    chapter_name: Optional[str] = None


class MediaAnalyzer(ABC):
    """Reads metadata from a chapter's media."""

    @abstractmethod
    async def analyze(self, chapter_id: ChapterId) -> Optional[Metadata]:
        """
        Analyze a chapter.

        Returns:
            Metadata, or None if the media could not be analyzed
        """
        pass


def _probe_target(locator: str) -> str:
    """ffprobe input for a locator; local file URIs become paths."""
    parts = urlsplit(locator)
    if parts.scheme == "file":
        return unquote(parts.path)
    return locator


def parse_ffprobe_output(output: str) -> Metadata:
    """
    Build Metadata from ``ffprobe -print_format json -show_format`` output.

    Tag names are matched case-insensitively; empty tags count as missing.
    """
    data = json.loads(output)
    fmt = data.get("format", {})
    tags = {
        key.lower(): value.strip()
        for key, value in fmt.get("tags", {}).items()
        if isinstance(value, str) and value.strip()
    }
    author = next((tags[tag] for tag in AUTHOR_TAGS if tag in tags), None)
    duration = float(fmt.get("duration", 0) or 0)
    return Metadata(
        duration_ms=int(duration * 1000),
        author=author,
        book_name=tags.get("album"),
        chapter_name=tags.get("title"),
    )


class FFprobeMediaAnalyzer(MediaAnalyzer):
    """
    FFprobe-based analyzer.

    Runs ffprobe on the default executor so the event loop is not blocked.
    """

    def __init__(self, binary: str = "ffprobe", timeout: float = 30.0):
        """
        Initialize the analyzer.

        Args:
            binary: ffprobe executable name or path
            timeout: Seconds to wait for a single probe
        """
        self.binary = binary
        self.timeout = timeout

    def _check_ffprobe(self) -> None:
        """Raise AnalyzerNotFoundError if the ffprobe binary is not available."""
        if shutil.which(self.binary) is None:
            raise AnalyzerNotFoundError(self.binary)

    def _probe(self, target: str) -> Optional[Metadata]:
        try:
            self._check_ffprobe()
        except AnalyzerNotFoundError as e:
            logger.warning(f"Skipping analysis of {target}: {e}")
            return None

        cmd = [
            self.binary,
            "-v", "quiet",
            "-print_format", "json",
            "-show_format",
            target
        ]

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.warning(f"FFprobe could not run on {target}: {e}")
            return None

        if result.returncode != 0:
            logger.warning(f"FFprobe failed on {target}: {result.stderr.strip()}")
            return None

        try:
            return parse_ffprobe_output(result.stdout)
        except (ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Unreadable FFprobe output for {target}: {e}")
            return None

    async def analyze(self, chapter_id: ChapterId) -> Optional[Metadata]:
        """Probe a chapter; None if ffprobe cannot read it."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None,
            functools.partial(self._probe, _probe_target(chapter_id.value))
        )
