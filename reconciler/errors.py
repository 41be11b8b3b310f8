"""
Error Handling Module
=====================
Custom exceptions for the audiobook reconciler.
Provides consistent error codes and messages for the failure modes that
must reach the caller. Expected misses (no legacy match, no analysis
result, unresolvable bookmark) are not errors and never raise.
"""

from enum import Enum
from dataclasses import dataclass
from typing import Optional
from pathlib import Path


class ErrorCode(Enum):
    """Error codes for the audiobook reconciler."""
    # Integrity errors (E001-E099)
    E001 = "Book integrity violated"

    # Legacy store errors (E100-E199)
    E100 = "Legacy store read failed"

    # Content store errors (E200-E299)
    E200 = "Content store operation failed"

    # Analyzer errors (E300-E399)
    E300 = "FFprobe not found"

    # Configuration errors (E400-E499)
    E400 = "Invalid configuration"


@dataclass
class ReconcilerError(Exception):
    """Base exception for the reconciler with error codes."""
    code: ErrorCode
    message: str
    details: Optional[str] = None
    file_path: Optional[Path] = None

    def __str__(self) -> str:
        base = f"[{self.code.name}] {self.code.value}: {self.message}"
        if self.details:
            base += f" ({self.details})"
        if self.file_path:
            base += f" - File: {self.file_path}"
        return base


class IntegrityError(ReconcilerError):
    """A book record is structurally inconsistent with its chapters."""
    def __init__(self, message: str, details: str = None):
        super().__init__(
            code=ErrorCode.E001,
            message=message,
            details=details
        )


class LegacyStoreError(ReconcilerError):
    """Reading the legacy database failed."""
    def __init__(self, message: str, details: str = None, file_path: Path = None):
        super().__init__(
            code=ErrorCode.E100,
            message=message,
            details=details,
            file_path=file_path
        )


class ContentStoreError(ReconcilerError):
    """Reading or writing the current content database failed."""
    def __init__(self, message: str, details: str = None, file_path: Path = None):
        super().__init__(
            code=ErrorCode.E200,
            message=message,
            details=details,
            file_path=file_path
        )


class AnalyzerNotFoundError(ReconcilerError):
    """Error when ffprobe is not installed."""

    INSTALL_INSTRUCTIONS = """FFprobe is required for media analysis but was not found.

Installation instructions:
  macOS:    brew install ffmpeg
  Ubuntu:   sudo apt update && sudo apt install ffmpeg
  Windows:  winget install Gyan.FFmpeg

Alternatively set 'ffprobe_binary' in the configuration."""

    def __init__(self, binary: str = "ffprobe"):
        super().__init__(
            code=ErrorCode.E300,
            message=f"'{binary}' is required but not found",
            details=self.INSTALL_INSTRUCTIONS
        )


class ConfigError(ReconcilerError):
    """Configuration file or value is invalid."""
    def __init__(self, message: str, details: str = None, file_path: Path = None):
        super().__init__(
            code=ErrorCode.E400,
            message=message,
            details=details,
            file_path=file_path
        )
