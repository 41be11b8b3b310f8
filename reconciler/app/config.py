"""
Application Configuration
=========================
Configuration management for the reconciler.
"""

import json
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Optional

from reconciler.errors import ConfigError


@dataclass
class AppConfig:
    """
    Application configuration.

    Attributes:
        data_dir: Directory for application data (database, covers)
        db_path: Path to the current SQLite database
        legacy_db_path: Path to the legacy SQLite database
        covers_dir: Directory holding local covers named by book id
        ffprobe_binary: ffprobe executable used for media analysis
        analyzer_timeout: Seconds allowed for a single probe
        log_level: Logging level name
    """

    # Directories
    data_dir: Path = field(default_factory=lambda: Path("data"))
    covers_dir: Optional[Path] = None

    # Databases
    db_path: Optional[Path] = None
    legacy_db_path: Optional[Path] = None

    # Analysis
    ffprobe_binary: str = "ffprobe"
    analyzer_timeout: float = 30.0

    # Logging
    log_level: str = "INFO"

    def __post_init__(self):
        """Ensure directories exist and set defaults."""
        if self.analyzer_timeout <= 0:
            raise ConfigError(
                "analyzer_timeout must be positive",
                details=str(self.analyzer_timeout)
            )

        # Set default paths if not provided
        if self.covers_dir is None:
            self.covers_dir = self.data_dir / "covers"
        if self.db_path is None:
            self.db_path = self.data_dir / "library.db"
        if self.legacy_db_path is None:
            self.legacy_db_path = self.data_dir / "legacy.db"

        # Create directories
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.covers_dir.mkdir(parents=True, exist_ok=True)

    @classmethod
    def from_dict(cls, config_dict: dict) -> "AppConfig":
        """
        Create config from dictionary.

        Args:
            config_dict: Configuration dictionary

        Returns:
            AppConfig instance
        """
        known = {f.name for f in fields(cls)}
        unknown = set(config_dict) - known
        if unknown:
            raise ConfigError("Unknown configuration keys", details=", ".join(sorted(unknown)))

        # Convert path strings to Path objects
        path_fields = {"data_dir", "covers_dir", "db_path", "legacy_db_path"}
        processed = {}

        for key, value in config_dict.items():
            if key in path_fields and value is not None:
                processed[key] = Path(value)
            else:
                processed[key] = value

        return cls(**processed)

    @classmethod
    def from_json(cls, path: Path | str) -> "AppConfig":
        """Load config from a JSON file."""
        path = Path(path)
        try:
            config_dict = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise ConfigError("Could not read configuration", details=str(e), file_path=path) from e
        if not isinstance(config_dict, dict):
            raise ConfigError("Configuration must be a JSON object", file_path=path)
        return cls.from_dict(config_dict)

    def to_dict(self) -> dict:
        """
        Convert config to dictionary.

        Returns:
            Configuration dictionary
        """
        return {
            "data_dir": str(self.data_dir),
            "covers_dir": str(self.covers_dir),
            "db_path": str(self.db_path),
            "legacy_db_path": str(self.legacy_db_path),
            "ffprobe_binary": self.ffprobe_binary,
            "analyzer_timeout": self.analyzer_timeout,
            "log_level": self.log_level,
        }
