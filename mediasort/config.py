"""
Configuration management for mediasort.
"""

import logging
import zoneinfo
from dataclasses import dataclass
from datetime import tzinfo
from pathlib import Path
from typing import Dict, Optional

import yaml

from .constants import (DEFAULT_MAX_FILES, PROGRAM, QUOTA_SCOPES, UNSORTED_DIR_NAME,
                        default_worker_count)


@dataclass(frozen=True)
class SortSettings:
    """Immutable settings for one sort run."""
    input_dir: Path
    output_dir: Path
    max_files: int = DEFAULT_MAX_FILES
    postscript: Optional[Path] = None
    verbose: bool = False
    dry_run: bool = False
    workers: Optional[int] = None
    timezone: Optional[str] = None
    quota_scope: str = "total"

    def __post_init__(self):
        if self.max_files < 1:
            raise ValueError(f"max_files must be positive, got {self.max_files}")
        if self.workers is not None and self.workers < 1:
            raise ValueError(f"workers must be positive, got {self.workers}")
        if self.quota_scope not in QUOTA_SCOPES:
            raise ValueError(f"quota_scope must be one of {QUOTA_SCOPES}, got {self.quota_scope!r}")
        if self.timezone is not None and self.default_tz is None:
            raise ValueError("timezone must not be empty")

    @property
    def unsorted_dir(self) -> Path:
        return self.input_dir / UNSORTED_DIR_NAME

    @property
    def worker_count(self) -> int:
        return self.workers or default_worker_count()

    @property
    def default_tz(self) -> Optional[tzinfo]:
        """Zone for dates without an offset; None means the system zone."""
        if not self.timezone:
            return None
        try:
            return zoneinfo.ZoneInfo(self.timezone)
        except (zoneinfo.ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {self.timezone}") from e


class Config:
    """Manages configuration file for storing user preferences."""

    def __init__(self, config_path: Optional[Path] = None):
        # Default config location: ~/.<PROGRAM>/config.yml
        if config_path:
            self.config_path = Path(config_path)
        else:
            self.config_path = Path.home() / f".{PROGRAM}" / "config.yml"
        self.program_root = self.config_path.parent
        self.data = self._load_config()

    def _load_config(self) -> Dict:
        """Load configuration from YAML file."""
        if not self.config_path.exists():
            return {}

        try:
            with open(self.config_path, 'r') as f:
                return yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger = logging.getLogger(PROGRAM)
            logger.warning(f"Could not load config: {e}")
            return {}

    def save_config(self) -> None:
        """Save current configuration to file."""
        try:
            self.program_root.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, 'w') as f:
                yaml.safe_dump(self.data, f, default_flow_style=False)
        except OSError as e:
            logger = logging.getLogger(PROGRAM)
            logger.error(f"Could not save config: {e}")

    def get_last_input(self) -> Optional[str]:
        """Get the last used input directory."""
        return self.data.get('last_input')

    def get_last_output(self) -> Optional[str]:
        """Get the last used output directory."""
        return self.data.get('last_output')

    def get_max_files(self) -> int:
        return int(self.data.get('max_files', DEFAULT_MAX_FILES))

    def get_timezone(self) -> Optional[str]:
        return self.data.get('timezone')

    def get_workers(self) -> Optional[int]:
        workers = self.data.get('workers')
        return int(workers) if workers else None

    def update_paths(self, input_dir: str, output_dir: str) -> None:
        """Update and save the last used paths."""
        self.data['last_input'] = input_dir
        self.data['last_output'] = output_dir
        self.save_config()

    def update_timezone(self, timezone: str) -> None:
        self.data['timezone'] = timezone
        self.save_config()
