"""
File extension constants, shared console/logger, and tool detection.
"""

import logging
import os
import shutil
from typing import Optional

from rich.console import Console

PROGRAM = "mediasort"

# Only these are picked up from the input directory (compared lowercased)
MEDIA_EXTENSIONS = (".jpg", ".jpeg", ".png", ".mp4")

# Undated files are parked below the *input* directory
UNSORTED_DIR_NAME = "unsorted"

DEFAULT_MAX_FILES = 500
HASH_LENGTH = 8
HASH_CHUNK_SIZE = 1024 * 1024

QUOTA_SCOPES = ("total", "valid")

_console: Optional[Console] = None


def get_console() -> Console:
    """Shared rich console used for status output and log rendering."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def get_logger(name: str = PROGRAM) -> logging.Logger:
    return logging.getLogger(name)


def check_tool_availability(cmd: str) -> bool:
    """Check whether an external command is on the PATH."""
    return shutil.which(cmd) is not None


def default_worker_count() -> int:
    """Available hardware parallelism minus one, reserved for orchestration."""
    return max(1, (os.cpu_count() or 1) - 1)
