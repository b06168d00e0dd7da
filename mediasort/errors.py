"""
Exception types raised by mediasort.
"""

from pathlib import Path
from typing import Optional


class MediaSortError(Exception):
    """Base class for all mediasort errors."""


class EnumerationError(MediaSortError):
    """The input directory could not be listed; the run cannot start."""

    def __init__(self, directory: Path, reason: str):
        super().__init__(f"Could not list files in {directory}: {reason}")
        self.directory = directory


class MetadataError(MediaSortError):
    """Embedded metadata could not be read from a file."""

    def __init__(self, path: Path, reason: str):
        super().__init__(f"Error reading metadata for {path}: {reason}")
        self.path = path


class HashError(MediaSortError):
    """Neither the primary nor the fallback hash could be computed.

    The fallback failure is the ``__cause__``; the primary failure is kept
    on ``primary_error``.
    """

    def __init__(self, path: Path, primary_error: Optional[BaseException] = None):
        super().__init__(f"Could not hash {path}")
        self.path = path
        self.primary_error = primary_error
