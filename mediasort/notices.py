"""
Discrete events emitted while planning and executing moves.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from .constants import get_logger


class NoticeKind(Enum):
    DIRECTORY_CREATED = "directory-created"
    FILE_MOVED = "file-moved"
    WOULD_MOVE = "would-move"
    TARGET_EXISTS = "target-exists"
    HASH_FALLBACK = "hash-fallback"
    METADATA_FAILED = "metadata-failed"
    NO_DATE = "no-date"
    ERROR = "error"

    @property
    def is_error(self) -> bool:
        return self is NoticeKind.ERROR


@dataclass(frozen=True)
class Notice:
    kind: NoticeKind
    message: str
    path: Optional[Path] = None


class NoticeSink:
    """Receives notices; subclasses decide how they are presented."""

    def emit(self, notice: Notice) -> None:
        raise NotImplementedError

    def notify(self, kind: NoticeKind, message: str, path: Optional[Path] = None) -> None:
        self.emit(Notice(kind, message, path))


# Recovered per-file problems are warnings, everything else is a status event
_WARNING_KINDS = (NoticeKind.HASH_FALLBACK, NoticeKind.METADATA_FAILED, NoticeKind.NO_DATE)


class LoggingNoticeSink(NoticeSink):
    """Route notices to the mediasort logger.

    Errors go out at ERROR, recovered failures at WARNING, and status events
    at INFO, so the console handler only shows the latter in verbose mode.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or get_logger()

    def emit(self, notice: Notice) -> None:
        if notice.kind.is_error:
            level = logging.ERROR
        elif notice.kind in _WARNING_KINDS:
            level = logging.WARNING
        else:
            level = logging.INFO
        self.logger.log(level, notice.message)
