"""
mediasort - Sort photos and videos into a YEAR/MONTH archive.

Reads the embedded creation date of every media file in a flat input
directory, names each file after that date plus a short content hash, and
moves it to ``output/YEAR/MONTH/``. Undated files go to ``input/unsorted/``.
"""

__version__ = "1.0.0"


# Public API
from .cli import main
from .config import Config, SortSettings
from .core import MediaSorter
from .executor import ExecutionPipeline, MoveOutcome, MoveResult
from .hashing import calc_hash
from .metadata import DirectoryKind, MetadataRecord, read_metadata
from .notices import LoggingNoticeSink, Notice, NoticeKind, NoticeSink
from .planner import PlannedMove, PlanningPipeline, get_target_path
from .timestamps import resolve_creation_date

__all__ = [
    "main", "Config", "SortSettings", "MediaSorter", "ExecutionPipeline", "MoveOutcome",
    "MoveResult", "calc_hash", "DirectoryKind", "MetadataRecord", "read_metadata",
    "LoggingNoticeSink", "Notice", "NoticeKind", "NoticeSink", "PlannedMove",
    "PlanningPipeline", "get_target_path", "resolve_creation_date",
]
