"""
Planning phase: decide where every media file in the input directory goes.

Nothing on disk changes here. The result is a complete list of
``PlannedMove`` records that the execution phase applies afterwards.
"""

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional

from .config import SortSettings
from .constants import MEDIA_EXTENSIONS, get_logger
from .errors import EnumerationError, HashError, MetadataError
from .hashing import calc_hash
from .metadata import MetadataRecord, read_metadata
from .notices import LoggingNoticeSink, NoticeKind, NoticeSink
from .progress import ProgressContext
from .stats import AtomicCounter, StatsManager
from .timestamps import resolve_creation_date
from .workers import ScopeCancelled, TaskScope


MetadataReader = Callable[[Path], MetadataRecord]


@dataclass(frozen=True)
class PlannedMove:
    """Where one source file should end up."""
    source: Path
    destination: Path
    has_valid_date: bool


def is_media_file(file_path: Path) -> bool:
    return file_path.name.lower().endswith(MEDIA_EXTENSIONS)


def get_target_path(source: Path, resolved: datetime, output_dir: Path,
                    digest: Optional[str] = None, notices: Optional[NoticeSink] = None) -> Path:
    """Build ``output/YYYY/MM/YYYY-MM-DDTHHmmSS_<hash>.<ext>`` for a dated file.

    The content hash is computed from the source file unless ``digest`` is
    given. Date fields are taken from the resolved date's own wall clock.
    """
    if digest is None:
        digest = calc_hash(source, notices)

    extension = source.name.rsplit('.', 1)[-1].lower()
    timestamp = (f"{resolved.year:04d}-{resolved.month:02d}-{resolved.day:02d}"
                 f"T{resolved.hour:02d}{resolved.minute:02d}{resolved.second:02d}")

    return output_dir / f"{resolved.year:04d}" / f"{resolved.month:02d}" / f"{timestamp}_{digest}.{extension}"


class PlanningPipeline:
    """Enumerate candidates and plan one move per file, concurrently."""

    def __init__(self, settings: SortSettings, notices: Optional[NoticeSink] = None,
                 metadata_reader: MetadataReader = read_metadata,
                 stats_manager: Optional[StatsManager] = None,
                 progress_ctx: Optional[ProgressContext] = None):
        self.settings = settings
        self.notices = notices or LoggingNoticeSink()
        self.metadata_reader = metadata_reader
        self.stats_manager = stats_manager or StatsManager()
        self.progress_ctx = progress_ctx or ProgressContext()
        self.default_tz = settings.default_tz
        self.logger = get_logger()

        # Shared between planning tasks; only used to stop enumerating
        self.valid_files = AtomicCounter()
        self.processed_files = AtomicCounter()

    def list_candidates(self) -> List[Path]:
        """Media files directly inside the input directory, sorted by name."""
        input_dir = self.settings.input_dir
        try:
            entries = sorted(input_dir.iterdir())
        except OSError as e:
            raise EnumerationError(input_dir, str(e)) from e

        return [p for p in entries if p.is_file() and is_media_file(p)]

    def _quota_reached(self, submitted: int) -> bool:
        max_files = self.settings.max_files
        if self.settings.quota_scope == "total" and submitted >= max_files:
            return True
        # Racy on purpose: tasks still running may push this past the limit
        return self.valid_files.get() >= max_files

    def collect_moves(self) -> List[PlannedMove]:
        """Plan moves for the input directory.

        Raises EnumerationError before any work starts if the directory
        cannot be listed. Returns after every submitted file is planned.
        """
        candidates = self.list_candidates()
        self.logger.info(f"Found {len(candidates)} media files in {self.settings.input_dir}")
        if self.settings.quota_scope == "total":
            self.progress_ctx.set_total(min(len(candidates), self.settings.max_files))
        else:
            self.progress_ctx.set_total(len(candidates))

        with TaskScope(max_workers=self.settings.worker_count) as scope:
            submitted = 0
            for file_path in candidates:
                if self._quota_reached(submitted) or scope.cancelled:
                    break
                try:
                    scope.submit(self.plan_file, file_path)
                except ScopeCancelled:
                    break
                submitted += 1

            outcomes = scope.join()

        if submitted < len(candidates):
            self.logger.info(f"Stopped after {submitted} of {len(candidates)} files "
                             f"(limit {self.settings.max_files})")

        return [outcome.value for outcome in outcomes]

    def plan_file(self, file_path: Path) -> PlannedMove:
        """Plan a single file; every per-file failure routes it to unsorted."""
        try:
            move = self._plan_file(file_path)
        finally:
            self.processed_files.increment()
            self.progress_ctx.advance()

        self.stats_manager.record_plan(move.has_valid_date)
        return move

    def _plan_file(self, file_path: Path) -> PlannedMove:
        try:
            record = self.metadata_reader(file_path)
        except (MetadataError, OSError) as e:
            self.notices.notify(NoticeKind.METADATA_FAILED,
                                f"Error reading metadata for {file_path}: {e}", file_path)
            return self.to_unsorted(file_path)

        resolved = resolve_creation_date(record, self.default_tz)
        if resolved is None:
            self.notices.notify(NoticeKind.NO_DATE,
                                f"No creation date information for {file_path}", file_path)
            return self.to_unsorted(file_path)

        try:
            target = get_target_path(file_path, resolved, self.settings.output_dir,
                                     notices=self.notices)
        except HashError as e:
            self.notices.notify(NoticeKind.ERROR, f"{e}: {e.__cause__}", file_path)
            return self.to_unsorted(file_path)

        self.valid_files.increment()
        return PlannedMove(file_path, target, True)

    def to_unsorted(self, file_path: Path) -> PlannedMove:
        return PlannedMove(file_path, self.settings.unsorted_dir / file_path.name, False)
