"""
Execution phase: apply a complete move plan to the filesystem.

Every PlannedMove is handled independently; a failure on one file is
reported and leaves that file where it was, the rest of the batch goes on.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional, Sequence

from .file_operations import FileOperations
from .notices import LoggingNoticeSink, NoticeKind, NoticeSink
from .planner import PlannedMove
from .progress import ProgressContext
from .stats import StatsManager
from .workers import TaskScope


class MoveOutcome(Enum):
    SKIPPED = "skipped"
    MOVED = "moved"
    SOURCE_DELETED = "source-deleted"
    FAILED = "failed"


@dataclass(frozen=True)
class MoveResult:
    move: PlannedMove
    outcome: MoveOutcome


class ExecutionPipeline:
    """Concurrently apply planned moves, idempotently."""

    def __init__(self, dry_run: bool = False, notices: Optional[NoticeSink] = None,
                 workers: Optional[int] = None, stats_manager: Optional[StatsManager] = None,
                 progress_ctx: Optional[ProgressContext] = None,
                 display_root: Optional[Path] = None):
        self.dry_run = dry_run
        self.notices = notices or LoggingNoticeSink()
        self.workers = workers
        self.stats_manager = stats_manager or StatsManager()
        self.progress_ctx = progress_ctx or ProgressContext()
        self.file_ops = FileOperations(dry_run=dry_run, notices=self.notices,
                                       display_root=display_root)

    def perform_moves(self, moves: Sequence[PlannedMove]) -> List[MoveResult]:
        """Apply every move and return one result per move, in input order."""
        self.progress_ctx.set_total(len(moves))
        with TaskScope(max_workers=self.workers) as scope:
            for move in moves:
                scope.submit(self.move_file, move)
            outcomes = scope.join()
        return [outcome.value for outcome in outcomes]

    def move_file(self, move: PlannedMove) -> MoveResult:
        try:
            outcome = self._move_file(move)
        finally:
            self.progress_ctx.advance()

        if outcome is MoveOutcome.MOVED:
            self.stats_manager.increment_moved()
        elif outcome is MoveOutcome.SOURCE_DELETED:
            self.stats_manager.increment_source_deleted()
        elif outcome is MoveOutcome.SKIPPED:
            self.stats_manager.increment_skipped()
        else:
            self.stats_manager.increment_failed()
        return MoveResult(move, outcome)

    def _move_file(self, move: PlannedMove) -> MoveOutcome:
        if move.source == move.destination:
            return MoveOutcome.SKIPPED

        if not self.file_ops.ensure_directory(move.destination.parent):
            return MoveOutcome.FAILED

        # Names embed the content hash, so an existing target is the same file
        if move.destination.exists():
            self.notices.notify(NoticeKind.TARGET_EXISTS,
                                f"Target file [{move.destination}] already exists. "
                                f"Deleting source [{move.source}].", move.source)
            reason = f" after finding target [{move.destination}] already exists"
            if self.file_ops.delete_safely(move.source, reason):
                return MoveOutcome.SOURCE_DELETED
            return MoveOutcome.FAILED

        if self.file_ops.move_file_safely(move.source, move.destination):
            return MoveOutcome.MOVED
        return MoveOutcome.FAILED
