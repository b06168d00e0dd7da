"""
Core media sorting functionality.
"""

import logging
import subprocess
from typing import List, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress
from rich.table import Table

from .config import SortSettings
from .constants import PROGRAM, get_console, get_logger
from .executor import ExecutionPipeline, MoveResult
from .metadata import read_metadata
from .notices import LoggingNoticeSink, NoticeSink
from .planner import MetadataReader, PlannedMove, PlanningPipeline
from .progress import ProgressContext
from .stats import StatsManager


def setup_logging(console: Console, verbose: bool) -> None:
    """Attach a rich console handler to the program logger (once)."""
    logger = get_logger()
    logger.setLevel(logging.DEBUG)

    handler = next((h for h in logger.handlers if isinstance(h, RichHandler)), None)
    if handler is None:
        handler = RichHandler(console=console, rich_tracebacks=True, show_path=False)
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)

    # Per-file trace only in verbose mode; errors and warnings always
    handler.setLevel(logging.INFO if verbose else logging.WARNING)


class MediaSorter:
    """Plan, then execute, the reorganization of one input directory."""

    def __init__(self, settings: SortSettings, notices: Optional[NoticeSink] = None,
                 metadata_reader: Optional[MetadataReader] = None,
                 console: Optional[Console] = None):
        self.settings = settings
        self.console = console or get_console()
        setup_logging(self.console, settings.verbose)
        self.logger = get_logger()
        self.notices = notices or LoggingNoticeSink(self.logger)
        self.metadata_reader = metadata_reader or read_metadata
        self.stats_manager = StatsManager()
        self.postscript_ok = True

        self.logger.info(f"Starting sort: {settings.input_dir} -> {settings.output_dir}")
        self.logger.info(f"Mode: {'DRY RUN' if settings.dry_run else 'MOVE'}")

    def plan(self, progress_ctx: Optional[ProgressContext] = None) -> List[PlannedMove]:
        """Run the planning phase to completion."""
        pipeline = PlanningPipeline(
            self.settings, notices=self.notices, metadata_reader=self.metadata_reader,
            stats_manager=self.stats_manager, progress_ctx=progress_ctx
        )
        return pipeline.collect_moves()

    def execute(self, moves: List[PlannedMove],
                progress_ctx: Optional[ProgressContext] = None) -> List[MoveResult]:
        """Apply a finished plan."""
        pipeline = ExecutionPipeline(
            dry_run=self.settings.dry_run, notices=self.notices,
            workers=self.settings.worker_count, stats_manager=self.stats_manager,
            progress_ctx=progress_ctx, display_root=self.settings.output_dir
        )
        return pipeline.perform_moves(moves)

    def run(self) -> List[MoveResult]:
        """Plan every file, then move them, then run the post-run script."""
        with Progress(console=self.console, transient=True) as progress:
            plan_task = progress.add_task("Reading metadata...", total=None)
            plan_ctx = ProgressContext(progress, plan_task)
            moves = self.plan(plan_ctx)
            plan_ctx.update(f"Planned {len(moves)} files")

            self.console.print(f"Moving {len(moves)} files.")

            label = "Checking moves..." if self.settings.dry_run else "Moving files..."
            move_task = progress.add_task(label, total=len(moves))
            results = self.execute(moves, ProgressContext(progress, move_task))

        self.postscript_ok = self.run_postscript()
        return results

    def run_postscript(self) -> bool:
        """Run the configured post-run script. Returns False if it failed."""
        script = self.settings.postscript
        if script is None:
            return True

        if self.settings.dry_run:
            self.logger.info(f"Dry run: would run postscript {script}")
            return True

        self.logger.info(f"Running postscript {script}")
        try:
            result = subprocess.run([str(script)], capture_output=True, text=True, check=True)
        except subprocess.CalledProcessError as e:
            self.logger.error(f"Postscript {script} exited with status {e.returncode}: "
                              f"{(e.stderr or '').strip()}")
            return False
        except OSError as e:
            self.logger.error(f"Could not run postscript {script}: {e}")
            return False

        if result.stdout.strip():
            self.logger.info(result.stdout.strip())
        return True

    def print_summary(self) -> None:
        """Print processing summary."""
        stats = self.stats_manager
        dry_run = self.settings.dry_run

        table = Table(title="Dry Run Summary" if dry_run else "Processing Summary")
        table.add_column("Category", style="cyan")
        table.add_column("Count", style="green")

        table.add_row("Planned", str(stats.get_planned()))
        table.add_row("Dated", str(stats.get_dated()))
        table.add_row("Unsorted", str(stats.get_unsorted()))
        table.add_row("Would Move" if dry_run else "Moved", str(stats.get_moved()))
        table.add_row("Already Present", str(stats.get_source_deleted()))
        table.add_row("Skipped", str(stats.get_skipped()))
        table.add_row("Failed", str(stats.get_failed()))

        self.console.print(table)

        if stats.get_unsorted() > 0:
            self.console.print(f"[yellow]Undated files go to: {self.settings.unsorted_dir}[/yellow]")
        if stats.has_errors():
            self.console.print("[red]Some files could not be moved; see errors above.[/red]")

        self.console.print(f"Finished {PROGRAM}")
