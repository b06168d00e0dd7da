"""
Filesystem primitives for the execution phase, with dry-run support.

Every method reports what it does (or would do) through the notice sink and
returns False instead of raising when the filesystem refuses.
"""

import shutil
from pathlib import Path
from typing import Optional

from .notices import NoticeKind, NoticeSink


class FileOperations:
    """Directory creation, moves, and deletes that honor dry-run mode."""

    def __init__(self, dry_run: bool, notices: NoticeSink, display_root: Optional[Path] = None):
        self.dry_run = dry_run
        self.notices = notices
        self.display_root = display_root

    def _display(self, path: Path) -> Path:
        if self.display_root is not None:
            try:
                return path.relative_to(self.display_root)
            except ValueError:
                pass
        return path

    def ensure_directory(self, directory: Path) -> bool:
        """Create directory and parents if needed. Returns False on failure."""
        if directory.is_dir():
            return True

        self.notices.notify(NoticeKind.DIRECTORY_CREATED,
                            f"Creating directory [{self._display(directory)}]", directory)
        if self.dry_run:
            return True

        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            self.notices.notify(NoticeKind.ERROR,
                                f"Error creating directory [{directory}]: {e}", directory)
            return False

        if not directory.is_dir():
            self.notices.notify(NoticeKind.ERROR,
                                f"Could not create directory [{directory}], but mkdir did not error either",
                                directory)
            return False
        return True

    def delete_safely(self, file_path: Path, reason: str = "") -> bool:
        """Unlink a file. A file that is already gone counts as deleted."""
        if self.dry_run:
            return True

        try:
            file_path.unlink()
        except FileNotFoundError:
            return True
        except OSError as e:
            self.notices.notify(NoticeKind.ERROR,
                                f"Could not delete source file [{file_path}]{reason}: {e}", file_path)
            return False
        return True

    def move_file_safely(self, source: Path, dest: Path) -> bool:
        """Move source to dest, reporting the move or the failure."""
        if self.dry_run:
            self.notices.notify(NoticeKind.WOULD_MOVE, f"Would move [{source}] to [{dest}].", source)
            return True

        try:
            shutil.move(str(source), str(dest))
        except (OSError, shutil.Error) as e:
            self.notices.notify(NoticeKind.ERROR,
                                f"Could not move file [{source}] to target [{dest}]: {e}", source)
            return False

        self.notices.notify(NoticeKind.FILE_MOVED, f"Moved [{source}] to [{dest}].", source)
        return True
