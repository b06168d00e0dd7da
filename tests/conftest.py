"""
pytest configuration and fixtures for mediasort tests.
"""

import os
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

import pytest

from mediasort.config import SortSettings
from mediasort.errors import MetadataError
from mediasort.metadata import DirectoryKind, MetadataRecord
from mediasort.notices import Notice, NoticeKind, NoticeSink


@dataclass
class CliResult:
    """Result from running CLI command."""
    exit_code: int
    output: str
    error: str


class RecordingNoticeSink(NoticeSink):
    """Notice sink that keeps every notice for later assertions."""

    def __init__(self):
        self.notices: List[Notice] = []
        self._lock = threading.Lock()

    def emit(self, notice: Notice) -> None:
        with self._lock:
            self.notices.append(notice)

    def of_kind(self, kind: NoticeKind) -> List[Notice]:
        return [n for n in self.notices if n.kind is kind]


@pytest.fixture
def notices():
    return RecordingNoticeSink()


@pytest.fixture
def input_dir(tmp_path):
    path = tmp_path / "input"
    path.mkdir()
    return path


@pytest.fixture
def output_dir(tmp_path):
    path = tmp_path / "output"
    path.mkdir()
    return path


@pytest.fixture
def make_settings(input_dir, output_dir):
    """Build SortSettings for the test input/output directories."""

    def build(**overrides) -> SortSettings:
        values = dict(input_dir=input_dir, output_dir=output_dir, workers=2, timezone="UTC")
        values.update(overrides)
        return SortSettings(**values)

    return build


@pytest.fixture
def create_test_files(input_dir):
    """Helper to create test files in the input directory."""

    def create_files(file_specs: Dict[str, Union[str, bytes]]) -> List[Path]:
        """Create files from a ``{name: content}`` mapping."""
        created = []
        for name, content in file_specs.items():
            file_path = input_dir / name
            file_path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, str):
                file_path.write_text(content)
            else:
                file_path.write_bytes(content)
            created.append(file_path)
        return created

    return create_files


def exif_record(date_original: str, tz_original: Optional[str] = None) -> MetadataRecord:
    tags = {"date_original": date_original}
    if tz_original is not None:
        tags["tz_original"] = tz_original
    return MetadataRecord({DirectoryKind.EXIF_SUB_IFD: tags})


@pytest.fixture
def fake_metadata():
    """Build a metadata reader from ``{file name: record | exception}``.

    Unknown names get an empty record, i.e. no date.
    """

    def build(by_name: Dict[str, Union[MetadataRecord, Exception]]) -> Callable[[Path], MetadataRecord]:
        def reader(path: Path) -> MetadataRecord:
            value = by_name.get(path.name, MetadataRecord())
            if isinstance(value, Exception):
                raise value
            return value
        return reader

    return build


@pytest.fixture
def dated_reader():
    """Reader that gives every file the same EXIF date."""
    return lambda path: exif_record("2023:01:05 13:05:07", "+00:00")


@pytest.fixture
def failing_reader():
    """Reader for which every file is unreadable."""

    def reader(path: Path) -> MetadataRecord:
        raise MetadataError(path, "corrupt file")

    return reader


@pytest.fixture
def test_config_path(tmp_path):
    """Test-specific config path with clean state guarantee."""
    return tmp_path / "config" / "config.yml"


@pytest.fixture
def cli_runner(capsys, monkeypatch):
    """Run the CLI in-process with a substitute metadata reader."""

    def run_cli(*args, config_path=None, reader=None) -> CliResult:
        from mediasort.cli import main

        if reader is not None:
            monkeypatch.setattr("mediasort.core.read_metadata", reader)

        try:
            exit_code = main([str(a) for a in args], config_path=config_path)
        except SystemExit as e:
            exit_code = e.code if e.code is not None else 0

        captured = capsys.readouterr()
        return CliResult(exit_code=exit_code, output=captured.out, error=captured.err)

    return run_cli


def files_below(root: Path) -> List[Path]:
    """All regular files under root, sorted."""
    if not root.exists():
        return []
    return sorted(p for p in root.rglob("*") if p.is_file())


def snapshot(root: Path) -> List[str]:
    """Relative paths of everything under root, directories included."""
    return sorted(str(p.relative_to(root)) for p in root.rglob("*"))


@pytest.fixture
def fake_exiftool(tmp_path, monkeypatch):
    """Put a shell script named ``exiftool`` first on the PATH.

    The script body is written verbatim after the shebang line.
    """

    def install(body: str) -> Path:
        bin_dir = tmp_path / "bin"
        bin_dir.mkdir(exist_ok=True)
        script = bin_dir / "exiftool"
        script.write_text(f"#!/bin/sh\n{body}\n")
        script.chmod(0o755)
        monkeypatch.setenv("PATH", f"{bin_dir}{os.pathsep}{os.environ.get('PATH', '')}")
        return script

    return install
