"""
Test the execution phase: moves, duplicates, dry run, per-file failures.
"""

from pathlib import Path

from conftest import files_below, snapshot
from mediasort.executor import ExecutionPipeline, MoveOutcome
from mediasort.notices import NoticeKind
from mediasort.planner import PlannedMove
from mediasort.stats import StatsManager


def dated_move(source: Path, output_dir: Path, name: str = "2023-01-05T130507_cebb6622.jpg") -> PlannedMove:
    return PlannedMove(source, output_dir / "2023" / "01" / name, True)


class TestMoves:
    """Live moves into freshly created directories."""

    def test_move_creates_directories(self, input_dir, output_dir, create_test_files, notices):
        source, = create_test_files({"photo.jpg": "hello world"})
        move = dated_move(source, output_dir)
        stats = StatsManager()

        results = ExecutionPipeline(notices=notices, workers=2, stats_manager=stats).perform_moves([move])

        assert [r.outcome for r in results] == [MoveOutcome.MOVED]
        assert not source.exists()
        assert move.destination.read_text() == "hello world"
        assert stats.get_moved() == 1
        assert len(notices.of_kind(NoticeKind.DIRECTORY_CREATED)) == 1
        assert len(notices.of_kind(NoticeKind.FILE_MOVED)) == 1

    def test_unsorted_move(self, input_dir, create_test_files, notices):
        source, = create_test_files({"clip.mp4": "no date"})
        move = PlannedMove(source, input_dir / "unsorted" / "clip.mp4", False)

        ExecutionPipeline(notices=notices, workers=1).perform_moves([move])

        assert files_below(input_dir) == [input_dir / "unsorted" / "clip.mp4"]

    def test_results_follow_plan_order(self, input_dir, output_dir, create_test_files):
        sources = create_test_files({f"f{i}.jpg": f"content{i}" for i in range(8)})
        moves = [dated_move(s, output_dir, f"2023-01-05T130507_0000000{i}.jpg") for i, s in enumerate(sources)]

        results = ExecutionPipeline(workers=3).perform_moves(moves)

        assert [r.move for r in results] == moves
        assert all(r.outcome is MoveOutcome.MOVED for r in results)
        assert len(files_below(output_dir)) == 8

    def test_source_equal_to_destination_is_skipped(self, create_test_files, notices):
        source, = create_test_files({"same.jpg": "x"})
        stats = StatsManager()

        results = ExecutionPipeline(notices=notices, stats_manager=stats).perform_moves(
            [PlannedMove(source, source, True)])

        assert results[0].outcome is MoveOutcome.SKIPPED
        assert source.read_text() == "x"
        assert notices.notices == []
        assert stats.get_skipped() == 1


class TestDuplicates:
    """An existing destination means the content is already sorted."""

    def test_existing_target_deletes_source(self, input_dir, output_dir, create_test_files, notices):
        source, = create_test_files({"dup.jpg": "new bytes"})
        move = dated_move(source, output_dir)
        move.destination.parent.mkdir(parents=True)
        move.destination.write_text("original bytes")
        stats = StatsManager()

        results = ExecutionPipeline(notices=notices, stats_manager=stats).perform_moves([move])

        assert results[0].outcome is MoveOutcome.SOURCE_DELETED
        assert not source.exists()
        assert move.destination.read_text() == "original bytes"
        assert len(notices.of_kind(NoticeKind.TARGET_EXISTS)) == 1
        assert stats.get_source_deleted() == 1

    def test_second_run_is_idempotent(self, input_dir, output_dir, create_test_files):
        source, = create_test_files({"photo.jpg": "hello world"})
        move = dated_move(source, output_dir)
        pipeline = ExecutionPipeline(workers=1)

        pipeline.perform_moves([move])
        after_first = snapshot(output_dir)
        second = pipeline.perform_moves([move])

        assert snapshot(output_dir) == after_first
        assert second[0].outcome is MoveOutcome.SOURCE_DELETED

    def test_delete_failure_keeps_source(self, output_dir, create_test_files, notices, monkeypatch):
        source, = create_test_files({"locked.jpg": "x"})
        move = dated_move(source, output_dir)
        move.destination.parent.mkdir(parents=True)
        move.destination.write_text("x")

        def refuse(self, *args, **kwargs):
            raise PermissionError("read-only")

        monkeypatch.setattr(Path, "unlink", refuse)

        results = ExecutionPipeline(notices=notices).perform_moves([move])

        assert results[0].outcome is MoveOutcome.FAILED
        assert source.exists()
        assert len(notices.of_kind(NoticeKind.ERROR)) == 1


class TestDryRun:
    """Dry run reports every step and touches nothing."""

    def test_no_filesystem_changes(self, tmp_path, input_dir, output_dir, create_test_files, notices):
        new_source, dup_source = create_test_files({"new.jpg": "a", "dup.jpg": "b"})
        dup_move = dated_move(dup_source, output_dir, "2020-02-02T020202_aaaaaaaa.jpg")
        dup_move.destination.parent.mkdir(parents=True)
        dup_move.destination.write_text("b")
        moves = [
            dated_move(new_source, output_dir),
            dup_move,
            PlannedMove(input_dir / "x.png", input_dir / "unsorted" / "x.png", False),
        ]
        before = snapshot(tmp_path)

        results = ExecutionPipeline(dry_run=True, notices=notices).perform_moves(moves)

        assert snapshot(tmp_path) == before
        assert [r.outcome for r in results] == [
            MoveOutcome.MOVED, MoveOutcome.SOURCE_DELETED, MoveOutcome.MOVED,
        ]
        assert len(notices.of_kind(NoticeKind.WOULD_MOVE)) == 2
        assert len(notices.of_kind(NoticeKind.TARGET_EXISTS)) == 1
        assert len(notices.of_kind(NoticeKind.DIRECTORY_CREATED)) == 2
        assert notices.of_kind(NoticeKind.FILE_MOVED) == []


class TestFailures:
    """A failing move is reported and the batch continues."""

    def test_blocked_directory_fails_only_that_move(self, input_dir, output_dir, create_test_files, notices):
        blocked, fine = create_test_files({"blocked.jpg": "a", "fine.jpg": "b"})
        (output_dir / "2023").write_text("a file where a directory should be")
        moves = [
            dated_move(blocked, output_dir),
            PlannedMove(fine, output_dir / "2024" / "02" / "2024-02-02T000000_bbbbbbbb.jpg", True),
        ]
        stats = StatsManager()

        results = ExecutionPipeline(notices=notices, workers=2, stats_manager=stats).perform_moves(moves)

        assert [r.outcome for r in results] == [MoveOutcome.FAILED, MoveOutcome.MOVED]
        assert blocked.exists()
        assert not fine.exists()
        assert stats.get_failed() == 1
        assert stats.has_errors()
        assert len(notices.of_kind(NoticeKind.ERROR)) == 1

    def test_missing_source_fails(self, input_dir, output_dir, notices):
        move = dated_move(input_dir / "vanished.jpg", output_dir)

        results = ExecutionPipeline(notices=notices).perform_moves([move])

        assert results[0].outcome is MoveOutcome.FAILED
        assert not move.destination.exists()
        assert len(notices.of_kind(NoticeKind.ERROR)) == 1
