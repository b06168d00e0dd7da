"""
Statistics tracking for planning and execution.
"""

import threading
from typing import Dict


class AtomicCounter:
    """Integer counter that can be shared between worker threads."""

    def __init__(self, initial: int = 0):
        self._value = initial
        self._lock = threading.Lock()

    def increment(self) -> int:
        """Increment and return the new value."""
        with self._lock:
            self._value += 1
            return self._value

    def get(self) -> int:
        with self._lock:
            return self._value


class StatsManager:
    """Encapsulates statistics tracking for a sort run."""

    def __init__(self):
        self._lock = threading.Lock()
        self._stats = {
            'planned': 0,
            'dated': 0,
            'unsorted': 0,
            'moved': 0,
            'source_deleted': 0,
            'skipped': 0,
            'failed': 0,
        }

    def _add(self, key: str, count: int = 1) -> None:
        with self._lock:
            self._stats[key] += count

    def record_plan(self, has_valid_date: bool) -> None:
        """Record one planned move, dated or bound for unsorted."""
        self._add('planned')
        self._add('dated' if has_valid_date else 'unsorted')

    def increment_moved(self) -> None:
        self._add('moved')

    def increment_source_deleted(self) -> None:
        self._add('source_deleted')

    def increment_skipped(self) -> None:
        self._add('skipped')

    def increment_failed(self) -> None:
        self._add('failed')

    def get_stats(self) -> Dict[str, int]:
        """Get a copy of current statistics."""
        with self._lock:
            return self._stats.copy()

    def has_errors(self) -> bool:
        return self.get_failed() > 0

    # Individual stat getters for reporting
    def get_planned(self) -> int:
        return self.get_stats()['planned']

    def get_dated(self) -> int:
        return self.get_stats()['dated']

    def get_unsorted(self) -> int:
        return self.get_stats()['unsorted']

    def get_moved(self) -> int:
        return self.get_stats()['moved']

    def get_source_deleted(self) -> int:
        return self.get_stats()['source_deleted']

    def get_skipped(self) -> int:
        return self.get_stats()['skipped']

    def get_failed(self) -> int:
        return self.get_stats()['failed']
