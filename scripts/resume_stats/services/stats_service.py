#------------------------------------------------------------
#                      stats_service.py
#      Holds per-experience totals shared by all workers.

import threading
from typing import Dict

from ..models import BucketStats, ClassifiedCommit


# Per-experience totals, updated concurrently by the experience workers.
# The lock is only taken inside merge and snapshot, never across a GitHub request.
class StatsAggregator:

    def __init__(self):
        self._lock = threading.Lock()
        self._table: Dict[str, BucketStats] = {}

    def merge(self, experience: str, commit: ClassifiedCommit) -> None:
        with self._lock:
            stats = self._table.get(experience)
            if stats is None:
                self._table[experience] = BucketStats(
                    languages=set(commit.languages),
                    commits=1,
                    lines=commit.lines,
                )
                return
            stats.languages.update(commit.languages)
            stats.commits += 1
            stats.lines += commit.lines

    # Copies are returned so reporting never sees a half-applied merge.
    def snapshot(self) -> Dict[str, BucketStats]:
        with self._lock:
            return {
                name: BucketStats(languages=set(stats.languages), commits=stats.commits, lines=stats.lines)
                for name, stats in self._table.items()
            }
