"""randrelay.core.queues

In-memory state shared between schedulers.

- CommitQueue: committed-but-unrevealed records, oldest target first.
- PendingSubmissionQueue: failed submissions, a terminal sink.

Nothing here survives a restart.
"""

from __future__ import annotations

import bisect
from threading import Lock

from randrelay.core.metrics import REGISTRY, MetricsRegistry
from randrelay.core.types import CommitRecord, PendingSubmission, SubmissionKind


def _target(record: CommitRecord) -> int:
    return record.target_timestamp


class CommitQueue:
    """Ascending-by-target queue of commitments awaiting reveal.

    Commit ticks produce monotonically increasing targets, so inserts land at
    the tail. Ticks that finish out of order are still placed by target.
    """

    def __init__(self, *, metrics: MetricsRegistry | None = None) -> None:
        self._lock = Lock()
        self._records: list[CommitRecord] = []
        self._metrics = metrics or REGISTRY

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def _depth_changed(self) -> None:
        self._metrics.gauge("commit_queue.depth").set(len(self._records))

    def append(self, record: CommitRecord) -> None:
        with self._lock:
            bisect.insort_right(self._records, record, key=_target)
            self._depth_changed()

    def peek(self) -> CommitRecord | None:
        with self._lock:
            return self._records[0] if self._records else None

    def snapshot(self) -> list[CommitRecord]:
        with self._lock:
            return list(self._records)

    def take_revealable(self, now: int, window_s: int) -> tuple[CommitRecord | None, list[CommitRecord]]:
        """Pop expired heads, then pop the head if it is inside its reveal window.

        Returns ``(revealable, expired)``. A head that is not yet due is left
        in place and ``(None, [])`` is returned.
        """

        expired: list[CommitRecord] = []
        with self._lock:
            if not self._records or not self._records[0].is_due(now):
                return None, expired

            while self._records and self._records[0].is_expired(now, window_s):
                expired.append(self._records.pop(0))

            revealable: CommitRecord | None = None
            if self._records and self._records[0].is_due(now):
                revealable = self._records.pop(0)

            self._depth_changed()
            return revealable, expired


class PendingSubmissionQueue:
    """Append-only log of submissions the chain did not accept.

    There is no automatic consumer. Operators inspect it; a retry pass, if one
    is ever added, reads from here.
    """

    def __init__(self, *, metrics: MetricsRegistry | None = None) -> None:
        self._lock = Lock()
        self._items: list[PendingSubmission] = []
        self._metrics = metrics or REGISTRY

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def record(self, item: PendingSubmission) -> PendingSubmission:
        with self._lock:
            self._items.append(item)
            self._metrics.gauge("pending.depth").set(len(self._items))
        return item

    def snapshot(self) -> list[PendingSubmission]:
        with self._lock:
            return list(self._items)

    def by_kind(self, kind: SubmissionKind) -> list[PendingSubmission]:
        with self._lock:
            return [p for p in self._items if p.kind == kind]
