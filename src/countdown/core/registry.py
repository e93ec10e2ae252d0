"""Bounded in-memory registry of countdown jobs."""

from __future__ import annotations

from collections import deque
from dataclasses import replace
from datetime import datetime
from threading import Lock
from typing import Deque, Dict, List, Optional

from countdown.core.errors import InvalidDelay, NotFound
from countdown.model.job import Job

DEFAULT_MAX_HISTORY = 10


class JobRegistry:
    """Owns job records, their creation order and the ID sequence.

    The lookup table and the insertion-order deque are one unit of state
    guarded by a single lock. Records leave the registry as copies.
    """

    def __init__(self, max_history: int = DEFAULT_MAX_HISTORY) -> None:
        """Create an empty registry.

        :param max_history: Maximum number of most recent jobs retained.
        :raises ValueError: If ``max_history`` is below 1.
        """
        if max_history < 1:
            raise ValueError(f"max_history must be >= 1, got {max_history}")
        self._lock = Lock()
        self._jobs: Dict[int, Job] = {}
        self._order: Deque[int] = deque()
        self._next_id = 1
        self._max_history = max_history

    @property
    def max_history(self) -> int:
        return self._max_history

    @property
    def next_id(self) -> int:
        with self._lock:
            return self._next_id

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)

    def create(self, name: str, delay_seconds: int, created_at: datetime) -> int:
        """Register a new job and evict the oldest ones beyond capacity.

        :param name: Free-form job name.
        :param delay_seconds: Countdown length in whole seconds (>= 1).
        :param created_at: Creation timestamp stored on the record.
        :return: The newly issued job ID.
        :raises InvalidDelay: If ``delay_seconds`` is not an integer >= 1.
        """
        if isinstance(delay_seconds, bool) or not isinstance(delay_seconds, int) or delay_seconds < 1:
            raise InvalidDelay(delay_seconds)

        with self._lock:
            job_id = self._next_id
            self._next_id += 1
            self._jobs[job_id] = Job(
                id=job_id,
                name=name,
                created_at=created_at,
                total_delay_seconds=delay_seconds,
            )
            self._order.append(job_id)
            self._evict_locked()
        return job_id

    def _evict_locked(self) -> None:
        while len(self._order) > self._max_history:
            oldest = self._order.popleft()
            self._jobs.pop(oldest, None)

    def get(self, job_id: int) -> Job:
        """Return a copy of the job record.

        :raises NotFound: If the ID was never issued or has been evicted.
        """
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                raise NotFound(job_id)
            return replace(job)

    def get_all(self) -> List[Job]:
        """Return copies of every retained job in lookup-table order."""
        with self._lock:
            return [replace(job) for job in self._jobs.values()]

    def history(self, limit: Optional[int] = None) -> List[Job]:
        """Return retained jobs oldest first, following creation order.

        :param limit: Keep only the last ``limit`` jobs when given.
        """
        with self._lock:
            ids = list(self._order)
            if limit is not None:
                ids = ids[-limit:] if limit > 0 else []
            return [replace(self._jobs[job_id]) for job_id in ids if job_id in self._jobs]

    def mark_completed(self, job_id: int, completion_time: datetime) -> bool:
        """Flag a job as completed once.

        Unknown, evicted or already completed jobs are left untouched.

        :return: ``True`` when this call performed the transition.
        """
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None or job.completed:
                return False
            job.completed = True
            job.completed_at = completion_time
            return True
