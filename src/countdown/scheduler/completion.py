"""One-shot completion timers backed by APScheduler date jobs."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Callable, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger

from countdown.core.clock import UTC, Clock

OnFire = Callable[[int, datetime], None]

TIMER_PREFIX = "countdown-"


def timer_id_for(job_id: int) -> str:
    return f"{TIMER_PREFIX}{job_id}"


def job_id_from_timer(timer_id: str) -> Optional[int]:
    """Recover the countdown ID from an APScheduler job id, if it is one of ours."""
    if not timer_id.startswith(TIMER_PREFIX):
        return None
    try:
        return int(timer_id[len(TIMER_PREFIX):])
    except ValueError:
        return None


async def fire_completion(job_id: int, on_fire: OnFire, clock: Clock) -> datetime:
    """Timer body: read the clock and hand the fire time to ``on_fire``."""
    fired_at = clock.now()
    on_fire(job_id, fired_at)
    return fired_at


class CompletionScheduler:
    """Arms exactly one fire-once timer per countdown.

    Timers cannot be cancelled; those still pending at shutdown are abandoned
    with the scheduler.
    """

    def __init__(self, scheduler: AsyncIOScheduler, clock: Clock) -> None:
        self._scheduler = scheduler
        self._clock = clock

    def arm(self, job_id: int, delay_seconds: int, on_fire: OnFire) -> datetime:
        """Schedule ``on_fire(job_id, fired_at)`` ``delay_seconds`` from now.

        Returns immediately with the planned run time.

        :raises apscheduler.jobstores.base.ConflictingIdError: If a timer for
            ``job_id`` is already armed.
        """
        run_date = self._clock.now() + timedelta(seconds=delay_seconds)
        self._scheduler.add_job(
            func=fire_completion,
            trigger=DateTrigger(run_date=run_date, timezone=UTC),
            kwargs={"job_id": job_id, "on_fire": on_fire, "clock": self._clock},
            id=timer_id_for(job_id),
            name=f"complete countdown {job_id}",
            replace_existing=False,
        )
        return run_date

    def pending(self) -> int:
        """Number of armed timers that have not fired yet."""
        return sum(1 for job in self._scheduler.get_jobs() if job.id.startswith(TIMER_PREFIX))

    def next_fire_time(self) -> Optional[datetime]:
        times = [
            getattr(job, "next_run_time", None)
            for job in self._scheduler.get_jobs()
            if job.id.startswith(TIMER_PREFIX)
        ]
        times = [t for t in times if t is not None]
        return min(times) if times else None
