"""Countdown service: registry, completion timers, monitoring and event streaming."""

from __future__ import annotations

import asyncio
from collections import deque
from datetime import datetime
from pathlib import Path
from threading import Lock
from typing import Any, Dict, List, Optional, Tuple

from apscheduler.events import (
    EVENT_JOB_ERROR,
    EVENT_JOB_EXECUTED,
    EVENT_JOB_MISSED,
    EVENT_JOB_SUBMITTED,
    JobEvent,
)
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.schedulers.base import STATE_PAUSED, STATE_RUNNING, STATE_STOPPED

from countdown.configs.env_config import Env
from countdown.core.clock import Clock, SystemClock
from countdown.core.registry import JobRegistry
from countdown.core.status import derive_status
from countdown.model.job import Job, StatusView, TimerRunRecord, TimerStats
from countdown.scheduler.completion import CompletionScheduler, job_id_from_timer
from countdown.scheduler.scheduler import build_scheduler, load_countdowns_from_yaml
from countdown.utils.logger.logger import Logger
from countdown.utils.logger_factory import EnhancedLoggerFactory, log_exception
from countdown.utils.misc import datetime_to_str


class TimerMonitor:
    """APScheduler listener that tracks what happened to completion timers."""

    def __init__(self, *, clock: Clock, history_size: int = 50, on_event=None) -> None:
        """Initialise the monitor with history capacity and an event hook.

        :param clock: Clock used to timestamp records.
        :param history_size: Maximum timer events retained in memory.
        :param on_event: Optional callback invoked with serialisable payloads.
        """
        self._lock = Lock()
        self._clock = clock
        self._stats = TimerStats(history=deque(maxlen=history_size))
        self._on_event = on_event

    def handle_event(self, event: JobEvent) -> None:
        """Consume an APScheduler event and update the in-memory stats."""
        code = event.code
        now = self._clock.now()
        scheduled_at = getattr(event, "scheduled_run_time", None)

        with self._lock:
            stats = self._stats
            if code & EVENT_JOB_SUBMITTED:
                stats.submitted += 1
                record = TimerRunRecord("submitted", event.job_id, now, scheduled_at)
            elif code & EVENT_JOB_EXECUTED:
                stats.fired += 1
                stats.last_fired_at = now
                record = TimerRunRecord("fired", event.job_id, now, scheduled_at)
            elif code & EVENT_JOB_ERROR:
                stats.errors += 1
                stats.last_error = _format_exception(event)
                record = TimerRunRecord("error", event.job_id, now, scheduled_at, stats.last_error)
            elif code & EVENT_JOB_MISSED:
                stats.missed += 1
                record = TimerRunRecord("missed", event.job_id, now, scheduled_at, "Timer missed its run time")
            else:
                return
            stats.last_event = record.event
            stats.history.append(record)

        self._emit(record)

    def snapshot(self) -> Dict[str, Any]:
        """Return serialisable counters and the recent timer events."""
        with self._lock:
            return _serialize_stats(self._stats)

    def _emit(self, record: TimerRunRecord) -> None:
        if self._on_event is None:
            return
        payload = {
            "type": "timer",
            "event": record.event,
            "timer_id": record.job_id,
            "job_id": job_id_from_timer(record.job_id),
            "recorded_at": record.recorded_at,
            "scheduled_at": record.scheduled_at,
            "message": record.message,
        }
        try:
            self._on_event(payload)
        except Exception:
            # Subscriber problems must not break scheduler callbacks.
            pass


class CountdownService:
    """Owns the job registry and its completion timers for one process.

    Construct once, ``startup()`` inside the running event loop and
    ``shutdown()`` when done. Pending timers are abandoned on shutdown.
    """

    def __init__(
        self,
        *,
        max_history: Optional[int] = None,
        clock: Optional[Clock] = None,
        logger: Optional[Logger] = None,
        seed_file: Path | str | None = None,
        history_size: int = 50,
        logger_name: str = "countdown",
    ) -> None:
        """Build the registry, scheduler, logger and monitor components.

        :param max_history: Retained job count; defaults to ``COUNTDOWN_MAX_HISTORY``.
        :param clock: Time source; defaults to the UTC wall clock.
        :param logger: Logger; defaults to the application logger.
        :param seed_file: Optional YAML file of countdowns created on startup.
        :param history_size: Timer events kept by the monitor.
        :param logger_name: Name of the default application logger.
        """
        self._clock: Clock = clock or SystemClock()
        self._registry = JobRegistry(max_history if max_history is not None else Env.MAX_HISTORY)
        self._logger: Logger = logger or EnhancedLoggerFactory.create_application_logger(
            name=logger_name,
            enable_stdout=True,
        )
        self._seed_file = Path(seed_file) if seed_file else None
        self._scheduler: AsyncIOScheduler = build_scheduler()
        self._timers = CompletionScheduler(self._scheduler, self._clock)
        self._monitor = TimerMonitor(
            clock=self._clock,
            history_size=history_size,
            on_event=self._handle_monitor_event,
        )
        self._scheduler.add_listener(
            self._monitor.handle_event,
            EVENT_JOB_SUBMITTED | EVENT_JOB_EXECUTED | EVENT_JOB_ERROR | EVENT_JOB_MISSED,
        )
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._subscribers: list[asyncio.Queue] = []
        self._subscriber_maxsize = 100
        self._started = False
        self._started_at: Optional[datetime] = None

    async def startup(self) -> None:
        """Start logging and the scheduler, then create seeded countdowns.

        :raises Exception: Propagates APScheduler startup failures after logging them.
        """
        if self._started:
            return
        await self._logger.start()
        self._loop = asyncio.get_running_loop()
        try:
            self._scheduler.start()
        except Exception as e:
            log_exception(self._logger, e, context="scheduler_start")
            raise
        self._started = True
        self._started_at = self._clock.now()
        self._logger.info(f"Countdown service started (max_history={self._registry.max_history})")
        if self._seed_file is not None:
            load_countdowns_from_yaml(self, self._seed_file, logger=self._logger)

    async def shutdown(self) -> None:
        """Stop the scheduler without waiting on pending timers, then the logger."""
        if not self._started:
            return
        try:
            self._scheduler.shutdown(wait=False)
        finally:
            self._started = False
            self._logger.info(f"Countdown service stopped ({self._timers.pending()} timers abandoned)")
            await self._logger.shutdown()
            self._loop = None

    @property
    def registry(self) -> JobRegistry:
        return self._registry

    @property
    def scheduler(self) -> AsyncIOScheduler:
        return self._scheduler

    @property
    def clock(self) -> Clock:
        return self._clock

    @property
    def logger(self) -> Logger:
        return self._logger

    @property
    def max_history(self) -> int:
        return self._registry.max_history

    @property
    def started_at(self) -> Optional[datetime]:
        return self._started_at

    def create_job(self, name: str, delay_seconds: int) -> Job:
        """Register a countdown and arm its completion timer.

        Returns as soon as the timer is armed, long before it fires.

        :param name: Free-form job name.
        :param delay_seconds: Countdown length in whole seconds.
        :return: Snapshot of the new job.
        :raises InvalidDelay: If the delay is not an integer >= 1.
        """
        created_at = self._clock.now()
        job_id = self._registry.create(name, delay_seconds, created_at)
        self._timers.arm(job_id, delay_seconds, self._complete)
        self._logger.info(f"Countdown job {job_id} created. Delay: {delay_seconds} seconds, Name: {name!r}")
        job = Job(id=job_id, name=name, created_at=created_at, total_delay_seconds=delay_seconds)
        self._publish({"type": "created", "job": self.describe(job)})
        return job

    def get_job(self, job_id: int) -> Job:
        """Return one job; raises ``NotFound`` for unknown or evicted IDs."""
        return self._registry.get(job_id)

    def list_jobs(self) -> List[Job]:
        """Return every retained job (lookup-table order)."""
        return self._registry.get_all()

    def history(self) -> List[Job]:
        """Return the last ``max_history`` jobs in creation order."""
        return self._registry.history(limit=self._registry.max_history)

    def derive(self, job: Job, now: Optional[datetime] = None) -> StatusView:
        return derive_status(job, now or self._clock.now())

    def describe(self, job: Job, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Serialise a job together with its status at ``now``."""
        return _serialize_job(job, self.derive(job, now))

    def active_jobs(self) -> Tuple[List[Tuple[Job, float]], int, int]:
        """Collect countdowns still running for the status overview.

        :return: ``(rows, active_count, total)`` where ``rows`` pairs each job
            whose timer has not fired and that still has time left with its
            fractional remaining seconds,
            ``active_count`` counts every job whose timer has not fired and
            ``total`` is the number of retained jobs.
        """
        jobs = self._registry.get_all()
        now = self._clock.now()
        rows: List[Tuple[Job, float]] = []
        active_count = 0
        for job in jobs:
            if job.completed:
                continue
            active_count += 1
            remaining = (job.expected_completion - now).total_seconds()
            if remaining > 0:
                rows.append((job, remaining))
        return rows, active_count, len(jobs)

    def status(self) -> Dict[str, Any]:
        """Summarise service state, registry usage and timer activity."""
        state = self._scheduler.state
        return {
            "state": _map_state(state),
            "running": state == STATE_RUNNING,
            "job_count": len(self._registry),
            "max_history": self._registry.max_history,
            "next_job_id": self._registry.next_id,
            "pending_timers": self._timers.pending(),
            "next_fire_time": self._timers.next_fire_time(),
            "timers": self._monitor.snapshot(),
            "started_at": self._started_at,
            "timezone": str(self._scheduler.timezone),
        }

    def subscribe(self) -> asyncio.Queue:
        """Register a new event stream subscriber."""
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._subscriber_maxsize)
        self._subscribers.append(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        try:
            self._subscribers.remove(queue)
        except ValueError:
            pass

    def _complete(self, job_id: int, fired_at: datetime) -> None:
        """Completion timer callback; a no-op for evicted or completed jobs."""
        if self._registry.mark_completed(job_id, fired_at):
            self._logger.info(f"Countdown job {job_id} completed at {datetime_to_str(fired_at)}.")
            self._publish({"type": "completed", "job_id": job_id, "completed_at": fired_at})
        else:
            self._logger.debug(f"Completion for job {job_id} absorbed (evicted or already completed)")

    def _handle_monitor_event(self, payload: Dict[str, Any]) -> None:
        if payload.get("event") == "error":
            self._logger.error(f"Completion timer {payload.get('timer_id')} failed: {payload.get('message')}")
        self._publish(payload)

    def _publish(self, payload: Dict[str, Any]) -> None:
        """Fan an event out to subscribers, from any thread."""
        if not self._subscribers:
            return
        loop = self._loop
        if loop is not None and not loop.is_closed():
            try:
                running = asyncio.get_running_loop()
            except RuntimeError:
                running = None
            if running is not loop:
                loop.call_soon_threadsafe(self._deliver, payload)
                return
        self._deliver(payload)

    def _deliver(self, payload: Dict[str, Any]) -> None:
        for queue in list(self._subscribers):
            if queue.full():
                # Slow consumer: drop its oldest event.
                try:
                    queue.get_nowait()
                except asyncio.QueueEmpty:
                    pass
            queue.put_nowait(payload)


def _serialize_job(job: Job, view: StatusView) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "id": job.id,
        "name": job.name,
        "dateTimeAdded": job.created_at,
        "totalDelaySeconds": job.total_delay_seconds,
        "status": view.status,
        "elapsedTimeSeconds": view.elapsed_seconds,
        "remainingTimeSeconds": view.remaining_seconds,
    }
    if job.completed_at is not None:
        payload["completedTime"] = job.completed_at
    return payload


def _serialize_stats(stats: TimerStats) -> Dict[str, Any]:
    return {
        "submitted": stats.submitted,
        "fired": stats.fired,
        "errors": stats.errors,
        "missed": stats.missed,
        "last_event": stats.last_event,
        "last_fired_at": stats.last_fired_at,
        "last_error": stats.last_error,
        "history": [
            {
                "event": record.event,
                "timer_id": record.job_id,
                "recorded_at": record.recorded_at,
                "scheduled_at": record.scheduled_at,
                "message": record.message,
            }
            for record in stats.history
        ],
    }


def _format_exception(event: JobEvent) -> Optional[str]:
    exc = getattr(event, "exception", None)
    if exc is None:
        return None
    return f"{exc.__class__.__name__}: {exc}"


def _map_state(state: int) -> str:
    if state == STATE_RUNNING:
        return "running"
    if state == STATE_PAUSED:
        return "paused"
    if state == STATE_STOPPED:
        return "stopped"
    return "unknown"
