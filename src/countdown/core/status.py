"""Derive point-in-time status views from stored job records."""

import math
from datetime import datetime

from countdown.model.job import STATUS_COMPLETED, STATUS_IN_PROGRESS, Job, StatusView

STATUS_CSS_CLASSES = {
    STATUS_COMPLETED: "status-complete",
    STATUS_IN_PROGRESS: "status-progress",
}


def derive_status(job: Job, now: datetime) -> StatusView:
    """Compute elapsed/remaining seconds and the status label at ``now``.

    The wall clock wins over the stored flag: a job whose delay has elapsed
    reads as completed even if its completion timer has not fired yet.
    The job is never modified.
    """
    if job.completed or now >= job.expected_completion:
        return StatusView(
            status=STATUS_COMPLETED,
            elapsed_seconds=job.total_delay_seconds,
            remaining_seconds=0,
        )

    elapsed = max(0, math.floor((now - job.created_at).total_seconds()))
    return StatusView(
        status=STATUS_IN_PROGRESS,
        elapsed_seconds=elapsed,
        remaining_seconds=max(0, job.total_delay_seconds - elapsed),
    )


def status_css_class(view: StatusView) -> str:
    return STATUS_CSS_CLASSES[view.status]
