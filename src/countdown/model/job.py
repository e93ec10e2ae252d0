from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Deque, Optional

STATUS_IN_PROGRESS = "in-progress"
STATUS_COMPLETED = "completed"


@dataclass
class Job:
    """A single countdown: a name, a delay and its completion state."""

    id: int
    name: str
    created_at: datetime
    total_delay_seconds: int
    completed: bool = False
    completed_at: Optional[datetime] = None

    @property
    def expected_completion(self) -> datetime:
        return self.created_at + timedelta(seconds=self.total_delay_seconds)


@dataclass(frozen=True)
class StatusView:
    """Point-in-time projection of a job's progress."""

    status: str
    elapsed_seconds: int
    remaining_seconds: int

    @property
    def is_completed(self) -> bool:
        return self.status == STATUS_COMPLETED


@dataclass
class TimerRunRecord:
    """Compact representation of a single timer event."""

    event: str
    job_id: str
    recorded_at: datetime
    scheduled_at: Optional[datetime] = None
    message: Optional[str] = None


@dataclass
class TimerStats:
    """Counters over every completion timer handled by the scheduler."""

    submitted: int = 0
    fired: int = 0
    errors: int = 0
    missed: int = 0
    last_event: Optional[str] = None
    last_fired_at: Optional[datetime] = None
    last_error: Optional[str] = None
    history: Deque[TimerRunRecord] = field(default_factory=deque)
