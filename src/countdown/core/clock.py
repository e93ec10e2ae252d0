"""Clock abstraction shared by the registry, scheduler and status views."""

from datetime import datetime
from typing import Protocol

from zoneinfo import ZoneInfo

UTC = ZoneInfo("UTC")


class Clock(Protocol):
    def now(self) -> datetime:
        """Return the current time as a timezone-aware datetime."""
        ...


class SystemClock:
    """Wall-clock time in UTC."""

    def __init__(self, tz: ZoneInfo = UTC) -> None:
        self.tz = tz

    def now(self) -> datetime:
        return datetime.now(tz=self.tz)
