"""Time and formatting utilities used across the project."""

from __future__ import annotations

import datetime
import time
from typing import Optional

DISPLAY_FORMAT = "%Y-%m-%d %H:%M:%S %Z"


def time_s() -> float:
    """Return the current wall-clock time in seconds as a float."""

    return time.time()


def time_iso8601() -> str:
    """Return the current UTC time formatted as ``YYYY-MM-DDTHH:MM:SS.fffZ``."""

    dt = datetime.datetime.now(datetime.timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"


def datetime_to_str(dt: Optional[datetime.datetime], fmt: str = DISPLAY_FORMAT, default: str = "-") -> str:
    """Convert a datetime object into a formatted string.

    :param dt: Datetime instance to format, or ``None``.
    :param fmt: ``strftime``-compatible format string.
    :param default: Text returned when ``dt`` is ``None``.
    :return: Formatted datetime string.
    """

    if dt is None:
        return default
    return dt.strftime(fmt)
