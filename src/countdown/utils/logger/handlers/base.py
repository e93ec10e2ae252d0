"""Base class shared by every log handler attached to :class:`Logger`."""

from abc import ABC, abstractmethod
from typing import List, Optional

from countdown.utils.logger.config import LogEvent, LoggerConfig


class BaseLogHandler(ABC):
    """Receives batches of formatted log events flushed by the logger."""

    def __init__(self) -> None:
        self._primary_config: Optional[LoggerConfig] = None

    def add_primary_config(self, config: LoggerConfig) -> None:
        """Remember the owning logger's config (format, level)."""
        self._primary_config = config

    @abstractmethod
    async def push(self, records: List[LogEvent]) -> None:
        """Persist or forward a batch of log events."""
