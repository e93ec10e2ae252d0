from datetime import datetime, timedelta
from typing import List

import pytest
from fastapi.testclient import TestClient

from countdown.api.app import create_app
from countdown.core.clock import UTC
from countdown.scheduler.service import CountdownService
from countdown.utils.logger.config import LogEvent, LoggerConfig, LogLevel
from countdown.utils.logger.handlers.base import BaseLogHandler
from countdown.utils.logger.logger import Logger


class ManualClock:
    """Clock that only moves when told to; starts at the real current time."""

    def __init__(self, start: datetime | None = None) -> None:
        self._now = start or datetime.now(tz=UTC)

    def now(self) -> datetime:
        return self._now

    def advance(self, seconds: float) -> datetime:
        self._now += timedelta(seconds=seconds)
        return self._now


class CollectingHandler(BaseLogHandler):
    def __init__(self) -> None:
        super().__init__()
        self.records: List[LogEvent] = []

    async def push(self, records: List[LogEvent]) -> None:
        self.records.extend(records)

    @property
    def texts(self) -> List[str]:
        return [r.text for r in self.records]


@pytest.fixture
def manual_clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def log_sink() -> CollectingHandler:
    return CollectingHandler()


@pytest.fixture
def quiet_logger(log_sink) -> Logger:
    config = LoggerConfig(base_level=LogLevel.DEBUG, do_stdout=False)
    return Logger(config=config, name="test", handlers=[log_sink])


@pytest.fixture
def service(manual_clock, quiet_logger) -> CountdownService:
    return CountdownService(max_history=10, clock=manual_clock, logger=quiet_logger)


@pytest.fixture
def client(service):
    with TestClient(create_app(service)) as test_client:
        yield test_client
