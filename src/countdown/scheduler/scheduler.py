"""Factory helpers for building the APScheduler instance and seeding countdowns."""

from pathlib import Path

import yaml
from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from countdown.core.clock import UTC
from countdown.core.errors import InvalidDelay
from countdown.utils.logger.logger import Logger
from countdown.utils.logger_factory import log_exception

# misfire_grace_time=None: a timer that fires late still runs.
DEFAULTS = {
    "coalesce": True,
    "max_instances": 1,
    "misfire_grace_time": None,
}


def build_scheduler() -> AsyncIOScheduler:
    """Create an ``AsyncIOScheduler`` backed by an in-memory job store."""
    jobstores = {"default": MemoryJobStore()}
    scheduler = AsyncIOScheduler(
        timezone=UTC,
        jobstores=jobstores,
        job_defaults=DEFAULTS,
    )
    return scheduler


def load_countdowns_from_yaml(service, path: Path, logger: Logger) -> int:
    """Create the countdowns listed in a YAML seed file.

    The file holds ``countdowns: [{name: ..., delay: ...}, ...]``. Entries
    that fail validation are logged and skipped.

    :param service: ``CountdownService`` receiving the new countdowns.
    :param path: Path to the YAML seed file.
    :param logger: Logger used for status and error reporting.
    :return: Number of countdowns created.
    """
    if not path.exists():
        logger.warning(f"Countdown seed file not found: {path}")
        return 0

    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    created = 0
    for index, item in enumerate(data.get("countdowns") or []):
        try:
            if not isinstance(item, dict):
                raise ValueError(f"expected a mapping, got {type(item).__name__}")
            name = str(item.get("name", ""))
            delay = item.get("delay")
            if not isinstance(delay, int) or isinstance(delay, bool):
                raise InvalidDelay(delay)
            job = service.create_job(name, delay)
            created += 1
            logger.info(f"Seeded countdown {job.id} ({name!r}, {delay}s) from {path}")
        except Exception as e:
            log_exception(logger, e, context=f"load_countdowns_from_yaml[{index}]")

    return created
