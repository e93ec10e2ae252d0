"""Factories for application loggers and helper utilities."""

import traceback
from typing import Optional

from countdown.configs.env_config import Env
from countdown.utils.logger.config import LogLevel, LoggerConfig
from countdown.utils.logger.handlers.base import BaseLogHandler
from countdown.utils.logger.handlers.error_file import ErrorFileHandler
from countdown.utils.logger.handlers.rotating_file import RotatingFileHandler
from countdown.utils.logger.handlers.webhook import WebhookHandler
from countdown.utils.logger.logger import Logger


class EnhancedLoggerFactory:
    """Convenience constructors for configured application loggers."""

    @staticmethod
    def create_application_logger(name: str = "countdown",
                                  enable_stdout: bool = False,
                                  log_level: Optional[LogLevel] = None,
                                  config_prefix: Optional[str] = None,
                                  base_dir: Optional[str] = None,
                                  webhook_url: Optional[str] = None) -> Logger:
        """Create the main application logger with rotating file handlers.

        :param name: Logger name used in records and filenames.
        :param enable_stdout: Whether to emit log lines to stdout.
        :param log_level: Minimum log level; defaults to ``COUNTDOWN_LOG_LEVEL``.
        :param config_prefix: Optional subdirectory for log files; ``""`` disables it.
        :param base_dir: Log directory; defaults to ``COUNTDOWN_LOG_DIR``.
        :param webhook_url: Alert webhook; defaults to ``COUNTDOWN_ALERT_WEBHOOK``.
        :return: Configured :class:`Logger` instance.
        """
        config = LoggerConfig(
            base_level=log_level if log_level is not None else LogLevel.from_name(Env.LOG_LEVEL),
            do_stdout=enable_stdout,
            str_format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
        )

        prefix = name if config_prefix is None else config_prefix
        log_dir = base_dir or Env.LOG_DIR

        handlers: list[BaseLogHandler] = [
            RotatingFileHandler(base_dir=log_dir, filename_prefix=prefix, rotation="daily"),
            ErrorFileHandler(base_dir=log_dir, filename_prefix=prefix, rotation="daily"),
        ]
        url = webhook_url or Env.ALERT_WEBHOOK
        if url:
            handlers.append(WebhookHandler(webhook_url=url))

        return Logger(config=config, name=name, handlers=handlers)


def log_exception(logger: Logger, exc: Exception, context: str = ""):
    """Log an exception with traceback using the provided logger.

    :param logger: Logger instance used for reporting the failure.
    :param exc: Exception that should be logged.
    :param context: Optional textual context describing the failure.
    """
    tb_str = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))

    error_msg = f"EXCEPTION in {context}: {type(exc).__name__}: {str(exc)}\n{tb_str}"
    logger.error(error_msg)
