import httpx
import pytest

from countdown.utils.logger.config import LogEvent, LoggerConfig, LogLevel
from countdown.utils.logger.handlers.error_file import ErrorFileHandler
from countdown.utils.logger.handlers.rotating_file import RotatingFileHandler
from countdown.utils.logger.handlers.webhook import WebhookHandler, chunk_lines, fence_code
from countdown.utils.logger.logger import Logger
from countdown.utils.logger_factory import EnhancedLoggerFactory, log_exception


def test_log_level_from_name():
    assert LogLevel.from_name("warning") is LogLevel.WARNING
    assert LogLevel.from_name(" Info ") is LogLevel.INFO
    with pytest.raises(ValueError):
        LogLevel.from_name("loud")


@pytest.mark.parametrize(
    "kwargs",
    [
        {"buffer_capacity": 0},
        {"buffer_capacity": 1.5},
        {"buffer_timeout": 0},
        {"str_format": "%(asctime)s only"},
    ],
)
def test_logger_config_validation(kwargs):
    with pytest.raises(ValueError):
        LoggerConfig(**kwargs)


def test_logger_rejects_foreign_handlers():
    with pytest.raises(TypeError):
        Logger(handlers=[object()])


@pytest.mark.asyncio
async def test_logger_filters_by_level_and_flushes_on_shutdown(log_sink):
    logger = Logger(
        config=LoggerConfig(base_level=LogLevel.INFO, do_stdout=False),
        name="svc",
        handlers=[log_sink],
    )
    await logger.start()
    logger.debug("hidden")
    logger.info("visible")
    logger.error("broken")
    await logger.shutdown()

    texts = log_sink.texts
    assert not any("hidden" in text for text in texts)
    assert any("[INFO] svc - visible" in text for text in texts)
    assert any("[ERROR] svc - broken" in text for text in texts)
    assert logger.is_running() is False


@pytest.mark.asyncio
async def test_messages_logged_before_start_are_delivered(log_sink):
    logger = Logger(config=LoggerConfig(do_stdout=False), name="early", handlers=[log_sink])
    logger.info("queued early")
    await logger.start()
    await logger.shutdown()
    assert any("queued early" in text for text in log_sink.texts)


@pytest.mark.asyncio
async def test_log_exception_includes_traceback(log_sink):
    logger = Logger(config=LoggerConfig(do_stdout=False), name="exc", handlers=[log_sink])
    await logger.start()
    try:
        raise RuntimeError("boom")
    except RuntimeError as exc:
        log_exception(logger, exc, context="unit")
    await logger.shutdown()

    text = log_sink.texts[-1]
    assert "EXCEPTION in unit: RuntimeError: boom" in text
    assert "Traceback" in text


@pytest.mark.asyncio
async def test_file_handlers_split_errors(tmp_path):
    events = [
        LogEvent(text="all good", level=LogLevel.INFO),
        LogEvent(text="it broke", level=LogLevel.ERROR),
    ]
    main = RotatingFileHandler(base_dir=str(tmp_path), filename_prefix="svc")
    errors = ErrorFileHandler(base_dir=str(tmp_path), filename_prefix="svc")
    await main.push(events)
    await errors.push(events)

    files = {path.name: path.read_text(encoding="utf-8") for path in (tmp_path / "svc").iterdir()}
    error_logs = [text for name, text in files.items() if name.endswith(".error.log")]
    main_logs = [text for name, text in files.items() if not name.endswith(".error.log")]

    assert error_logs == ["it broke\n"]
    assert main_logs == ["all good\nit broke\n"]


def test_rotating_handler_rejects_unknown_rotation(tmp_path):
    with pytest.raises(ValueError):
        RotatingFileHandler(base_dir=str(tmp_path), rotation="weekly")


def test_application_logger_builds_file_handlers(tmp_path):
    logger = EnhancedLoggerFactory.create_application_logger(
        name="countdown", base_dir=str(tmp_path), log_level=LogLevel.DEBUG, webhook_url="http://hook.invalid/x"
    )
    handler_types = [type(h) for h in logger._handlers]
    assert handler_types == [RotatingFileHandler, ErrorFileHandler, WebhookHandler]
    assert logger.get_config().base_level is LogLevel.DEBUG
    assert logger.get_name() == "countdown"


def test_chunk_lines_respects_limit():
    blocks = chunk_lines(["aaaa", "bbbb", "cccccccccc"], limit=9)
    assert blocks == ["aaaa\nbbbb", "ccccccccc", "c"]
    assert all(len(block) <= 9 for block in blocks)


def test_fence_code_escapes_inner_fences():
    fenced = fence_code("x ``` y")
    assert fenced.startswith("```\n")
    assert fenced.endswith("\n```")
    assert "x ```\u200b y" in fenced


@pytest.mark.asyncio
async def test_webhook_handler_posts_error_lines():
    received = []

    def handle(request: httpx.Request) -> httpx.Response:
        received.append(request)
        return httpx.Response(204)

    handler = WebhookHandler("https://hooks.example/abc")
    handler._client = httpx.AsyncClient(transport=httpx.MockTransport(handle))
    await handler.start()
    await handler.push([
        LogEvent(text="just info", level=LogLevel.INFO),
        LogEvent(text="timer failed", level=LogLevel.ERROR),
    ])
    await handler.shutdown()

    assert len(received) == 1
    body = received[0].read().decode("utf-8")
    assert "timer failed" in body
    assert "just info" not in body
    assert handler.dropped == 0
