import os
from dotenv import load_dotenv

load_dotenv()


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"Environment variable {name} must be an integer, got {raw!r}") from exc


class Env:
    # Registry
    MAX_HISTORY = _int_env("COUNTDOWN_MAX_HISTORY", 10)
    SEED_FILE = os.getenv("COUNTDOWN_SEED_FILE", "countdowns.yaml")

    # HTTP server
    HOST = os.getenv("COUNTDOWN_HOST", "0.0.0.0")
    PORT = _int_env("COUNTDOWN_PORT", 8080)

    # Logging
    LOG_DIR = os.getenv("COUNTDOWN_LOG_DIR", "logs")
    LOG_LEVEL = os.getenv("COUNTDOWN_LOG_LEVEL", "INFO")
    ALERT_WEBHOOK = os.getenv("COUNTDOWN_ALERT_WEBHOOK")

    @classmethod
    def validate(cls):
        problems = []
        if cls.MAX_HISTORY < 1:
            problems.append(f"COUNTDOWN_MAX_HISTORY must be >= 1 (got {cls.MAX_HISTORY})")
        if not 0 < cls.PORT < 65536:
            problems.append(f"COUNTDOWN_PORT out of range (got {cls.PORT})")
        if cls.LOG_LEVEL.upper() not in {"TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            problems.append(f"COUNTDOWN_LOG_LEVEL unknown (got {cls.LOG_LEVEL})")

        if problems:
            raise ValueError(
                f"Invalid environment configuration: {'; '.join(problems)}"
            )

Env.validate()
