"""Countdown As A Service: fire-once countdown timers behind a FastAPI app."""

__version__ = "1.0.0"
