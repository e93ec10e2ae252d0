"""Domain errors raised by the countdown core."""


class CountdownError(Exception):
    """Base class for countdown domain errors."""


class InvalidDelay(CountdownError, ValueError):
    """Raised when a countdown delay is not a positive whole number of seconds."""

    def __init__(self, delay) -> None:
        self.delay = delay
        super().__init__(f"Invalid delay value: {delay!r}")


class NotFound(CountdownError, KeyError):
    """Raised for a job ID that was never issued or has been evicted."""

    def __init__(self, job_id) -> None:
        self.job_id = job_id
        super().__init__(job_id)

    def __str__(self) -> str:
        return f"Job ID {self.job_id} not found."
