"""Webhook alerting handler that ships error logs to a chat endpoint."""

from __future__ import annotations

import asyncio
from typing import List, Optional

import httpx

from countdown.utils.logger.config import LogEvent, LogLevel
from countdown.utils.logger.handlers.base import BaseLogHandler


def fence_code(text: str) -> str:
    """Wrap ``text`` in a fenced code block while escaping existing fences."""

    safe = text.replace("```", "```\u200b")
    return f"```\n{safe}\n```"


def chunk_lines(lines: List[str], limit: int) -> List[str]:
    """Join ``lines`` into blocks of at most ``limit`` characters.

    Lines longer than ``limit`` are split on their own.
    """
    blocks: List[str] = []
    current: List[str] = []
    size = 0
    for line in lines:
        while len(line) > limit:
            if current:
                blocks.append("\n".join(current))
                current, size = [], 0
            blocks.append(line[:limit])
            line = line[limit:]
        if current and size + len(line) > limit:
            blocks.append("\n".join(current))
            current, size = [], 0
        current.append(line)
        size += len(line) + 1
    if current:
        blocks.append("\n".join(current))
    return blocks


class WebhookHandler(BaseLogHandler):
    """Queue ERROR+ log lines and POST them to a webhook in the background."""

    def __init__(
        self,
        webhook_url: str,
        *,
        min_level: LogLevel = LogLevel.ERROR,
        queue_size: int = 1000,
        max_chars_per_post: int = 1900,
        username: Optional[str] = "countdown-service",
        http_timeout: float = 5.0,
    ) -> None:
        """Persist webhook settings and defer HTTP client creation.

        :param webhook_url: Target webhook URL (Discord compatible payload).
        :param min_level: Lowest level forwarded to the webhook.
        :param queue_size: Maximum queued posts before new ones are dropped.
        :param max_chars_per_post: Maximum characters per post including fences.
        :param username: Optional author name sent with each post.
        :param http_timeout: HTTP client timeout in seconds.
        """
        super().__init__()
        self.url = webhook_url
        self.min_level = min_level
        self.username = username
        self.http_timeout = http_timeout
        self.max_chars = max(1, max_chars_per_post - 8)
        self.dropped = 0
        self._queue: asyncio.Queue[str] = asyncio.Queue(maxsize=queue_size)
        self._client: Optional[httpx.AsyncClient] = None
        self._task: Optional[asyncio.Task] = None

    async def start(self) -> None:
        """Create the shared HTTP client and the delivery task."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.http_timeout)
        if self._task is None:
            self._task = asyncio.create_task(self._runner(), name="WebhookHandler")

    async def shutdown(self, timeout: float = 5.0) -> None:
        """Drain pending posts, then stop the worker and close the client."""
        try:
            await asyncio.wait_for(self._queue.join(), timeout)
        except asyncio.TimeoutError:
            pass

        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def push(self, records: List[LogEvent]) -> None:
        lines = [ev.text for ev in records if ev.level >= self.min_level]
        if not lines:
            return
        for block in chunk_lines(lines, self.max_chars):
            try:
                self._queue.put_nowait(block)
            except asyncio.QueueFull:
                self.dropped += 1

    async def _runner(self) -> None:
        while True:
            block = await self._queue.get()
            try:
                await self._send(fence_code(block))
            finally:
                self._queue.task_done()

    async def _send(self, content: str) -> None:
        """POST one message, honouring ``retry_after`` on HTTP 429."""
        assert self._client is not None
        payload = {"content": content, "allowed_mentions": {"parse": []}}
        if self.username:
            payload["username"] = self.username

        try:
            r = await self._client.post(self.url, json=payload)
            if r.status_code == 429:
                try:
                    retry = float(r.json().get("retry_after", 1))
                except ValueError:
                    retry = float(r.headers.get("Retry-After", "1"))
                await asyncio.sleep(max(0.0, retry))
            elif r.status_code >= 500:
                await asyncio.sleep(1.0)
        except httpx.RequestError:
            # Transport failures are not logged again to avoid feedback loops.
            self.dropped += 1
