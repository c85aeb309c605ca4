import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

logger = logging.getLogger(__name__)

Handler = Callable[[Dict[str, Any]], Awaitable[None]]


class InProcessJobQueue:
    """asyncio-task job queue with per-key idempotency and retry/backoff.

    The handler is invoked at least once per accepted enqueue; an exception
    from it is retried up to ``max_attempts`` times, waiting
    ``backoff_seconds * 2 ** (attempt - 1)`` between attempts. A key is
    tracked only while its task is pending, so a finished key can be
    enqueued again.
    """

    def __init__(
        self,
        handler: Handler,
        *,
        concurrency: int = 2,
        max_attempts: int = 3,
        backoff_seconds: float = 5.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._handler = handler
        self._semaphore = asyncio.Semaphore(concurrency)
        self.max_attempts = max_attempts
        self.backoff_seconds = backoff_seconds
        self._sleep = sleep
        self._tasks: Dict[str, asyncio.Task] = {}

    def __len__(self) -> int:
        return len(self._tasks)

    def enqueue(self, payload: Dict[str, Any], *, idempotency_key: str) -> bool:
        """Schedule ``payload``; returns False while the same key is still pending."""
        if idempotency_key in self._tasks:
            logger.info("Task %s already enqueued, skipping duplicate", idempotency_key)
            return False
        self._tasks[idempotency_key] = asyncio.create_task(self._run(idempotency_key, payload))
        logger.info("Enqueued task %s", idempotency_key)
        return True

    async def _run(self, key: str, payload: Dict[str, Any]) -> None:
        try:
            for attempt in range(1, self.max_attempts + 1):
                try:
                    async with self._semaphore:
                        await self._handler(payload)
                    return
                except Exception as exc:
                    if attempt == self.max_attempts:
                        logger.error("Task %s failed after %d attempts: %s", key, attempt, exc)
                        return
                    delay = self.backoff_seconds * (2 ** (attempt - 1))
                    logger.warning("Task %s attempt %d failed (%s); retrying in %.1fs", key, attempt, exc, delay)
                    await self._sleep(delay)
        finally:
            self._tasks.pop(key, None)

    def status(self, idempotency_key: str) -> Optional[str]:
        """``"pending"`` while the key's task runs, otherwise None."""
        task = self._tasks.get(idempotency_key)
        if task is None or task.done():
            return None
        return "pending"

    async def drain(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks.values()))
