"""In-process queue transport for local runs and tests.

Production deployments plug a real transport in through ``QueuePublisher``.
No redelivery or retry is implemented here.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Protocol

from paynotify.models import NotificationResult

if TYPE_CHECKING:
    from paynotify.notification.service import PaymentNotificationService

logger = logging.getLogger(__name__)


class QueuePublisher(Protocol):
    async def publish(self, message: str) -> None: ...


class InMemoryQueue:
    """asyncio.Queue-backed publisher/consumer pair."""

    def __init__(self, maxsize: int = 0) -> None:
        self._queue: asyncio.Queue[str] = asyncio.Queue(maxsize=maxsize)

    async def publish(self, message: str) -> None:
        await self._queue.put(message)

    async def get(self) -> str:
        return await self._queue.get()

    def task_done(self) -> None:
        self._queue.task_done()

    async def join(self) -> None:
        await self._queue.join()

    def empty(self) -> bool:
        return self._queue.empty()

    def qsize(self) -> int:
        return self._queue.qsize()


def log_result(result: NotificationResult) -> None:
    if not result.success:
        logger.error("Payment notification failed: %s", result.error_message)
        return
    if result.email_status:
        logger.info("Email sent, status: %s", result.email_status)
    if result.sms_status:
        logger.info("SMS sent, sid: %s", result.sms_status)


async def _handle(message: str, service: PaymentNotificationService) -> NotificationResult:
    try:
        result = await service.process(message)
    except Exception as exc:
        logger.exception("Unhandled error processing queue message")
        result = NotificationResult(success=False, error_message=str(exc) or repr(exc))
    log_result(result)
    return result


async def drain(
    queue: InMemoryQueue, service: PaymentNotificationService,
) -> list[NotificationResult]:
    """Process every message currently queued and return the results.

    Helper for tests and local runs; the served app uses ``consume``.
    """
    results: list[NotificationResult] = []
    while not queue.empty():
        message = await queue.get()
        try:
            results.append(await _handle(message, service))
        finally:
            queue.task_done()
    return results


async def consume(queue: InMemoryQueue, service: PaymentNotificationService) -> None:
    """Process messages until cancelled. A failing message does not stop the loop."""
    while True:
        message = await queue.get()
        try:
            await _handle(message, service)
        finally:
            queue.task_done()
