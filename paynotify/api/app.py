"""FastAPI application exposing the Stripe webhook endpoint."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator, Awaitable, Callable

from fastapi import FastAPI, Request, Response
from fastapi.responses import PlainTextResponse

from paynotify.audit.logger import AuditLogger, build_audit_logger
from paynotify.config import Settings
from paynotify.notification.channels import build_channels
from paynotify.notification.service import PaymentNotificationService
from paynotify.queue.memory import InMemoryQueue, QueuePublisher, consume
from paynotify.webhook.service import StripeWebhookService
from paynotify.webhook.signature import SignatureVerifier

logger = logging.getLogger(__name__)

_MAX_WEBHOOK_BODY_SIZE = 1024 * 1024  # 1MB


def create_app_from_env() -> FastAPI:
    """Factory for uvicorn --factory: reads config from environment variables.

    Uses the in-memory queue with a background consumer, so the webhook and
    the notifier run in one process.
    """
    settings = Settings.from_env()
    audit_logger = build_audit_logger(settings)
    email, sms = build_channels(settings)
    queue = InMemoryQueue()
    notifier = PaymentNotificationService(
        email_channel=email, sms_channel=sms, audit_logger=audit_logger,
    )
    return create_app(
        settings,
        publisher=queue,
        audit_logger=audit_logger,
        background=lambda: consume(queue, notifier),
    )


def create_app(
    settings: Settings,
    publisher: QueuePublisher | None = None,
    audit_logger: AuditLogger | None = None,
    background: Callable[[], Awaitable[None]] | None = None,
) -> FastAPI:
    """Create the webhook app. ``background`` runs for the app's lifetime."""

    @contextlib.asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        task = asyncio.ensure_future(background()) if background else None
        try:
            yield
        finally:
            if task:
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task

    app = FastAPI(docs_url=None, redoc_url=None, lifespan=lifespan)
    service = StripeWebhookService(
        verifier=SignatureVerifier(settings.webhook_tolerance_seconds),
        audit_logger=audit_logger,
    )

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.post("/webhook/stripe")
    async def stripe_webhook(request: Request) -> Response:
        body = await request.body()
        if len(body) > _MAX_WEBHOOK_BODY_SIZE:
            return PlainTextResponse("Request body too large", status_code=413)

        result = service.process_event(
            body,
            request.headers.get("stripe-signature"),
            settings.stripe_webhook_secret,
        )
        if not result.is_valid:
            return PlainTextResponse(
                result.error_message or "Invalid webhook event.", status_code=400,
            )

        if result.queue_message:
            if publisher is None:
                logger.warning("No queue publisher configured; event not forwarded")
            else:
                try:
                    await publisher.publish(result.queue_message)
                except Exception:
                    logger.exception("Failed to publish event to queue")
                    return PlainTextResponse("Failed to enqueue event.", status_code=500)

        if result.log_message:
            logger.info(result.log_message)
        return PlainTextResponse("Webhook received.")

    return app
