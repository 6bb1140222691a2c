"""Click CLI for signing, verifying and replaying Stripe events locally."""

from __future__ import annotations

import asyncio
from pathlib import Path

import click

from paynotify.audit.logger import build_audit_logger, validate_audit_chain
from paynotify.config import Settings
from paynotify.notification.channels import build_channels
from paynotify.notification.service import PaymentNotificationService
from paynotify.webhook.service import StripeWebhookService
from paynotify.webhook.signature import SignatureVerifier, sign


@click.group()
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Stripe webhook and payment notification tools."""
    ctx.ensure_object(dict)
    settings = Settings.from_env()
    ctx.obj["settings"] = settings
    ctx.obj["audit_logger"] = build_audit_logger(settings)


@cli.command("sign")
@click.argument("payload_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--secret", default=None, help="Webhook secret (defaults to STRIPE_WEBHOOK_SECRET).")
@click.option("--timestamp", type=int, default=None, help="Unix timestamp to sign with.")
@click.pass_context
def sign_command(
    ctx: click.Context, payload_file: Path, secret: str | None, timestamp: int | None,
) -> None:
    """Print a Stripe-Signature header for PAYLOAD_FILE."""
    secret = secret or ctx.obj["settings"].stripe_webhook_secret
    if not secret:
        raise click.UsageError("No webhook secret given and STRIPE_WEBHOOK_SECRET is unset.")
    click.echo(sign(payload_file.read_bytes(), secret, timestamp))


@cli.command("webhook")
@click.argument("payload_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--signature", required=True, help="Stripe-Signature header value.")
@click.option("--secret", default=None, help="Webhook secret (defaults to STRIPE_WEBHOOK_SECRET).")
@click.pass_context
def webhook_command(
    ctx: click.Context, payload_file: Path, signature: str, secret: str | None,
) -> None:
    """Run PAYLOAD_FILE through verification and classification."""
    settings: Settings = ctx.obj["settings"]
    service = StripeWebhookService(
        verifier=SignatureVerifier(settings.webhook_tolerance_seconds),
        audit_logger=ctx.obj["audit_logger"],
    )
    result = service.process_event(
        payload_file.read_bytes(), signature, secret or settings.stripe_webhook_secret,
    )
    click.echo(result.model_dump_json(indent=2))
    if not result.is_valid:
        ctx.exit(1)


@cli.command("notify")
@click.argument("queue_message")
@click.pass_context
def notify_command(ctx: click.Context, queue_message: str) -> None:
    """Process a base64 QUEUE_MESSAGE and send notifications."""
    email, sms = build_channels(ctx.obj["settings"])
    service = PaymentNotificationService(
        email_channel=email, sms_channel=sms, audit_logger=ctx.obj["audit_logger"],
    )
    result = asyncio.run(service.process(queue_message))
    click.echo(result.model_dump_json(indent=2))
    if not result.success:
        ctx.exit(1)


@cli.command("audit-verify")
@click.argument("log_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def audit_verify_command(ctx: click.Context, log_path: Path) -> None:
    """Check the hash chain of an audit log."""
    result = validate_audit_chain(log_path)
    if result.valid:
        click.echo("Audit chain intact.")
        return
    click.echo(f"Audit chain broken at line {result.broken_at_line}.", err=True)
    ctx.exit(1)
