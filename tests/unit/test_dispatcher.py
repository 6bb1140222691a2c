"""Tests for notification dispatch and per-channel failure isolation."""

from __future__ import annotations

import pytest

from paynotify.models import ContactInfo
from paynotify.notification.channels import DisabledChannel, DispatchError
from paynotify.notification.dispatcher import (
    PAYMENT_SUBJECT,
    NotificationDispatcher,
    format_amount,
    payment_message,
)
from tests.conftest import make_channel

CONTACT = ContactInfo(email="cust@example.com", phone="+15551234567", amount_minor_units=5000)


class TestFormatting:
    @pytest.mark.parametrize(
        "minor,currency,expected",
        [
            (5000, "usd", "$50.00"),
            (123456, "usd", "$1,234.56"),
            (0, "usd", "$0.00"),
            (999, "EUR", "€9.99"),
            (250, "gbp", "£2.50"),
            (1050, "chf", "10.50 CHF"),
        ],
    )
    def test_format_amount(self, minor: int, currency: str, expected: str) -> None:
        assert format_amount(minor, currency) == expected

    def test_payment_message(self) -> None:
        assert payment_message(CONTACT) == "Thank you for your payment of $50.00."


class TestDispatch:
    @pytest.mark.asyncio
    async def test_no_channels_is_successful_noop(self) -> None:
        result = await NotificationDispatcher().dispatch(CONTACT)
        assert result.success is True
        assert result.email_status is None
        assert result.sms_status is None
        assert result.error_message is None

    @pytest.mark.asyncio
    async def test_disabled_channels_are_skipped(self) -> None:
        result = await NotificationDispatcher().dispatch(
            CONTACT, DisabledChannel("email"), DisabledChannel("sms"),
        )
        assert result.success is True
        assert result.email_status is None
        assert result.sms_status is None

    @pytest.mark.asyncio
    async def test_both_channels_called_once_with_contact(self) -> None:
        email = make_channel("email", status="202")
        sms = make_channel("sms", status="SM123")

        result = await NotificationDispatcher().dispatch(CONTACT, email, sms)

        assert result.success is True
        assert result.email_status == "202"
        assert result.sms_status == "SM123"
        email.send.assert_awaited_once_with(
            "cust@example.com", PAYMENT_SUBJECT, "Thank you for your payment of $50.00.",
        )
        sms.send.assert_awaited_once()
        assert sms.send.await_args.args[0] == "+15551234567"

    @pytest.mark.asyncio
    async def test_empty_contact_fields_skip_channels(self) -> None:
        email = make_channel("email")
        sms = make_channel("sms")
        result = await NotificationDispatcher().dispatch(ContactInfo(), email, sms)
        assert result.success is True
        email.send.assert_not_awaited()
        sms.send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_email_failure_does_not_block_sms(self) -> None:
        email = make_channel("email")
        email.send.side_effect = DispatchError("email", "SendGrid returned 500")
        sms = make_channel("sms", status="SM999")

        result = await NotificationDispatcher().dispatch(CONTACT, email, sms)

        sms.send.assert_awaited_once()
        assert result.sms_status == "SM999"
        assert result.email_status is None
        assert result.success is False
        assert result.error_message is not None
        assert "email" in result.error_message

    @pytest.mark.asyncio
    async def test_unexpected_sms_error_is_contained(self) -> None:
        email = make_channel("email", status="202")
        sms = make_channel("sms")
        sms.send.side_effect = RuntimeError("socket closed")

        result = await NotificationDispatcher().dispatch(CONTACT, email, sms)

        assert result.email_status == "202"
        assert result.success is False
        assert result.error_message is not None
        assert "socket closed" in result.error_message

    @pytest.mark.asyncio
    async def test_both_failures_reported(self) -> None:
        email = make_channel("email")
        email.send.side_effect = DispatchError("email", "boom")
        sms = make_channel("sms")
        sms.send.side_effect = DispatchError("sms", "bang")

        result = await NotificationDispatcher().dispatch(CONTACT, email, sms)

        assert result.success is False
        assert result.error_message is not None
        assert "boom" in result.error_message
        assert "bang" in result.error_message
