"""Notifier: skipped when disabled, transport-specific login, failure isolation."""

from unittest.mock import AsyncMock, patch

import aiosmtplib
import pytest

from wishsheet.config import Settings
from wishsheet.errors import ConfigurationError, UpstreamError
from wishsheet.notify.mailer import (
    NotificationConfig,
    Notifier,
    NotifyOutcome,
    TransportKind,
    build_notifier,
)

SEND = "wishsheet.notify.mailer.aiosmtplib.send"


def _relay_config(**overrides) -> NotificationConfig:
    values = {
        "enabled": True,
        "sender": "wishes@example.com",
        "recipient": "owner@example.com",
        "transport": TransportKind.SMTP_RELAY_API_KEY,
        "api_key": "SG.key",
    }
    values.update(overrides)
    return NotificationConfig(**values)


@pytest.mark.asyncio
async def test_disabled_notifier_skips_without_sending() -> None:
    notifier = Notifier(NotificationConfig(enabled=False))
    with patch(SEND, new_callable=AsyncMock) as send:
        outcome = await notifier.notify("subject", "body")
    assert outcome is NotifyOutcome.SKIPPED
    send.assert_not_awaited()


@pytest.mark.asyncio
async def test_relay_transport_logs_in_with_apikey_username() -> None:
    notifier = Notifier(_relay_config())
    with patch(SEND, new_callable=AsyncMock, return_value=({}, "250 Ok: queued")) as send:
        outcome = await notifier.notify("New wish", "Wish: hi")
    assert outcome is NotifyOutcome.SENT
    message = send.await_args.args[0]
    kwargs = send.await_args.kwargs
    assert message["To"] == "owner@example.com"
    assert message["From"] == "wishes@example.com"
    assert message["Subject"] == "New wish"
    assert message.get_content().strip() == "Wish: hi"
    assert kwargs["hostname"] == "smtp.sendgrid.net"
    assert kwargs["port"] == 587
    assert kwargs["username"] == "apikey"
    assert kwargs["password"] == "SG.key"
    assert kwargs["start_tls"] is True
    assert kwargs["use_tls"] is False


@pytest.mark.asyncio
async def test_password_transport_and_explicit_recipient() -> None:
    config = _relay_config(
        transport=TransportKind.SMTP_PASSWORD,
        host="smtp.gmail.com",
        port=465,
        username="me@gmail.com",
        password="app-password",
        api_key=None,
    )
    with patch(SEND, new_callable=AsyncMock, return_value=({}, "250 2.0.0 OK")) as send:
        outcome = await Notifier(config).notify("s", "b", recipient="other@example.com")
    assert outcome is NotifyOutcome.SENT
    kwargs = send.await_args.kwargs
    assert send.await_args.args[0]["To"] == "other@example.com"
    assert kwargs["username"] == "me@gmail.com"
    assert kwargs["password"] == "app-password"
    assert kwargs["use_tls"] is True
    assert kwargs["start_tls"] is False


@pytest.mark.asyncio
async def test_smtp_failure_is_isolated() -> None:
    with patch(SEND, new_callable=AsyncMock, side_effect=aiosmtplib.SMTPConnectError("refused")):
        outcome = await Notifier(_relay_config()).notify("s", "b")
    assert outcome is NotifyOutcome.FAILED


@pytest.mark.asyncio
async def test_smtp_failure_propagates_without_isolation() -> None:
    notifier = Notifier(_relay_config(failure_isolation=False))
    with patch(SEND, new_callable=AsyncMock, side_effect=aiosmtplib.SMTPConnectError("refused")):
        with pytest.raises(UpstreamError, match="refused"):
            await notifier.notify("s", "b")


@pytest.mark.asyncio
async def test_rejected_recipient_counts_as_failure() -> None:
    rejected = {"owner@example.com": (550, "mailbox unavailable")}
    with patch(SEND, new_callable=AsyncMock, return_value=(rejected, "250 Ok")):
        outcome = await Notifier(_relay_config()).notify("s", "b")
    assert outcome is NotifyOutcome.FAILED


@pytest.mark.asyncio
async def test_missing_api_key_is_isolated_configuration_failure() -> None:
    with patch(SEND, new_callable=AsyncMock) as send:
        outcome = await Notifier(_relay_config(api_key=None)).notify("s", "b")
    assert outcome is NotifyOutcome.FAILED
    send.assert_not_awaited()


@pytest.mark.asyncio
async def test_missing_recipient_raises_without_isolation() -> None:
    notifier = Notifier(_relay_config(recipient=None, failure_isolation=False))
    with patch(SEND, new_callable=AsyncMock) as send:
        with pytest.raises(ConfigurationError, match="EMAIL_TO"):
            await notifier.notify("s", "b")
    send.assert_not_awaited()


def test_build_notifier_from_settings() -> None:
    s = Settings(
        notify_enabled=True,
        notify_transport="smtp-password",
        smtp_username="u",
        smtp_password="p",
        email_from="f@example.com",
        email_to="t@example.com",
        notify_failure_isolation=False,
    )
    notifier = build_notifier(s)
    assert notifier.enabled
    assert notifier.config.transport is TransportKind.SMTP_PASSWORD
    assert notifier.config.host == "smtp.gmail.com"
    assert notifier.config.login() == ("u", "p")
    assert notifier.config.failure_isolation is False


@pytest.mark.asyncio
async def test_unencodable_body_is_isolated_failure() -> None:
    """A lone surrogate (valid in JSON) cannot be encoded into the message; isolation still holds."""
    with patch(SEND, new_callable=AsyncMock, return_value=({}, "250 Ok")) as send:
        outcome = await Notifier(_relay_config()).notify("s", "Wish: hi \ud83d")
    assert outcome is NotifyOutcome.FAILED
    send.assert_not_awaited()


@pytest.mark.asyncio
async def test_unexpected_error_wrapped_without_isolation() -> None:
    notifier = Notifier(_relay_config(failure_isolation=False))
    with patch(SEND, new_callable=AsyncMock, side_effect=ValueError("bad header")):
        with pytest.raises(UpstreamError, match="bad header"):
            await notifier.notify("s", "b")
