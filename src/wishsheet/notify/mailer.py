"""Email notifications over SMTP (relay with API key, or username/password). Best-effort by default."""

from dataclasses import dataclass
from email.message import EmailMessage
from enum import Enum

import aiosmtplib

from wishsheet.config import Settings
from wishsheet.errors import ConfigurationError, UpstreamError
from wishsheet.logging_config import get_logger

logger = get_logger(__name__)

# SendGrid-style relays authenticate with this literal username and the API key as password
RELAY_API_KEY_USERNAME = "apikey"
IMPLICIT_TLS_PORT = 465


class NotifyOutcome(str, Enum):
    SENT = "sent"
    FAILED = "failed"
    SKIPPED = "skipped"


class TransportKind(str, Enum):
    SMTP_RELAY_API_KEY = "smtp-relay-api-key"
    SMTP_PASSWORD = "smtp-password"


@dataclass(frozen=True)
class NotificationConfig:
    """Process-wide notification settings."""

    enabled: bool
    sender: str | None = None
    recipient: str | None = None
    transport: TransportKind = TransportKind.SMTP_RELAY_API_KEY
    host: str = "smtp.sendgrid.net"
    port: int = 587
    username: str | None = None
    password: str | None = None
    api_key: str | None = None
    failure_isolation: bool = True
    timeout: float = 15.0
    subject: str = "🎉 Birthday Wish Submitted!"

    @classmethod
    def from_settings(cls, settings: Settings) -> "NotificationConfig":
        return cls(
            enabled=settings.notify_enabled,
            sender=settings.email_from,
            recipient=settings.email_to,
            transport=TransportKind(settings.notify_transport),
            host=settings.resolved_smtp_host(),
            port=settings.smtp_port,
            username=settings.smtp_username,
            password=settings.smtp_password,
            api_key=settings.sendgrid_api_key,
            failure_isolation=settings.notify_failure_isolation,
            timeout=settings.smtp_timeout,
            subject=settings.notify_subject,
        )

    def login(self) -> tuple[str, str]:
        """SMTP username and password for the configured transport."""
        if self.transport is TransportKind.SMTP_RELAY_API_KEY:
            if not self.api_key:
                raise ConfigurationError("SMTP relay transport requires SENDGRID_API_KEY")
            return RELAY_API_KEY_USERNAME, self.api_key
        if not self.username or not self.password:
            raise ConfigurationError("SMTP password transport requires SMTP_USERNAME and SMTP_PASSWORD")
        return self.username, self.password


def build_message(sender: str, recipient: str, subject: str, body: str) -> EmailMessage:
    message = EmailMessage()
    message["From"] = sender
    message["To"] = recipient
    message["Subject"] = subject
    message.set_content(body)
    return message


class Notifier:
    """Sends one email per call. Never retries."""

    def __init__(self, config: NotificationConfig) -> None:
        self.config = config

    @property
    def enabled(self) -> bool:
        return self.config.enabled

    async def _send(self, subject: str, body: str, recipient: str | None) -> NotifyOutcome:
        cfg = self.config
        to_addr = recipient or cfg.recipient
        if not to_addr:
            raise ConfigurationError("Notification recipient (EMAIL_TO) is not set")
        if not cfg.sender:
            raise ConfigurationError("Notification sender (EMAIL_FROM) is not set")
        username, password = cfg.login()
        message = build_message(cfg.sender, to_addr, subject, body)
        rejected, response = await aiosmtplib.send(
            message,
            hostname=cfg.host,
            port=cfg.port,
            username=username,
            password=password,
            use_tls=cfg.port == IMPLICIT_TLS_PORT,
            start_tls=cfg.port != IMPLICIT_TLS_PORT,
            timeout=cfg.timeout,
        )
        accepted = [] if to_addr in rejected else [to_addr]
        logger.info(
            "notification_sent",
            transport=cfg.transport.value,
            accepted=accepted,
            rejected=sorted(rejected),
            response=response,
        )
        if not accepted:
            raise UpstreamError(f"All recipients rejected: {sorted(rejected)}")
        return NotifyOutcome.SENT

    async def notify(self, subject: str, body: str, recipient: str | None = None) -> NotifyOutcome:
        """
        Send a notification. Returns SKIPPED when disabled. With failure isolation
        on, any failure is logged and FAILED is returned; otherwise it is raised.
        """
        if not self.config.enabled:
            logger.debug("notification_skipped", reason="disabled")
            return NotifyOutcome.SKIPPED
        try:
            return await self._send(subject, body, recipient)
        except Exception as e:
            logger.warning("notification_failed", error=str(e), error_type=type(e).__name__)
            if self.config.failure_isolation:
                return NotifyOutcome.FAILED
            if isinstance(e, (ConfigurationError, UpstreamError)):
                raise
            raise UpstreamError(f"Email send failed: {e}") from e


def build_notifier(settings: Settings) -> Notifier:
    notifier = Notifier(NotificationConfig.from_settings(settings))
    logger.info(
        "notifier_ready",
        enabled=notifier.enabled,
        transport=settings.notify_transport,
        failure_isolation=settings.notify_failure_isolation,
    )
    return notifier
