"""Submission flow: validate, append to the sheet, optionally notify. One attempt each; no retry."""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from wishsheet.errors import ValidationError
from wishsheet.logging_config import get_logger
from wishsheet.notify.mailer import Notifier, NotifyOutcome
from wishsheet.sheets.client import SheetsClient, SpreadsheetTarget

logger = get_logger(__name__)

MISSING_WISH_MESSAGE = "Wish content is missing."
SAVED_MESSAGE = "Wish saved to Google Sheets successfully."
SAVED_AND_NOTIFIED_MESSAGE = "Wish saved to Google Sheets & email notification sent."


def iso_timestamp(moment: datetime) -> str:
    """UTC ISO-8601 with milliseconds and a Z suffix, e.g. 2026-01-30T12:00:00.000Z."""
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class Submission:
    """One wish as received. The sheet row is its only durable record."""

    wish: str
    received_at: datetime

    def to_row(self) -> list[str]:
        return [iso_timestamp(self.received_at), self.wish]


@dataclass(frozen=True)
class SubmissionResult:
    submission: Submission
    notification: NotifyOutcome

    @property
    def message(self) -> str:
        if self.notification is NotifyOutcome.SENT:
            return SAVED_AND_NOTIFIED_MESSAGE
        return SAVED_MESSAGE


def parse_wish(body: Any) -> str:
    """Presence check only: the wish must be a non-empty string."""
    wish = body.get("wish") if isinstance(body, dict) else None
    if not isinstance(wish, str) or len(wish) == 0:
        raise ValidationError(MISSING_WISH_MESSAGE)
    return wish


def notification_body(submission: Submission) -> str:
    return f"Wish: {submission.wish}\nTime: {iso_timestamp(submission.received_at)}"


async def submit_wish(
    body: Any,
    sheets: SheetsClient,
    notifier: Notifier,
    target: SpreadsheetTarget,
) -> SubmissionResult:
    """
    Record the wish, then notify. An append failure propagates before any
    notification is attempted; a notification outcome never undoes the row.
    """
    wish = parse_wish(body)
    submission = Submission(wish=wish, received_at=datetime.now(timezone.utc))
    logger.info("wish_received", length=len(wish))

    await sheets.append(target.spreadsheet_id, target.sheet_name, submission.to_row())
    logger.info("wish_saved", sheet_name=target.sheet_name)

    outcome = NotifyOutcome.SKIPPED
    if notifier.enabled:
        outcome = await notifier.notify(notifier.config.subject, notification_body(submission))
    return SubmissionResult(submission=submission, notification=outcome)
