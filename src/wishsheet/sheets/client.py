"""Google Sheets client: authenticate once at startup, append rows (insert-only)."""

import asyncio
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable

import google_auth_httplib2
import httplib2
from google.auth.exceptions import GoogleAuthError, RefreshError
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from wishsheet.config import Settings
from wishsheet.credentials.loader import (
    build_credentials,
    load_access_token,
    load_credential_bundle,
)
from wishsheet.errors import ConfigurationError, UpstreamError
from wishsheet.logging_config import get_logger

logger = get_logger(__name__)

_PLAIN_SHEET_NAME = re.compile(r"^[A-Za-z0-9_]+$")


@dataclass(frozen=True)
class SpreadsheetTarget:
    """Where rows are appended. Constant after startup."""

    spreadsheet_id: str | None
    sheet_name: str


@dataclass(frozen=True)
class AppendResult:
    """What the Sheets API reports about one append."""

    updated_range: str | None
    updated_rows: int


def a1_range(sheet_name: str, columns: str = "A:B") -> str:
    """A1 range over the given columns; names with spaces or punctuation are quoted."""
    if _PLAIN_SHEET_NAME.match(sheet_name):
        return f"{sheet_name}!{columns}"
    escaped = sheet_name.replace("'", "''")
    return f"'{escaped}'!{columns}"


class SheetsClient:
    """
    Shared, read-only handle on the Sheets API. Built once; each append runs on
    a worker thread with its own authorized HTTP transport (httplib2 is not
    thread-safe). The socket timeout of that transport bounds each call.
    """

    def __init__(
        self,
        service: Any = None,
        credentials: Credentials | None = None,
        timeout: float = 20.0,
        unavailable_reason: str | None = None,
        http_factory: Callable[[], Any] | None = None,
    ) -> None:
        self._service = service
        self._credentials = credentials
        self._timeout = timeout
        self._unavailable_reason = unavailable_reason
        self._http_factory = http_factory

    @property
    def configured(self) -> bool:
        return self._service is not None

    @property
    def unavailable_reason(self) -> str | None:
        return self._unavailable_reason

    def _new_http(self) -> Any:
        if self._http_factory is not None:
            return self._http_factory()
        if self._credentials is None:
            return None
        return google_auth_httplib2.AuthorizedHttp(
            self._credentials, http=httplib2.Http(timeout=self._timeout)
        )

    def _execute(self, request: Any) -> dict[str, Any]:
        http = self._new_http()
        if http is None:
            return request.execute()
        return request.execute(http=http)

    async def append(
        self, spreadsheet_id: str | None, sheet_range_name: str, row: list[Any]
    ) -> AppendResult:
        """
        Append one row below the existing data (INSERT_ROWS; never overwrites).
        Raises ConfigurationError when not configured, UpstreamError when the call fails.
        """
        if self._service is None:
            raise ConfigurationError(
                f"Spreadsheet client is not configured: {self._unavailable_reason or 'no credentials'}"
            )
        if not spreadsheet_id:
            raise ConfigurationError("Spreadsheet client is not configured: SHEET_ID is not set")
        request = (
            self._service.spreadsheets()
            .values()
            .append(
                spreadsheetId=spreadsheet_id,
                range=a1_range(sheet_range_name),
                valueInputOption="RAW",
                insertDataOption="INSERT_ROWS",
                body={"values": [row]},
            )
        )
        try:
            response = await asyncio.to_thread(self._execute, request)
        except TimeoutError as e:
            logger.warning("sheets_append_timeout", timeout=self._timeout)
            raise UpstreamError(
                f"Sheets append timed out after {self._timeout:g}s; the row may still have been written"
            ) from e
        except RefreshError as e:
            logger.warning("sheets_authorization_failed", error=str(e))
            raise UpstreamError(f"Google authorization failed (re-run authorization): {e}") from e
        except HttpError as e:
            logger.warning("sheets_append_failed", status=e.resp.status, error=str(e))
            raise UpstreamError(f"Sheets API error: {e}") from e
        except (GoogleAuthError, httplib2.HttpLib2Error, OSError) as e:
            logger.warning("sheets_append_failed", error=str(e))
            raise UpstreamError(f"Sheets request failed: {e}") from e
        updates = response.get("updates") or {}
        result = AppendResult(
            updated_range=updates.get("updatedRange"),
            updated_rows=int(updates.get("updatedRows") or 0),
        )
        logger.info("sheets_append_ok", updated_range=result.updated_range)
        return result


def build_sheets_client(settings: Settings) -> SheetsClient:
    """
    Load credentials and build the Sheets service. Missing or invalid credentials
    are logged and yield an unconfigured client, so requests fail with a clear
    "not configured" error rather than the app refusing to start.
    """
    try:
        bundle = load_credential_bundle(Path(settings.google_credentials_file))
        token = load_access_token(Path(settings.google_token_file))
    except ConfigurationError as e:
        logger.error("sheets_not_configured", error=str(e))
        return SheetsClient(timeout=settings.sheets_timeout, unavailable_reason=str(e))
    credentials = build_credentials(bundle, token)
    service = build("sheets", "v4", credentials=credentials, cache_discovery=False)
    logger.info("sheets_client_ready", sheet_name=settings.sheet_name)
    return SheetsClient(service=service, credentials=credentials, timeout=settings.sheets_timeout)
