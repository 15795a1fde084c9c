"""Pytest fixtures. Use asyncio for async tests."""

import json
import os
from pathlib import Path
from typing import Any, Generator

import pytest

from wishsheet.config import get_settings
from wishsheet.sheets.client import AppendResult

_CLEARED_VARS = (
    "CREDENTIALS_JSON",
    "TOKEN_JSON",
    "NOTIFY_ENABLED",
    "NOTIFY_TRANSPORT",
    "NOTIFY_FAILURE_ISOLATION",
    "SENDGRID_API_KEY",
    "SMTP_USERNAME",
    "SMTP_PASSWORD",
    "SMTP_HOST",
    "EMAIL_FROM",
    "EMAIL_TO",
    "PORT",
    "DEBUG",
)


@pytest.fixture(scope="session", autouse=True)
def _minimal_env(tmp_path_factory: pytest.TempPathFactory) -> Generator[None, None, None]:
    """Minimal env so get_settings() and app startup succeed without real Google credentials."""
    cred_dir = tmp_path_factory.mktemp("creds")
    os.environ["ENV"] = "development"
    os.environ["SHEET_ID"] = "test-spreadsheet-id"
    os.environ["SHEET_NAME"] = "Sheet1"
    os.environ["GOOGLE_CREDENTIALS_FILE"] = str(cred_dir / "credentials.json")
    os.environ["GOOGLE_TOKEN_FILE"] = str(cred_dir / "token.json")
    for name in _CLEARED_VARS:
        os.environ.pop(name, None)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class FakeSheetsClient:
    """Records appended rows in memory; raises ``error`` instead when set."""

    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.rows: list[list[Any]] = []
        self.calls: list[tuple[str | None, str, list[Any]]] = []

    async def append(self, spreadsheet_id: str | None, sheet_range_name: str, row: list[Any]) -> AppendResult:
        self.calls.append((spreadsheet_id, sheet_range_name, row))
        if self.error is not None:
            raise self.error
        self.rows.append(row)
        return AppendResult(updated_range=f"{sheet_range_name}!A{len(self.rows)}:B{len(self.rows)}", updated_rows=1)


@pytest.fixture
def fake_sheets() -> FakeSheetsClient:
    return FakeSheetsClient()


@pytest.fixture
def client_secret_doc() -> dict[str, Any]:
    return {
        "installed": {
            "client_id": "client-123.apps.googleusercontent.com",
            "client_secret": "shh",
            "redirect_uris": ["http://localhost"],
            "token_uri": "https://oauth2.googleapis.com/token",
        }
    }


@pytest.fixture
def token_doc() -> dict[str, Any]:
    return {
        "token": "ya29.access",
        "refresh_token": "1//refresh",
        "scopes": ["https://www.googleapis.com/auth/spreadsheets"],
        "expiry": "2026-01-30T12:00:00.000000Z",
    }


@pytest.fixture
def settings_env(monkeypatch: pytest.MonkeyPatch) -> Generator[pytest.MonkeyPatch, None, None]:
    """Set env vars for one test and drop the cached Settings before and after."""
    get_settings.cache_clear()
    yield monkeypatch
    get_settings.cache_clear()


def write_json(path: Path, doc: Any) -> Path:
    path.write_text(json.dumps(doc), encoding="utf-8")
    return path
