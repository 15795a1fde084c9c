#!/usr/bin/env python3
"""
One-time OAuth consent: read the client descriptor, open the browser flow,
and store token.json for the service. Optionally print the token as a
single-line TOKEN_JSON value and read the first rows of a sheet as a smoke check.

Usage:
    uv run python scripts/authorize.py
    uv run python scripts/authorize.py --print-env --sheet-id <SPREADSHEET_ID>
"""

import argparse
import json
import sys
from pathlib import Path

from dotenv import load_dotenv
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from wishsheet.config import get_settings
from wishsheet.credentials.loader import SCOPES
from wishsheet.sheets.client import a1_range

load_dotenv(Path(__file__).resolve().parent.parent / ".env")


def authorize(credentials_file: Path, token_file: Path, port: int) -> Credentials:
    """Reuse a valid token, refresh an expired one, or run the consent flow."""
    creds: Credentials | None = None
    if token_file.exists():
        creds = Credentials.from_authorized_user_file(str(token_file), SCOPES)
    if creds and creds.valid:
        print(f"✅ Existing token is valid: {token_file}")
        return creds
    if creds and creds.expired and creds.refresh_token:
        creds.refresh(Request())
        print("✅ Token refreshed")
    else:
        if not credentials_file.exists():
            print(f"❌ OAuth client descriptor not found: {credentials_file}")
            sys.exit(1)
        flow = InstalledAppFlow.from_client_secrets_file(str(credentials_file), SCOPES)
        # access_type=offline so the token carries a refresh token
        creds = flow.run_local_server(port=port, access_type="offline", prompt="consent")
        print("✅ OAuth flow completed")
    token_file.write_text(creds.to_json(), encoding="utf-8")
    print(f"✅ Token stored to {token_file}")
    return creds


def print_sample_rows(creds: Credentials, sheet_id: str, sheet_name: str, limit: int = 5) -> None:
    service = build("sheets", "v4", credentials=creds, cache_discovery=False)
    try:
        result = (
            service.spreadsheets()
            .values()
            .get(spreadsheetId=sheet_id, range=a1_range(sheet_name))
            .execute()
        )
    except HttpError as e:
        print(f"❌ The API returned an error: {e}")
        sys.exit(1)
    rows = result.get("values", [])
    if not rows:
        print("No data found.")
        return
    print("Sample rows:")
    for row in rows[:limit]:
        print(f"  {row}")


def main() -> None:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Authorize Google Sheets access for wishsheet")
    parser.add_argument(
        "--credentials", default=settings.google_credentials_file, help="OAuth client descriptor"
    )
    parser.add_argument("--token", default=settings.google_token_file, help="Where to store the token")
    parser.add_argument("--port", type=int, default=0, help="Local redirect port (0 = any free port)")
    parser.add_argument(
        "--print-env", action="store_true", help="Print the token as a TOKEN_JSON env line"
    )
    parser.add_argument("--sheet-id", default=settings.sheet_id, help="Read sample rows from this sheet")
    parser.add_argument("--sheet-name", default=settings.sheet_name)
    args = parser.parse_args()

    creds = authorize(Path(args.credentials), Path(args.token), args.port)
    if args.print_env:
        print(f"TOKEN_JSON='{json.dumps(json.loads(creds.to_json()))}'")
    if args.sheet_id:
        print_sample_rows(creds, args.sheet_id, args.sheet_name)


if __name__ == "__main__":
    main()
