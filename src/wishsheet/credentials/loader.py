"""
Read the OAuth client descriptor and token into immutable values, then into
google-auth Credentials. Token refresh is left to google-auth.
"""

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from google.oauth2.credentials import Credentials

from wishsheet.errors import ConfigurationError

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]
DEFAULT_TOKEN_URI = "https://oauth2.googleapis.com/token"


@dataclass(frozen=True)
class CredentialBundle:
    """Installed-app OAuth2 client identity."""

    client_id: str
    client_secret: str
    redirect_uri: str | None = None
    token_uri: str = DEFAULT_TOKEN_URI

    @classmethod
    def from_document(cls, doc: Any) -> "CredentialBundle":
        """Parse a Google client secrets document ({"installed": {...}} or {"web": {...}})."""
        if not isinstance(doc, dict):
            raise ConfigurationError("OAuth client descriptor must be a JSON object")
        section = doc.get("installed") or doc.get("web") or doc
        if not isinstance(section, dict):
            raise ConfigurationError("OAuth client descriptor section must be a JSON object")
        client_id = section.get("client_id")
        client_secret = section.get("client_secret")
        if not client_id or not client_secret:
            raise ConfigurationError("OAuth client descriptor lacks client_id or client_secret")
        redirect_uris = section.get("redirect_uris") or []
        return cls(
            client_id=client_id,
            client_secret=client_secret,
            redirect_uri=redirect_uris[0] if redirect_uris else None,
            token_uri=section.get("token_uri") or DEFAULT_TOKEN_URI,
        )


@dataclass(frozen=True)
class AccessToken:
    """Bearer/refresh token pair bound to a CredentialBundle."""

    access_token: str | None
    refresh_token: str | None
    expiry: datetime | None = None
    scopes: tuple[str, ...] = tuple(SCOPES)

    @classmethod
    def from_document(cls, doc: Any) -> "AccessToken":
        """
        Parse a stored token. Accepts the google-auth format (token, expiry ISO)
        and the googleapis Node format (access_token, expiry_date in ms).
        """
        if not isinstance(doc, dict):
            raise ConfigurationError("OAuth token must be a JSON object")
        access_token = doc.get("token") or doc.get("access_token")
        refresh_token = doc.get("refresh_token")
        if not access_token and not refresh_token:
            raise ConfigurationError("OAuth token has neither an access token nor a refresh token")
        scopes = doc.get("scopes") or doc.get("scope") or SCOPES
        if isinstance(scopes, str):
            scopes = scopes.split()
        return cls(
            access_token=access_token,
            refresh_token=refresh_token,
            expiry=_parse_expiry(doc),
            scopes=tuple(scopes),
        )


def _parse_expiry(doc: dict[str, Any]) -> datetime | None:
    """Naive UTC expiry, as google-auth expects."""
    if doc.get("expiry"):
        try:
            parsed = datetime.fromisoformat(str(doc["expiry"]).replace("Z", "+00:00"))
        except ValueError as e:
            raise ConfigurationError(f"OAuth token expiry is not ISO-8601: {e}") from e
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
        return parsed
    if doc.get("expiry_date"):
        try:
            millis = float(doc["expiry_date"])
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"OAuth token expiry_date is not numeric: {e}") from e
        return datetime.fromtimestamp(millis / 1000, tz=timezone.utc).replace(tzinfo=None)
    return None


def read_json_document(path: Path, label: str) -> Any:
    """Load one credential artifact. Missing or unparsable files are configuration errors."""
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise ConfigurationError(f"{label} file not found: {path}") from e
    except OSError as e:
        raise ConfigurationError(f"{label} file unreadable: {path}: {e}") from e
    try:
        # strict=False: provisioning may have turned escaped newlines inside strings into real ones
        return json.loads(raw, strict=False)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"{label} file is not valid JSON: {path}: {e}") from e


def load_credential_bundle(path: Path) -> CredentialBundle:
    return CredentialBundle.from_document(read_json_document(path, "OAuth client descriptor"))


def load_access_token(path: Path) -> AccessToken:
    return AccessToken.from_document(read_json_document(path, "OAuth token"))


def build_credentials(bundle: CredentialBundle, token: AccessToken) -> Credentials:
    """google-auth user credentials; refreshable whenever a refresh token is present."""
    return Credentials(
        token=token.access_token,
        refresh_token=token.refresh_token,
        token_uri=bundle.token_uri,
        client_id=bundle.client_id,
        client_secret=bundle.client_secret,
        scopes=list(token.scopes),
        expiry=token.expiry,
    )
