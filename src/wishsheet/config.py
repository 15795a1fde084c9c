"""Configuration from environment. All secrets via env; never in code."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

TransportName = Literal["smtp-relay-api-key", "smtp-password"]

DEFAULT_SMTP_HOSTS: dict[str, str] = {
    "smtp-relay-api-key": "smtp.sendgrid.net",
    "smtp-password": "smtp.gmail.com",
}


class Settings(BaseSettings):
    """Application settings. Load from env; validate on access."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Environment ("development" relaxes required-field checks at startup)
    env: str = Field(default="development", description="ENV name for startup checks")
    debug: bool = Field(default=False, description="Console log renderer and debug level")

    # HTTP listener
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=4000, ge=1, le=65535)
    cors_allow_origins: str = Field(
        default="*", description="Comma-separated origins allowed by CORS"
    )

    # Spreadsheet target
    sheet_id: str | None = Field(default=None, description="Google Sheets spreadsheet ID")
    sheet_name: str = Field(default="Sheet1", description="Tab that receives the rows")
    sheets_timeout: float = Field(
        default=20.0, gt=0, le=120, description="Timeout for one append call (seconds)"
    )

    # Credential artifacts (files) and their provisioning contents (env)
    google_credentials_file: str = Field(
        default="credentials.json", description="OAuth client descriptor path"
    )
    google_token_file: str = Field(default="token.json", description="OAuth token path")
    credentials_json: str | None = Field(
        default=None, description="Contents written to GOOGLE_CREDENTIALS_FILE when absent"
    )
    token_json: str | None = Field(
        default=None, description="Contents written to GOOGLE_TOKEN_FILE when absent"
    )

    # Email notification
    notify_enabled: bool = Field(default=False)
    notify_transport: TransportName = Field(default="smtp-relay-api-key")
    notify_failure_isolation: bool = Field(
        default=True, description="When True, a failed email never fails the request"
    )
    notify_subject: str = Field(default="🎉 Birthday Wish Submitted!")
    smtp_host: str | None = Field(default=None, description="Defaults per transport")
    smtp_port: int = Field(default=587, ge=1, le=65535)
    smtp_username: str | None = Field(default=None)
    smtp_password: str | None = Field(default=None)
    sendgrid_api_key: str | None = Field(default=None)
    smtp_timeout: float = Field(default=15.0, gt=0, le=120)
    email_from: str | None = Field(default=None)
    email_to: str | None = Field(default=None)

    @property
    def is_development(self) -> bool:
        return self.env.strip().lower() in ("development", "dev", "local")

    def resolved_smtp_host(self) -> str:
        """SMTP host, falling back to the transport's well-known relay."""
        return self.smtp_host or DEFAULT_SMTP_HOSTS[self.notify_transport]

    def cors_origins_list(self) -> list[str]:
        """Parse comma-separated CORS origins."""
        return [x.strip() for x in self.cors_allow_origins.split(",") if x.strip()]


def missing_required_settings(settings: Settings) -> list[str]:
    """Names of critical env vars that are unset for the current configuration."""
    missing: list[str] = []
    if not settings.sheet_id:
        missing.append("SHEET_ID")
    if settings.notify_enabled:
        if not settings.email_from:
            missing.append("EMAIL_FROM")
        if not settings.email_to:
            missing.append("EMAIL_TO")
        if settings.notify_transport == "smtp-relay-api-key":
            if not settings.sendgrid_api_key:
                missing.append("SENDGRID_API_KEY")
        else:
            if not settings.smtp_username:
                missing.append("SMTP_USERNAME")
            if not settings.smtp_password:
                missing.append("SMTP_PASSWORD")
    return missing


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance."""
    return Settings()
