#!/usr/bin/env python3
"""Validate environment variables and credential files for wishsheet."""

import json
import sys
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import ValidationError as SettingsValidationError

from wishsheet.config import Settings, missing_required_settings
from wishsheet.credentials.bootstrap import normalize_escaped_newlines
from wishsheet.credentials.loader import load_access_token, load_credential_bundle
from wishsheet.errors import ConfigurationError

# Load .env from project root so Settings sees values when run as a script
load_dotenv(Path(__file__).resolve().parent.parent / ".env")


class ValidationError(Exception):
    """Raised when environment validation fails."""


def validate_env(mode: Literal["required", "all"] = "required") -> Settings:
    """
    Validate environment variables.

    Args:
        mode: "required" checks critical vars, "all" also checks credential files

    Returns:
        the loaded Settings

    Raises:
        ValidationError: if validation fails
    """
    errors: list[str] = []
    warnings: list[str] = []

    try:
        settings = Settings()
    except SettingsValidationError as e:
        raise ValidationError(f"Settings failed to load: {e}") from e

    for name in missing_required_settings(settings):
        errors.append(f"❌ {name} is required but not set")

    if mode == "all":
        errors.extend(_check_credential_file(settings))
        if not settings.notify_enabled:
            warnings.append("⚠️  NOTIFY_ENABLED is false; no email will be sent")
        if "*" in settings.cors_origins_list() and not settings.is_development:
            warnings.append("⚠️  CORS_ALLOW_ORIGINS allows every origin")

    if errors:
        print("\n❌ Environment Validation Failed:\n")
        for error in errors:
            print(f"  {error}")
        print()
        raise ValidationError(f"{len(errors)} validation error(s)")

    if warnings:
        print("\n⚠️  Environment Warnings:\n")
        for warning in warnings:
            print(f"  {warning}")
        print()

    return settings


def _check_credential_file(settings: Settings) -> list[str]:
    """Files may be absent when their contents come from CREDENTIALS_JSON / TOKEN_JSON."""
    errors: list[str] = []
    checks = [
        ("GOOGLE_CREDENTIALS_FILE", settings.google_credentials_file, settings.credentials_json, load_credential_bundle),
        ("GOOGLE_TOKEN_FILE", settings.google_token_file, settings.token_json, load_access_token),
    ]
    for var_name, path, env_content, loader in checks:
        if Path(path).exists():
            try:
                loader(Path(path))
            except ConfigurationError as e:
                errors.append(f"❌ {var_name}: {e}")
        elif env_content:
            try:
                json.loads(normalize_escaped_newlines(env_content), strict=False)
            except json.JSONDecodeError as e:
                errors.append(f"❌ {var_name} absent and its env content is not valid JSON: {e}")
        else:
            errors.append(f"❌ {var_name} ({path}) not found and no env content to provision it")
    return errors


def main():
    """CLI entry point."""
    import argparse

    parser = argparse.ArgumentParser(description="Validate wishsheet environment variables")
    parser.add_argument(
        "--mode",
        choices=["required", "all"],
        default="required",
        help="Validation mode (required=critical vars only, all=include credential files)",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress success message",
    )

    args = parser.parse_args()

    try:
        validate_env(mode=args.mode)
        if not args.quiet:
            print("\n✅ Environment validation passed\n")
        sys.exit(0)
    except ValidationError as e:
        print(f"\n{e}\n")
        print("💡 Tip: Copy .env.example to .env and fill in the required values")
        print("   Run scripts/authorize.py once to create token.json\n")
        sys.exit(1)


if __name__ == "__main__":
    main()
