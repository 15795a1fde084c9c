"""Provision credential files from env contents. Write once; never overwrite."""

from dataclasses import dataclass
from pathlib import Path

from wishsheet.config import Settings
from wishsheet.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class CredentialArtifact:
    """A credential file and the env-provided content that can create it."""

    name: str
    path: Path
    content: str | None


def credential_artifacts(settings: Settings) -> list[CredentialArtifact]:
    """The OAuth client descriptor and the token, as configured."""
    return [
        CredentialArtifact(
            name="credentials",
            path=Path(settings.google_credentials_file),
            content=settings.credentials_json,
        ),
        CredentialArtifact(
            name="token",
            path=Path(settings.google_token_file),
            content=settings.token_json,
        ),
    ]


def normalize_escaped_newlines(content: str) -> str:
    """Turn literal backslash-n sequences (common in single-line env values) into newlines."""
    return content.replace("\\n", "\n")


def provision_credential_files(artifacts: list[CredentialArtifact]) -> list[Path]:
    """
    Write each artifact whose file is absent and whose content is set.
    Write errors are logged and skipped; the missing file surfaces later as a
    configuration error on first use. Returns the paths that were written.
    """
    written: list[Path] = []
    for artifact in artifacts:
        if artifact.path.exists():
            logger.debug("credential_artifact_present", artifact=artifact.name)
            continue
        if not artifact.content:
            logger.info("credential_artifact_absent", artifact=artifact.name, path=str(artifact.path))
            continue
        try:
            artifact.path.write_text(normalize_escaped_newlines(artifact.content), encoding="utf-8")
        except OSError as e:
            logger.error(
                "credential_artifact_write_failed",
                artifact=artifact.name,
                path=str(artifact.path),
                error=str(e),
            )
            continue
        logger.info("credential_artifact_written", artifact=artifact.name, path=str(artifact.path))
        written.append(artifact.path)
    return written
