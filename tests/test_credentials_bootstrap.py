"""Credential provisioning: write once from env content, never overwrite, never abort."""

from pathlib import Path

from wishsheet.config import Settings
from wishsheet.credentials.bootstrap import (
    CredentialArtifact,
    credential_artifacts,
    normalize_escaped_newlines,
    provision_credential_files,
)


def test_writes_absent_artifact_with_normalized_newlines(tmp_path: Path) -> None:
    path = tmp_path / "credentials.json"
    written = provision_credential_files(
        [CredentialArtifact("credentials", path, '{\\n  "installed": {}\\n}')]
    )
    assert written == [path]
    assert path.read_text(encoding="utf-8") == '{\n  "installed": {}\n}'


def test_never_overwrites_existing_artifact(tmp_path: Path) -> None:
    path = tmp_path / "token.json"
    path.write_text('{"token": "original"}', encoding="utf-8")
    written = provision_credential_files([CredentialArtifact("token", path, '{"token": "new"}')])
    assert written == []
    assert path.read_text(encoding="utf-8") == '{"token": "original"}'


def test_skips_when_env_content_unset(tmp_path: Path) -> None:
    path = tmp_path / "token.json"
    assert provision_credential_files([CredentialArtifact("token", path, None)]) == []
    assert not path.exists()


def test_write_error_is_logged_and_provisioning_continues(tmp_path: Path) -> None:
    """A failed write does not stop the next artifact from being written."""
    unwritable = tmp_path / "missing-dir" / "credentials.json"
    token = tmp_path / "token.json"
    written = provision_credential_files(
        [
            CredentialArtifact("credentials", unwritable, "{}"),
            CredentialArtifact("token", token, '{"token": "t"}'),
        ]
    )
    assert written == [token]
    assert not unwritable.exists()


def test_provisioning_is_idempotent(tmp_path: Path) -> None:
    artifacts = [CredentialArtifact("token", tmp_path / "token.json", '{"token": "t"}')]
    assert len(provision_credential_files(artifacts)) == 1
    assert provision_credential_files(artifacts) == []


def test_credential_artifacts_from_settings(tmp_path: Path) -> None:
    s = Settings(
        google_credentials_file=str(tmp_path / "c.json"),
        google_token_file=str(tmp_path / "t.json"),
        credentials_json="{}",
        token_json=None,
    )
    artifacts = credential_artifacts(s)
    assert [a.name for a in artifacts] == ["credentials", "token"]
    assert artifacts[0].path == tmp_path / "c.json"
    assert artifacts[0].content == "{}"
    assert artifacts[1].content is None


def test_normalize_escaped_newlines() -> None:
    assert normalize_escaped_newlines("a\\nb") == "a\nb"
    assert normalize_escaped_newlines("a\nb") == "a\nb"
