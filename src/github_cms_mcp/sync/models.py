"""Pydantic models for the repository sync engine.

Defines the data contracts shared by the object store client, the sync
engine, and the request handlers:

- ``RemoteConfig``: which repository and branch to talk to, and how.
- ``FileWrite``: one file to persist, with the token of the version it replaces.
- ``RemoteFile``: a file as read from the store, with its concurrency token.
- ``CommitResult``: the commit a write produced.

All models are frozen (immutable) and created per call.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, SecretStr, field_validator

FILE_MODE = "100644"


class RemoteConfig(BaseModel):
    """Connection settings for one repository branch.

    Attributes:
        owner: Account or organization owning the repository.
        repository_name: Repository name.
        auth_token: Access token; never shown by ``repr`` or ``str``.
        branch: Branch to read from and write to.
        api_url: REST API base URL.
    """

    owner: str
    repository_name: str
    auth_token: SecretStr
    branch: str = "main"
    api_url: str = "https://api.github.com"

    model_config = {"frozen": True}

    @property
    def repo_path(self) -> str:
        """``/repos/{owner}/{repo}`` prefix for REST endpoints."""
        return f"/repos/{self.owner}/{self.repository_name}"

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repository_name}"


class FileWrite(BaseModel):
    """A single file to persist.

    Attributes:
        path: Repository-relative POSIX path (no leading slash).
        content: Exact bytes to store. ``str`` input is UTF-8 encoded.
        concurrency_token: Blob sha of the version being replaced, or
            ``None`` when creating a new path.
    """

    path: str
    content: bytes
    concurrency_token: str | None = None

    model_config = {"frozen": True}

    @field_validator("path")
    @classmethod
    def _check_path(cls, value: str) -> str:
        value = value.strip()
        if not value or value.startswith("/") or value.endswith("/"):
            raise ValueError(f"Invalid repository path: '{value}'")
        if any(part in ("", ".", "..") for part in value.split("/")):
            raise ValueError(f"Invalid repository path: '{value}'")
        return value


class RemoteFile(BaseModel):
    """Current state of a file on the configured branch."""

    path: str
    content: bytes
    concurrency_token: str

    model_config = {"frozen": True}

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")


class CommitResult(BaseModel):
    """Outcome of a successful write.

    Attributes:
        new_commit_id: Sha of the commit the write created.
        branch_head_after: Sha the branch points at after the write.
        content_tokens: Blob sha per written path, usable as the
            concurrency token of a follow-up write.
    """

    new_commit_id: str
    branch_head_after: str
    content_tokens: dict[str, str] = Field(default_factory=dict)

    model_config = {"frozen": True}
