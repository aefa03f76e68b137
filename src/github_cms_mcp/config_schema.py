"""Unified configuration schema for github_cms_mcp.

Defines Pydantic models for the YAML config structure with dedicated
sections for the GitHub connection, content layout, and logging, plus an
adapter that flattens them into fallbacks for ``load_config()``.

Usage:
    from github_cms_mcp.config_schema import build_config, to_yaml_fallbacks

    raw = load_hierarchical_config()
    unified = build_config(raw)
    config = load_config(yaml_fallbacks=to_yaml_fallbacks(unified))
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, Field, SecretStr

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class GitHubSection(BaseModel):
    """GitHub connection settings.

    All fields are optional to support zero-config: env vars and CLI args
    can supply them at runtime instead.
    """

    token: SecretStr | None = Field(
        default=None, description="Personal access token"
    )
    owner: str | None = Field(default=None, description="Repository owner")
    repo: str | None = Field(default=None, description="Repository name")
    branch: str | None = Field(default=None, description="Target branch")
    api_url: str | None = Field(
        default=None, description="REST API base URL"
    )
    debug: bool = Field(default=False, description="Enable debug mode")
    max_parallel_requests: int = Field(
        default=5,
        ge=1,
        le=100,
        description="Maximum concurrent API requests (1-100)",
    )
    max_batch_size: int = Field(
        default=100,
        ge=1,
        le=1000,
        description="Maximum files per publish commit (1-1000)",
    )

    model_config = {"frozen": True}


class ContentSection(BaseModel):
    """Where published documents live and where drafts are kept."""

    directory: str = Field(
        default="content", description="Repository directory for documents"
    )
    markup_extension: str = Field(
        default=".md", pattern=r"^\.[A-Za-z0-9]+$"
    )
    drafts_file: str | None = Field(
        default=None, description="Local JSON file holding drafts"
    )

    model_config = {"frozen": True}


class LoggingSection(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL),
            used when LOG_LEVEL is unset.
        file: Optional log file path.
    """

    level: str | None = Field(default=None, description="Log level")
    file: str | None = Field(default=None, description="Log file path")

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Top-level unified config
# ---------------------------------------------------------------------------


class UnifiedConfig(BaseModel):
    """Top-level configuration. ``UnifiedConfig()`` is always valid."""

    github: GitHubSection = Field(default_factory=GitHubSection)
    content: ContentSection = Field(default_factory=ContentSection)
    logging: LoggingSection = Field(default_factory=LoggingSection)

    model_config = {"frozen": True}


def build_config(raw_data: dict) -> UnifiedConfig:
    """Construct a ``UnifiedConfig`` from the merged YAML dict.

    Missing sections get defaults.

    Raises:
        pydantic.ValidationError: If a section holds invalid values.
    """
    if not raw_data:
        return UnifiedConfig()

    return UnifiedConfig(**raw_data)


def to_yaml_fallbacks(unified: UnifiedConfig) -> dict:
    """Flatten *unified* into the ``yaml_fallbacks`` dict of ``load_config``.

    Unset values are omitted so that built-in defaults still apply.
    """
    github = unified.github
    content = unified.content
    fallbacks: dict = {
        "owner": github.owner,
        "repo": github.repo,
        "branch": github.branch,
        "api_url": github.api_url,
        "debug": github.debug,
        "max_parallel_requests": github.max_parallel_requests,
        "max_batch_size": github.max_batch_size,
        "directory": content.directory,
        "markup_extension": content.markup_extension,
        "drafts_file": content.drafts_file,
    }
    if github.token is not None:
        fallbacks["token"] = github.token.get_secret_value()
    return {k: v for k, v in fallbacks.items() if v is not None}
