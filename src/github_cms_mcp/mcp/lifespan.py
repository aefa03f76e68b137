"""Lifespan management for MCP server startup and shutdown."""

import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from ..config import load_config, to_remote_config
from ..config_loader import (
    discover_config_files,
    load_hierarchical_config,
)
from ..config_schema import build_config, to_yaml_fallbacks
from ..core.async_utils import init_semaphore, run_sync
from ..core.client import get_repository
from ..drafts import JsonFileDraftStore
from ..errors import classify_http_error
from ..logger import REDACTED
from .context import ToolContext

logger = logging.getLogger(__name__)

_SETTINGS_HINT = "Ensure GITHUB_TOKEN, GITHUB_OWNER, GITHUB_REPO are set."


def _stderr_print(msg: str) -> None:
    """Print message to stderr for user feedback (safe in MCP mode)."""
    print(msg, file=sys.stderr, flush=True)


def _redact(text: str, secret: str | None) -> str:
    if not secret:
        return text
    return text.replace(secret, REDACTED)


@asynccontextmanager
async def server_lifespan(
    config_overrides: dict[str, Any] | None = None,
) -> AsyncIterator[ToolContext]:
    """
    Manage server startup and shutdown lifecycle.

    On startup:
    - Load .env file (so values are available for env var lookups and YAML interpolation)
    - Load YAML config files if present (as fallback values)
    - Merge all sources via load_config(): CLI > env vars > .env > YAML > defaults
    - Check that the repository is reachable with the configured token
    - Open the local draft store

    Args:
        config_overrides: Optional dict with config values from CLI (token,
            owner, repo, branch, content_dir, drafts_file, debug)

    Yields:
        The ToolContext every tool handler receives.

    Raises:
        RuntimeError: If configuration is invalid or the repository is unreachable.
    """
    logger.info("MCP server starting...")
    _stderr_print("GitHub CMS MCP Server starting...")

    overrides = config_overrides or {}
    token_hint = overrides.get("token")

    try:
        load_dotenv()

        yaml_fallbacks: dict[str, Any] | None = None
        sources = []
        config_files = discover_config_files()
        if config_files:
            unified = build_config(load_hierarchical_config())
            yaml_fallbacks = to_yaml_fallbacks(unified)
            sources.append(f"config file: {config_files[0]}")

        config = load_config(
            token=overrides.get("token"),
            owner=overrides.get("owner"),
            repo=overrides.get("repo"),
            branch=overrides.get("branch"),
            content_dir=overrides.get("content_dir"),
            drafts_file=overrides.get("drafts_file"),
            debug=overrides.get("debug", False),
            yaml_fallbacks=yaml_fallbacks,
        )

        if overrides:
            sources.append("CLI arguments")
        sources.append("environment variables")
        source_desc = ", ".join(sources)
        logger.info("Configuration loaded from: %s", source_desc)
        _stderr_print(f"  Configuration loaded from: {source_desc}")
        _stderr_print(
            f"  Repository: {config.owner}/{config.repo} (branch {config.branch})"
        )
    except ValueError as e:
        message = _redact(str(e), token_hint)
        logger.error("Configuration error: %s", message)
        _stderr_print(f"ERROR: Configuration error: {message}")
        _stderr_print(f"  {_SETTINGS_HINT}")
        raise RuntimeError(
            f"Configuration error: {message}. {_SETTINGS_HINT}"
        ) from None

    remote = to_remote_config(config)

    logger.info("Validating repository access...")
    _stderr_print("  Validating repository access...")
    try:
        repo_info = await run_sync(get_repository, remote)
    except Exception as e:
        error = classify_http_error(e, path=remote.full_name)
        message = _redact(error.message, config.github_token)
        logger.error("Failed to reach repository: %s", message)
        _stderr_print("ERROR: Repository access failed.")
        _stderr_print(f"  {message}")
        raise RuntimeError(
            f"Repository access failed: {message}. {_SETTINGS_HINT}"
        ) from None

    default_branch = repo_info.get("default_branch") if repo_info else None
    logger.info(
        "Connected to %s (default branch %s, publishing to %s)",
        remote.full_name,
        default_branch,
        remote.branch,
    )
    init_semaphore(config.max_parallel_requests)
    _stderr_print(f"  Parallel requests: {config.max_parallel_requests}")

    drafts_path = Path(config.drafts_file).expanduser()
    _stderr_print(f"  Drafts file: {drafts_path}")
    _stderr_print("Server ready. Waiting for MCP client connection...")

    yield ToolContext(
        remote=remote,
        drafts=JsonFileDraftStore(drafts_path),
        content_dir=config.content_dir,
        markup_extension=config.markup_extension,
        max_batch_size=config.max_batch_size,
    )

    logger.info("MCP server shutting down")
    _stderr_print("GitHub CMS MCP Server shutting down.")
