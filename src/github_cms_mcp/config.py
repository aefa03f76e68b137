"""Configuration for the standalone MCP server.

Reads GitHub connection settings from CLI args, environment variables,
.env files, and YAML config file fallbacks.

Precedence (highest to lowest):
    CLI args > Environment variables > .env file > YAML config > Built-in defaults

Environment variables:
    GITHUB_TOKEN: Personal access token (required)
    GITHUB_OWNER: Repository owner, user or organization (required)
    GITHUB_REPO: Repository name (required)
    GITHUB_BRANCH: Target branch (optional, default: main)
    GITHUB_API_URL: REST API base URL (optional, default: https://api.github.com)
    GITHUB_MAX_PARALLEL_REQUESTS: Max parallel API requests (optional, default: 5)
    GITHUB_MAX_BATCH_SIZE: Max files per publish commit (optional, default: 100)
    CMS_CONTENT_DIR: Repository directory for published documents (optional, default: content)
    CMS_DRAFTS_FILE: Local JSON file holding drafts (optional)
"""

import logging
import os
from dataclasses import dataclass
from urllib.parse import urlparse

from .sync.models import RemoteConfig

logger = logging.getLogger(__name__)

DEFAULT_BRANCH = "main"
DEFAULT_API_URL = "https://api.github.com"
DEFAULT_DRAFTS_FILE = ".github_cms/drafts.json"

_TOKEN_PREFIXES = ("ghp_", "github_pat_")


@dataclass
class Config:
    github_token: str
    owner: str
    repo: str
    branch: str = DEFAULT_BRANCH
    api_url: str = DEFAULT_API_URL
    debug: bool = False
    max_parallel_requests: int = 5
    max_batch_size: int = 100
    content_dir: str = "content"
    markup_extension: str = ".md"
    drafts_file: str = DEFAULT_DRAFTS_FILE

    def __repr__(self) -> str:
        return f"Config({redact_config(self)!r})"


def config_errors(config: Config) -> list[str]:
    """Return every validation problem found in *config* (empty if valid)."""
    errors: list[str] = []

    if not config.github_token:
        errors.append("GITHUB_TOKEN is required")
    elif not config.github_token.startswith(_TOKEN_PREFIXES):
        errors.append(
            "GITHUB_TOKEN appears to be invalid (should start with ghp_ or github_pat_)"
        )

    if not config.owner:
        errors.append("GITHUB_OWNER is required")

    if not config.repo:
        errors.append("GITHUB_REPO is required")

    if not config.branch.strip():
        errors.append("GITHUB_BRANCH cannot be empty")

    if not config.api_url.startswith(("http://", "https://")):
        errors.append(
            f"Invalid GITHUB_API_URL '{config.api_url}': must start with http:// or https://"
        )
    elif not urlparse(config.api_url).hostname:
        errors.append(
            f"Invalid GITHUB_API_URL '{config.api_url}': URL must include a hostname"
        )

    if not config.markup_extension.startswith("."):
        errors.append(
            f"Invalid markup extension '{config.markup_extension}': must start with '.'"
        )

    return errors


def validate_config(config: Config) -> None:
    """Validate configuration values and raise ValueError if invalid.

    Normalizes whitespace and trailing slashes in place before checking.

    Raises:
        ValueError: Listing every problem found, one per line.
    """
    config.github_token = config.github_token.strip()
    config.owner = config.owner.strip()
    config.repo = config.repo.strip()
    config.api_url = config.api_url.strip().removesuffix("/")
    config.content_dir = config.content_dir.strip().strip("/")

    errors = config_errors(config)
    if errors:
        raise ValueError(
            "Configuration validation failed:\n" + "\n".join(errors)
        )


def redact_config(config: Config) -> dict:
    """Return a dict view of *config* that is safe to log."""
    return {
        "github_token": "[REDACTED]" if config.github_token else "[MISSING]",
        "owner": config.owner or "[MISSING]",
        "repo": config.repo or "[MISSING]",
        "branch": config.branch,
        "api_url": config.api_url,
        "content_dir": config.content_dir,
        "drafts_file": config.drafts_file,
        "max_parallel_requests": config.max_parallel_requests,
        "max_batch_size": config.max_batch_size,
    }


def to_remote_config(config: Config) -> RemoteConfig:
    """Build the immutable per-operation ``RemoteConfig`` from *config*."""
    return RemoteConfig(
        owner=config.owner,
        repository_name=config.repo,
        auth_token=config.github_token,
        branch=config.branch or DEFAULT_BRANCH,
        api_url=config.api_url,
    )


def _bounded_int_env(
    key: str, fallback: dict, fb_key: str, default: int, high: int
) -> int:
    raw = os.getenv(key)
    if raw is not None:
        try:
            value = int(raw)
        except ValueError:
            raise ValueError(
                f"Invalid {key} '{raw}': must be a number between 1 and {high}"
            ) from None
        if not (1 <= value <= high):
            raise ValueError(
                f"Invalid {key} '{raw}': must be a number between 1 and {high}"
            )
        return value
    if fb_key in fallback:
        return int(fallback[fb_key])
    return default


def load_config(
    token: str | None = None,
    owner: str | None = None,
    repo: str | None = None,
    branch: str | None = None,
    content_dir: str | None = None,
    drafts_file: str | None = None,
    debug: bool = False,
    yaml_fallbacks: dict | None = None,
) -> Config:
    """Load configuration with unified precedence.

    Resolution order for each field (highest to lowest):
        CLI arg > env var / .env > yaml_fallbacks > built-in default

    The caller is responsible for calling ``load_dotenv()`` before this
    function so that .env values are available via ``os.getenv()``.

    Args:
        token: Override access token.
        owner: Override repository owner.
        repo: Override repository name.
        branch: Override target branch.
        content_dir: Override publish directory.
        drafts_file: Override local drafts file.
        debug: Enable debug logging (CLI flag).
        yaml_fallbacks: Flattened values from the YAML ``github`` and
            ``content`` sections, used when CLI arg and env var are unset.

    Returns:
        Validated Config instance.

    Raises:
        ValueError: If required settings are missing or malformed.
    """
    fb = yaml_fallbacks or {}

    final_debug = debug
    if not final_debug:
        env_debug = os.getenv("GITHUB_DEBUG")
        if env_debug is not None:
            final_debug = env_debug.lower() in ("true", "1", "yes", "on")
        else:
            final_debug = bool(fb.get("debug", False))

    config = Config(
        github_token=token or os.getenv("GITHUB_TOKEN") or fb.get("token") or "",
        owner=owner or os.getenv("GITHUB_OWNER") or fb.get("owner") or "",
        repo=repo or os.getenv("GITHUB_REPO") or fb.get("repo") or "",
        branch=branch
        or os.getenv("GITHUB_BRANCH")
        or fb.get("branch")
        or DEFAULT_BRANCH,
        api_url=os.getenv("GITHUB_API_URL")
        or fb.get("api_url")
        or DEFAULT_API_URL,
        debug=final_debug,
        max_parallel_requests=_bounded_int_env(
            "GITHUB_MAX_PARALLEL_REQUESTS",
            fb,
            "max_parallel_requests",
            5,
            100,
        ),
        max_batch_size=_bounded_int_env(
            "GITHUB_MAX_BATCH_SIZE", fb, "max_batch_size", 100, 1000
        ),
        content_dir=content_dir
        if content_dir is not None
        else os.getenv("CMS_CONTENT_DIR") or fb.get("directory") or "content",
        markup_extension=fb.get("markup_extension") or ".md",
        drafts_file=drafts_file
        or os.getenv("CMS_DRAFTS_FILE")
        or fb.get("drafts_file")
        or DEFAULT_DRAFTS_FILE,
    )

    validate_config(config)
    logger.debug("Loaded configuration: %s", redact_config(config))

    return config
