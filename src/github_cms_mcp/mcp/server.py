"""MCP Server publishing Markdown content to a GitHub repository.

Agents read published documents, keep local drafts, and publish drafts as
commits on a configured branch.

Transport: stdio
Protocol: JSON-RPC 2.0 over MCP
"""

import argparse
import asyncio
import logging
import sys

import mcp.server.stdio
import mcp.types as types
import requests
import yaml
from mcp.server import NotificationOptions, Server
from mcp.server.models import InitializationOptions

from .. import __version__
from ..config_loader import (
    discover_config_files,
    ensure_config,
    load_hierarchical_config,
)
from ..config_schema import LoggingSection, build_config
from ..core.async_utils import run_sync
from ..core.client import get_repository
from ..errors import classify_http_error
from ..logger import DEFAULT_LOG_FILE, RedactingFilter, setup_logging
from ..version import check_version_consistency
from .context import ToolContext
from .lifespan import server_lifespan
from .tools import (
    ALL_SPECS,
    ToolRegistry,
    build_error_response,
    load_permissions_file,
)
from .tools.registry import ToolSpec

logger = logging.getLogger(__name__)

SERVER_NAME = "github-cms-mcp"

server = Server(SERVER_NAME)

# Initialized in main()
_context: ToolContext | None = None
_registry: ToolRegistry | None = None


# ---------------------------------------------------------------------------
# Ping tool (always available, no permission required)
# ---------------------------------------------------------------------------


async def _handle_ping(
    ctx: ToolContext, args: dict
) -> types.CallToolResult:
    """Handle ping tool -- test repository access."""
    remote = ctx.remote
    try:
        info = await run_sync(get_repository, remote)
    except requests.RequestException as e:
        raise classify_http_error(e, path=remote.full_name) from e
    private = " (private)" if info.get("private") else ""
    return types.CallToolResult(
        content=[
            types.TextContent(
                type="text",
                text=f"Connected to {remote.full_name}{private}. Publishing to branch {remote.branch}.",
            )
        ],
        structuredContent={
            "repository": remote.full_name,
            "branch": remote.branch,
            "default_branch": info.get("default_branch"),
            "version": __version__,
        },
    )


PING_SPEC = ToolSpec(
    tool=types.Tool(
        name="ping",
        description="Test GitHub repository access and report the publishing branch",
        inputSchema={
            "type": "object",
            "properties": {},
            "required": [],
        },
    ),
    permissions=frozenset(),
    handler=_handle_ping,
)


# ---------------------------------------------------------------------------
# Global accessors
# ---------------------------------------------------------------------------


def get_context() -> ToolContext:
    """Get the global ToolContext.

    Raises:
        RuntimeError: If the server lifespan has not started.
    """
    if _context is None:
        raise RuntimeError(
            "ToolContext not initialized. Server lifespan not started."
        )
    return _context


def set_context(ctx: ToolContext | None) -> None:
    global _context
    _context = ctx


def get_registry() -> ToolRegistry:
    """Get the global ToolRegistry.

    Raises:
        RuntimeError: If registry is not initialized
    """
    if _registry is None:
        raise RuntimeError("ToolRegistry not initialized.")
    return _registry


def set_registry(registry: ToolRegistry | None) -> None:
    global _registry
    _registry = registry


# ---------------------------------------------------------------------------
# MCP protocol handlers
# ---------------------------------------------------------------------------


@server.list_tools()
async def handle_list_tools() -> list[types.Tool]:
    """List all registered (and permitted) tools."""
    return get_registry().list_tools()


@server.call_tool()
async def handle_call_tool(
    name: str, arguments: dict | None
) -> types.CallToolResult:
    """Handle tool execution via ToolRegistry dispatch."""
    ctx = get_context()
    try:
        return await get_registry().call_tool(name, arguments, ctx)
    except ValueError as e:
        # Unknown or filtered-out tool name
        return build_error_response(
            "unknown_tool",
            str(e),
            "Use list_tools to see available tools.",
            404,
        )


# ---------------------------------------------------------------------------
# Server lifecycle
# ---------------------------------------------------------------------------


def yaml_logging_section() -> LoggingSection:
    """The ``logging`` section of the YAML config, defaults if unusable.

    Logging is configured before the lifespan loads the rest of the
    config, so a broken file only costs the logging settings here; the
    lifespan reports the actual error.
    """
    if not discover_config_files():
        return LoggingSection()
    try:
        return build_config(load_hierarchical_config()).logging
    except (OSError, ValueError, yaml.YAMLError) as e:
        print(f"Warning: ignoring logging config: {e}", file=sys.stderr)
        return LoggingSection()


def build_registry(permissions_file: str | None = None) -> ToolRegistry:
    """Build the registry, filtered by *permissions_file* when given."""
    allowed_permissions = None
    if permissions_file:
        allowed_permissions = load_permissions_file(permissions_file)
        logger.info(
            "Loaded %d permissions from %s",
            len(allowed_permissions),
            permissions_file,
        )

    all_specs = [PING_SPEC] + ALL_SPECS
    registry = ToolRegistry(all_specs, allowed_permissions)
    logger.info(
        "Registered %d tools (of %d total)",
        registry.tool_count(),
        len(all_specs),
    )
    if permissions_file:
        print(
            f"Permissions file: {permissions_file} "
            f"({registry.tool_count()} of {len(all_specs)} tools enabled)",
            file=sys.stderr,
        )
    return registry


async def main(config_overrides: dict | None = None):
    """Run the MCP server with stdio transport.

    Logging goes to a file only: stdout carries the JSON-RPC stream.

    Args:
        config_overrides: Optional dict of CLI values (token, owner, repo,
            branch, content_dir, drafts_file, log_file, log_format,
            permissions_file)
    """
    overrides = dict(config_overrides or {})
    log_file = overrides.pop("log_file", None)
    log_format = overrides.pop("log_format", None) or "text"
    permissions_file = overrides.pop("permissions_file", None)
    logging_section = yaml_logging_section()

    # Must run before stdio_server starts
    setup_logging(
        mode="mcp",
        log_file=log_file or logging_section.file,
        debug=overrides.get("debug", False),
        debug_format=log_format,
        secrets=[overrides["token"]] if overrides.get("token") else (),
        level=logging_section.level,
    )

    is_consistent, message = check_version_consistency()
    if not is_consistent:
        logger.warning(message)
        sys.stderr.write(f"Warning: {message}\n")
    else:
        logger.info(message)

    set_registry(build_registry(permissions_file))

    # set_context() is called here rather than in the lifespan so that
    # running this file as __main__ does not update a second module copy.
    async with server_lifespan(config_overrides=overrides) as ctx:
        _add_secret_redaction(ctx.remote.auth_token.get_secret_value())
        set_context(ctx)
        try:
            async with mcp.server.stdio.stdio_server() as (
                read_stream,
                write_stream,
            ):
                init_options = InitializationOptions(
                    server_name=SERVER_NAME,
                    server_version=__version__,
                    capabilities=server.get_capabilities(
                        notification_options=NotificationOptions(),
                        experimental_capabilities={},
                    ),
                )
                await server.run(read_stream, write_stream, init_options)
        finally:
            set_context(None)
            set_registry(None)


def _add_secret_redaction(secret: str) -> None:
    """Redact *secret* on every root handler (token may come from env or YAML)."""
    redactor = RedactingFilter([secret])
    for handler in logging.getLogger().handlers:
        handler.addFilter(redactor)


def run() -> None:
    """Entry point that handles errors gracefully and parses CLI arguments."""
    parser = argparse.ArgumentParser(
        description="GitHub CMS MCP Server - publish Markdown drafts to a GitHub repository",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run with settings from .env or .github_cms/config.yml
  github-cms-mcp

  # Target a specific repository and branch
  github-cms-mcp --owner my-org --repo my-site --branch content

  # Publish under a different directory and keep drafts elsewhere
  github-cms-mcp --content-dir posts --drafts-file ~/drafts.json

  # Read-only agent
  github-cms-mcp --permissions-file /etc/github-cms/read-only.permissions

  # Create .github_cms/config.yml with every setting commented out
  github-cms-mcp --init-config

Note: This server uses stdio transport for JSON-RPC communication with MCP clients.
All user-facing messages are written to stderr.
        """,
    )

    parser.add_argument(
        "--owner",
        help="Repository owner (takes precedence over GITHUB_OWNER and config files)",
    )
    parser.add_argument(
        "--repo",
        help="Repository name (takes precedence over GITHUB_REPO and config files)",
    )
    parser.add_argument(
        "--branch",
        help="Target branch (default: main)",
    )
    parser.add_argument(
        "--token",
        help="Access token (visible in process list -- prefer GITHUB_TOKEN env var)",
    )
    parser.add_argument(
        "--content-dir",
        help="Repository directory for published documents (default: content)",
    )
    parser.add_argument(
        "--drafts-file",
        help="Local JSON file holding drafts (default: .github_cms/drafts.json)",
    )
    parser.add_argument(
        "--log-file",
        help="Log file path (default: logging.file from the config file, "
        f"then LOG_FILE, then {DEFAULT_LOG_FILE})",
    )
    parser.add_argument(
        "--log-format",
        choices=["text", "json"],
        help="Log record format (default: text)",
    )
    parser.add_argument(
        "--permissions-file",
        help="Path to permissions file restricting available tools. "
        "Format: one permission per line (e.g., CONTENT_VIEW), # for comments. "
        "If not specified, all tools are available.",
    )
    parser.add_argument(
        "--init-config",
        action="store_true",
        help="Write a commented starter config file if none exists, print its path and exit",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"github-cms-mcp version {__version__}",
    )

    args = parser.parse_args()

    if args.init_config:
        print(f"Config file: {ensure_config()}", file=sys.stderr)
        return

    config_overrides = {
        key: value
        for key, value in {
            "owner": args.owner,
            "repo": args.repo,
            "branch": args.branch,
            "token": args.token,
            "content_dir": args.content_dir,
            "drafts_file": args.drafts_file,
            "log_file": args.log_file,
            "log_format": args.log_format,
            "permissions_file": args.permissions_file,
        }.items()
        if value
    }

    if config_overrides:
        override_keys = [k for k in config_overrides if k != "token"]
        print(
            f"Config overrides from CLI: {', '.join(override_keys)}",
            file=sys.stderr,
        )

    try:
        asyncio.run(main(config_overrides=config_overrides or None))
    except RuntimeError:
        # Error already printed to stderr by lifespan manager
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(0)


if __name__ == "__main__":
    run()
