"""Error response builders and shared utilities for MCP tool handlers.

Every failure a tool reports is a ``CallToolResult`` with ``isError=True``,
a human-readable text block ending in a corrective action, and structured
content carrying the error kind, the HTTP-style status (404, 400 or 500)
and the detail string.
"""

from datetime import datetime, timezone
from typing import Any

import mcp.types as types

from ...errors import SyncError


def build_error_response(
    error_type: str,
    message: str,
    corrective_action: str,
    status: int = 500,
) -> types.CallToolResult:
    """Build a structured error response with corrective action.

    Args:
        error_type: Error category (not_found, invalid_argument,
            concurrency_conflict, store_unavailable, validation_error,
            server_error, unknown_tool)
        message: Human-readable error description
        corrective_action: Specific action the agent can take to resolve the error
        status: Status reported alongside the error

    Examples:
        >>> build_error_response("not_found", "File not found: a.md", "Use content_list.", 404)
        CallToolResult(content=[TextContent(...)], isError=True, ...)
    """
    error_text = f"Error ({error_type}): {message}\n\nAction: {corrective_action}"

    return types.CallToolResult(
        content=[types.TextContent(type="text", text=error_text)],
        structuredContent={
            "error": error_type,
            "status": status,
            "detail": message,
        },
        isError=True,
    )


def format_timestamp(timestamp: Any) -> str:
    """Format a datetime (or Unix timestamp) as ``YYYY-MM-DD HH:MM`` UTC."""
    match timestamp:
        case datetime() as dt:
            if dt.tzinfo is not None:
                dt = dt.astimezone(timezone.utc)
            return dt.strftime("%Y-%m-%d %H:%M")
        case int() | float() as ts:
            dt = datetime.fromtimestamp(ts, tz=timezone.utc)
            return dt.strftime("%Y-%m-%d %H:%M")
        case _:
            return str(timestamp)


_DOMAIN_MESSAGES: dict[str, dict[str, str]] = {
    "content": {
        "not_found": "Use content_list to see which documents exist.",
        "invalid_argument": "Check parameter values and retry.",
        "concurrency_conflict": "Another writer changed the branch first. Fetch the current content with content_get, then retry the whole operation.",
        "store_unavailable": "Check GITHUB_TOKEN, GITHUB_OWNER and GITHUB_REPO, or retry later.",
    },
    "draft": {
        "not_found": "Use draft_list to find available drafts.",
        "invalid_argument": "Fix the draft fields and retry.",
        "concurrency_conflict": "Reload the draft with draft_get, then retry.",
        "store_unavailable": "Check that the drafts file is readable and writable.",
    },
}


def translate_sync_error(
    error: SyncError, domain: str = "content"
) -> types.CallToolResult:
    """Translate a ``SyncError`` into a structured error response.

    The variant decides the status (via ``error.status``). The corrective
    action follows ``error.domain`` when the error names one, else the
    *domain* of the tool that raised it.
    """
    domain = error.domain or domain
    msgs = _DOMAIN_MESSAGES.get(domain, _DOMAIN_MESSAGES["content"])
    action = msgs.get(error.kind, "Retry later.")
    result = build_error_response(
        error.kind, error.message, action, error.status
    )
    if error.path is not None:
        result.structuredContent["path"] = error.path
    return result
