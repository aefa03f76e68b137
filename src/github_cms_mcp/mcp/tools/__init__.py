"""MCP tool handlers for repository content and local drafts.

This package wraps the sync engine, the rendering pipeline and the draft
store with async handlers and structured error responses.
"""

from .content_read import CONTENT_READ_SPECS, CONTENT_READ_TOOLS
from .content_write import CONTENT_WRITE_SPECS, CONTENT_WRITE_TOOLS
from .drafts import DRAFT_SPECS, DRAFT_TOOLS
from .errors import build_error_response, translate_sync_error
from .markdown import MARKDOWN_SPECS, MARKDOWN_TOOLS
from .registry import (
    CONTENT_VIEW,
    CONTENT_WRITE,
    DRAFT_VIEW,
    DRAFT_WRITE,
    ToolRegistry,
    ToolSpec,
    load_permissions_file,
)

CONTENT_SPECS = CONTENT_READ_SPECS + CONTENT_WRITE_SPECS

ALL_SPECS: list[ToolSpec] = CONTENT_SPECS + MARKDOWN_SPECS + DRAFT_SPECS

__all__ = [
    "build_error_response",
    "translate_sync_error",
    # Registry
    "ToolSpec",
    "ToolRegistry",
    "load_permissions_file",
    "CONTENT_VIEW",
    "CONTENT_WRITE",
    "DRAFT_VIEW",
    "DRAFT_WRITE",
    # Spec lists
    "ALL_SPECS",
    "CONTENT_SPECS",
    "CONTENT_READ_SPECS",
    "CONTENT_WRITE_SPECS",
    "MARKDOWN_SPECS",
    "DRAFT_SPECS",
    # Tool lists
    "CONTENT_READ_TOOLS",
    "CONTENT_WRITE_TOOLS",
    "MARKDOWN_TOOLS",
    "DRAFT_TOOLS",
]
