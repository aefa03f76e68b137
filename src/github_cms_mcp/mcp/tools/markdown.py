"""Markdown utility tools: render, title extraction, slugs and front matter.

These are pure functions of their input and need no repository access,
so they are always available regardless of permissions.
"""

from datetime import datetime

import mcp.types as types

from ...rendering import (
    extract_title,
    generate_front_matter,
    render_document,
    slugify,
)
from ..context import ToolContext
from .errors import build_error_response
from .registry import ToolSpec

MARKDOWN_TOOLS = [
    types.Tool(
        name="markdown_render",
        description="Render Markdown to sanitized HTML. Scripts, event-handler attributes and unsafe URLs never survive rendering.",
        inputSchema={
            "type": "object",
            "properties": {
                "markdown": {
                    "type": "string",
                    "description": "Markdown source (required)",
                },
            },
            "required": ["markdown"],
        },
    ),
    types.Tool(
        name="markdown_title",
        description="Extract a document title: the first top-level heading, else the first content line (max 100 characters), else 'Untitled'.",
        inputSchema={
            "type": "object",
            "properties": {
                "markdown": {
                    "type": "string",
                    "description": "Markdown source (required)",
                },
            },
            "required": ["markdown"],
        },
    ),
    types.Tool(
        name="markdown_slug",
        description="Turn a title into a URL slug: lowercase, hyphen-separated, at most 50 characters.",
        inputSchema={
            "type": "object",
            "properties": {
                "title": {
                    "type": "string",
                    "description": "Title to slugify (required)",
                },
            },
            "required": ["title"],
        },
    ),
    types.Tool(
        name="markdown_front_matter",
        description="Build the front matter block (title, date, draft: false) that starts a newly published document.",
        inputSchema={
            "type": "object",
            "properties": {
                "title": {
                    "type": "string",
                    "description": "Document title (required)",
                },
                "date": {
                    "type": "string",
                    "description": "ISO-8601 publication date (default: now, UTC)",
                },
            },
            "required": ["title"],
        },
    ),
]


def _missing(name: str) -> types.CallToolResult:
    return build_error_response(
        "validation_error",
        f"{name} is required",
        f"Provide {name} parameter.",
        400,
    )


async def _handle_render(
    ctx: ToolContext, args: dict
) -> types.CallToolResult:
    markdown_text = args.get("markdown")
    if markdown_text is None:
        return _missing("markdown")

    document = render_document(markdown_text)
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=document.safe_html)],
        structuredContent={
            "html": document.safe_html,
            "title": extract_title(markdown_text),
        },
    )


async def _handle_title(
    ctx: ToolContext, args: dict
) -> types.CallToolResult:
    markdown_text = args.get("markdown")
    if markdown_text is None:
        return _missing("markdown")

    title = extract_title(markdown_text)
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=title)],
        structuredContent={"title": title},
    )


async def _handle_slug(
    ctx: ToolContext, args: dict
) -> types.CallToolResult:
    title = args.get("title")
    if title is None:
        return _missing("title")

    slug = slugify(title)
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=slug)],
        structuredContent={"slug": slug},
    )


async def _handle_front_matter(
    ctx: ToolContext, args: dict
) -> types.CallToolResult:
    title = args.get("title")
    if title is None:
        return _missing("title")

    date = None
    if args.get("date"):
        try:
            date = datetime.fromisoformat(args["date"])
        except ValueError:
            return build_error_response(
                "validation_error",
                f"Invalid date: {args['date']}",
                "Use an ISO-8601 timestamp such as 2024-01-02T03:04:05Z.",
                400,
            )

    block = generate_front_matter(title, date)
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=block)],
        structuredContent={"front_matter": block},
    )


MARKDOWN_SPECS: list[ToolSpec] = [
    ToolSpec(
        tool=MARKDOWN_TOOLS[0],
        permissions=frozenset(),
        handler=_handle_render,
    ),
    ToolSpec(
        tool=MARKDOWN_TOOLS[1],
        permissions=frozenset(),
        handler=_handle_title,
    ),
    ToolSpec(
        tool=MARKDOWN_TOOLS[2],
        permissions=frozenset(),
        handler=_handle_slug,
    ),
    ToolSpec(
        tool=MARKDOWN_TOOLS[3],
        permissions=frozenset(),
        handler=_handle_front_matter,
    ),
]
