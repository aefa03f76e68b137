"""Read-only content tool handlers for MCP server.

This module implements content read operations: get, get_many and list.
Fetched documents are returned both as raw Markdown and as sanitized HTML.
"""

import mcp.types as types

from ...core.async_utils import gather_settled
from ...errors import SyncError
from ...rendering import extract_title, render_document
from ...sync import fetch_file, list_markup_files
from ..context import ToolContext
from .errors import build_error_response
from .registry import CONTENT_VIEW, ToolSpec

MAX_PATHS_PER_REQUEST = 50

# Tool definitions for list_tools()
CONTENT_READ_TOOLS = [
    types.Tool(
        name="content_get",
        description="Get a published document from the repository. Returns the raw Markdown, its title, and the sanitized HTML rendering.",
        inputSchema={
            "type": "object",
            "properties": {
                "path": {
                    "type": "string",
                    "description": "Repository-relative file path, e.g. content/2024-01-01-hello.md (required)",
                },
            },
            "required": ["path"],
        },
    ),
    types.Tool(
        name="content_get_many",
        description="Get several published documents at once. Each path succeeds or fails independently; the result lists both.",
        inputSchema={
            "type": "object",
            "properties": {
                "paths": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": f"Repository-relative file paths (1-{MAX_PATHS_PER_REQUEST})",
                    "minItems": 1,
                    "maxItems": MAX_PATHS_PER_REQUEST,
                },
            },
            "required": ["paths"],
        },
    ),
    types.Tool(
        name="content_list",
        description="List Markdown documents in a repository directory. A directory that does not exist yields an empty list.",
        inputSchema={
            "type": "object",
            "properties": {
                "directory": {
                    "type": "string",
                    "description": "Repository directory (optional, defaults to the configured content directory)",
                },
            },
            "required": [],
        },
    ),
]


def _document_json(path: str, markdown_text: str) -> dict:
    document = render_document(markdown_text)
    return {
        "path": path,
        "title": extract_title(markdown_text),
        "markdown": document.raw_markup,
        "html": document.safe_html,
    }


async def _handle_get(
    ctx: ToolContext, args: dict
) -> types.CallToolResult:
    """Handle content_get."""
    path = args.get("path")
    if not path:
        return build_error_response(
            "validation_error",
            "path is required",
            "Provide path parameter.",
            400,
        )

    markdown_text = await fetch_file(ctx.remote, path)
    document = _document_json(path, markdown_text)

    response_lines = [
        f"# {document['title']}",
        f"Path: {path} | Branch: {ctx.remote.branch}",
        "----",
        "",
        markdown_text,
    ]
    return types.CallToolResult(
        content=[
            types.TextContent(type="text", text="\n".join(response_lines))
        ],
        structuredContent=document,
    )


async def _handle_get_many(
    ctx: ToolContext, args: dict
) -> types.CallToolResult:
    """Handle content_get_many.

    Fetches run concurrently; one failing path does not fail the others.
    """
    paths = args.get("paths")
    if not paths or not isinstance(paths, list):
        return build_error_response(
            "validation_error",
            "paths array is required",
            "Provide a non-empty list of file paths.",
            400,
        )
    if len(paths) > MAX_PATHS_PER_REQUEST:
        return build_error_response(
            "validation_error",
            f"Too many paths: {len(paths)} (max {MAX_PATHS_PER_REQUEST})",
            "Split the request into smaller groups.",
            400,
        )

    outcomes = await gather_settled(
        [fetch_file(ctx.remote, path) for path in paths]
    )

    successful: list[dict] = []
    failed: list[dict] = []
    for path, outcome in zip(paths, outcomes):
        match outcome:
            case str() as markdown_text:
                successful.append(_document_json(path, markdown_text))
            case SyncError() as error:
                failed.append({"path": path, **error.to_dict()})
            case _:
                failed.append(
                    {
                        "path": path,
                        "error": "server_error",
                        "status": 500,
                        "detail": str(outcome),
                    }
                )

    response_lines = [
        f"Fetched {len(successful)} of {len(paths)} documents."
    ]
    response_lines.extend(
        f"- {doc['path']}: {doc['title']}" for doc in successful
    )
    if failed:
        response_lines.append("")
        response_lines.append("Failed:")
        response_lines.extend(
            f"- {item['path']}: {item['detail']}" for item in failed
        )

    return types.CallToolResult(
        content=[
            types.TextContent(type="text", text="\n".join(response_lines))
        ],
        structuredContent={"successful": successful, "failed": failed},
    )


async def _handle_list(
    ctx: ToolContext, args: dict
) -> types.CallToolResult:
    """Handle content_list."""
    directory = args.get("directory")
    if directory is None:
        directory = ctx.content_dir
    directory = directory.strip("/")

    files = await list_markup_files(
        ctx.remote, directory, ctx.markup_extension
    )

    if not files:
        text = f"No documents found in '{directory or '/'}'."
    else:
        text = "\n".join(
            [f"{len(files)} documents in '{directory or '/'}':"]
            + [f"- {path}" for path in files]
        )

    return types.CallToolResult(
        content=[types.TextContent(type="text", text=text)],
        structuredContent={"directory": directory, "files": files},
    )


CONTENT_READ_SPECS: list[ToolSpec] = [
    ToolSpec(
        tool=CONTENT_READ_TOOLS[0],
        permissions=frozenset({CONTENT_VIEW}),
        handler=_handle_get,
    ),
    ToolSpec(
        tool=CONTENT_READ_TOOLS[1],
        permissions=frozenset({CONTENT_VIEW}),
        handler=_handle_get_many,
    ),
    ToolSpec(
        tool=CONTENT_READ_TOOLS[2],
        permissions=frozenset({CONTENT_VIEW}),
        handler=_handle_list,
    ),
]
