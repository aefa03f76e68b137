"""Draft tool handlers for MCP server.

Drafts live in the local draft store until they are published with the
content_publish tools. Store I/O is blocking file access and runs through
run_sync().
"""

import mcp.types as types

from ...core.async_utils import run_sync
from ...drafts import (
    Draft,
    DraftInput,
    create_draft,
    delete_draft,
    get_draft,
    search_drafts,
    update_draft,
    validate_draft,
)
from ...errors import InvalidArgument, NotFound
from ..context import ToolContext
from .errors import format_timestamp
from .registry import DRAFT_VIEW, DRAFT_WRITE, ToolSpec

DRAFT_TOOLS = [
    types.Tool(
        name="draft_list",
        description="List local drafts, most recently edited first. An optional query filters by case-insensitive match on title or body.",
        inputSchema={
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "Search text (optional)",
                },
            },
            "required": [],
        },
    ),
    types.Tool(
        name="draft_get",
        description="Get one draft with its full body.",
        inputSchema={
            "type": "object",
            "properties": {
                "draft_id": {
                    "type": "string",
                    "description": "Draft id (required)",
                },
            },
            "required": ["draft_id"],
        },
    ),
    types.Tool(
        name="draft_save",
        description="Create a draft, or update an existing one when draft_id is given. Title is required (max 200 characters); body is limited to 100,000 characters.",
        inputSchema={
            "type": "object",
            "properties": {
                "title": {
                    "type": "string",
                    "description": "Draft title (required)",
                    "maxLength": 200,
                },
                "body": {
                    "type": "string",
                    "description": "Markdown body (optional)",
                },
                "draft_id": {
                    "type": "string",
                    "description": "Id of the draft to update (optional; omit to create)",
                },
            },
            "required": ["title"],
        },
    ),
    types.Tool(
        name="draft_delete",
        description="Delete a local draft. Published files are not affected.",
        inputSchema={
            "type": "object",
            "properties": {
                "draft_id": {
                    "type": "string",
                    "description": "Draft id (required)",
                },
            },
            "required": ["draft_id"],
        },
    ),
]


def _draft_json(draft: Draft) -> dict:
    return draft.model_dump(mode="json", by_alias=True)


def _require_id(args: dict) -> str:
    draft_id = args.get("draft_id")
    if not draft_id:
        raise InvalidArgument("draft_id is required")
    return draft_id


async def _handle_list(
    ctx: ToolContext, args: dict
) -> types.CallToolResult:
    """Handle draft_list."""
    query = args.get("query") or ""
    drafts = await run_sync(search_drafts, ctx.drafts, query)

    if not drafts:
        text = "No drafts found."
    else:
        text = "\n".join(
            f"- {d.id}: {d.title} (updated {format_timestamp(d.updated_at)})"
            for d in drafts
        )

    return types.CallToolResult(
        content=[types.TextContent(type="text", text=text)],
        structuredContent={
            "drafts": [
                {
                    "id": d.id,
                    "title": d.title,
                    "updatedAt": _draft_json(d)["updatedAt"],
                }
                for d in drafts
            ],
        },
    )


async def _handle_get(
    ctx: ToolContext, args: dict
) -> types.CallToolResult:
    """Handle draft_get."""
    draft_id = _require_id(args)
    draft = await run_sync(get_draft, ctx.drafts, draft_id)
    if draft is None:
        raise NotFound(f"Draft not found: {draft_id}", domain="draft")

    response_lines = [
        f"# {draft.title}",
        f"Id: {draft.id} | Created: {format_timestamp(draft.created_at)} | Updated: {format_timestamp(draft.updated_at)}",
        "----",
        "",
        draft.body,
    ]
    return types.CallToolResult(
        content=[
            types.TextContent(type="text", text="\n".join(response_lines))
        ],
        structuredContent=_draft_json(draft),
    )


async def _handle_save(
    ctx: ToolContext, args: dict
) -> types.CallToolResult:
    """Handle draft_save (create or update)."""
    fields = {k: args[k] for k in ("title", "body") if k in args}
    draft_input = DraftInput(**fields)

    problems = validate_draft(draft_input)
    if problems:
        raise InvalidArgument("; ".join(problems))

    draft_id = args.get("draft_id")
    if draft_id:
        draft = await run_sync(update_draft, ctx.drafts, draft_id, draft_input)
        if draft is None:
            raise NotFound(f"Draft not found: {draft_id}", domain="draft")
        verb = "Updated"
    else:
        draft = await run_sync(create_draft, ctx.drafts, draft_input)
        verb = "Created"

    return types.CallToolResult(
        content=[
            types.TextContent(
                type="text", text=f"{verb} draft {draft.id}: {draft.title}"
            )
        ],
        structuredContent=_draft_json(draft),
    )


async def _handle_delete(
    ctx: ToolContext, args: dict
) -> types.CallToolResult:
    """Handle draft_delete."""
    draft_id = _require_id(args)
    deleted = await run_sync(delete_draft, ctx.drafts, draft_id)
    if not deleted:
        raise NotFound(f"Draft not found: {draft_id}", domain="draft")

    return types.CallToolResult(
        content=[
            types.TextContent(type="text", text=f"Deleted draft {draft_id}")
        ],
        structuredContent={"id": draft_id, "deleted": True},
    )


DRAFT_SPECS: list[ToolSpec] = [
    ToolSpec(
        tool=DRAFT_TOOLS[0],
        permissions=frozenset({DRAFT_VIEW}),
        handler=_handle_list,
    ),
    ToolSpec(
        tool=DRAFT_TOOLS[1],
        permissions=frozenset({DRAFT_VIEW}),
        handler=_handle_get,
    ),
    ToolSpec(
        tool=DRAFT_TOOLS[2],
        permissions=frozenset({DRAFT_WRITE}),
        handler=_handle_save,
    ),
    ToolSpec(
        tool=DRAFT_TOOLS[3],
        permissions=frozenset({DRAFT_WRITE}),
        handler=_handle_delete,
    ),
]
