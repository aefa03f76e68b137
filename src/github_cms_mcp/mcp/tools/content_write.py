"""Publishing tool handlers for MCP server.

Drafts are turned into front-matter Markdown files and committed to the
repository branch, either all together as one atomic commit
(``content_publish``) or one at a time as a create-or-replace
(``content_publish_one``).
"""

import mcp.types as types
from pydantic import ValidationError

from ...core.async_utils import run_sync
from ...drafts import (
    Draft,
    DraftInput,
    draft_filename,
    draft_to_markdown,
    drafts_to_file_writes,
    get_draft,
    new_draft,
    publish_commit_message,
    update_commit_message,
    validate_draft,
)
from ...errors import InvalidArgument, NotFound
from ...sync import commit_batch, upsert_file
from ..context import ToolContext
from .registry import CONTENT_WRITE, ToolSpec

_DRAFT_SCHEMA = {
    "type": "object",
    "properties": {
        "title": {"type": "string", "maxLength": 200},
        "body": {"type": "string"},
    },
    "required": ["title"],
}

# Tool definitions for list_tools()
CONTENT_WRITE_TOOLS = [
    types.Tool(
        name="content_publish",
        description="Publish several drafts as a single atomic commit. Readers of the branch see either none or all of the new files. Drafts are referenced by id, given inline, or both. Fails with concurrency_conflict if the branch moved during the commit; retry the whole call.",
        inputSchema={
            "type": "object",
            "properties": {
                "draft_ids": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Ids of stored drafts to publish (optional)",
                },
                "drafts": {
                    "type": "array",
                    "items": _DRAFT_SCHEMA,
                    "description": "Inline drafts with title and body (optional)",
                },
                "directory": {
                    "type": "string",
                    "description": "Target directory (optional, defaults to the configured content directory)",
                },
            },
            "required": [],
        },
    ),
    types.Tool(
        name="content_publish_one",
        description="Publish one draft as a create-or-replace of a single file. When the file exists its current version is replaced; a concurrent edit is reported as concurrency_conflict.",
        inputSchema={
            "type": "object",
            "properties": {
                "draft_id": {
                    "type": "string",
                    "description": "Id of a stored draft (use this or draft)",
                },
                "draft": {
                    **_DRAFT_SCHEMA,
                    "description": "Inline draft (use this or draft_id)",
                },
                "directory": {
                    "type": "string",
                    "description": "Target directory (optional, defaults to the configured content directory)",
                },
                "file_path": {
                    "type": "string",
                    "description": "Exact repository path to write (optional, overrides the generated file name)",
                },
            },
            "required": [],
        },
    ),
]


def _inline_draft(data: dict) -> Draft:
    if not isinstance(data, dict):
        raise InvalidArgument(
            "Each inline draft must be an object", domain="draft"
        )
    try:
        draft_input = DraftInput.model_validate(data)
    except ValidationError as e:
        raise InvalidArgument(
            f"Invalid draft: {e.errors()[0]['msg']}", domain="draft"
        ) from None
    _check_draft(draft_input)
    return new_draft(draft_input)


def _check_draft(draft_input: DraftInput) -> None:
    problems = validate_draft(draft_input)
    if problems:
        raise InvalidArgument("; ".join(problems), domain="draft")


async def _stored_draft(ctx: ToolContext, draft_id: str) -> Draft:
    draft = await run_sync(get_draft, ctx.drafts, draft_id)
    if draft is None:
        raise NotFound(f"Draft not found: {draft_id}", domain="draft")
    _check_draft(DraftInput(title=draft.title, body=draft.body))
    return draft


def _target_directory(ctx: ToolContext, args: dict) -> str:
    directory = args.get("directory")
    if directory is None:
        directory = ctx.content_dir
    return directory.strip("/")


async def _handle_publish(
    ctx: ToolContext, args: dict
) -> types.CallToolResult:
    """Handle content_publish."""
    draft_ids = args.get("draft_ids") or []
    inline = args.get("drafts") or []

    drafts = [await _stored_draft(ctx, draft_id) for draft_id in draft_ids]
    drafts.extend(_inline_draft(item) for item in inline)

    if not drafts:
        raise InvalidArgument("No drafts provided")
    if len(drafts) > ctx.max_batch_size:
        raise InvalidArgument(
            f"Too many drafts: {len(drafts)} (max {ctx.max_batch_size} per commit)"
        )

    directory = _target_directory(ctx, args)
    files = drafts_to_file_writes(drafts, directory, ctx.markup_extension)
    message = publish_commit_message(drafts)

    result = await commit_batch(ctx.remote, files, message)

    published = [f.path for f in files]
    response_lines = [
        f"Published {len(published)} drafts in commit {result.new_commit_id}",
        f"Branch: {ctx.remote.branch}",
        "",
    ]
    response_lines.extend(f"- {path}" for path in published)

    return types.CallToolResult(
        content=[
            types.TextContent(type="text", text="\n".join(response_lines))
        ],
        structuredContent={
            "commit": result.new_commit_id,
            "branch_head": result.branch_head_after,
            "message": message,
            "files": published,
        },
    )


async def _handle_publish_one(
    ctx: ToolContext, args: dict
) -> types.CallToolResult:
    """Handle content_publish_one."""
    draft_id = args.get("draft_id")
    inline = args.get("draft")

    if draft_id and inline:
        raise InvalidArgument("Provide either draft_id or draft, not both")
    if draft_id:
        draft = await _stored_draft(ctx, draft_id)
    elif inline:
        draft = _inline_draft(inline)
    else:
        raise InvalidArgument("draft_id or draft is required")

    path = args.get("file_path") or draft_filename(
        draft, _target_directory(ctx, args), ctx.markup_extension
    )
    message = update_commit_message(draft)

    result = await upsert_file(
        ctx.remote, path, draft_to_markdown(draft), message
    )

    return types.CallToolResult(
        content=[
            types.TextContent(
                type="text",
                text=f"Published {path} in commit {result.new_commit_id}",
            )
        ],
        structuredContent={
            "commit": result.new_commit_id,
            "branch_head": result.branch_head_after,
            "message": message,
            "path": path,
            "sha": result.content_tokens.get(path),
        },
    )


CONTENT_WRITE_SPECS: list[ToolSpec] = [
    ToolSpec(
        tool=CONTENT_WRITE_TOOLS[0],
        permissions=frozenset({CONTENT_WRITE}),
        handler=_handle_publish,
    ),
    ToolSpec(
        tool=CONTENT_WRITE_TOOLS[1],
        permissions=frozenset({CONTENT_WRITE}),
        handler=_handle_publish_one,
    ),
]
