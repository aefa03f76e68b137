"""Tool registration and permission filtering.

Every tool module exports a list of ``ToolSpec``. The server hands all of
them to a ``ToolRegistry`` together with the permissions an operator granted
in a permissions file (``CONTENT_VIEW``, ``CONTENT_WRITE``, ``DRAFT_VIEW``,
``DRAFT_WRITE``); tools needing anything else are never listed or callable.
"""

import logging
import re
from collections.abc import Awaitable, Callable, Iterator
from dataclasses import dataclass
from pathlib import Path

import mcp.types as types

from ...errors import SyncError
from ..context import ToolContext
from .errors import build_error_response, translate_sync_error

logger = logging.getLogger(__name__)

CONTENT_VIEW = "CONTENT_VIEW"
CONTENT_WRITE = "CONTENT_WRITE"
DRAFT_VIEW = "DRAFT_VIEW"
DRAFT_WRITE = "DRAFT_WRITE"

_PERMISSION_NAME = re.compile(r"^[A-Z][A-Z_]*[A-Z]$")

Handler = Callable[[ToolContext, dict], Awaitable[types.CallToolResult]]


@dataclass(frozen=True, slots=True)
class ToolSpec:
    """A tool definition bound to its handler.

    ``permissions`` lists what the caller must hold; an empty set marks a
    tool that is always available (``ping``, the markdown helpers).
    """

    tool: types.Tool
    permissions: frozenset[str]
    handler: Handler


def _permitted(spec: ToolSpec, granted: frozenset[str] | None) -> bool:
    if granted is None:
        return True
    return spec.permissions <= granted


class ToolRegistry:
    """Name-indexed tools, restricted to *granted* permissions when given."""

    def __init__(
        self,
        specs: list[ToolSpec],
        allowed_permissions: frozenset[str] | None = None,
    ):
        self._specs: dict[str, ToolSpec] = {
            spec.tool.name: spec
            for spec in specs
            if _permitted(spec, allowed_permissions)
        }

    def list_tools(self) -> list[types.Tool]:
        return [spec.tool for spec in self._specs.values()]

    def tool_count(self) -> int:
        return len(self._specs)

    async def call_tool(
        self,
        name: str,
        arguments: dict | None,
        ctx: ToolContext,
    ) -> types.CallToolResult:
        """Run the handler registered under *name*.

        Failures come back as error results: a ``SyncError`` keeps its own
        status, ``ValueError`` is a 400 and anything unexpected a 500.

        Raises:
            ValueError: *name* is unknown or was filtered out.
        """
        try:
            spec = self._specs[name]
        except KeyError:
            raise ValueError(f"Unknown tool: {name}") from None

        try:
            return await spec.handler(ctx, arguments or {})
        except SyncError as e:
            logger.warning("%s: %s (%s)", name, e.message, e.kind)
            domain = "draft" if name.startswith("draft_") else "content"
            return translate_sync_error(e, domain)
        except ValueError as e:
            return build_error_response(
                "validation_error",
                str(e),
                "Fix the arguments and call the tool again.",
                400,
            )
        except Exception as e:
            logger.exception("Tool %s crashed", name)
            return build_error_response(
                "server_error",
                str(e),
                "Retry later or check the server log.",
            )


def _permission_lines(path: Path) -> Iterator[tuple[int, str]]:
    for number, line in enumerate(path.read_text().splitlines(), 1):
        entry = line.split("#", 1)[0].strip()
        if entry:
            yield number, entry


def load_permissions_file(path: str | Path) -> frozenset[str]:
    """Read granted permissions, one name per line.

    ``#`` starts a comment; blank lines are skipped::

        # agents may read but not publish
        CONTENT_VIEW
        DRAFT_VIEW

    Raises:
        FileNotFoundError: *path* does not exist.
        ValueError: A line is not an UPPER_SNAKE_CASE name, or the file
            grants nothing.
    """
    path = Path(path)
    granted = set()
    for number, entry in _permission_lines(path):
        if not _PERMISSION_NAME.match(entry):
            raise ValueError(
                f"Invalid permission '{entry}' on line {number} of {path} "
                "(expected a name such as CONTENT_VIEW)"
            )
        granted.add(entry)
    if not granted:
        raise ValueError(f"No permissions found in {path}")
    return frozenset(granted)
