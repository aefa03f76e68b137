"""Per-server state handed to every tool handler."""

from dataclasses import dataclass

from ..drafts import DraftStore
from ..sync import RemoteConfig


@dataclass(frozen=True, slots=True)
class ToolContext:
    """Everything a tool needs besides its arguments.

    Attributes:
        remote: Repository coordinates and token for every store call.
        drafts: Local draft persistence.
        content_dir: Default repository directory for published documents.
        markup_extension: Suffix of documents eligible for listing.
        max_batch_size: Largest number of drafts one publish may commit.
    """

    remote: RemoteConfig
    drafts: DraftStore
    content_dir: str = "content"
    markup_extension: str = ".md"
    max_batch_size: int = 100
