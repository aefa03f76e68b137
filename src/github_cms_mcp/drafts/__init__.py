"""Local drafts and their conversion into repository files.

The draft store is a collaborator of the sync engine: the engine never
reads drafts itself. Callers load drafts, turn each into a ``FileWrite``
(``draft_to_file_write``) and hand the writes to ``upsert_file`` or
``commit_batch``.
"""

from .models import Draft, DraftInput
from .operations import (
    create_draft,
    delete_draft,
    draft_filename,
    draft_to_file_write,
    draft_to_markdown,
    drafts_to_file_writes,
    generate_id,
    get_draft,
    new_draft,
    publish_commit_message,
    search_drafts,
    sorted_by_updated,
    update_commit_message,
    update_draft,
    validate_draft,
)
from .store import DraftStore, InMemoryDraftStore, JsonFileDraftStore

__all__ = [
    "Draft",
    "DraftInput",
    "DraftStore",
    "InMemoryDraftStore",
    "JsonFileDraftStore",
    "create_draft",
    "delete_draft",
    "draft_filename",
    "draft_to_file_write",
    "draft_to_markdown",
    "drafts_to_file_writes",
    "generate_id",
    "get_draft",
    "new_draft",
    "publish_commit_message",
    "search_drafts",
    "sorted_by_updated",
    "update_commit_message",
    "update_draft",
    "validate_draft",
]
