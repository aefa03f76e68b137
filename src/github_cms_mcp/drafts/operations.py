"""Draft editing and the adapters that turn drafts into repository files."""

from __future__ import annotations

import secrets
import string
import time
from datetime import datetime, timezone

from ..rendering.common import iso_timestamp, quote_scalar, slugify
from ..sync.models import FileWrite
from .models import MAX_BODY_LENGTH, MAX_TITLE_LENGTH, Draft, DraftInput
from .store import DraftStore

DEFAULT_TITLE = "Untitled Draft"
DEFAULT_DIRECTORY = "content"

_ID_ALPHABET = string.ascii_lowercase + string.digits


def _now() -> datetime:
    return datetime.now(timezone.utc)


def generate_id() -> str:
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"draft-{int(time.time() * 1000)}-{suffix}"


def validate_draft(draft: DraftInput) -> list[str]:
    """Return human-readable problems with *draft* (empty when valid)."""
    errors: list[str] = []

    if not draft.title or not draft.title.strip():
        errors.append("Title is required")

    if draft.title and len(draft.title) > MAX_TITLE_LENGTH:
        errors.append(
            f"Title must be less than {MAX_TITLE_LENGTH} characters"
        )

    if draft.body and len(draft.body) > MAX_BODY_LENGTH:
        errors.append(
            f"Content must be less than {MAX_BODY_LENGTH:,} characters"
        )

    return errors


# ---------------------------------------------------------------------------
# Store operations
# ---------------------------------------------------------------------------


def new_draft(draft_input: DraftInput) -> Draft:
    """Build a fresh draft without storing it."""
    now = _now()
    return Draft(
        id=generate_id(),
        title=draft_input.title or DEFAULT_TITLE,
        body=draft_input.body or "",
        created_at=now,
        updated_at=now,
    )


def create_draft(store: DraftStore, draft_input: DraftInput) -> Draft:
    """Create a draft and put it first in the store."""
    draft = new_draft(draft_input)
    with store.lock:
        drafts = store.load()
        drafts.insert(0, draft)
        store.save(drafts)
    return draft


def update_draft(
    store: DraftStore, draft_id: str, updates: DraftInput
) -> Draft | None:
    """Apply *updates* to a stored draft; ``None`` if it does not exist.

    Only fields explicitly set on *updates* are changed.
    """
    with store.lock:
        drafts = store.load()
        for index, draft in enumerate(drafts):
            if draft.id == draft_id:
                changes = updates.model_dump(exclude_unset=True)
                changes["updated_at"] = _now()
                updated = draft.model_copy(update=changes)
                drafts[index] = updated
                store.save(drafts)
                return updated
    return None


def get_draft(store: DraftStore, draft_id: str) -> Draft | None:
    return next((d for d in store.load() if d.id == draft_id), None)


def delete_draft(store: DraftStore, draft_id: str) -> bool:
    return store.delete(draft_id)


def sorted_by_updated(drafts: list[Draft]) -> list[Draft]:
    """Most recently edited first."""
    return sorted(drafts, key=lambda d: d.updated_at, reverse=True)


def search_drafts(store: DraftStore, query: str) -> list[Draft]:
    """Case-insensitive substring search over titles and bodies.

    A blank query returns every draft. Results are most recent first.
    """
    drafts = store.load()
    if not query.strip():
        return sorted_by_updated(drafts)

    needle = query.lower()
    return sorted_by_updated(
        [
            d
            for d in drafts
            if needle in d.title.lower() or needle in d.body.lower()
        ]
    )


# ---------------------------------------------------------------------------
# Publishing adapters
# ---------------------------------------------------------------------------


def draft_to_markdown(draft: Draft) -> str:
    """Published file content: front matter followed by the body."""
    front_matter = (
        "---\n"
        f"title: {quote_scalar(draft.title)}\n"
        f"date: {iso_timestamp(draft.created_at)}\n"
        f"lastModified: {iso_timestamp(draft.updated_at)}\n"
        "---\n\n"
    )
    return front_matter + draft.body


def draft_filename(
    draft: Draft,
    directory: str = DEFAULT_DIRECTORY,
    extension: str = ".md",
) -> str:
    """``{directory}/{YYYY-MM-DD}-{slug}{extension}`` for *draft*."""
    created = draft.created_at
    if created.tzinfo is not None:
        created = created.astimezone(timezone.utc)
    slug = slugify(draft.title) or "untitled"
    filename = f"{created:%Y-%m-%d}-{slug}{extension}"
    directory = directory.strip("/")
    return f"{directory}/{filename}" if directory else filename


def draft_to_file_write(
    draft: Draft,
    directory: str = DEFAULT_DIRECTORY,
    extension: str = ".md",
    path: str | None = None,
) -> FileWrite:
    return FileWrite(
        path=path or draft_filename(draft, directory, extension),
        content=draft_to_markdown(draft).encode("utf-8"),
    )


def drafts_to_file_writes(
    drafts: list[Draft],
    directory: str = DEFAULT_DIRECTORY,
    extension: str = ".md",
) -> list[FileWrite]:
    return [draft_to_file_write(d, directory, extension) for d in drafts]


def publish_commit_message(drafts: list[Draft]) -> str:
    """``Publish 2 drafts: First, Second``."""
    count = len(drafts)
    noun = "draft" if count == 1 else "drafts"
    titles = ", ".join(d.title for d in drafts)
    return f"Publish {count} {noun}: {titles}"


def update_commit_message(draft: Draft) -> str:
    return f"Update: {draft.title}"
