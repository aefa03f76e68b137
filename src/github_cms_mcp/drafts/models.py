"""Draft records kept locally until they are published."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

MAX_TITLE_LENGTH = 200
MAX_BODY_LENGTH = 100_000


class DraftInput(BaseModel):
    """User-editable fields of a draft."""

    title: str = ""
    body: str = ""


class Draft(BaseModel):
    """An unpublished document.

    Attributes:
        id: Stable identifier (``draft-<millis>-<random>``).
        title: Display title; also drives the published file name.
        body: Markdown body, without front matter.
        created_at: Creation time; its date prefixes the published file name.
        updated_at: Last edit time, written as ``lastModified``.
    """

    id: str
    title: str
    body: str = ""
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")

    model_config = {"frozen": True, "populate_by_name": True}
