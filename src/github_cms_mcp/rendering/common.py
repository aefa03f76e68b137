"""Plain-text helpers around Markdown documents: titles, slugs, front matter."""

import json
import re
from datetime import datetime, timezone

FALLBACK_TITLE = "Untitled"
MAX_TITLE_LENGTH = 100
MAX_SLUG_LENGTH = 50

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def extract_title(markdown_text: str) -> str:
    """Pick a display title for a Markdown document.

    The first ``# `` heading wins. Otherwise the first non-empty line that
    is not a front matter / rule separator (``---``), cut to 100 characters.
    Otherwise ``"Untitled"``.
    """
    lines = markdown_text.split("\n")

    for line in lines:
        trimmed = line.strip()
        if trimmed.startswith("# "):
            return trimmed[2:].strip()

    for line in lines:
        trimmed = line.strip()
        if trimmed and not trimmed.startswith("---"):
            return trimmed[:MAX_TITLE_LENGTH]

    return FALLBACK_TITLE


def slugify(title: str) -> str:
    """Turn a title into a file-name-safe slug.

    >>> slugify("Hello, World! 2024")
    'hello-world-2024'
    """
    slug = _NON_ALNUM.sub("-", title.lower()).strip("-")
    return slug[:MAX_SLUG_LENGTH]


def iso_timestamp(moment: datetime) -> str:
    """UTC ISO-8601 with millisecond precision and a ``Z`` suffix.

    Naive datetimes are taken to be UTC already.
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return (
        moment.strftime("%Y-%m-%dT%H:%M:%S")
        + f".{moment.microsecond // 1000:03d}Z"
    )


def quote_scalar(value: str) -> str:
    # JSON strings are valid YAML double-quoted scalars
    return json.dumps(value, ensure_ascii=False)


def generate_front_matter(
    title: str, date: datetime | None = None
) -> str:
    """Front matter block for a freshly published document."""
    date = date or datetime.now(timezone.utc)
    return (
        "---\n"
        f"title: {quote_scalar(title)}\n"
        f"date: {iso_timestamp(date)}\n"
        "draft: false\n"
        "---\n\n"
    )
