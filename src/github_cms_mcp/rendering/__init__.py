"""Markdown rendering: parse, sanitize, and derive titles and slugs."""

from .common import (
    FALLBACK_TITLE,
    extract_title,
    generate_front_matter,
    iso_timestamp,
    slugify,
)
from .markdown import (
    PARSE_ERROR_HTML,
    RenderedDocument,
    parse_markdown,
    render,
    render_document,
)
from .sanitizer import (
    ALLOWED_ATTRIBUTES,
    ALLOWED_TAGS,
    SANITIZE_ERROR_HTML,
    sanitize_html,
)

__all__ = [
    "ALLOWED_ATTRIBUTES",
    "ALLOWED_TAGS",
    "FALLBACK_TITLE",
    "PARSE_ERROR_HTML",
    "RenderedDocument",
    "SANITIZE_ERROR_HTML",
    "extract_title",
    "generate_front_matter",
    "iso_timestamp",
    "parse_markdown",
    "render",
    "render_document",
    "sanitize_html",
    "slugify",
]
