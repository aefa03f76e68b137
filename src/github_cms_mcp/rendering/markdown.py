"""Markdown to sanitized HTML using mistune and the lxml sanitizer."""

import logging

import mistune
from pydantic import BaseModel

from .sanitizer import sanitize_html

logger = logging.getLogger(__name__)

PARSE_ERROR_HTML = "<p>Error parsing markdown content</p>"

_PLUGINS = ["table", "strikethrough", "url"]


class RenderedDocument(BaseModel):
    """Raw markup and the sanitized HTML derived from it."""

    raw_markup: str
    safe_html: str

    model_config = {"frozen": True}


def _create_parser() -> mistune.Markdown:
    """Build a GFM-flavoured parser that emits raw HTML for the sanitizer.

    Newlines inside paragraphs become ``<br />``. Raw HTML is only
    recognized inline, so Markdown written next to a tag on the same line
    (``<b>x</b> **y**``) is still parsed instead of swallowed as an HTML
    block.
    """
    markdown = mistune.create_markdown(
        escape=False, hard_wrap=True, plugins=_PLUGINS
    )
    block = markdown.block
    for rules in (block.rules, block.block_quote_rules, block.list_rules):
        if "raw_html" in rules:
            rules.remove("raw_html")
    return markdown


def parse_markdown(markdown_text: str) -> str:
    """Convert Markdown to (unsanitized) HTML.

    Returns:
        HTML string, or ``PARSE_ERROR_HTML`` if the parser fails.
    """
    try:
        result: str = _create_parser()(markdown_text)  # type: ignore[assignment]
        return result
    except Exception as e:
        logger.error("Error parsing markdown: %s", e)
        return PARSE_ERROR_HTML


def render(markdown_text: str) -> str:
    """Convert Markdown to HTML that is safe to embed in a page.

    Sanitization is always applied; there is no option to skip it.
    """
    return sanitize_html(parse_markdown(markdown_text))


def render_document(markdown_text: str) -> RenderedDocument:
    return RenderedDocument(
        raw_markup=markdown_text, safe_html=render(markdown_text)
    )
