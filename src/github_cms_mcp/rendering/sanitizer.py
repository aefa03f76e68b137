"""Allow-list HTML sanitizer built on lxml.

Everything outside the tag and attribute allow-lists is dropped, never
escaped and kept. Elements that carry executable or embedded content are
removed together with their children; other unknown elements are unwrapped
so their text survives. ``href``/``src`` values must use a web or mail
scheme (or be relative).
"""

import html
import logging
import re

from lxml import etree
from lxml import html as lxml_html

logger = logging.getLogger(__name__)

SANITIZE_ERROR_HTML = "<p>Error processing content</p>"

ALLOWED_TAGS: frozenset[str] = frozenset(
    {
        "h1",
        "h2",
        "h3",
        "h4",
        "h5",
        "h6",
        "p",
        "br",
        "hr",
        "strong",
        "em",
        "u",
        "del",
        "code",
        "pre",
        "blockquote",
        "ul",
        "ol",
        "li",
        "table",
        "thead",
        "tbody",
        "tr",
        "th",
        "td",
        "a",
        "img",
        "div",
        "span",
    }
)

ALLOWED_ATTRIBUTES: frozenset[str] = frozenset(
    {"href", "title", "alt", "src", "class", "id", "target", "rel"}
)

# Removed with their whole subtree
_DROP_WITH_CONTENT: frozenset[str] = frozenset(
    {
        "script",
        "style",
        "iframe",
        "frame",
        "frameset",
        "object",
        "embed",
        "applet",
        "template",
        "noscript",
        "noembed",
        "textarea",
        "select",
        "title",
        "head",
        "svg",
        "math",
        "xmp",
    }
)

_URI_ATTRIBUTES = frozenset({"href", "src"})
_SAFE_SCHEMES = frozenset({"http", "https", "mailto", "tel", "ftp"})
_SCHEME = re.compile(r"^([a-z][a-z0-9+.\-]*):")
_IGNORED_URI_CHARS = re.compile(r"[\x00-\x20\x7f]+")


def is_safe_uri(value: str) -> bool:
    """True for relative URIs and URIs with an allowed scheme."""
    compact = _IGNORED_URI_CHARS.sub("", value).lower()
    match = _SCHEME.match(compact)
    if match is None:
        return True
    return match.group(1) in _SAFE_SCHEMES


def _clean_attributes(element: lxml_html.HtmlElement) -> None:
    for name in list(element.attrib):
        lowered = name.lower()
        if lowered not in ALLOWED_ATTRIBUTES:
            del element.attrib[name]
        elif lowered in _URI_ATTRIBUTES and not is_safe_uri(
            element.attrib[name]
        ):
            del element.attrib[name]


def _clean_children(parent: lxml_html.HtmlElement) -> None:
    for child in list(parent):
        # Comments, processing instructions, entities
        if not isinstance(child.tag, str):
            child.drop_tree()
            continue

        tag = child.tag.lower()
        if tag in _DROP_WITH_CONTENT:
            child.drop_tree()
            continue

        _clean_children(child)

        if tag not in ALLOWED_TAGS:
            child.drop_tag()
            continue

        _clean_attributes(child)

        # Left behind when block HTML sits inside a Markdown paragraph
        if tag == "p" and len(child) == 0 and not (child.text or "").strip():
            child.drop_tree()


def _inner_html(container: lxml_html.HtmlElement) -> str:
    parts = []
    if container.text:
        parts.append(html.escape(container.text, quote=False))
    for child in container:
        parts.append(lxml_html.tostring(child, encoding="unicode"))
    return "".join(parts)


def sanitize_html(html_content: str) -> str:
    """Filter *html_content* through the tag and attribute allow-lists.

    Returns:
        Sanitized HTML, ``""`` for blank input, or ``SANITIZE_ERROR_HTML``
        when the fragment cannot be parsed.
    """
    if not html_content or not html_content.strip():
        return ""

    try:
        container = lxml_html.fragment_fromstring(
            html_content, create_parent="div"
        )
    except (etree.LxmlError, ValueError) as e:
        logger.error("Error sanitizing HTML: %s", e)
        return SANITIZE_ERROR_HTML

    _clean_children(container)
    return _inner_html(container)
