"""Tests for markdown utility tools."""

import asyncio
import unittest

from github_cms_mcp.mcp.tools import MARKDOWN_SPECS, ToolRegistry


def _call(name, args):
    registry = ToolRegistry(MARKDOWN_SPECS, frozenset({"CONTENT_VIEW"}))
    return asyncio.run(registry.call_tool(name, args, None))


class TestMarkdownTools(unittest.TestCase):
    def test_always_available(self):
        registry = ToolRegistry(MARKDOWN_SPECS, frozenset({"DRAFT_VIEW"}))
        self.assertEqual(registry.tool_count(), 4)

    def test_render(self):
        result = _call("markdown_render", {"markdown": "# Hi\n\n**bold**"})
        self.assertFalse(result.isError)
        self.assertIn("<strong>bold</strong>", result.structuredContent["html"])
        self.assertEqual(result.structuredContent["title"], "Hi")

    def test_render_strips_script(self):
        result = _call(
            "markdown_render",
            {"markdown": "<script>alert(1)</script><strong>ok</strong>"},
        )
        html = result.structuredContent["html"]
        self.assertNotIn("script", html)
        self.assertIn("<strong>ok</strong>", html)

    def test_render_empty_string_allowed(self):
        result = _call("markdown_render", {"markdown": ""})
        self.assertFalse(result.isError)
        self.assertEqual(result.structuredContent["title"], "Untitled")

    def test_render_requires_markdown(self):
        result = _call("markdown_render", {})
        self.assertTrue(result.isError)
        self.assertEqual(result.structuredContent["status"], 400)

    def test_title(self):
        result = _call("markdown_title", {"markdown": "# T\n\nbody"})
        self.assertEqual(result.structuredContent, {"title": "T"})

    def test_slug(self):
        result = _call("markdown_slug", {"title": "Hello, World! 2024"})
        self.assertEqual(result.structuredContent, {"slug": "hello-world-2024"})
        self.assertEqual(result.content[0].text, "hello-world-2024")

    def test_slug_requires_title(self):
        result = _call("markdown_slug", {})
        self.assertEqual(result.structuredContent["status"], 400)

    def test_front_matter_with_date(self):
        result = _call(
            "markdown_front_matter",
            {"title": "Launch", "date": "2024-01-02T03:04:05+00:00"},
        )
        self.assertFalse(result.isError)
        self.assertEqual(
            result.structuredContent["front_matter"],
            '---\ntitle: "Launch"\ndate: 2024-01-02T03:04:05.000Z\n'
            "draft: false\n---\n\n",
        )

    def test_front_matter_defaults_to_now(self):
        result = _call("markdown_front_matter", {"title": "Now"})
        self.assertIn("draft: false", result.content[0].text)
        self.assertRegex(
            result.content[0].text, r"date: \d{4}-\d{2}-\d{2}T[\d:.]+Z"
        )

    def test_front_matter_invalid_date(self):
        result = _call(
            "markdown_front_matter", {"title": "T", "date": "yesterday"}
        )
        self.assertTrue(result.isError)
        self.assertEqual(result.structuredContent["status"], 400)


if __name__ == "__main__":
    unittest.main()
