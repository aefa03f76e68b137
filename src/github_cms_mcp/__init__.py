"""GitHub CMS MCP server: publish Markdown drafts into a GitHub repository."""

__version__ = "0.3.0"
