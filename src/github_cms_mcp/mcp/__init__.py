"""MCP server exposing repository content and drafts as tools."""
