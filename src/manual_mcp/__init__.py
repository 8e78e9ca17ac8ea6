"""MCP server for the annotated-screenshot manual editor."""
