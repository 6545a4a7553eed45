"""MCP tool registrations for chuk-mcp-dtm."""
