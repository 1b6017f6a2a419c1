"""Agent framework integrations.

Available integrations:
- sqlchat.integrations.mcp - MCP (Model Context Protocol) server
"""
