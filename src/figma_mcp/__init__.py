"""MCP server exposing Figma design data and YApi interface docs as tools.

Serves over stdio or HTTP/SSE, with exactly one live transport session.
"""
