"""Utility functions for the Productiv MCP server."""
