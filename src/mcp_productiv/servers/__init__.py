"""FastMCP servers exposing Productiv tools."""

from .main import create_main_server, main_lifespan

__all__ = ["create_main_server", "main_lifespan"]
