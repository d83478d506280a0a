"""Lifespan state shared by the Productiv MCP servers."""

from dataclasses import dataclass

from mcp_productiv.productiv import ProductivServices


@dataclass(frozen=True)
class MainAppContext:
    """Context held for the lifetime of the main server.

    ``productiv`` is None when the API key is missing; tools then fail
    with a configuration error instead of the server refusing to start.
    """

    productiv: ProductivServices | None = None
