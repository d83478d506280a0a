"""Dependency providers for Productiv MCP tools."""

import logging

from fastmcp import Context

from mcp_productiv.exceptions import NotConfiguredError
from mcp_productiv.productiv import ProductivServices

from .context import MainAppContext

logger = logging.getLogger("mcp-productiv.servers.dependencies")


async def get_productiv_services(ctx: Context) -> ProductivServices:
    """Return the Productiv services created by the server lifespan.

    Args:
        ctx: The FastMCP context.

    Returns:
        The shared ProductivServices instance.

    Raises:
        NotConfiguredError: If the lifespan context is missing or Productiv is not configured.
    """
    lifespan_ctx = ctx.request_context.lifespan_context
    app_ctx = (
        lifespan_ctx.get("app_lifespan_context")
        if isinstance(lifespan_ctx, dict)
        else None
    )
    if not isinstance(app_ctx, MainAppContext):
        logger.error("Application lifespan context is not available")
        raise NotConfiguredError("Application context is not available")
    if app_ctx.productiv is None:
        raise NotConfiguredError(
            "Productiv is not configured. Set PRODUCTIV_API_KEY (and optionally "
            "PRODUCTIV_API_URL) and restart the server."
        )
    return app_ctx.productiv
