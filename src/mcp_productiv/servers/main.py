"""Main FastMCP server setup for the Productiv integration."""

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastmcp import FastMCP

from mcp_productiv.productiv import ProductivConfig, ProductivServices
from mcp_productiv.productiv.config import is_env_truthy
from mcp_productiv.utils.logging import log_config_param

from .context import MainAppContext
from .productiv import productiv_mcp

logger = logging.getLogger("mcp-productiv.server.main")

TOOLSETS = (
    "applications",
    "contracts",
    "licenses",
    "users",
    "security",
    "analytics",
    "recommendations",
    "admin",
)


def parse_enabled_toolsets(raw: str | None) -> list[str]:
    """Parse a comma-separated toolset list.

    Unknown names are dropped with a warning. An empty or missing value,
    or one containing ``all``, enables everything.

    Returns:
        ``["all"]`` or the list of valid toolset names, in input order.
    """
    if not raw or not raw.strip():
        return ["all"]
    requested = [t.strip().lower() for t in raw.split(",") if t.strip()]
    if "all" in requested:
        return ["all"]
    enabled: list[str] = []
    for name in requested:
        if name not in TOOLSETS:
            logger.warning(f"Ignoring unknown toolset: {name}")
        elif name not in enabled:
            enabled.append(name)
    return enabled or ["all"]


@asynccontextmanager
async def main_lifespan(app: FastMCP[Any]) -> AsyncIterator[dict[str, Any]]:
    """Build the Productiv services on startup and close them on shutdown."""
    logger.info("Productiv MCP server lifespan starting...")
    services: ProductivServices | None = None
    try:
        config = ProductivConfig.from_env()
        services = ProductivServices.from_config(config)
        log_config_param(logger, "Productiv", "URL", config.url)
        log_config_param(logger, "Productiv", "API_KEY", config.api_key, sensitive=True)
    except ValueError as e:
        logger.error(f"Productiv is not configured, tools will be unavailable: {e}")

    app_context = MainAppContext(productiv=services)
    try:
        yield {"app_lifespan_context": app_context}
    finally:
        logger.info("Productiv MCP server lifespan shutting down...")
        if services is not None:
            services.close()


def create_main_server(
    enabled_toolsets: list[str] | None = None, read_only: bool | None = None
) -> FastMCP[Any]:
    """Create the main server with the Productiv tools mounted.

    Args:
        enabled_toolsets: Toolsets to expose, read from MCP_ENABLED_TOOLSETS if None
        read_only: Hide tools tagged ``write``, read from READ_ONLY_MODE if None

    Returns:
        The configured FastMCP server.
    """
    if enabled_toolsets is None:
        enabled_toolsets = parse_enabled_toolsets(os.getenv("MCP_ENABLED_TOOLSETS"))
    if read_only is None:
        read_only = is_env_truthy("READ_ONLY_MODE")

    include_tags = None if "all" in enabled_toolsets else set(enabled_toolsets)
    exclude_tags = {"write"} if read_only else None
    logger.info(f"Enabled toolsets: {', '.join(enabled_toolsets)}")
    if read_only:
        logger.info("Read-only mode: write tools are disabled")

    server: FastMCP[Any] = FastMCP(
        name="Productiv MCP",
        instructions="Productiv SaaS management tools for applications, "
        "contracts, licenses, spend and optimization.",
        lifespan=main_lifespan,
        include_tags=include_tags,
        exclude_tags=exclude_tags,
    )
    server.mount(productiv_mcp)
    return server
