"""Wiring of the Productiv client, cache, gateway, resolver and analyzer."""

import logging
from dataclasses import dataclass

from .analyzer import OptimizationAnalyzer
from .cache import TTLCache
from .client import ProductivClient
from .config import ProductivConfig
from .gateway import ProductivGateway
from .resolver import ApplicationResolver

logger = logging.getLogger("mcp-productiv.services")


@dataclass
class ProductivServices:
    """Explicitly constructed set of collaborators shared by all tools."""

    config: ProductivConfig
    client: ProductivClient
    cache: TTLCache
    gateway: ProductivGateway
    resolver: ApplicationResolver
    analyzer: OptimizationAnalyzer

    @classmethod
    def from_config(
        cls, config: ProductivConfig, client: ProductivClient | None = None
    ) -> "ProductivServices":
        """Build every collaborator from one configuration.

        Args:
            config: Productiv configuration
            client: Optional client to use instead of building one

        Returns:
            A fresh, independent set of services with its own cache.
        """
        client = client or ProductivClient(config)
        cache = TTLCache()
        gateway = ProductivGateway(client, cache=cache)
        logger.debug(f"Productiv services ready for {config.url}")
        return cls(
            config=config,
            client=client,
            cache=cache,
            gateway=gateway,
            resolver=ApplicationResolver(gateway),
            analyzer=OptimizationAnalyzer(gateway),
        )

    def close(self) -> None:
        self.client.close()
