"""Configuration module for the Productiv API client."""

import logging
import os
from dataclasses import dataclass, field

from mcp_productiv.utils.rate_limit import RateLimitConfig, get_config_from_env

logger = logging.getLogger("mcp-productiv.config")

DEFAULT_API_URL = "https://api.productiv.com"

# Default cache TTL in seconds, per resource
DEFAULT_CACHE_TTL: dict[str, int] = {
    "applications": 60 * 5,
    "application_details": 60 * 5,
    "application_usage": 60 * 5,
    "contracts": 60 * 15,
    "licenses": 60 * 15,
    "users": 60 * 30,
    "shadow_it": 60 * 30,
    "spend_analytics": 60 * 60,
    "recommendations": 60 * 60,
    "renewal_alerts": 60 * 30,
}


def is_env_truthy(name: str, default: str = "") -> bool:
    """Check if an environment variable is set to a truthy value."""
    return os.getenv(name, default).strip().lower() in ("true", "1", "yes", "on")


def _parse_custom_headers(raw: str | None) -> dict[str, str]:
    """Parse ``Name=value,Name2=value2`` into a header dict."""
    headers: dict[str, str] = {}
    if not raw:
        return headers
    for pair in raw.split(","):
        pair = pair.strip()
        if not pair:
            continue
        if "=" not in pair:
            logger.warning(f"Ignoring malformed custom header (expected Name=value): {pair}")
            continue
        name, value = pair.split("=", 1)
        name = name.strip()
        if name:
            headers[name] = value.strip()
    return headers


def _cache_ttls_from_env() -> dict[str, int]:
    ttls = dict(DEFAULT_CACHE_TTL)
    for resource in DEFAULT_CACHE_TTL:
        env_name = f"PRODUCTIV_CACHE_TTL_{resource.upper()}"
        raw = os.getenv(env_name)
        if not raw:
            continue
        try:
            value = int(raw)
        except ValueError:
            logger.warning(f"Invalid int value for {env_name}: {raw}, using default")
            continue
        if value < 0:
            logger.warning(f"Negative TTL for {env_name}: {raw}, using default")
            continue
        ttls[resource] = value
    return ttls


@dataclass
class ProductivConfig:
    """Productiv API configuration.

    Attributes:
        api_key: Bearer token forwarded to the API
        url: Base URL of the Productiv API
        timeout: Per-request timeout in seconds
        ssl_verify: Whether to verify TLS certificates
        cache_ttls: TTL in seconds per resource; 0 disables caching
    """

    api_key: str
    url: str = DEFAULT_API_URL
    timeout: float = 30.0
    ssl_verify: bool = True
    http_proxy: str | None = None
    https_proxy: str | None = None
    custom_headers: dict[str, str] = field(default_factory=dict)
    cache_ttls: dict[str, int] = field(default_factory=lambda: dict(DEFAULT_CACHE_TTL))
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)

    def __post_init__(self) -> None:
        self.url = self.url.rstrip("/")

    @classmethod
    def from_env(cls) -> "ProductivConfig":
        """Create configuration from environment variables.

        Returns:
            ProductivConfig with values from environment variables

        Raises:
            ValueError: If PRODUCTIV_API_KEY is missing
        """
        api_key = os.getenv("PRODUCTIV_API_KEY")
        if not api_key:
            raise ValueError("Missing required PRODUCTIV_API_KEY environment variable")

        timeout = 30.0
        raw_timeout = os.getenv("PRODUCTIV_TIMEOUT")
        if raw_timeout:
            try:
                timeout = float(raw_timeout)
            except ValueError:
                logger.warning(
                    f"Invalid float value for PRODUCTIV_TIMEOUT: {raw_timeout}, "
                    f"using default"
                )

        return cls(
            api_key=api_key,
            url=os.getenv("PRODUCTIV_API_URL") or DEFAULT_API_URL,
            timeout=timeout,
            ssl_verify=is_env_truthy("PRODUCTIV_SSL_VERIFY", "true"),
            http_proxy=os.getenv("PRODUCTIV_HTTP_PROXY") or None,
            https_proxy=os.getenv("PRODUCTIV_HTTPS_PROXY") or None,
            custom_headers=_parse_custom_headers(os.getenv("PRODUCTIV_CUSTOM_HEADERS")),
            cache_ttls=_cache_ttls_from_env(),
            rate_limit=get_config_from_env(),
        )

    def ttl_for(self, resource: str) -> int:
        """TTL in seconds for a resource, falling back to the default table."""
        return self.cache_ttls.get(resource, DEFAULT_CACHE_TTL.get(resource, 0))
