"""Cached access to the Productiv API.

Every read goes through :meth:`ProductivGateway._cached`: derive a key from
the operation name and its arguments, return the cached value if it has
not expired, otherwise call upstream and store the result for that
resource's TTL. Failures are never cached.
"""

import asyncio
import json
import logging
from collections.abc import Callable
from typing import Any, TypeVar
from urllib.parse import quote

from pydantic import BaseModel, ValidationError

from mcp_productiv.exceptions import InvalidInputError, UpstreamError
from mcp_productiv.models import (
    Application,
    ApplicationUsage,
    Contract,
    License,
    LicenseRecommendation,
    RenewalAlert,
    ShadowIT,
    SpendAnalytics,
    User,
)

from .cache import TTLCache
from .client import ProductivClient

ModelT = TypeVar("ModelT", bound=BaseModel)
T = TypeVar("T")


def make_cache_key(operation: str, *args: Any) -> str:
    """Build a deterministic cache key from an operation and its arguments."""
    return f"{operation}:{json.dumps(list(args), sort_keys=True, separators=(',', ':'))}"


def _unwrap(data: dict[str, Any], envelope: str, path: str) -> Any:
    if envelope not in data:
        raise UpstreamError(f"Malformed response from {path}: missing '{envelope}'")
    return data[envelope]


def _parse_one(model: type[ModelT], raw: Any, path: str) -> ModelT:
    try:
        return model.model_validate(raw)
    except ValidationError as e:
        raise UpstreamError(
            f"Unexpected {model.__name__} record from {path}", cause=e
        ) from e


def _parse_many(model: type[ModelT], raw: Any, path: str) -> list[ModelT]:
    if not isinstance(raw, list):
        raise UpstreamError(f"Malformed response from {path}: expected a list")
    return [_parse_one(model, item, path) for item in raw]


class ProductivGateway:
    """Single point of contact with the Productiv API.

    Args:
        client: HTTP client performing the actual requests
        cache: Cache for responses; a private one is created if omitted
        ttls: TTL in seconds per resource, overriding the client config
        logger: Logger to report to, defaults to ``mcp-productiv.gateway``
    """

    def __init__(
        self,
        client: ProductivClient,
        cache: TTLCache | None = None,
        ttls: dict[str, int] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.client = client
        self.cache = cache if cache is not None else TTLCache()
        self.ttls = ttls
        self.logger = logger or logging.getLogger("mcp-productiv.gateway")

    def _ttl(self, resource: str) -> int:
        if self.ttls is not None:
            return self.ttls.get(resource, 0)
        return self.client.config.ttl_for(resource)

    async def _cached(
        self,
        operation: str,
        args: tuple[Any, ...],
        resource: str,
        fetch: Callable[[], T],
    ) -> T:
        key = make_cache_key(operation, *args)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        self.logger.debug(f"Fetching {operation}{args} from Productiv")
        result = await asyncio.to_thread(fetch)

        ttl = self._ttl(resource)
        if ttl > 0:
            purged = self.cache.purge_expired()
            if purged:
                self.logger.debug(f"Purged {purged} expired cache entries")
            self.cache.set(key, result, ttl)
        return result

    def _fetch_list(
        self,
        path: str,
        envelope: str,
        model: type[ModelT],
        params: dict[str, Any] | None = None,
        resource_kind: str = "Resource",
        resource_id: str | None = None,
    ) -> Callable[[], list[ModelT]]:
        def fetch() -> list[ModelT]:
            data = self.client.get(
                path, params=params, resource_kind=resource_kind, resource_id=resource_id
            )
            return _parse_many(model, _unwrap(data, envelope, path), path)

        return fetch

    def _fetch_one(
        self,
        path: str,
        envelope: str,
        model: type[ModelT],
        params: dict[str, Any] | None = None,
        resource_kind: str = "Resource",
        resource_id: str | None = None,
    ) -> Callable[[], ModelT]:
        def fetch() -> ModelT:
            data = self.client.get(
                path, params=params, resource_kind=resource_kind, resource_id=resource_id
            )
            return _parse_one(model, _unwrap(data, envelope, path), path)

        return fetch

    async def get_applications(self) -> list[Application]:
        """Get all applications in the SaaS portfolio."""
        return await self._cached(
            "applications",
            (),
            "applications",
            self._fetch_list("/v1/applications", "applications", Application),
        )

    async def get_application(self, application_id: str) -> Application:
        """Get a single application.

        Raises:
            NotFoundError: If no application has this ID
        """
        return await self._cached(
            "application",
            (application_id,),
            "application_details",
            self._fetch_one(
                f"/v1/applications/{quote(application_id, safe='')}",
                "application",
                Application,
                resource_kind="Application",
                resource_id=application_id,
            ),
        )

    async def get_application_usage(
        self, application_id: str, period: str = "last30days"
    ) -> ApplicationUsage:
        """Get usage data for an application over a period."""
        return await self._cached(
            "application_usage",
            (application_id, period),
            "application_usage",
            self._fetch_one(
                f"/v1/applications/{quote(application_id, safe='')}/usage",
                "usage",
                ApplicationUsage,
                params={"period": period},
                resource_kind="Application",
                resource_id=application_id,
            ),
        )

    async def get_contracts(self) -> list[Contract]:
        """Get all contracts."""
        return await self._cached(
            "contracts",
            (),
            "contracts",
            self._fetch_list("/v1/contracts", "contracts", Contract),
        )

    async def get_application_contracts(self, application_id: str) -> list[Contract]:
        """Get the contracts of one application."""
        return await self._cached(
            "application_contracts",
            (application_id,),
            "contracts",
            self._fetch_list(
                f"/v1/applications/{quote(application_id, safe='')}/contracts",
                "contracts",
                Contract,
                resource_kind="Application",
                resource_id=application_id,
            ),
        )

    async def get_application_licenses(self, application_id: str) -> list[License]:
        """Get the licenses assigned for one application."""
        return await self._cached(
            "application_licenses",
            (application_id,),
            "licenses",
            self._fetch_list(
                f"/v1/applications/{quote(application_id, safe='')}/licenses",
                "licenses",
                License,
                resource_kind="Application",
                resource_id=application_id,
            ),
        )

    async def get_users(self) -> list[User]:
        return await self._cached(
            "users", (), "users", self._fetch_list("/v1/users", "users", User)
        )

    async def get_shadow_it(self) -> list[ShadowIT]:
        """Get applications detected in use without procurement."""
        return await self._cached(
            "shadow_it",
            (),
            "shadow_it",
            self._fetch_list("/v1/shadow-it", "applications", ShadowIT),
        )

    async def get_spend_analytics(self, period: str = "last12months") -> SpendAnalytics:
        return await self._cached(
            "spend_analytics",
            (period,),
            "spend_analytics",
            self._fetch_one(
                "/v1/analytics/spend", "spend", SpendAnalytics, params={"period": period}
            ),
        )

    async def get_license_recommendations(self) -> list[LicenseRecommendation]:
        return await self._cached(
            "license_recommendations",
            (),
            "recommendations",
            self._fetch_list(
                "/v1/recommendations/licenses", "recommendations", LicenseRecommendation
            ),
        )

    async def get_renewal_alerts(self, days_ahead: int = 90) -> list[RenewalAlert]:
        """Get contract renewals coming up within ``days_ahead`` days."""
        if days_ahead < 0:
            raise InvalidInputError("days_ahead", "must not be negative")
        return await self._cached(
            "renewal_alerts",
            (days_ahead,),
            "renewal_alerts",
            self._fetch_list(
                "/v1/alerts/renewals",
                "alerts",
                RenewalAlert,
                params={"daysAhead": days_ahead},
            ),
        )

    def clear_cache(self) -> int:
        """Drop every cached response.

        Returns:
            Number of entries that were cached.
        """
        count = self.cache.size()
        self.cache.clear()
        self.logger.info(f"Cleared {count} cached Productiv responses")
        return count
