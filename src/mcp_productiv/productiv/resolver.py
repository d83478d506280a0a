"""Resolution of application IDs or names to canonical application IDs."""

import logging

from mcp_productiv.exceptions import InvalidInputError, NotFoundError, UpstreamError
from mcp_productiv.utils.identifiers import looks_like_app_id, normalize_name, suggest_names

from .gateway import ProductivGateway


class ApplicationResolver:
    """Turn a caller-supplied ID or name into an application ID.

    Resolution policy:

    1. An ID-shaped input (lowercase hex and hyphens) is looked up directly.
       If the application exists its ID is returned and the application
       list is never fetched.
    2. Otherwise, or if the direct lookup fails with ``NotFoundError`` or
       ``UpstreamError``, the full list is fetched and names are compared
       exactly after case-folding.
    3. When several applications share a case-folded name, the first one in
       list order wins.

    ``UnauthorizedError`` and ``RateLimitExceededError`` from the direct
    lookup propagate unchanged.
    """

    def __init__(
        self, gateway: ProductivGateway, logger: logging.Logger | None = None
    ) -> None:
        self.gateway = gateway
        self.logger = logger or logging.getLogger("mcp-productiv.resolver")

    async def resolve(self, id_or_name: str) -> str:
        """Resolve an application ID or name.

        Args:
            id_or_name: Application ID or human-readable name

        Returns:
            The canonical application ID.

        Raises:
            InvalidInputError: If the input is empty
            NotFoundError: If nothing matches, with close names in ``details``
        """
        if not id_or_name or not id_or_name.strip():
            raise InvalidInputError("id_or_name", "must be a non-empty string")
        candidate = id_or_name.strip()

        if looks_like_app_id(candidate):
            try:
                application = await self.gateway.get_application(candidate)
                return application.id
            except (NotFoundError, UpstreamError) as e:
                self.logger.debug(
                    f"Direct lookup of '{candidate}' failed ({e.code}), trying by name"
                )

        applications = await self.gateway.get_applications()
        wanted = normalize_name(candidate)
        matches = [app for app in applications if normalize_name(app.name) == wanted]

        if not matches:
            suggestions = suggest_names(candidate, (app.name for app in applications))
            raise NotFoundError(
                "Application",
                id_or_name,
                message=f"Application not found with ID or name: {id_or_name}",
                details={"suggestions": suggestions} if suggestions else None,
            )

        if len(matches) > 1:
            self.logger.warning(
                f"Application name '{candidate}' is ambiguous "
                f"({len(matches)} matches), using {matches[0].id}"
            )
        return matches[0].id
