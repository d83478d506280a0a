"""Productiv FastMCP server: SaaS portfolio, contract, license and spend tools."""

import json
import logging
from typing import Annotated, Any

from fastmcp import Context, FastMCP
from pydantic import Field

from mcp_productiv.servers.dependencies import get_productiv_services
from mcp_productiv.utils.decorators import handle_productiv_errors

logger = logging.getLogger("mcp-productiv.server.productiv")

productiv_mcp = FastMCP(
    name="Productiv",
    instructions=(
        "Provides tools for the Productiv SaaS management platform: application "
        "inventory, usage, contracts, licenses, shadow IT, spend analytics and "
        "license optimization. Applications can be referred to by ID or by name."
    ),
)


def _dump(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False)


IdOrName = Annotated[
    str,
    Field(description="Application ID or name (e.g., 'Slack' or a UUID)"),
]


@productiv_mcp.tool(tags={"applications", "read"})
@handle_productiv_errors
async def list_applications(ctx: Context) -> str:
    """Get a list of all applications in the SaaS portfolio.

    Args:
        ctx: The FastMCP context.

    Returns:
        JSON list of applications.
    """
    services = await get_productiv_services(ctx)
    applications = await services.gateway.get_applications()
    return _dump([app.to_simplified_dict() for app in applications])


@productiv_mcp.tool(tags={"applications", "read"})
@handle_productiv_errors
async def get_application_details(ctx: Context, id_or_name: IdOrName) -> str:
    """Get detailed information about a specific application by ID or name.

    Args:
        ctx: The FastMCP context.
        id_or_name: Application ID or name.

    Returns:
        JSON object with the application details.
    """
    services = await get_productiv_services(ctx)
    application_id = await services.resolver.resolve(id_or_name)
    application = await services.gateway.get_application(application_id)
    return _dump(application.to_simplified_dict())


@productiv_mcp.tool(tags={"applications", "read"})
@handle_productiv_errors
async def get_application_usage(
    ctx: Context,
    id_or_name: IdOrName,
    period: Annotated[
        str,
        Field(
            description="Time period for usage data (e.g., 'last30days', 'last90days')",
            default="last30days",
        ),
    ] = "last30days",
) -> str:
    """Get usage analytics for an application, including active users and feature usage.

    Args:
        ctx: The FastMCP context.
        id_or_name: Application ID or name.
        period: Time period for usage data.

    Returns:
        JSON object with usage data.
    """
    services = await get_productiv_services(ctx)
    application_id = await services.resolver.resolve(id_or_name)
    usage = await services.gateway.get_application_usage(application_id, period)
    return _dump(usage.to_simplified_dict())


@productiv_mcp.tool(tags={"contracts", "read"})
@handle_productiv_errors
async def get_contracts(ctx: Context) -> str:
    """Get a list of all contracts.

    Args:
        ctx: The FastMCP context.

    Returns:
        JSON list of contracts.
    """
    services = await get_productiv_services(ctx)
    contracts = await services.gateway.get_contracts()
    return _dump([c.to_simplified_dict() for c in contracts])


@productiv_mcp.tool(tags={"contracts", "read"})
@handle_productiv_errors
async def get_application_contracts(ctx: Context, id_or_name: IdOrName) -> str:
    """Get contracts for a specific application.

    Args:
        ctx: The FastMCP context.
        id_or_name: Application ID or name.

    Returns:
        JSON list of the application's contracts.
    """
    services = await get_productiv_services(ctx)
    application_id = await services.resolver.resolve(id_or_name)
    contracts = await services.gateway.get_application_contracts(application_id)
    return _dump([c.to_simplified_dict() for c in contracts])


@productiv_mcp.tool(tags={"licenses", "read"})
@handle_productiv_errors
async def get_application_licenses(ctx: Context, id_or_name: IdOrName) -> str:
    """Get licenses for a specific application.

    Args:
        ctx: The FastMCP context.
        id_or_name: Application ID or name.

    Returns:
        JSON list of licenses.
    """
    services = await get_productiv_services(ctx)
    application_id = await services.resolver.resolve(id_or_name)
    licenses = await services.gateway.get_application_licenses(application_id)
    return _dump([lic.to_simplified_dict() for lic in licenses])


@productiv_mcp.tool(tags={"users", "read"})
@handle_productiv_errors
async def get_users(ctx: Context) -> str:
    """Get the users known to Productiv.

    Args:
        ctx: The FastMCP context.

    Returns:
        JSON list of users.
    """
    services = await get_productiv_services(ctx)
    users = await services.gateway.get_users()
    return _dump([u.to_simplified_dict() for u in users])


@productiv_mcp.tool(tags={"security", "read"})
@handle_productiv_errors
async def get_shadow_it(ctx: Context) -> str:
    """Get shadow IT applications that have been detected.

    Args:
        ctx: The FastMCP context.

    Returns:
        JSON list of shadow IT applications with risk level and user count.
    """
    services = await get_productiv_services(ctx)
    shadow_it = await services.gateway.get_shadow_it()
    return _dump([s.to_simplified_dict() for s in shadow_it])


@productiv_mcp.tool(tags={"analytics", "read"})
@handle_productiv_errors
async def get_spend_analytics(
    ctx: Context,
    period: Annotated[
        str,
        Field(
            description="Time period for analytics (e.g., 'last12months')",
            default="last12months",
        ),
    ] = "last12months",
) -> str:
    """Get spend analytics broken down by category, department and vendor.

    Args:
        ctx: The FastMCP context.
        period: Time period for analytics.

    Returns:
        JSON object with spend analytics.
    """
    services = await get_productiv_services(ctx)
    spend = await services.gateway.get_spend_analytics(period)
    return _dump(spend.to_simplified_dict())


@productiv_mcp.tool(tags={"recommendations", "read"})
@handle_productiv_errors
async def get_license_recommendations(ctx: Context) -> str:
    """Get license optimization recommendations.

    Args:
        ctx: The FastMCP context.

    Returns:
        JSON list of recommendations.
    """
    services = await get_productiv_services(ctx)
    recommendations = await services.gateway.get_license_recommendations()
    return _dump([r.to_simplified_dict() for r in recommendations])


@productiv_mcp.tool(tags={"recommendations", "read"})
@handle_productiv_errors
async def get_renewal_alerts(
    ctx: Context,
    days_ahead: Annotated[
        int,
        Field(
            description="Number of days ahead to look for renewals",
            default=90,
            ge=0,
        ),
    ] = 90,
) -> str:
    """Get upcoming contract renewal alerts.

    Args:
        ctx: The FastMCP context.
        days_ahead: Number of days ahead to look for renewals.

    Returns:
        JSON list of renewal alerts.
    """
    services = await get_productiv_services(ctx)
    alerts = await services.gateway.get_renewal_alerts(days_ahead)
    return _dump([a.to_simplified_dict() for a in alerts])


@productiv_mcp.tool(tags={"recommendations", "read"})
@handle_productiv_errors
async def find_underutilized_applications(
    ctx: Context,
    threshold_percent: Annotated[
        float,
        Field(
            description="Usage threshold percentage (e.g., 50 for 50%)",
            default=50,
            ge=0,
            le=100,
        ),
    ] = 50,
    id_or_name: Annotated[
        str | None,
        Field(
            description="Optional application ID or name to analyze a single application",
            default=None,
        ),
    ] = None,
) -> str:
    """Find applications with low usage rates and calculate potential savings.

    Applications whose active-user percentage is below the threshold are
    returned, ordered by potential yearly savings from removing unused
    licenses. Applications without an active contract have no cost
    estimate and are listed last.

    Args:
        ctx: The FastMCP context.
        threshold_percent: Usage threshold percentage.
        id_or_name: Optional application to restrict the analysis to.

    Returns:
        JSON with the ranked findings and a summary.
    """
    services = await get_productiv_services(ctx)
    application_id = None
    if id_or_name:
        application_id = await services.resolver.resolve(id_or_name)

    findings = await services.analyzer.find_underutilized(
        threshold=threshold_percent, application_id=application_id
    )

    total_savings = sum(f.potential_savings or 0.0 for f in findings)
    result: dict[str, Any] = {
        "threshold_percent": threshold_percent,
        "applications": [f.to_simplified_dict() for f in findings],
        "summary": {
            "underutilized_count": len(findings),
            "with_savings_estimate": len(
                [f for f in findings if f.potential_savings is not None]
            ),
            "total_potential_savings": round(total_savings, 2),
        },
    }
    return _dump(result)


@productiv_mcp.tool(tags={"admin", "write"})
@handle_productiv_errors
async def clear_cache(ctx: Context) -> str:
    """Clear all cached Productiv responses so the next calls fetch fresh data.

    Args:
        ctx: The FastMCP context.

    Returns:
        JSON with the number of cleared entries.
    """
    services = await get_productiv_services(ctx)
    cleared = services.gateway.clear_cache()
    return _dump({"cleared_entries": cleared})
