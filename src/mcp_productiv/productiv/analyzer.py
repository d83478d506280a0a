"""Usage and cost analysis for license optimization."""

import logging
import math
from datetime import datetime, timezone

from mcp_productiv.exceptions import InvalidInputError, ProductivError
from mcp_productiv.models import (
    Application,
    ApplicationUsage,
    Contract,
    UnderutilizationResult,
)

from .gateway import ProductivGateway

# Multiplier that turns one payment into a yearly figure.
# One-time payments count once, as if spread over a single year.
ANNUAL_MULTIPLIERS: dict[str, int] = {
    "monthly": 12,
    "quarterly": 4,
    "annually": 1,
    "one-time": 1,
}

_EARLIEST = datetime.min.replace(tzinfo=timezone.utc)


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _parse_date(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def select_active_contract(
    contracts: list[Contract], logger: logging.Logger | None = None
) -> Contract | None:
    """Pick the contract that drives cost for an application.

    Only contracts with status ``active`` qualify. If several do, the one
    with the latest ``startDate`` wins; contracts with equal or missing
    start dates keep list order, so the first of them wins.

    Returns:
        The selected contract, or None if none is active.
    """
    active = [c for c in contracts if c.status == "active"]
    if not active:
        return None
    if len(active) > 1 and logger is not None:
        logger.warning(
            f"{len(active)} active contracts for application "
            f"{active[0].application_id}, using the latest start date"
        )

    selected = active[0]
    selected_start = _parse_date(selected.start_date) or _EARLIEST
    for contract in active[1:]:
        start = _parse_date(contract.start_date) or _EARLIEST
        if start > selected_start:
            selected, selected_start = contract, start
    return selected


def annual_cost(contract: Contract | None) -> float | None:
    """Normalize a contract amount to a yearly cost.

    Returns:
        The annual cost, or None without a contract or with an unknown
        payment frequency.
    """
    if contract is None:
        return None
    multiplier = ANNUAL_MULTIPLIERS.get(contract.payment_frequency or "")
    if multiplier is None:
        return None
    return contract.amount * multiplier


def evaluate_application(
    application: Application,
    usage: ApplicationUsage,
    contracts: list[Contract],
    logger: logging.Logger | None = None,
) -> UnderutilizationResult:
    """Compute license waste and potential savings for one application."""
    total_licenses = application.total_licenses or 0
    cost = annual_cost(select_active_contract(contracts, logger))

    unused = _round_half_up(total_licenses) - _round_half_up(usage.active_users)
    unused = max(unused, 0)

    savings: float | None = None
    if cost is not None:
        per_seat = cost / max(total_licenses, 1)
        savings = per_seat * unused
        if savings <= 0:
            savings = None

    return UnderutilizationResult(
        application_name=application.name,
        active_users_percent=usage.active_percent,
        total_licenses=total_licenses,
        unused_licenses=unused,
        annual_cost=cost,
        potential_savings=savings,
    )


def rank_by_savings(results: list[UnderutilizationResult]) -> list[UnderutilizationResult]:
    """Order results by potential savings, highest first, unknown savings last.

    The sort is stable, so equal savings keep their input order.
    """
    return sorted(
        results,
        key=lambda r: (r.potential_savings is None, -(r.potential_savings or 0.0)),
    )


class OptimizationAnalyzer:
    """Find applications whose usage falls below a threshold.

    The analyzer holds no state of its own; everything it reads comes
    through the gateway and therefore benefits from its cache.
    """

    def __init__(
        self, gateway: ProductivGateway, logger: logging.Logger | None = None
    ) -> None:
        self.gateway = gateway
        self.logger = logger or logging.getLogger("mcp-productiv.analyzer")

    async def find_underutilized(
        self,
        threshold: float = 50,
        application_id: str | None = None,
        period: str = "last30days",
    ) -> list[UnderutilizationResult]:
        """Rank applications whose active-user percentage is below ``threshold``.

        Applications are processed one after another. Any Productiv error
        while fetching one application's usage or contracts is logged and
        that application is skipped; a failure to list the applications
        propagates.

        Args:
            threshold: Usage percentage (0-100) below which an application counts
            application_id: Restrict the analysis to a single application
            period: Usage period passed to the API

        Returns:
            Findings ordered by potential savings, highest first.

        Raises:
            InvalidInputError: If threshold is outside 0-100
        """
        if not 0 <= threshold <= 100:
            raise InvalidInputError("threshold", "must be between 0 and 100")

        if application_id is not None:
            applications = [await self.gateway.get_application(application_id)]
        else:
            applications = await self.gateway.get_applications()

        results: list[UnderutilizationResult] = []
        for application in applications:
            try:
                usage = await self.gateway.get_application_usage(application.id, period)
                contracts = await self.gateway.get_application_contracts(application.id)
            except ProductivError as e:
                self.logger.warning(
                    f"Skipping application {application.id} ({application.name}): "
                    f"{e.message}"
                )
                continue

            if usage.active_percent < threshold:
                results.append(
                    evaluate_application(application, usage, contracts, self.logger)
                )

        self.logger.info(
            f"Found {len(results)} of {len(applications)} applications below "
            f"{threshold}% usage"
        )
        return rank_by_savings(results)
