"""Pydantic models for Productiv API records.

Upstream payloads use camelCase keys. Models accept either camelCase or
snake_case input and serialize back to camelCase, so tool output matches
what the Productiv API documents. Unknown fields are preserved.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ProductivModel(BaseModel):
    """Base model for all Productiv records."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    def to_simplified_dict(self) -> dict[str, Any]:
        """Convert to a JSON-ready dict with camelCase keys, dropping unset values."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Application(ProductivModel):
    id: str
    name: str
    status: str = "active"
    description: str | None = None
    category: str | None = None
    vendor: str | None = None
    website: str | None = None
    spend_status: str | None = None
    total_licenses: float | None = None
    used_licenses: float | None = None
    contact_email: str | None = None
    tags: list[str] = Field(default_factory=list)
    created_at: str | None = None
    updated_at: str | None = None


class FeatureUsage(ProductivModel):
    name: str
    description: str | None = None
    usage_count: int = 0
    active_users: int = 0


class ApplicationUsage(ProductivModel):
    """Usage snapshot for one application over one period."""

    application_id: str | None = None
    id: str | None = None
    total_users: float = 0
    active_users: float = 0
    active_percent: float
    inactive_users: float | None = None
    period: str | None = None
    features: list[FeatureUsage] = Field(default_factory=list)


class Contract(ProductivModel):
    """A purchase contract.

    ``payment_frequency`` is one of ``monthly``, ``quarterly``, ``annually``
    or ``one-time``; it is kept as a plain string so an unexpected value
    from upstream does not reject the whole contract list.
    """

    id: str | None = None
    application_id: str | None = None
    name: str | None = None
    status: str
    start_date: str | None = None
    end_date: str | None = None
    renewal_date: str | None = None
    auto_renewal: bool = False
    cancellation_notice_days: int | None = None
    amount: float = 0
    currency: str | None = None
    payment_frequency: str | None = None
    licenses_included: int | None = None
    contact_email: str | None = None
    notes: str | None = None
    document_url: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


class License(ProductivModel):
    id: str
    application_id: str | None = None
    user_id: str | None = None
    email: str | None = None
    license_type: str | None = None
    status: str | None = None
    assigned_at: str | None = None
    last_used_at: str | None = None
    usage_frequency: str | None = None


class User(ProductivModel):
    id: str
    email: str
    first_name: str | None = None
    last_name: str | None = None
    department: str | None = None
    title: str | None = None
    status: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


class ShadowIT(ProductivModel):
    """An application discovered in use without formal procurement."""

    id: str
    name: str
    discovery_source: str | None = None
    discovered_at: str | None = None
    users: int = 0
    risk_level: str | None = None
    category: str | None = None
    similar_apps: list[str] = Field(default_factory=list)


class SpendBreakdown(ProductivModel):
    by_category: dict[str, float] = Field(default_factory=dict)
    by_department: dict[str, float] = Field(default_factory=dict)
    by_vendor: dict[str, float] = Field(default_factory=dict)


class SpendTrend(ProductivModel):
    previous_period: float | None = None
    percent_change: float | None = None


class SpendAnalytics(ProductivModel):
    total_spend: float
    currency: str | None = None
    period: str | None = None
    breakdown: SpendBreakdown = Field(default_factory=SpendBreakdown)
    trending: SpendTrend = Field(default_factory=SpendTrend)


class LicenseRecommendation(ProductivModel):
    application_id: str
    application_name: str | None = None
    current_licenses: int | None = None
    recommended_licenses: int | None = None
    potential_savings: float | None = None
    currency: str | None = None
    reason: str | None = None
    confidence: str | None = None


class RenewalAlert(ProductivModel):
    id: str | None = None
    application_id: str
    application_name: str | None = None
    contract_id: str | None = None
    renewal_date: str | None = None
    days_until_renewal: int | None = None
    annual_amount: float | None = None
    currency: str | None = None
    recommendations: list[str] = Field(default_factory=list)


class UnderutilizationResult(ProductivModel):
    """Derived finding for an application below the usage threshold."""

    application_name: str
    active_users_percent: float
    total_licenses: float
    unused_licenses: int
    annual_cost: float | None = None
    potential_savings: float | None = None

    def to_simplified_dict(self) -> dict[str, Any]:
        # Null cost and savings are meaningful here, keep them.
        return self.model_dump(mode="json", by_alias=True)
