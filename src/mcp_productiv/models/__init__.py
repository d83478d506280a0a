"""Data models for Productiv API responses."""

from .productiv import (
    Application,
    ApplicationUsage,
    Contract,
    FeatureUsage,
    License,
    LicenseRecommendation,
    ProductivModel,
    RenewalAlert,
    ShadowIT,
    SpendAnalytics,
    UnderutilizationResult,
    User,
)

__all__ = [
    "Application",
    "ApplicationUsage",
    "Contract",
    "FeatureUsage",
    "License",
    "LicenseRecommendation",
    "ProductivModel",
    "RenewalAlert",
    "ShadowIT",
    "SpendAnalytics",
    "UnderutilizationResult",
    "User",
]
