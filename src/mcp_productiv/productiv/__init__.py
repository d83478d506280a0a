"""Productiv API integration: client, cache, gateway and analysis."""

from .analyzer import OptimizationAnalyzer
from .cache import TTLCache
from .client import ProductivClient
from .config import DEFAULT_CACHE_TTL, ProductivConfig
from .gateway import ProductivGateway
from .resolver import ApplicationResolver
from .services import ProductivServices

__all__ = [
    "ApplicationResolver",
    "DEFAULT_CACHE_TTL",
    "OptimizationAnalyzer",
    "ProductivClient",
    "ProductivConfig",
    "ProductivGateway",
    "ProductivServices",
    "TTLCache",
]
