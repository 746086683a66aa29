"""
Shared engine instance for the API routers.

Built lazily from settings on first use; tests replace it through
app.dependency_overrides[get_engine].
"""
import logging
from typing import Optional

from ..catalog.repository import DataFrameCatalogRepository
from ..config.settings import Settings, get_settings
from ..engine import PricingEngine
from ..identity import (
    HandleIdentityResolver,
    ProductHandleCache,
    ShopifyProductFetcher,
    catalog_product_source,
)

logger = logging.getLogger(__name__)

_engine: Optional[PricingEngine] = None


def build_engine(settings: Settings) -> PricingEngine:
    """Load the catalog and wire the identity resolver for the configured storefront."""
    repository = DataFrameCatalogRepository.from_csv_dir(settings.catalog_dir)

    if settings.shopify_configured:
        source = ShopifyProductFetcher(
            settings.shopify_store_domain,
            settings.shopify_admin_access_token,
            settings.shopify_api_version,
        )
        logger.info("Resolving product handles from Shopify store %s", settings.shopify_store_domain)
    else:
        source = catalog_product_source(repository)
        logger.info("Shopify not configured; resolving product handles from the catalog")

    cache = ProductHandleCache(source, ttl_seconds=settings.product_cache_ttl_seconds)
    return PricingEngine(repository, HandleIdentityResolver(cache, repository))


def get_engine() -> PricingEngine:
    """Get the global engine instance."""
    global _engine
    if _engine is None:
        _engine = build_engine(get_settings())
    return _engine
