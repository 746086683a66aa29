"""Product Identity Resolver - storefront handle → catalog price band."""
from typing import TYPE_CHECKING, Optional

from ..engine.models import PriceBand
from .product_cache import CachedProduct, ProductHandleCache

if TYPE_CHECKING:
    from ..catalog.repository import CatalogRepository


def catalog_product_source(repository: "CatalogRepository"):
    """
    Product source backed by the catalog's own products table.

    Used when no storefront is configured, so handles in products.csv
    resolve to their price bands.
    """
    def fetch() -> dict[str, CachedProduct]:
        products = {}
        for product in repository.list_products():
            band = repository.get_price_band(product.price_band_id) if product.price_band_id else None
            products[product.handle] = CachedProduct(
                price_band_name=band.name if band else None,
                title=product.title,
            )
        return products

    return fetch


class HandleIdentityResolver:
    """Resolves storefront handles through the product cache and the catalog."""

    def __init__(self, cache: ProductHandleCache, repository: "CatalogRepository"):
        self.cache = cache
        self.repository = repository

    def product(self, handle: str) -> Optional[CachedProduct]:
        return self.cache.get(handle)

    def resolve(self, handle: str) -> Optional[PriceBand]:
        """The price band named on the storefront product, or None."""
        name = self.cache.get_price_band_name(handle)
        if not name:
            return None
        return self.repository.get_price_band_by_name(name)
