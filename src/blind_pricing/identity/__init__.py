"""Identity subpackage - maps storefront product handles to price bands."""
from .product_cache import CachedProduct, ProductFetchError, ProductHandleCache
from .resolver import HandleIdentityResolver, catalog_product_source
from .shopify import ShopifyProductFetcher

__all__ = [
    'CachedProduct', 'ProductFetchError', 'ProductHandleCache',
    'HandleIdentityResolver', 'catalog_product_source', 'ShopifyProductFetcher',
]
