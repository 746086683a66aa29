"""
Shopify product source - fetches every product with its price band metafield.

Uses the Admin GraphQL API with cursor pagination, 100 products per page,
reading the `custom.price_band_name` metafield inline.
"""
import logging
from typing import Optional

import requests

from .product_cache import CachedProduct, ProductFetchError

logger = logging.getLogger(__name__)


PRODUCTS_WITH_METAFIELD_QUERY = """
  query ProductsWithMetafield($cursor: String) {
    products(first: 100, after: $cursor) {
      pageInfo {
        hasNextPage
        endCursor
      }
      edges {
        node {
          handle
          title
          priceBandName: metafield(namespace: "custom", key: "price_band_name") {
            value
          }
        }
      }
    }
  }
"""


class ShopifyProductFetcher:
    """Callable product source for ProductHandleCache."""

    def __init__(
        self,
        store_domain: str,
        access_token: str,
        api_version: str = '2024-10',
        session: Optional[requests.Session] = None,
        timeout: float = 30.0,
    ):
        self.store_domain = store_domain
        self.access_token = access_token
        self.api_version = api_version
        self.session = session or requests.Session()
        self.timeout = timeout

    @property
    def graphql_url(self) -> str:
        domain = self.store_domain.removeprefix('https://').removeprefix('http://')
        return f"https://{domain}/admin/api/{self.api_version}/graphql.json"

    def __call__(self) -> dict[str, CachedProduct]:
        if not self.store_domain or not self.access_token:
            raise ProductFetchError("Shopify is not configured (SHOPIFY_STORE_DOMAIN / SHOPIFY_ADMIN_ACCESS_TOKEN)")

        products: dict[str, CachedProduct] = {}
        cursor = None
        has_next_page = True

        while has_next_page:
            try:
                response = self.session.post(
                    self.graphql_url,
                    json={"query": PRODUCTS_WITH_METAFIELD_QUERY, "variables": {"cursor": cursor}},
                    headers={
                        "Content-Type": "application/json",
                        "X-Shopify-Access-Token": self.access_token,
                    },
                    timeout=self.timeout,
                )
                response.raise_for_status()
                payload = response.json()
            except (requests.RequestException, ValueError) as e:
                raise ProductFetchError(f"Shopify product fetch failed: {e}") from e

            page = (payload.get("data") or {}).get("products")
            if not page:
                raise ProductFetchError(f"Unexpected GraphQL response: {payload.get('errors') or payload}")

            for edge in page["edges"]:
                node = edge["node"]
                metafield = node.get("priceBandName") or {}
                products[node["handle"]] = CachedProduct(
                    price_band_name=metafield.get("value"),
                    title=node["title"],
                )

            has_next_page = page["pageInfo"]["hasNextPage"]
            cursor = page["pageInfo"]["endCursor"]

        logger.debug("Fetched %d products from %s", len(products), self.store_domain)
        return products
