"""
Product Handle Cache - storefront handle → (price band name, title).

Refreshes from a product source when the cache is empty or older than
its TTL. Only one refresh runs at a time; callers arriving during a
refresh wait for it instead of starting another. A failed refresh keeps
serving the previous (stale) mapping.
"""
import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CachedProduct:
    price_band_name: Optional[str]
    title: str


class ProductFetchError(Exception):
    """Raised by a product source when the storefront cannot be read."""


ProductSource = Callable[[], dict[str, CachedProduct]]


class ProductHandleCache:
    """TTL cache of storefront products keyed by handle."""

    def __init__(
        self,
        source: ProductSource,
        ttl_seconds: float = 600.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.source = source
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._products: dict[str, CachedProduct] = {}
        self._last_refresh: Optional[float] = None
        self._refresh_lock = threading.Lock()
        self.refresh_count = 0

    def is_stale(self) -> bool:
        if self._last_refresh is None or not self._products:
            return True
        return self.clock() - self._last_refresh > self.ttl_seconds

    def refresh(self, force: bool = False) -> None:
        """Reload from the source unless fresh; single-flight across threads."""
        if not self._refresh_lock.acquire(blocking=False):
            # Another thread is refreshing; wait for it to finish.
            with self._refresh_lock:
                return

        try:
            if not force and not self.is_stale():
                return
            logger.info("Refreshing storefront product cache...")
            try:
                products = self.source()
            except ProductFetchError as e:
                logger.error("Failed to refresh product cache: %s", e)
                return
            self._products = products
            self._last_refresh = self.clock()
            self.refresh_count += 1
            logger.info("Loaded %d products into cache", len(products))
        finally:
            self._refresh_lock.release()

    def force_refresh(self) -> None:
        """Refresh now regardless of TTL (e.g. after a product was edited)."""
        self.refresh(force=True)

    def get(self, handle: str) -> Optional[CachedProduct]:
        if self.is_stale():
            self.refresh()
        return self._products.get(handle)

    def get_price_band_name(self, handle: str) -> Optional[str]:
        product = self.get(handle)
        return product.price_band_name if product else None

    def all(self) -> dict[str, CachedProduct]:
        if self.is_stale():
            self.refresh()
        return dict(self._products)
