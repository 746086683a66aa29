"""
Centralized settings and path configuration for the blind pricing engine.
"""
import os
from decimal import Decimal
from pathlib import Path
from dataclasses import dataclass
from typing import Optional


def get_package_root() -> Path:
    """Get the blind_pricing package directory (where data/ lives)."""
    return Path(__file__).resolve().parent.parent


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ('true', '1', 'yes', 'on')


@dataclass
class Settings:
    """Application settings with sensible defaults."""

    # Catalog data
    catalog_dir: Path

    # Price validation tolerances (absolute, in catalog currency)
    validate_tolerance: Decimal = Decimal('0.01')
    checkout_tolerance: Decimal = Decimal('0.50')

    # Storefront product cache
    product_cache_ttl_seconds: float = 600.0
    shopify_store_domain: str = ''
    shopify_admin_access_token: str = ''
    shopify_api_version: str = '2024-10'

    # Logging
    log_level: str = 'INFO'
    log_json: bool = False

    @property
    def shopify_configured(self) -> bool:
        return bool(self.shopify_store_domain and self.shopify_admin_access_token)

    @classmethod
    def load(cls, catalog_dir: Optional[Path] = None) -> 'Settings':
        """Load settings from the environment, falling back to packaged defaults."""
        env_catalog = os.getenv('BLIND_PRICING_CATALOG_DIR')
        if catalog_dir is None:
            catalog_dir = Path(env_catalog) if env_catalog else get_package_root() / 'data' / 'catalog'

        return cls(
            catalog_dir=catalog_dir,
            validate_tolerance=Decimal(os.getenv('BLIND_PRICING_VALIDATE_TOLERANCE', '0.01')),
            checkout_tolerance=Decimal(os.getenv('BLIND_PRICING_CHECKOUT_TOLERANCE', '0.50')),
            product_cache_ttl_seconds=float(os.getenv('BLIND_PRICING_PRODUCT_CACHE_TTL', '600')),
            shopify_store_domain=os.getenv('SHOPIFY_STORE_DOMAIN', ''),
            shopify_admin_access_token=os.getenv('SHOPIFY_ADMIN_ACCESS_TOKEN', ''),
            shopify_api_version=os.getenv('SHOPIFY_API_VERSION', '2024-10'),
            log_level=os.getenv('BLIND_PRICING_LOG_LEVEL', 'INFO'),
            log_json=_env_bool('BLIND_PRICING_LOG_JSON', False),
        )


# Default settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings


def reset_settings():
    """Drop the cached settings so the next get_settings() re-reads the environment."""
    global _settings
    _settings = None
