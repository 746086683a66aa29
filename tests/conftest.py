"""
Shared fixtures: a small in-memory catalog and engines built on it.

Band A mirrors the shipped grid for the bands it covers, Band B only
covers two cells and Band C has none.
"""
import os
import sys
from decimal import Decimal

import pytest

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src'))

from blind_pricing.catalog import DataFrameCatalogRepository
from blind_pricing.engine import PricingEngine
from blind_pricing.engine.models import (
    CustomizationOption,
    CustomizationPricing,
    HeightBand,
    PriceBand,
    PriceCell,
    Product,
    WidthBand,
)
from blind_pricing.identity import HandleIdentityResolver, ProductHandleCache, catalog_product_source

CATALOG_DIR = os.path.join(
    os.path.dirname(os.path.dirname(os.path.abspath(__file__))),
    'src', 'blind_pricing', 'data', 'catalog',
)

WIDTH_BANDS = [
    WidthBand('w500', 500, 20, 0),
    WidthBand('w750', 750, 30, 1),
    WidthBand('w1000', 1000, 39, 2),
    WidthBand('w1250', 1250, 49, 3),
    WidthBand('w3500', 3500, 138, 4),
]

HEIGHT_BANDS = [
    HeightBand('h500', 500, 20, 0),
    HeightBand('h750', 750, 30, 1),
    HeightBand('h1000', 1000, 39, 2),
    HeightBand('h1250', 1250, 49, 3),
]

# height band → prices for w500, w750, w1000, w1250, w3500
BAND_A_GRID = {
    'h500': ['18.10', '20.00', '21.89', '23.78', '40.79'],
    'h750': ['18.65', '20.79', '22.92', '25.05', '44.24'],
    'h1000': ['19.21', '21.58', '23.95', '26.32', '47.68'],
    'h1250': ['19.76', '22.37', '24.98', '27.60', '51.13'],
}


def _band_a_cells():
    for height_id, prices in BAND_A_GRID.items():
        for width, price in zip(WIDTH_BANDS, prices):
            yield PriceCell('band-a', width.id, height_id, Decimal(price))


def build_sample_repository() -> DataFrameCatalogRepository:
    return DataFrameCatalogRepository.from_records(
        width_bands=WIDTH_BANDS,
        height_bands=HEIGHT_BANDS,
        price_bands=[
            PriceBand('band-a', 'Band A', 'Standard pricing band'),
            PriceBand('band-b', 'Band B'),
            PriceBand('band-c', 'Band C'),
        ],
        price_cells=list(_band_a_cells()) + [
            PriceCell('band-b', 'w500', 'h500', Decimal('30.00')),
            PriceCell('band-b', 'w750', 'h750', Decimal('35.00')),
        ],
        customization_options=[
            CustomizationOption('opt-ice-white', 'headrail-colour', 'ice-white', 'Ice White'),
            CustomizationOption('opt-vogue-white', 'vogue-system', 'white', 'White', sort_order=0),
            CustomizationOption('opt-chain-metal', 'bottom-chain', 'metal', 'Metal Chain', sort_order=1),
            CustomizationOption('opt-somfy', 'motorization', 'somfy', 'Somfy Motor'),
        ],
        customization_pricing=[
            CustomizationPricing('opt-ice-white', None, Decimal('12.10')),
            CustomizationPricing('opt-vogue-white', 'w750', Decimal('3.50')),
            CustomizationPricing('opt-vogue-white', 'w500', Decimal('2.50')),
            CustomizationPricing('opt-chain-metal', 'w750', Decimal('1.50')),
            CustomizationPricing('opt-chain-metal', None, Decimal('5.00')),
        ],
        products=[
            Product('prod-a', 'vertical-blind', 'Vertical Blind', 'band-a'),
            Product('prod-b', 'roller-blind', 'Roller Blind', 'band-b'),
            Product('prod-unpriced', 'sample-swatch', 'Fabric Sample Swatch', None),
            Product('prod-ghost', 'discontinued-blind', 'Discontinued Blind', 'band-missing'),
        ],
    )


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def repository():
    return build_sample_repository()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def engine(repository, clock):
    """Engine with a handle resolver backed by the catalog's products table."""
    cache = ProductHandleCache(catalog_product_source(repository), ttl_seconds=600, clock=clock)
    return PricingEngine(repository, HandleIdentityResolver(cache, repository))


@pytest.fixture(scope="module")
def shipped_repository():
    """The catalog that ships with the package."""
    return DataFrameCatalogRepository.from_csv_dir(CATALOG_DIR)
