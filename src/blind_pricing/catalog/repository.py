"""
Catalog Repository - read-only access to bands, price cells, customizations
and products.

The pricing engine only talks to the CatalogRepository interface. The
DataFrame implementation keeps each table as a pandas DataFrame and can be
loaded from a directory of CSV files:

    width_bands.csv            id,width_mm,width_inches,sort_order
    height_bands.csv           id,height_mm,height_inches,sort_order
    price_bands.csv            id,name,description
    price_grids/<band id>.csv  height_mm,<width_mm>,<width_mm>,...  (one row per drop)
    price_cells.csv            price_band_id,width_band_id,height_band_id,price  (optional long form)
    customization_options.csv  id,category,option_id,name,description,sort_order
    customization_pricing.csv  customization_option_id,width_mm,price  (blank width_mm = fixed)
    products.csv               id,handle,title,price_band_id
"""
import logging
import math
from abc import ABC, abstractmethod
from dataclasses import asdict
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Iterable, Optional

import pandas as pd

from ..engine.errors import CatalogUnavailableError
from ..engine.models import (
    CustomizationOption,
    CustomizationPricing,
    HeightBand,
    PriceBand,
    PriceCell,
    Product,
    WidthBand,
)

logger = logging.getLogger(__name__)


WIDTH_BAND_COLUMNS = ['id', 'width_mm', 'width_inches', 'sort_order']
HEIGHT_BAND_COLUMNS = ['id', 'height_mm', 'height_inches', 'sort_order']
PRICE_BAND_COLUMNS = ['id', 'name', 'description']
PRICE_CELL_COLUMNS = ['price_band_id', 'width_band_id', 'height_band_id', 'price']
OPTION_COLUMNS = ['id', 'category', 'option_id', 'name', 'description', 'sort_order']
OPTION_PRICING_COLUMNS = ['customization_option_id', 'width_band_id', 'price']
PRODUCT_COLUMNS = ['id', 'handle', 'title', 'price_band_id']


class CatalogRepository(ABC):
    """Read-only view of the pricing catalog."""

    @abstractmethod
    def list_width_bands(self) -> list[WidthBand]:
        """All width bands, ascending by inches (ties by mm)."""

    @abstractmethod
    def list_height_bands(self) -> list[HeightBand]:
        """All height bands, ascending by inches (ties by mm)."""

    @abstractmethod
    def get_price_cell(self, price_band_id: str, width_band_id: str, height_band_id: str) -> Optional[PriceCell]:
        ...

    @abstractmethod
    def list_price_cells(self, price_band_id: str) -> list[PriceCell]:
        ...

    @abstractmethod
    def list_price_cells_for_bands(self, price_band_ids: Iterable[str]) -> list[PriceCell]:
        """Cells of several price bands in one fetch."""

    @abstractmethod
    def get_customization_pricing(
        self, category: str, option_id: str
    ) -> Optional[tuple[CustomizationOption, list[CustomizationPricing]]]:
        """An option and all its pricing entries, or None if the option is unknown."""

    @abstractmethod
    def get_product(self, product_id: str) -> Optional[Product]:
        ...

    @abstractmethod
    def list_products(self) -> list[Product]:
        ...

    @abstractmethod
    def get_price_band(self, price_band_id: str) -> Optional[PriceBand]:
        ...

    @abstractmethod
    def get_price_band_by_name(self, name: str) -> Optional[PriceBand]:
        ...

    @abstractmethod
    def list_price_bands(self) -> list[PriceBand]:
        ...

    @abstractmethod
    def list_customization_options(self) -> list[CustomizationOption]:
        """All options ordered by category then sort order."""

    @abstractmethod
    def list_customization_pricing(self) -> list[CustomizationPricing]:
        ...

    def get_product_price_band(self, product_id: str) -> Optional[PriceBand]:
        """The price band assigned to a product, or None."""
        product = self.get_product(product_id)
        if product is None or not product.price_band_id:
            return None
        return self.get_price_band(product.price_band_id)


# ---------------------------------------------------------------------------
# Row conversion helpers
# ---------------------------------------------------------------------------

def _optional(value) -> Optional[str]:
    if value is None or value == '':
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    return str(value)


def _decimal(value) -> Decimal:
    try:
        return Decimal(str(value).strip())
    except InvalidOperation as e:
        raise ValueError(f"Invalid price value: {value!r}") from e


def _width_band(row) -> WidthBand:
    return WidthBand(
        id=str(row['id']),
        width_mm=int(row['width_mm']),
        width_inches=int(row['width_inches']),
        sort_order=int(row['sort_order']),
    )


def _height_band(row) -> HeightBand:
    return HeightBand(
        id=str(row['id']),
        height_mm=int(row['height_mm']),
        height_inches=int(row['height_inches']),
        sort_order=int(row['sort_order']),
    )


def _price_cell(row) -> PriceCell:
    return PriceCell(
        price_band_id=str(row['price_band_id']),
        width_band_id=str(row['width_band_id']),
        height_band_id=str(row['height_band_id']),
        price=_decimal(row['price']),
    )


def _price_band(row) -> PriceBand:
    return PriceBand(id=str(row['id']), name=str(row['name']), description=_optional(row['description']))


def _option(row) -> CustomizationOption:
    return CustomizationOption(
        id=str(row['id']),
        category=str(row['category']),
        option_id=str(row['option_id']),
        name=str(row['name']),
        description=_optional(row['description']),
        sort_order=int(row['sort_order'] or 0),
    )


def _option_pricing(row) -> CustomizationPricing:
    return CustomizationPricing(
        customization_option_id=str(row['customization_option_id']),
        width_band_id=_optional(row['width_band_id']),
        price=_decimal(row['price']),
    )


def _product(row) -> Product:
    return Product(
        id=str(row['id']),
        handle=str(row['handle']),
        title=str(row['title']),
        price_band_id=_optional(row['price_band_id']),
    )


def _frame(records: Iterable, columns: list[str]) -> pd.DataFrame:
    return pd.DataFrame([asdict(r) for r in records], columns=columns, dtype=object)


def _rows(df: pd.DataFrame) -> Iterable[dict]:
    return df.to_dict(orient='records')


class DataFrameCatalogRepository(CatalogRepository):
    """
    Catalog repository backed by in-memory pandas DataFrames.

    Tables are never modified after construction, so one instance can
    serve any number of concurrent quotes.
    """

    def __init__(
        self,
        width_bands: pd.DataFrame,
        height_bands: pd.DataFrame,
        price_bands: pd.DataFrame,
        price_cells: pd.DataFrame,
        customization_options: pd.DataFrame,
        customization_pricing: pd.DataFrame,
        products: pd.DataFrame,
    ):
        self.width_bands = width_bands
        self.height_bands = height_bands
        self.price_bands = price_bands
        self.price_cells = price_cells
        self.customization_options = customization_options
        self.customization_pricing = customization_pricing
        self.products = products

        self._width_list = sorted(
            (_width_band(r) for r in _rows(width_bands)),
            key=lambda b: (b.width_inches, b.width_mm),
        )
        self._height_list = sorted(
            (_height_band(r) for r in _rows(height_bands)),
            key=lambda b: (b.height_inches, b.height_mm),
        )

    # -- constructors -----------------------------------------------------

    @classmethod
    def from_records(
        cls,
        width_bands: Iterable[WidthBand] = (),
        height_bands: Iterable[HeightBand] = (),
        price_bands: Iterable[PriceBand] = (),
        price_cells: Iterable[PriceCell] = (),
        customization_options: Iterable[CustomizationOption] = (),
        customization_pricing: Iterable[CustomizationPricing] = (),
        products: Iterable[Product] = (),
    ) -> 'DataFrameCatalogRepository':
        """Build a repository from entity objects."""
        return cls(
            width_bands=_frame(width_bands, WIDTH_BAND_COLUMNS),
            height_bands=_frame(height_bands, HEIGHT_BAND_COLUMNS),
            price_bands=_frame(price_bands, PRICE_BAND_COLUMNS),
            price_cells=_frame(price_cells, PRICE_CELL_COLUMNS),
            customization_options=_frame(customization_options, OPTION_COLUMNS),
            customization_pricing=_frame(customization_pricing, OPTION_PRICING_COLUMNS),
            products=_frame(products, PRODUCT_COLUMNS),
        )

    @classmethod
    def from_csv_dir(cls, catalog_dir: Path) -> 'DataFrameCatalogRepository':
        """Load the catalog tables from a directory of CSV files."""
        catalog_dir = Path(catalog_dir)
        if not catalog_dir.is_dir():
            raise CatalogUnavailableError(f"Catalog directory not found: {catalog_dir}")

        try:
            width_bands = _load_csv(catalog_dir / 'width_bands.csv', WIDTH_BAND_COLUMNS)
            height_bands = _load_csv(catalog_dir / 'height_bands.csv', HEIGHT_BAND_COLUMNS)
            price_bands = _load_csv(catalog_dir / 'price_bands.csv', PRICE_BAND_COLUMNS)

            cells = [_load_csv(catalog_dir / 'price_cells.csv', PRICE_CELL_COLUMNS)]
            grid_dir = catalog_dir / 'price_grids'
            if grid_dir.is_dir():
                for grid_path in sorted(grid_dir.glob('*.csv')):
                    cells.append(_melt_grid(grid_path, grid_path.stem, width_bands, height_bands))
            price_cells = pd.concat(cells, ignore_index=True)

            options = _load_csv(catalog_dir / 'customization_options.csv', OPTION_COLUMNS)
            option_pricing = _load_option_pricing(catalog_dir / 'customization_pricing.csv', width_bands)
            products = _load_csv(catalog_dir / 'products.csv', PRODUCT_COLUMNS)
            repository = cls(width_bands, height_bands, price_bands, price_cells, options, option_pricing, products)
        except (OSError, ValueError, KeyError) as e:
            raise CatalogUnavailableError(f"Failed to load catalog from {catalog_dir}: {e}", e) from e

        logger.info(
            "Loaded catalog from %s: %d width bands, %d height bands, %d price bands, %d cells, %d options",
            catalog_dir, len(width_bands), len(height_bands), len(price_bands),
            len(price_cells), len(options),
        )
        return repository

    # -- bands ------------------------------------------------------------

    def list_width_bands(self) -> list[WidthBand]:
        return list(self._width_list)

    def list_height_bands(self) -> list[HeightBand]:
        return list(self._height_list)

    # -- price cells ------------------------------------------------------

    def get_price_cell(self, price_band_id: str, width_band_id: str, height_band_id: str) -> Optional[PriceCell]:
        df = self.price_cells
        match = df[
            (df['price_band_id'] == price_band_id) &
            (df['width_band_id'] == width_band_id) &
            (df['height_band_id'] == height_band_id)
        ]
        if match.empty:
            return None
        return _price_cell(match.iloc[0])

    def list_price_cells(self, price_band_id: str) -> list[PriceCell]:
        df = self.price_cells
        return [_price_cell(r) for r in _rows(df[df['price_band_id'] == price_band_id])]

    def list_price_cells_for_bands(self, price_band_ids: Iterable[str]) -> list[PriceCell]:
        ids = [i for i in price_band_ids if i]
        if not ids:
            return []
        df = self.price_cells
        return [_price_cell(r) for r in _rows(df[df['price_band_id'].isin(ids)])]

    # -- customizations ---------------------------------------------------

    def get_customization_pricing(
        self, category: str, option_id: str
    ) -> Optional[tuple[CustomizationOption, list[CustomizationPricing]]]:
        opts = self.customization_options
        match = opts[(opts['category'] == category) & (opts['option_id'] == option_id)]
        if match.empty:
            return None
        option = _option(match.iloc[0])

        pricing = self.customization_pricing
        entries = pricing[pricing['customization_option_id'] == option.id]
        return option, [_option_pricing(r) for r in _rows(entries)]

    def list_customization_options(self) -> list[CustomizationOption]:
        options = [_option(r) for r in _rows(self.customization_options)]
        return sorted(options, key=lambda o: (o.category, o.sort_order))

    def list_customization_pricing(self) -> list[CustomizationPricing]:
        return [_option_pricing(r) for r in _rows(self.customization_pricing)]

    # -- products & price bands ------------------------------------------

    def get_product(self, product_id: str) -> Optional[Product]:
        df = self.products
        match = df[df['id'] == product_id]
        if match.empty:
            return None
        return _product(match.iloc[0])

    def list_products(self) -> list[Product]:
        return [_product(r) for r in _rows(self.products)]

    def get_price_band(self, price_band_id: str) -> Optional[PriceBand]:
        df = self.price_bands
        match = df[df['id'] == price_band_id]
        if match.empty:
            return None
        return _price_band(match.iloc[0])

    def get_price_band_by_name(self, name: str) -> Optional[PriceBand]:
        df = self.price_bands
        match = df[df['name'] == name]
        if match.empty:
            return None
        return _price_band(match.iloc[0])

    def list_price_bands(self) -> list[PriceBand]:
        return [_price_band(r) for r in _rows(self.price_bands)]


# ---------------------------------------------------------------------------
# CSV loading
# ---------------------------------------------------------------------------

def _load_csv(path: Path, columns: list[str]) -> pd.DataFrame:
    """Read a catalog table as stripped strings; a missing file is an empty table."""
    if not path.exists():
        return pd.DataFrame(columns=columns, dtype=object)
    df = pd.read_csv(path, dtype=str).fillna('')
    df.columns = [c.strip() for c in df.columns]
    for col in df.columns:
        df[col] = df[col].astype(str).str.strip()
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise KeyError(f"{path.name} is missing columns: {', '.join(missing)}")
    return df[columns].astype(object)


def _mm_index(bands: pd.DataFrame, mm_column: str) -> dict[int, str]:
    return {int(r[mm_column]): str(r['id']) for r in _rows(bands)}


def _melt_grid(path: Path, price_band_id: str, width_bands: pd.DataFrame, height_bands: pd.DataFrame) -> pd.DataFrame:
    """
    Turn a price grid (rows = drop in mm, columns = width in mm) into long-form cells.

    Blank grid entries are cells that do not exist for this price band.
    """
    grid = pd.read_csv(path, dtype=str).fillna('')
    grid.columns = [c.strip() for c in grid.columns]
    if 'height_mm' not in grid.columns:
        raise KeyError(f"{path.name} is missing the height_mm column")

    long = grid.melt(id_vars='height_mm', var_name='width_mm', value_name='price')
    long['price'] = long['price'].astype(str).str.strip()
    long = long[long['price'] != '']

    width_ids = _mm_index(width_bands, 'width_mm')
    height_ids = _mm_index(height_bands, 'height_mm')

    records = []
    for row in _rows(long):
        width_mm, height_mm = int(row['width_mm']), int(row['height_mm'])
        if width_mm not in width_ids:
            raise ValueError(f"{path.name}: no width band for {width_mm}mm")
        if height_mm not in height_ids:
            raise ValueError(f"{path.name}: no height band for {height_mm}mm")
        records.append({
            'price_band_id': price_band_id,
            'width_band_id': width_ids[width_mm],
            'height_band_id': height_ids[height_mm],
            'price': str(_decimal(row['price'])),
        })
    return pd.DataFrame(records, columns=PRICE_CELL_COLUMNS, dtype=object)


def _load_option_pricing(path: Path, width_bands: pd.DataFrame) -> pd.DataFrame:
    """Read customization prices keyed by width in mm and map them to width band ids."""
    raw = _load_csv(path, ['customization_option_id', 'width_mm', 'price'])
    width_ids = _mm_index(width_bands, 'width_mm')

    records = []
    for row in _rows(raw):
        width_band_id = None
        if row['width_mm']:
            width_mm = int(row['width_mm'])
            if width_mm not in width_ids:
                raise ValueError(f"{path.name}: no width band for {width_mm}mm")
            width_band_id = width_ids[width_mm]
        records.append({
            'customization_option_id': row['customization_option_id'],
            'width_band_id': width_band_id,
            'price': str(_decimal(row['price'])),
        })
    return pd.DataFrame(records, columns=OPTION_PRICING_COLUMNS, dtype=object)
