"""
Minimum Price Calculator - the "from" price shown on listings.

The starting price of a price band is the price of its smallest cell by
area (width_mm × height_mm), ties broken by width and then height. Prices
themselves play no part in the selection.
"""
from collections import defaultdict
from decimal import Decimal
from typing import TYPE_CHECKING, Iterable, Optional, Sequence

from .models import HeightBand, PriceCell, WidthBand

if TYPE_CHECKING:
    from ..catalog.repository import CatalogRepository


def select_minimum_cell(
    cells: Sequence[PriceCell],
    width_bands: Sequence[WidthBand],
    height_bands: Sequence[HeightBand],
) -> Optional[PriceCell]:
    """Return the cell with the smallest (area, width_mm, height_mm), or None."""
    width_mm = {b.id: b.width_mm for b in width_bands}
    height_mm = {b.id: b.height_mm for b in height_bands}

    def sort_key(cell: PriceCell):
        w = width_mm[cell.width_band_id]
        h = height_mm[cell.height_band_id]
        return (w * h, w, h)

    if not cells:
        return None
    return min(cells, key=sort_key)


def minimum_price(repository: "CatalogRepository", price_band_id: str) -> Optional[Decimal]:
    """Starting price for one price band; None if the band has no cells."""
    cell = select_minimum_cell(
        repository.list_price_cells(price_band_id),
        repository.list_width_bands(),
        repository.list_height_bands(),
    )
    return cell.price if cell else None


def minimum_prices(repository: "CatalogRepository", price_band_ids: Iterable[Optional[str]]) -> dict[str, Decimal]:
    """
    Starting prices for several price bands with a single cell fetch.

    Bands without cells are left out of the result, matching minimum_price
    returning None for them.
    """
    ids = {i for i in price_band_ids if i}
    if not ids:
        return {}

    cells_by_band: dict[str, list[PriceCell]] = defaultdict(list)
    for cell in repository.list_price_cells_for_bands(sorted(ids)):
        cells_by_band[cell.price_band_id].append(cell)

    width_bands = repository.list_width_bands()
    height_bands = repository.list_height_bands()

    result = {}
    for band_id, cells in cells_by_band.items():
        cell = select_minimum_cell(cells, width_bands, height_bands)
        if cell is not None:
            result[band_id] = cell.price
    return result
