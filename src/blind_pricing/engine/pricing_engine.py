"""
Pricing Engine - authoritative quotes for made-to-measure blinds.

Resolution order for a quote:
1. Product → Price Band (product must have one)
2. Width/Height → ceiling bands (oversized requests clamp to the largest band)
3. (Price Band, Width Band, Height Band) → price cell
4. Each customization → width-specific price, else fixed price, else skipped
5. Total = cell price + Σ customization prices

Every step is recorded in the quote trace. The engine holds no mutable
state: repeated calls against the same catalog return identical quotes.
"""
import logging
from decimal import Decimal
from typing import TYPE_CHECKING, Iterable, Optional, Sequence

from .band_resolver import resolve_height_band, resolve_width_band
from .customization_resolver import CustomizationResolver
from .errors import PricingError
from .minimum_price import minimum_price, minimum_prices
from .models import (
    CustomizationCatalogEntry,
    CustomizationSelection,
    HeightBand,
    PriceBand,
    PriceBandMatrix,
    Quote,
    QuoteRequest,
    QuoteResult,
    TraceStep,
    WidthBand,
)

if TYPE_CHECKING:
    from ..catalog.repository import CatalogRepository
    from ..identity.resolver import HandleIdentityResolver

logger = logging.getLogger(__name__)


def _as_dimension(value, name: str) -> tuple[Optional[Decimal], Optional[PricingError]]:
    """Coerce a requested measurement to a positive finite Decimal."""
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        return None, PricingError.validation(f"{name} must be a positive number", field=name)
    dimension = Decimal(str(value)) if isinstance(value, float) else Decimal(value)
    if not dimension.is_finite() or dimension <= 0:
        return None, PricingError.validation(f"{name} must be a positive number", field=name)
    return dimension, None


class PricingEngine:
    """
    Quote service over a read-only catalog repository.

    An optional identity resolver maps storefront product handles to price
    bands for quote_by_handle().
    """

    def __init__(
        self,
        repository: "CatalogRepository",
        identity_resolver: Optional["HandleIdentityResolver"] = None,
    ):
        self.repository = repository
        self.identity_resolver = identity_resolver
        self.customizations = CustomizationResolver(repository)

    # ------------------------------------------------------------------
    # Quoting
    # ------------------------------------------------------------------

    def quote(self, request: QuoteRequest) -> QuoteResult:
        """
        Price a product at the requested size with its customizations.

        Args:
            request: QuoteRequest with product id, inches and selections

        Returns:
            QuoteResult holding either the Quote or a PricingError
        """
        if not request.product_id or not str(request.product_id).strip():
            return QuoteResult.failure(PricingError.validation("productId is required", field="productId"))

        product_id = str(request.product_id).strip()
        product = self.repository.get_product(product_id)
        if product is None:
            return QuoteResult.failure(PricingError.product_not_found(product_id))

        price_band = self.repository.get_product_price_band(product_id)
        if price_band is None:
            logger.info("Product %s has no price band", product_id, extra={"product_id": product_id})
            return QuoteResult.failure(PricingError.product_not_priced(product_id))

        result = self.quote_for_band(
            price_band, request.width_inches, request.height_inches, request.customizations
        )
        if result.ok:
            result.quote.trace.insert(0, _product_trace(product_id, price_band))
        return result

    def quote_by_handle(
        self,
        handle: str,
        width_inches,
        height_inches,
        customizations: Sequence[CustomizationSelection] = (),
    ) -> QuoteResult:
        """Price a storefront product, identified by handle, through the identity resolver."""
        if not handle or not str(handle).strip():
            return QuoteResult.failure(PricingError.validation("handle is required", field="handle"))
        if self.identity_resolver is None:
            return QuoteResult.failure(PricingError.product_not_found(handle))

        handle = str(handle).strip()
        if self.identity_resolver.product(handle) is None:
            return QuoteResult.failure(PricingError.product_not_found(handle))

        price_band = self.identity_resolver.resolve(handle)
        if price_band is None:
            logger.info("Handle %s has no price band", handle, extra={"handle": handle})
            return QuoteResult.failure(PricingError.product_not_priced(handle))

        result = self.quote_for_band(price_band, width_inches, height_inches, customizations)
        if result.ok:
            result.quote.trace.insert(0, _product_trace(handle, price_band))
        return result

    def quote_for_band(
        self,
        price_band: PriceBand,
        width_inches,
        height_inches,
        customizations: Iterable[CustomizationSelection] = (),
    ) -> QuoteResult:
        """Price a size and selection set directly against a price band."""
        width, error = _as_dimension(width_inches, "widthInches")
        if error:
            return QuoteResult.failure(error)
        height, error = _as_dimension(height_inches, "heightInches")
        if error:
            return QuoteResult.failure(error)

        width_res = resolve_width_band(self.repository.list_width_bands(), width)
        if not width_res.ok:
            logger.error(width_res.error.message)
            return QuoteResult.failure(width_res.error)
        height_res = resolve_height_band(self.repository.list_height_bands(), height)
        if not height_res.ok:
            logger.error(height_res.error.message)
            return QuoteResult.failure(height_res.error)

        width_band, height_band = width_res.band, height_res.band

        cell = self.repository.get_price_cell(price_band.id, width_band.id, height_band.id)
        if cell is None:
            error = PricingError.price_cell_missing(price_band.id, width_band.id, height_band.id)
            logger.error(
                "No price cell for band %s at %smm × %smm",
                price_band.name, width_band.mm, height_band.mm,
                extra={"price_band_id": price_band.id},
            )
            return QuoteResult.failure(error)

        quote = Quote(
            cell_price=cell.price,
            customization_lines=[],
            total=cell.price,
            resolved_width_band=width_band,
            resolved_height_band=height_band,
            price_band=price_band,
        )

        quote.add_trace(
            "Width Band",
            f"{width} in → ceiling {width_res.ceiling_inches} in"
            + (" (clamped to largest band)" if width_res.clamped else ""),
            f"{width_band.inches} in / {width_band.mm} mm",
        )
        quote.add_trace(
            "Height Band",
            f"{height} in → ceiling {height_res.ceiling_inches} in"
            + (" (clamped to largest band)" if height_res.clamped else ""),
            f"{height_band.inches} in / {height_band.mm} mm",
        )
        quote.add_trace("Price Cell", f"{price_band.name} at {width_band.mm}mm × {height_band.mm}mm", f"{cell.price}")

        for selection in customizations:
            line = self.customizations.resolve(selection.category, selection.option_id, width_band)
            if line is None:
                quote.add_warning(f"Customization {selection.category}/{selection.option_id} has no price; skipped")
                quote.add_trace("Customization", f"{selection.category}/{selection.option_id} unpriced, skipped")
                logger.warning("Skipping unpriced customization %s/%s", selection.category, selection.option_id)
                continue
            quote.customization_lines.append(line)
            quote.add_trace("Customization", f"{line.category}: {line.name}", f"{line.price}")

        quote.total = cell.price + sum((line.price for line in quote.customization_lines), Decimal('0'))
        quote.add_trace("Total", "Cell price + customizations", f"{quote.total}")
        return QuoteResult(quote=quote)

    # ------------------------------------------------------------------
    # Listing prices
    # ------------------------------------------------------------------

    def minimum_price(self, price_band_id: str) -> Optional[Decimal]:
        """Starting "from" price for a price band."""
        return minimum_price(self.repository, price_band_id)

    def minimum_prices(self, price_band_ids: Iterable[Optional[str]]) -> dict[str, Decimal]:
        """Starting prices for many price bands in one catalog fetch."""
        return minimum_prices(self.repository, price_band_ids)

    # ------------------------------------------------------------------
    # Read-through accessors for configurators
    # ------------------------------------------------------------------

    def width_bands(self) -> list[WidthBand]:
        return self.repository.list_width_bands()

    def height_bands(self) -> list[HeightBand]:
        return self.repository.list_height_bands()

    def price_band_matrix(self, price_band_id: str) -> Optional[PriceBandMatrix]:
        """
        Full price grid for one price band.

        Only bands that actually carry a cell in this price band are listed,
        so reduced band subsets render without empty rows or columns.
        """
        price_band = self.repository.get_price_band(price_band_id)
        if price_band is None:
            return None

        widths = {b.id: b for b in self.repository.list_width_bands()}
        heights = {b.id: b for b in self.repository.list_height_bands()}
        cells = self.repository.list_price_cells(price_band_id)

        used_widths = {c.width_band_id: widths[c.width_band_id] for c in cells}
        used_heights = {c.height_band_id: heights[c.height_band_id] for c in cells}

        return PriceBandMatrix(
            id=price_band.id,
            name=price_band.name,
            width_bands=sorted(used_widths.values(), key=lambda b: (b.inches, b.mm)),
            height_bands=sorted(used_heights.values(), key=lambda b: (b.inches, b.mm)),
            prices=[
                (widths[c.width_band_id].mm, heights[c.height_band_id].mm, c.price)
                for c in cells
            ],
        )

    def customization_catalog(self) -> list[CustomizationCatalogEntry]:
        """All customization options with their prices, fixed first then by width band."""
        widths = {b.id: b for b in self.repository.list_width_bands()}
        entries_by_option = {}
        for entry in self.repository.list_customization_pricing():
            entries_by_option.setdefault(entry.customization_option_id, []).append(entry)

        def entry_order(entry):
            if entry.width_band_id is None:
                return (-1, 0)
            band = widths.get(entry.width_band_id)
            return (band.sort_order, band.mm) if band else (0, 0)

        catalog = []
        for option in self.repository.list_customization_options():
            entries = sorted(entries_by_option.get(option.id, []), key=entry_order)
            catalog.append(CustomizationCatalogEntry(
                category=option.category,
                option_id=option.option_id,
                name=option.name,
                prices=[
                    (widths[e.width_band_id].mm if e.width_band_id in widths else None, e.price)
                    for e in entries
                ],
            ))
        return catalog


def _product_trace(product_ref: str, price_band: PriceBand) -> TraceStep:
    return TraceStep(step="Price Band", description=f"Product {product_ref}", value=price_band.name)
