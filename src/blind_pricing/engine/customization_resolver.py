"""
Customization Price Resolver - prices one customization at a resolved width.

Lookup precedence:
1. Entry priced for the resolved width band
2. Fixed entry (no width band)
3. Unresolved
"""
import logging
from typing import TYPE_CHECKING, Optional

from .models import CustomizationLine, CustomizationPricing, WidthBand

if TYPE_CHECKING:
    from ..catalog.repository import CatalogRepository

logger = logging.getLogger(__name__)


def select_pricing_entry(
    entries: list[CustomizationPricing],
    width_band_id: str,
) -> Optional[CustomizationPricing]:
    """Pick the width-specific entry if one exists, otherwise the fixed entry."""
    for entry in entries:
        if entry.width_band_id == width_band_id:
            return entry
    for entry in entries:
        if entry.is_fixed:
            return entry
    return None


class CustomizationResolver:
    """Resolves customization surcharges against the catalog."""

    def __init__(self, repository: "CatalogRepository"):
        self.repository = repository

    def resolve(self, category: str, option_id: str, width_band: WidthBand) -> Optional[CustomizationLine]:
        """
        Price a (category, option) pair at the given width band.

        Returns None when the option is unknown or has no applicable price.
        """
        found = self.repository.get_customization_pricing(category, option_id)
        if found is None:
            logger.debug("Customization %s/%s not in catalog", category, option_id)
            return None

        option, entries = found
        entry = select_pricing_entry(entries, width_band.id)
        if entry is None:
            logger.debug("Customization %s/%s has no price at %s mm", category, option_id, width_band.mm)
            return None

        return CustomizationLine(
            category=option.category,
            option_id=option.option_id,
            name=option.name,
            price=entry.price,
        )
