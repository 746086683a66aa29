"""
Ceiling Band Resolver - maps a requested measurement onto a size band.

A request is rounded up to whole inches and matched to the smallest band
that can contain it. Requests larger than every band clamp to the largest
band instead of failing, so every positive measurement resolves to some
band as long as the catalog has any bands at all.
"""
import logging
import math
from bisect import bisect_left
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Sequence, Union

from .errors import PricingError
from .models import HeightBand, WidthBand

logger = logging.getLogger(__name__)

Band = Union[WidthBand, HeightBand]


@dataclass
class BandResolution:
    """Result of resolving one dimension."""
    band: Optional[Band]
    ceiling_inches: Optional[int] = None
    clamped: bool = False
    error: Optional[PricingError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def ceiling_band(
    bands: Sequence[Band],
    requested_inches: Union[Decimal, float, int],
    dimension: str = "size",
) -> BandResolution:
    """
    Resolve the smallest band whose inches are >= ceil(requested_inches).

    Bands sharing the same inch size are ordered by mm, so the smaller
    physical band wins. Falls back to the largest band when none is big
    enough.
    """
    if not bands:
        return BandResolution(band=None, error=PricingError.no_bands(dimension))

    ordered = sorted(bands, key=lambda b: (b.inches, b.mm))
    ceiling = math.ceil(requested_inches)

    index = bisect_left([b.inches for b in ordered], ceiling)
    if index < len(ordered):
        band = ordered[index]
        logger.debug("%s %s in → ceiling %s in → band %s mm", dimension, requested_inches, ceiling, band.mm)
        return BandResolution(band=band, ceiling_inches=ceiling)

    band = ordered[-1]
    logger.debug(
        "%s %s in exceeds largest band (%s in); clamping to %s mm",
        dimension, requested_inches, band.inches, band.mm,
    )
    return BandResolution(band=band, ceiling_inches=ceiling, clamped=True)


def resolve_width_band(bands: Sequence[WidthBand], requested_inches) -> BandResolution:
    return ceiling_band(bands, requested_inches, dimension="width")


def resolve_height_band(bands: Sequence[HeightBand], requested_inches) -> BandResolution:
    return ceiling_band(bands, requested_inches, dimension="height")
