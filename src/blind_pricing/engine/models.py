"""
Data models for the pricing engine.

Catalog entities are frozen dataclasses: the engine only ever reads them.
Prices are Decimal throughout; floats appear only at the JSON boundary
(to_dict).
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from .errors import PricingError


def money(value: Decimal) -> float:
    """Decimal price → JSON number."""
    return float(value)


# ---------------------------------------------------------------------------
# Catalog entities
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class WidthBand:
    """A discrete width bucket."""
    id: str
    width_mm: int
    width_inches: int
    sort_order: int = 0

    @property
    def mm(self) -> int:
        return self.width_mm

    @property
    def inches(self) -> int:
        return self.width_inches

    def to_dict(self) -> dict:
        return {"id": self.id, "mm": self.width_mm, "inches": self.width_inches}


@dataclass(frozen=True)
class HeightBand:
    """A discrete height (drop) bucket."""
    id: str
    height_mm: int
    height_inches: int
    sort_order: int = 0

    @property
    def mm(self) -> int:
        return self.height_mm

    @property
    def inches(self) -> int:
        return self.height_inches

    def to_dict(self) -> dict:
        return {"id": self.id, "mm": self.height_mm, "inches": self.height_inches}


@dataclass(frozen=True)
class PriceBand:
    """A named pricing scheme, typically one per product line or fabric grade."""
    id: str
    name: str
    description: Optional[str] = None

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name}


@dataclass(frozen=True)
class PriceCell:
    price_band_id: str
    width_band_id: str
    height_band_id: str
    price: Decimal


@dataclass(frozen=True)
class CustomizationOption:
    """A selectable feature such as a headrail colour."""
    id: str
    category: str
    option_id: str
    name: str
    description: Optional[str] = None
    sort_order: int = 0


@dataclass(frozen=True)
class CustomizationPricing:
    """
    One price entry for a customization option.

    width_band_id=None is a fixed price that applies at any width; otherwise
    the price applies only when the resolved width band matches.
    """
    customization_option_id: str
    width_band_id: Optional[str]
    price: Decimal

    @property
    def is_fixed(self) -> bool:
        return self.width_band_id is None


@dataclass(frozen=True)
class Product:
    id: str
    handle: str
    title: str
    price_band_id: Optional[str] = None


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CustomizationSelection:
    category: str
    option_id: str


@dataclass
class QuoteRequest:
    """A pricing request for one made-to-measure blind."""
    product_id: str
    width_inches: Decimal | float | int
    height_inches: Decimal | float | int
    customizations: list[CustomizationSelection] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass
class TraceStep:
    """A single step in the pricing resolution trace."""
    step: str
    description: str
    value: Optional[str] = None


@dataclass
class CustomizationLine:
    """A priced customization included in a quote."""
    category: str
    option_id: str
    name: str
    price: Decimal

    def to_dict(self) -> dict:
        return {
            "category": self.category,
            "optionId": self.option_id,
            "name": self.name,
            "price": money(self.price),
        }


@dataclass
class Quote:
    """The authoritative price for one configured blind."""
    cell_price: Decimal
    customization_lines: list[CustomizationLine]
    total: Decimal
    resolved_width_band: WidthBand
    resolved_height_band: HeightBand
    price_band: Optional[PriceBand] = None
    warnings: list[str] = field(default_factory=list)
    trace: list[TraceStep] = field(default_factory=list)

    def add_trace(self, step: str, description: str, value: str = None):
        """Add a step to the trace for this quote."""
        self.trace.append(TraceStep(step=step, description=description, value=value))

    def add_warning(self, warning: str):
        """Add a warning for this quote."""
        self.warnings.append(warning)

    def get_trace_text(self) -> str:
        """Get human-readable trace as formatted text."""
        lines = []
        for t in self.trace:
            if t.value:
                lines.append(f"→ {t.step}: {t.description} = {t.value}")
            else:
                lines.append(f"→ {t.step}: {t.description}")
        return "\n".join(lines)

    def to_dict(self) -> dict:
        return {
            "cellPrice": money(self.cell_price),
            "customizationLines": [line.to_dict() for line in self.customization_lines],
            "total": money(self.total),
            "widthBand": {"mm": self.resolved_width_band.mm, "inches": self.resolved_width_band.inches},
            "heightBand": {"mm": self.resolved_height_band.mm, "inches": self.resolved_height_band.inches},
            "priceBand": self.price_band.to_dict() if self.price_band else None,
            "warnings": list(self.warnings),
        }


@dataclass
class QuoteResult:
    """Either a quote or the reason there is none."""
    quote: Optional[Quote] = None
    error: Optional[PricingError] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.quote is not None

    @classmethod
    def failure(cls, error: PricingError) -> 'QuoteResult':
        return cls(quote=None, error=error)


@dataclass
class ValidationResult:
    """Outcome of comparing a submitted price against a recomputed quote."""
    valid: bool
    calculated_price: Optional[Decimal]
    difference: Optional[Decimal]
    error: Optional[PricingError] = None

    def to_dict(self) -> dict:
        data = {
            "valid": self.valid,
            "calculatedPrice": money(self.calculated_price) if self.calculated_price is not None else None,
            "difference": money(self.difference) if self.difference is not None else None,
        }
        if self.error is not None:
            data["error"] = self.error.to_dict()
        return data


@dataclass
class PriceBandMatrix:
    """The full price grid of one price band, restricted to the bands it uses."""
    id: str
    name: str
    width_bands: list[WidthBand]
    height_bands: list[HeightBand]
    prices: list[tuple[int, int, Decimal]]  # (width_mm, height_mm, price)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "widthBands": [b.to_dict() for b in self.width_bands],
            "heightBands": [b.to_dict() for b in self.height_bands],
            "prices": [
                {"widthMm": w, "heightMm": h, "price": money(p)}
                for w, h, p in self.prices
            ],
        }


@dataclass
class CustomizationCatalogEntry:
    """An option with every price it can take, for rendering configurators."""
    category: str
    option_id: str
    name: str
    prices: list[tuple[Optional[int], Decimal]]  # (width_mm or None for fixed, price)

    def to_dict(self) -> dict:
        return {
            "category": self.category,
            "optionId": self.option_id,
            "name": self.name,
            "prices": [{"widthMm": w, "price": money(p)} for w, p in self.prices],
        }
