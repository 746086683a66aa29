"""
Checkout cart validation.

Flow for a cart:
1. Validate each item's shape (handle, dimensions, quantity, price)
2. Resolve the storefront product by handle
3. Map the configurator selections to (category, option) customizations
4. Re-quote server-side and compare with the submitted price
5. Use the server price for the line; subtotal = Σ price × quantity

Any failing item rejects the whole cart. Submitting the draft order to the
storefront is not done here; build_draft_order_payload() only builds it.
"""
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from ..engine.errors import PricingError
from ..engine.models import CustomizationSelection, Quote, money
from ..engine.pricing_engine import PricingEngine
from ..engine.validator import PriceValidator, compare, to_decimal

logger = logging.getLogger(__name__)


# Configurator field → customization category
CONFIG_CATEGORIES = {
    'headrail': 'headrail',
    'headrailColour': 'headrail-colour',
    'installationMethod': 'installation-method',
    'controlOption': 'control-option',
    'stacking': 'stacking',
    'controlSide': 'control-side',
    'bottomChain': 'bottom-chain',
    'bracketType': 'bracket-type',
    'chainColor': 'chain-color',
    'wrappedCassette': 'wrapped-cassette',
    'cassetteMatchingBar': 'cassette-bar',
    'motorization': 'motorization',
    'blindColor': 'blind-color',
    'frameColor': 'frame-color',
    'openingDirection': 'opening-direction',
    'bottomBar': 'bottom-bar',
    'rollStyle': 'roll-style',
}

# Configurator field → label shown on the order
CONFIG_LABELS = {
    'headrail': 'Headrail',
    'headrailColour': 'Headrail Colour',
    'installationMethod': 'Installation',
    'controlOption': 'Control Option',
    'stacking': 'Stacking',
    'controlSide': 'Control Side',
    'bottomChain': 'Bottom Chain',
    'bracketType': 'Bracket Type',
    'chainColor': 'Chain Color',
    'wrappedCassette': 'Wrapped Cassette',
    'cassetteMatchingBar': 'Cassette Bar',
    'motorization': 'Motorization',
    'blindColor': 'Blind Color',
    'frameColor': 'Frame Color',
    'openingDirection': 'Opening Direction',
    'bottomBar': 'Bottom Bar',
    'rollStyle': 'Roll Style',
}


def _selected(value) -> bool:
    return bool(value) and value != 'none'


def config_to_customizations(configuration: dict[str, str]) -> list[CustomizationSelection]:
    """Selections from a configurator payload; empty and "none" values are skipped."""
    selections = []
    for key, category in CONFIG_CATEGORIES.items():
        value = configuration.get(key)
        if _selected(value):
            selections.append(CustomizationSelection(category=category, option_id=value))
    return selections


@dataclass
class CartItem:
    """One configured blind submitted at checkout."""
    handle: str
    width_inches: Decimal | float | int
    height_inches: Decimal | float | int
    quantity: int
    submitted_price: Decimal | float | int
    configuration: dict[str, str] = field(default_factory=dict)


@dataclass
class CartLine:
    item: CartItem
    title: str
    calculated_price: Decimal
    quote: Quote

    def to_dict(self) -> dict:
        return {
            "handle": self.item.handle,
            "title": self.title,
            "calculatedPrice": money(self.calculated_price),
            "quantity": self.item.quantity,
        }


@dataclass
class CartValidation:
    lines: list[CartLine] = field(default_factory=list)
    subtotal: Decimal = Decimal('0')
    error: Optional[PricingError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict:
        return {
            "lineItems": [line.to_dict() for line in self.lines],
            "subtotal": money(self.subtotal),
        }


def _is_number(value) -> bool:
    """A real, finite int, float or Decimal."""
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        return False
    return to_decimal(value).is_finite()


def _check_item(item: CartItem) -> Optional[PricingError]:
    if not item.handle:
        return PricingError.validation("Each item must have a handle", field="handle")
    if not _is_number(item.width_inches) or to_decimal(item.width_inches) <= 0:
        return PricingError.validation("Each item must have a positive widthInches", field="widthInches")
    if not _is_number(item.height_inches) or to_decimal(item.height_inches) <= 0:
        return PricingError.validation("Each item must have a positive heightInches", field="heightInches")
    if isinstance(item.quantity, bool) or not isinstance(item.quantity, int) or item.quantity < 1:
        return PricingError.validation("Each item must have a quantity >= 1", field="quantity")
    if not _is_number(item.submitted_price):
        return PricingError.validation("Each item must have a submittedPrice", field="submittedPrice")
    return None


class CartValidator:
    """Recomputes every cart line server-side before checkout."""

    def __init__(self, engine: PricingEngine, tolerance):
        self.engine = engine
        self.tolerance = to_decimal(tolerance)

    def validate_cart(self, items: list[CartItem]) -> CartValidation:
        if not items:
            return CartValidation(error=PricingError.validation("Cart is empty"))

        identity = self.engine.identity_resolver
        validation = CartValidation()

        for item in items:
            error = _check_item(item)
            if error:
                return CartValidation(error=error)

            product = identity.product(item.handle) if identity else None
            if product is None:
                return CartValidation(error=PricingError.product_not_found(item.handle))

            result = self.engine.quote_by_handle(
                item.handle,
                item.width_inches,
                item.height_inches,
                config_to_customizations(item.configuration),
            )
            outcome = compare(result, item.submitted_price, self.tolerance)
            error = PriceValidator.mismatch_error(outcome, item.submitted_price, product.title)
            if error:
                logger.warning("Checkout rejected for %s: %s", item.handle, error.message, extra={"handle": item.handle})
                return CartValidation(error=error)

            price = result.quote.total
            validation.lines.append(CartLine(
                item=item,
                title=f'{product.title} – {item.width_inches}" × {item.height_inches}"',
                calculated_price=price,
                quote=result.quote,
            ))
            validation.subtotal += price * item.quantity

        return validation


def build_line_item_properties(item: CartItem, calculated_price: Decimal) -> list[dict[str, str]]:
    """Human-readable properties shown on the storefront order and receipt."""
    properties = [
        {"name": "Width", "value": f"{item.width_inches} inches"},
        {"name": "Height", "value": f"{item.height_inches} inches"},
    ]

    if item.configuration.get('roomType'):
        properties.append({"name": "Room Type", "value": item.configuration['roomType']})
    if item.configuration.get('blindName'):
        properties.append({"name": "Blind Name", "value": item.configuration['blindName']})

    for key, label in CONFIG_LABELS.items():
        value = item.configuration.get(key)
        if _selected(value):
            properties.append({"name": label, "value": value})

    properties.append({"name": "_calculatedPrice", "value": f"{calculated_price:.2f}"})
    return properties


def build_draft_order_payload(
    validation: CartValidation,
    customer_email: Optional[str] = None,
    note: Optional[str] = None,
) -> dict:
    """Draft order body for a validated cart, priced with server prices only."""
    if not validation.ok:
        raise ValueError("Cannot build a draft order from a rejected cart")

    payload = {
        "draft_order": {
            "line_items": [
                {
                    "title": line.title,
                    "price": f"{line.calculated_price:.2f}",
                    "quantity": line.item.quantity,
                    "requires_shipping": True,
                    "taxable": True,
                    "properties": build_line_item_properties(line.item, line.calculated_price),
                }
                for line in validation.lines
            ],
            "use_customer_default_address": True,
        }
    }
    if customer_email:
        payload["draft_order"]["email"] = customer_email
    if note:
        payload["draft_order"]["note"] = note
    return payload
