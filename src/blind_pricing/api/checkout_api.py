"""
Checkout API - server-side repricing of a cart before a draft order is created.
"""
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ..checkout import CartItem, CartValidator, build_draft_order_payload
from ..config.settings import Settings, get_settings
from ..engine import PricingEngine
from .pricing_api import error_response, ok
from .state import get_engine

router = APIRouter(prefix="/api/checkout", tags=["checkout"])


class CheckoutItemIn(BaseModel):
    handle: str
    widthInches: Decimal
    heightInches: Decimal
    quantity: int
    submittedPrice: Decimal
    configuration: dict[str, str] = {}


class CheckoutRequest(BaseModel):
    items: list[CheckoutItemIn]
    customerEmail: Optional[str] = None
    note: Optional[str] = None


@router.post("/validate")
def validate_checkout(
    req: CheckoutRequest,
    engine: PricingEngine = Depends(get_engine),
    settings: Settings = Depends(get_settings),
):
    """Reprice every cart line and return the draft order that would be created."""
    items = [
        CartItem(
            handle=i.handle,
            width_inches=i.widthInches,
            height_inches=i.heightInches,
            quantity=i.quantity,
            submitted_price=i.submittedPrice,
            configuration=i.configuration,
        )
        for i in req.items
    ]
    validation = CartValidator(engine, settings.checkout_tolerance).validate_cart(items)
    if not validation.ok:
        return error_response(validation.error)

    data = validation.to_dict()
    data["draftOrder"] = build_draft_order_payload(validation, req.customerEmail, req.note)
    return ok(data)
