"""
Pricing API - FastAPI router for quotes, validation and configurator data.
"""
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..config.settings import Settings, get_settings
from ..engine import CustomizationSelection, PricingEngine, PricingError, PriceValidator, QuoteRequest
from ..engine.models import QuoteResult, money
from .state import get_engine

router = APIRouter(prefix="/api/pricing", tags=["pricing"])


# Pydantic models for API

class CustomizationIn(BaseModel):
    category: str
    optionId: str


class CalculateRequest(BaseModel):
    """Request model for a price calculation (by productId or storefront handle)."""
    productId: Optional[str] = None
    handle: Optional[str] = None
    widthInches: Decimal
    heightInches: Decimal
    customizations: list[CustomizationIn] = []

    def selections(self) -> list[CustomizationSelection]:
        return [CustomizationSelection(c.category, c.optionId) for c in self.customizations]


class ValidateRequest(CalculateRequest):
    """Request model for validating a client-side price."""
    submittedPrice: Decimal


def ok(data) -> dict:
    return {"success": True, "data": data}


def error_response(error: PricingError) -> JSONResponse:
    return JSONResponse(status_code=error.http_status, content={"success": False, "error": error.to_dict()})


def _quote(engine: PricingEngine, req: CalculateRequest) -> QuoteResult:
    if req.handle and not req.productId:
        return engine.quote_by_handle(req.handle, req.widthInches, req.heightInches, req.selections())
    return engine.quote(QuoteRequest(
        product_id=req.productId or "",
        width_inches=req.widthInches,
        height_inches=req.heightInches,
        customizations=req.selections(),
    ))


# Endpoints

@router.post("/calculate")
def calculate_price(req: CalculateRequest, engine: PricingEngine = Depends(get_engine)):
    """Calculate the price for a product configuration."""
    result = _quote(engine, req)
    if not result.ok:
        return error_response(result.error)
    return ok(result.quote.to_dict())


@router.post("/validate")
def validate_price(
    req: ValidateRequest,
    engine: PricingEngine = Depends(get_engine),
    settings: Settings = Depends(get_settings),
):
    """Validate a client-submitted price against the server calculation."""
    validator = PriceValidator(engine)
    if req.handle and not req.productId:
        outcome = validator.check(_quote(engine, req), req.submittedPrice, settings.validate_tolerance, req.handle)
    else:
        outcome = validator.validate(
            QuoteRequest(
                product_id=req.productId or "",
                width_inches=req.widthInches,
                height_inches=req.heightInches,
                customizations=req.selections(),
            ),
            req.submittedPrice,
            settings.validate_tolerance,
        )
    if outcome.error is not None:
        return error_response(outcome.error)
    return ok(outcome.to_dict())


@router.get("/matrix/{price_band_id}")
def get_price_matrix(price_band_id: str, engine: PricingEngine = Depends(get_engine)):
    """Get the full price grid for a price band."""
    matrix = engine.price_band_matrix(price_band_id)
    if matrix is None:
        return JSONResponse(
            status_code=404,
            content={"success": False, "error": {"code": "NOT_FOUND", "message": "Price band not found"}},
        )
    return ok(matrix.to_dict())


@router.get("/customizations")
def get_customizations(engine: PricingEngine = Depends(get_engine)):
    """Get all customization options with pricing."""
    return ok([entry.to_dict() for entry in engine.customization_catalog()])


@router.get("/bands")
def get_size_bands(engine: PricingEngine = Depends(get_engine)):
    """Get all size bands (width and height)."""
    return ok({
        "widthBands": [b.to_dict() for b in engine.width_bands()],
        "heightBands": [b.to_dict() for b in engine.height_bands()],
    })


@router.get("/minimum-prices")
def get_minimum_prices(ids: list[str] = Query(default=[]), engine: PricingEngine = Depends(get_engine)):
    """Starting prices for several price bands; bands without cells are omitted."""
    prices = engine.minimum_prices(ids)
    return ok({band_id: money(price) for band_id, price in prices.items()})


@router.get("/minimum-price/{price_band_id}")
def get_minimum_price(price_band_id: str, engine: PricingEngine = Depends(get_engine)):
    """Starting price for one price band (null when it has no cells)."""
    price = engine.minimum_price(price_band_id)
    return ok({"priceBandId": price_band_id, "minimumPrice": money(price) if price is not None else None})
