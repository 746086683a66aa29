"""
Error taxonomy for the pricing engine.

Quoting, validation and checkout operations return a PricingError inside
their result objects rather than raising. The one exception that escapes
is CatalogUnavailableError, raised by a repository when the underlying
store cannot be read; callers may retry it.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class ErrorCode(str, Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    PRODUCT_NOT_FOUND = "PRODUCT_NOT_FOUND"
    PRODUCT_NOT_PRICED = "PRODUCT_NOT_PRICED"
    NO_BANDS_CONFIGURED = "NO_BANDS_CONFIGURED"
    PRICE_CELL_MISSING = "PRICE_CELL_MISSING"
    PRICE_MISMATCH = "PRICE_MISMATCH"


_HTTP_STATUS = {
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.PRODUCT_NOT_FOUND: 404,
    ErrorCode.PRODUCT_NOT_PRICED: 422,
    ErrorCode.NO_BANDS_CONFIGURED: 500,
    ErrorCode.PRICE_CELL_MISSING: 500,
    ErrorCode.PRICE_MISMATCH: 422,
}


@dataclass(frozen=True)
class PricingError:
    """A typed pricing failure."""
    code: ErrorCode
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def is_data_error(self) -> bool:
        """True when the catalog itself is incomplete rather than the request being wrong."""
        return self.code in (ErrorCode.NO_BANDS_CONFIGURED, ErrorCode.PRICE_CELL_MISSING)

    @property
    def http_status(self) -> int:
        return _HTTP_STATUS[self.code]

    def to_dict(self) -> dict:
        data = {"code": self.code.value, "message": self.message}
        if self.details:
            data["details"] = self.details
        return data

    @classmethod
    def validation(cls, message: str, **details) -> 'PricingError':
        return cls(ErrorCode.VALIDATION_ERROR, message, details)

    @classmethod
    def product_not_found(cls, product_ref: str) -> 'PricingError':
        return cls(ErrorCode.PRODUCT_NOT_FOUND, f"Product not found: {product_ref}", {"product": product_ref})

    @classmethod
    def product_not_priced(cls, product_ref: str) -> 'PricingError':
        return cls(
            ErrorCode.PRODUCT_NOT_PRICED,
            f"Product {product_ref} is not available for purchase (no price band assigned)",
            {"product": product_ref},
        )

    @classmethod
    def no_bands(cls, dimension: str) -> 'PricingError':
        return cls(
            ErrorCode.NO_BANDS_CONFIGURED,
            f"No {dimension} bands are configured in the catalog",
            {"dimension": dimension},
        )

    @classmethod
    def price_cell_missing(
        cls,
        price_band_id: str,
        width_band_id: str,
        height_band_id: str,
    ) -> 'PricingError':
        return cls(
            ErrorCode.PRICE_CELL_MISSING,
            "Price not found for the given dimensions",
            {
                "price_band_id": price_band_id,
                "width_band_id": width_band_id,
                "height_band_id": height_band_id,
            },
        )


class CatalogUnavailableError(Exception):
    """Raised by a catalog repository when its backing store cannot be read."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause
