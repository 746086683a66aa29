"""
Price Validator - checks a client-submitted price against a server quote.

The submitted price is only ever compared, never used: the quote is always
recomputed from catalog data. Tolerance is supplied by the caller (single
item validation and full checkout use different tolerances).
"""
import logging
from decimal import Decimal
from typing import Optional

from .errors import ErrorCode, PricingError
from .models import QuoteRequest, QuoteResult, ValidationResult
from .pricing_engine import PricingEngine

logger = logging.getLogger(__name__)


def to_decimal(value) -> Decimal:
    """Money input (float, int, str or Decimal) → Decimal without binary float noise."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def compare(result: QuoteResult, submitted_price, tolerance) -> ValidationResult:
    """Compare a computed quote with a submitted price."""
    if not result.ok:
        return ValidationResult(valid=False, calculated_price=None, difference=None, error=result.error)

    calculated = result.quote.total
    difference = abs(calculated - to_decimal(submitted_price))
    return ValidationResult(
        valid=difference <= to_decimal(tolerance),
        calculated_price=calculated,
        difference=difference,
    )


def _check_submitted(submitted_price) -> Optional[ValidationResult]:
    if (
        isinstance(submitted_price, bool)
        or not isinstance(submitted_price, (int, float, Decimal))
        or not to_decimal(submitted_price).is_finite()
    ):
        return ValidationResult(
            valid=False, calculated_price=None, difference=None,
            error=PricingError.validation("submittedPrice must be a number", field="submittedPrice"),
        )
    return None


class PriceValidator:
    """Validates submitted prices by recomputing quotes."""

    def __init__(self, engine: PricingEngine):
        self.engine = engine

    def validate(self, request: QuoteRequest, submitted_price, tolerance) -> ValidationResult:
        """
        Recompute the quote for request and compare it with submitted_price.

        Returns:
            ValidationResult with valid, calculated_price and difference;
            error is set (and valid False) when the quote itself failed.
        """
        invalid = _check_submitted(submitted_price)
        if invalid is not None:
            return invalid
        return self.check(self.engine.quote(request), submitted_price, tolerance, request.product_id)

    def check(self, result: QuoteResult, submitted_price, tolerance, label: str) -> ValidationResult:
        """Compare an already computed quote (e.g. priced by handle) with submitted_price."""
        invalid = _check_submitted(submitted_price)
        if invalid is not None:
            return invalid

        outcome = compare(result, submitted_price, tolerance)
        if outcome.error is None and not outcome.valid:
            logger.warning(
                "Price mismatch for %s: submitted %s, calculated %s",
                label, submitted_price, outcome.calculated_price,
                extra={"product_id": label},
            )
        return outcome

    @staticmethod
    def mismatch_error(outcome: ValidationResult, submitted_price, label: str) -> Optional[PricingError]:
        """A PRICE_MISMATCH error describing an invalid comparison, or None if it passed."""
        if outcome.error is not None or outcome.valid:
            return outcome.error
        submitted = to_decimal(submitted_price)
        return PricingError(
            ErrorCode.PRICE_MISMATCH,
            f'Price mismatch for "{label}": submitted {submitted:.2f}, '
            f'calculated {outcome.calculated_price:.2f} (diff: {outcome.difference:.2f})',
            {
                "submittedPrice": float(submitted),
                "calculatedPrice": float(outcome.calculated_price),
                "difference": float(outcome.difference),
            },
        )
