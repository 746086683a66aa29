"""Engine subpackage - core pricing logic and resolution."""
from .pricing_engine import PricingEngine
from .validator import PriceValidator
from .errors import ErrorCode, PricingError, CatalogUnavailableError
from .models import QuoteRequest, CustomizationSelection, Quote, QuoteResult, ValidationResult

__all__ = [
    'PricingEngine', 'PriceValidator',
    'ErrorCode', 'PricingError', 'CatalogUnavailableError',
    'QuoteRequest', 'CustomizationSelection', 'Quote', 'QuoteResult', 'ValidationResult',
]
