"""Checkout subpackage - server-side repricing of carts."""
from .cart import (
    CartItem,
    CartValidation,
    CartValidator,
    build_draft_order_payload,
    config_to_customizations,
)

__all__ = [
    'CartItem', 'CartValidation', 'CartValidator',
    'build_draft_order_payload', 'config_to_customizations',
]
