"""Membership checkout via payment redirect."""

from .checkout import CheckoutResult, CheckoutService, format_amount
from .exceptions import (
    PaymentConfigurationError,
    PaymentError,
    TransactionNotFoundError,
    TransactionStateError,
    UnknownPlanError,
)

__all__ = [
    "CheckoutService",
    "CheckoutResult",
    "format_amount",
    "PaymentError",
    "UnknownPlanError",
    "PaymentConfigurationError",
    "TransactionNotFoundError",
    "TransactionStateError",
]
