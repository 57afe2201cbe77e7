"""Payment errors."""

from typing import Optional


class PaymentError(Exception):
    """Base exception for checkout and payment bookkeeping."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UnknownPlanError(PaymentError):
    def __init__(self, plan_key: Optional[str]):
        super().__init__(f"Unknown membership plan '{plan_key}'. Choose regular, pro or vip.")
        self.plan_key = plan_key


class PaymentConfigurationError(PaymentError):
    def __init__(self, message: str = "Payments are not configured. Set PAYPAL_RECIPIENT."):
        super().__init__(message)


class TransactionNotFoundError(PaymentError):
    def __init__(self, transaction_id: str):
        super().__init__("Transaction not found")
        self.transaction_id = transaction_id


class TransactionStateError(PaymentError):
    """The transaction cannot move to the requested status."""
