from .checkout import (
    CheckoutErrorResponse,
    CheckoutSessionResponse,
    PurchaseRequest,
    PurchaseType,
)

__all__ = [
    "CheckoutErrorResponse",
    "CheckoutSessionResponse",
    "PurchaseRequest",
    "PurchaseType",
]
