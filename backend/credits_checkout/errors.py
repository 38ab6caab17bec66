from __future__ import annotations

import logging

from fastapi import Request, status
from fastapi.responses import JSONResponse

from . import metrics

logger = logging.getLogger(__name__)


class CheckoutError(Exception):
    """Base for every failure the checkout endpoint reports to the client.

    All variants surface as ``400 {"error": detail}``; the subclass only
    distinguishes the failure in logs and metrics.
    """

    status_code = status.HTTP_400_BAD_REQUEST
    reason = "checkout_error"

    def __init__(self, detail: str, *, status_code: int | None = None) -> None:
        super().__init__(detail)
        if status_code:
            self.status_code = status_code
        self.detail = detail


class UnauthorizedError(CheckoutError):
    reason = "unauthorized"


class InvalidRequestError(CheckoutError):
    reason = "invalid_request"


class ItemNotFoundError(CheckoutError):
    reason = "item_not_found"


class UpstreamError(CheckoutError):
    reason = "upstream_failure"


class CheckoutConfigError(CheckoutError):
    reason = "configuration"


async def checkout_error_handler(request: Request, exc: CheckoutError) -> JSONResponse:
    metrics.checkout_failures_total.labels(reason=exc.reason).inc()
    logger.warning(
        "Checkout request failed: %s",
        exc.detail,
        extra={"reason": exc.reason, "path": request.url.path},
    )
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


__all__ = [
    "CheckoutConfigError",
    "CheckoutError",
    "InvalidRequestError",
    "ItemNotFoundError",
    "UnauthorizedError",
    "UpstreamError",
    "checkout_error_handler",
]
