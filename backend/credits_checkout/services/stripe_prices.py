from __future__ import annotations

import logging
from typing import Any

import stripe
from starlette.concurrency import run_in_threadpool

from .. import metrics

logger = logging.getLogger(__name__)

MONTHLY_INTERVAL = "month"


def _price_id(price: Any) -> str | None:
    if price is None or "id" not in price:
        return None
    price_id = price["id"]
    return price_id if isinstance(price_id, str) and price_id else None


def _listed_prices(result: Any) -> list[Any]:
    if result is None or "data" not in result:
        return []
    return list(result["data"] or [])


async def find_one_time_price(product_id: str) -> str | None:
    """Return the first active one-time price attached to ``product_id``."""
    result = await run_in_threadpool(
        lambda: stripe.Price.list(product=product_id, active=True, type="one_time")
    )
    for price in _listed_prices(result):
        price_id = _price_id(price)
        if price_id:
            return price_id
    return None


async def find_monthly_price(product_id: str) -> str | None:
    """Return the first active recurring price on ``product_id`` billed monthly."""
    result = await run_in_threadpool(
        lambda: stripe.Price.list(product=product_id, active=True, type="recurring")
    )
    for price in _listed_prices(result):
        recurring = price["recurring"] if "recurring" in price else None
        if recurring and "interval" in recurring and recurring["interval"] == MONTHLY_INTERVAL:
            price_id = _price_id(price)
            if price_id:
                return price_id
    return None


async def create_price(
    *,
    product_id: str,
    unit_amount_cents: int,
    currency: str,
    purchase_type: str,
    recurring_interval: str | None = None,
) -> str:
    params: dict[str, Any] = {
        "product": product_id,
        "unit_amount": unit_amount_cents,
        "currency": currency,
    }
    if recurring_interval:
        params["recurring"] = {"interval": recurring_interval}

    price = await run_in_threadpool(lambda: stripe.Price.create(**params))
    price_id = _price_id(price)
    if not price_id:
        raise RuntimeError("Stripe did not return a price id")
    metrics.stripe_prices_created_total.labels(purchase_type=purchase_type).inc()
    logger.info(
        "Created Stripe price %s for product %s",
        price_id,
        product_id,
        extra={
            "unit_amount": unit_amount_cents,
            "currency": currency,
            "interval": recurring_interval,
        },
    )
    return price_id


__all__ = [
    "MONTHLY_INTERVAL",
    "create_price",
    "find_monthly_price",
    "find_one_time_price",
]
