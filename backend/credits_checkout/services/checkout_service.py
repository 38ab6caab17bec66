from __future__ import annotations

import logging
from typing import Any

import stripe
from starlette.concurrency import run_in_threadpool

from .. import metrics, stripe_mode
from ..config import settings
from ..errors import (
    CheckoutConfigError,
    CheckoutError,
    InvalidRequestError,
    ItemNotFoundError,
    UpstreamError,
)
from ..schemas import CheckoutSessionResponse, PurchaseRequest, PurchaseType
from ..utils.supabase_auth import SupabaseUser
from . import item_resolution, stripe_prices

logger = logging.getLogger(__name__)

CREDIT_PURCHASE_METADATA_TYPE = "credit_purchase"
SUBSCRIPTION_METADATA_TYPE = "subscription"


def redirect_base(origin: str | None) -> str:
    base = (origin or "").strip() or settings.checkout_default_origin
    return base.rstrip("/")


def _redirect_urls(origin: str | None, query_key: str) -> tuple[str, str]:
    base = redirect_base(origin)
    return (
        f"{base}/?{query_key}=success",
        f"{base}/?{query_key}=cancelled",
    )


def _require_stripe() -> stripe_mode.StripeContext:
    try:
        return stripe_mode.configure_stripe()
    except stripe_mode.StripeConfigurationError as exc:
        raise CheckoutConfigError(str(exc)) from exc


def _inline_line_item(item: item_resolution.ResolvedItem) -> dict[str, Any]:
    label = str(item.credits) if item.credits_known else "Credits"
    product_data: dict[str, Any] = {"name": f"{label} Credits"}
    if item.bonus_credits > 0:
        product_data["description"] = f"Includes {item.bonus_credits} bonus credits!"
    return {
        "price_data": {
            "currency": item.currency,
            "product_data": product_data,
            "unit_amount": item.unit_amount_cents or 0,
        },
        "quantity": 1,
    }


async def build_credit_package_params(
    user: SupabaseUser,
    payload: PurchaseRequest,
    *,
    origin: str | None,
) -> dict[str, Any]:
    item = await item_resolution.resolve_credit_package(
        package_id=payload.package_id,
        stripe_product_id=payload.stripe_product_id,
    )

    line_item: dict[str, Any]
    if item.product_id:
        price_id = await stripe_prices.find_one_time_price(item.product_id)
        if not price_id:
            if item.unit_amount_cents is None:
                logger.error(
                    "Cannot create one-time price for %s: amount unknown",
                    item.product_id,
                )
                raise ItemNotFoundError("Credit package not found")
            price_id = await stripe_prices.create_price(
                product_id=item.product_id,
                unit_amount_cents=item.unit_amount_cents,
                currency=settings.checkout_currency,
                purchase_type=PurchaseType.credit_package.value,
            )
        line_item = {"price": price_id, "quantity": 1}
    else:
        line_item = _inline_line_item(item)

    success_url, cancel_url = _redirect_urls(origin, "payment")
    return {
        "payment_method_types": ["card"],
        "line_items": [line_item],
        "mode": "payment",
        "success_url": success_url,
        "cancel_url": cancel_url,
        "metadata": {
            "user_id": user.id,
            "credits": str(item.total_credits),
            "type": CREDIT_PURCHASE_METADATA_TYPE,
        },
    }


async def build_subscription_params(
    user: SupabaseUser,
    payload: PurchaseRequest,
    *,
    origin: str | None,
) -> dict[str, Any]:
    item = await item_resolution.resolve_subscription_plan(
        plan_id=payload.plan_id,
        stripe_product_id=payload.stripe_product_id,
    )
    # resolve_subscription_plan guarantees a product id
    product_id = str(item.product_id)

    price_id = await stripe_prices.find_monthly_price(product_id)
    if not price_id:
        if item.unit_amount_cents is None:
            logger.error("Cannot create monthly price for %s: amount unknown", product_id)
            raise ItemNotFoundError("Subscription plan not found")
        price_id = await stripe_prices.create_price(
            product_id=product_id,
            unit_amount_cents=item.unit_amount_cents,
            currency=item.currency,
            purchase_type=PurchaseType.subscription.value,
            recurring_interval=stripe_prices.MONTHLY_INTERVAL,
        )

    metadata = {
        "user_id": user.id,
        "plan_id": item.plan_id or item_resolution.UNKNOWN_PLAN_ID,
        "credits": str(item.credits),
        "type": SUBSCRIPTION_METADATA_TYPE,
    }
    success_url, cancel_url = _redirect_urls(origin, "subscription")
    return {
        "payment_method_types": ["card"],
        "line_items": [{"price": price_id, "quantity": 1}],
        "mode": "subscription",
        "success_url": success_url,
        "cancel_url": cancel_url,
        "metadata": metadata,
        "subscription_data": {"metadata": dict(metadata)},
    }


def parse_purchase_type(value: str | None) -> PurchaseType:
    try:
        return PurchaseType(value)
    except ValueError as exc:
        raise InvalidRequestError("Invalid type") from exc


async def create_checkout_session(
    user: SupabaseUser,
    payload: PurchaseRequest,
    *,
    origin: str | None = None,
) -> CheckoutSessionResponse:
    logger.info(
        "Creating Stripe checkout for user %s",
        user.id,
        extra=payload.log_fields(),
    )
    purchase_type = parse_purchase_type(payload.type)
    context = _require_stripe()

    if purchase_type is PurchaseType.credit_package:
        params = await build_credit_package_params(user, payload, origin=origin)
    else:
        params = await build_subscription_params(user, payload, origin=origin)

    session = await run_in_threadpool(lambda: stripe.checkout.Session.create(**params))
    session_id = session["id"] if "id" in session else None
    if not isinstance(session_id, str) or not session_id:
        raise UpstreamError("Stripe session missing id")

    metrics.checkout_sessions_created_total.labels(purchase_type=purchase_type.value).inc()
    logger.info(
        "Stripe session created: %s",
        session_id,
        extra={"mode": params["mode"], "stripe_mode": context.mode.value},
    )
    url = session["url"] if "url" in session else None
    return CheckoutSessionResponse(session_id=session_id, url=url)


async def handle_checkout_request(
    user: SupabaseUser,
    payload: PurchaseRequest,
    *,
    origin: str | None = None,
) -> CheckoutSessionResponse:
    """Run the checkout pipeline; every failure leaves as a :class:`CheckoutError`."""
    try:
        return await create_checkout_session(user, payload, origin=origin)
    except CheckoutError as exc:
        logger.warning(
            "Checkout rejected: %s",
            exc.detail,
            extra={"user": user.id, **payload.log_fields()},
        )
        raise
    except stripe.StripeError as exc:
        logger.exception(
            "Stripe rejected checkout request",
            extra={"user": user.id, **payload.log_fields()},
        )
        raise UpstreamError(exc.user_message or str(exc)) from exc
    except Exception as exc:
        logger.exception(
            "Error creating Stripe checkout",
            extra={"user": user.id, **payload.log_fields()},
        )
        raise UpstreamError(str(exc) or exc.__class__.__name__) from exc
