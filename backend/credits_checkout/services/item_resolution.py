"""Resolve what a purchase request refers to.

Each source of pricing data (database row, product-keyed fallback table,
short-code fallback table) is turned into a :class:`PartialItem`. The partials
are merged in priority order and the first defined value of each field wins.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from typing import Any, Iterable, Mapping

from .. import catalog, repositories
from ..config import settings
from ..errors import ItemNotFoundError

logger = logging.getLogger(__name__)

UNKNOWN_PLAN_ID = "unknown_plan"


@dataclass(frozen=True)
class PartialItem:
    product_id: str | None = None
    credits: int | None = None
    bonus_credits: int | None = None
    unit_amount_cents: int | None = None
    currency: str | None = None
    plan_id: str | None = None


@dataclass(frozen=True)
class ResolvedItem:
    product_id: str | None
    credits: int
    bonus_credits: int
    unit_amount_cents: int | None
    currency: str
    plan_id: str | None = None
    credits_known: bool = True

    @property
    def total_credits(self) -> int:
        return self.credits + self.bonus_credits


def _is_missing(value: Any) -> bool:
    return value is None or value == ""


def merge_partials(partials: Iterable[PartialItem | None]) -> PartialItem:
    """Merge ``partials`` in order; the first non-missing value per field wins."""
    merged: dict[str, Any] = {}
    for partial in partials:
        if partial is None:
            continue
        for item_field in fields(PartialItem):
            name = item_field.name
            if name in merged:
                continue
            value = getattr(partial, name)
            if not _is_missing(value):
                merged[name] = value
    return PartialItem(**merged)


def price_to_cents(price: Any) -> int | None:
    """Convert a major-unit price (``10.0``) to integer cents."""
    if isinstance(price, bool) or price is None:
        return None
    try:
        return int(round(float(price) * 100))
    except (TypeError, ValueError):
        return None


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool) or value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _as_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def partial_from_package_row(row: Mapping[str, Any] | None) -> PartialItem | None:
    if not row:
        return None
    return PartialItem(
        product_id=_as_str(row.get("stripe_product_id")),
        credits=_as_int(row.get("credits")),
        bonus_credits=_as_int(row.get("bonus")),
        unit_amount_cents=price_to_cents(row.get("price")),
    )


def partial_from_package_entry(
    entry: catalog.CreditPackageEntry | None,
    *,
    product_id: str | None = None,
) -> PartialItem | None:
    if entry is None:
        return None
    return PartialItem(
        product_id=entry.stripe_product_id or product_id,
        credits=entry.credits,
        bonus_credits=entry.bonus,
        unit_amount_cents=price_to_cents(entry.price),
    )


def partial_from_plan_row(row: Mapping[str, Any] | None) -> PartialItem | None:
    if not row:
        return None
    currency = _as_str(row.get("currency"))
    return PartialItem(
        product_id=_as_str(row.get("stripe_product_id")),
        credits=_as_int(row.get("credits")),
        unit_amount_cents=price_to_cents(row.get("price")),
        currency=currency.lower() if currency else None,
    )


def partial_from_plan_entry(entry: catalog.PlanEntry | None) -> PartialItem | None:
    if entry is None:
        return None
    return PartialItem(
        plan_id=entry.plan_id,
        credits=entry.credits,
        unit_amount_cents=price_to_cents(entry.price),
        currency=entry.currency.lower(),
    )


async def resolve_credit_package(
    *,
    package_id: str | None,
    stripe_product_id: str | None,
) -> ResolvedItem:
    row = await repositories.find_package(
        stripe_product_id=stripe_product_id,
        package_id=package_id,
    )
    merged = merge_partials(
        [
            partial_from_package_row(row),
            PartialItem(product_id=stripe_product_id),
            partial_from_package_entry(
                catalog.credit_package_by_product(stripe_product_id),
                product_id=stripe_product_id,
            ),
            partial_from_package_entry(catalog.credit_package_by_code(package_id)),
        ]
    )

    if merged.product_id is None and merged.unit_amount_cents is None:
        logger.error(
            "Credit package not found",
            extra={"package_id": package_id, "stripe_product_id": stripe_product_id},
        )
        raise ItemNotFoundError("Credit package not found")

    return ResolvedItem(
        product_id=merged.product_id,
        credits=merged.credits or 0,
        bonus_credits=merged.bonus_credits or 0,
        unit_amount_cents=merged.unit_amount_cents,
        currency=settings.checkout_currency,
        credits_known=merged.credits is not None,
    )


async def resolve_subscription_plan(
    *,
    plan_id: str | None,
    stripe_product_id: str | None,
) -> ResolvedItem:
    row = await repositories.find_plan(
        stripe_product_id=stripe_product_id,
        plan_id=plan_id,
    )
    row_partial = partial_from_plan_row(row)
    product_id = merge_partials(
        [row_partial, PartialItem(product_id=stripe_product_id)]
    ).product_id
    if product_id is None:
        logger.error(
            "Subscription plan missing product id; no database row and no fallback",
            extra={"plan_id": plan_id, "stripe_product_id": stripe_product_id},
        )
        raise ItemNotFoundError("Subscription plan not found")

    fallback = partial_from_plan_entry(catalog.plan_by_product(product_id))
    merged = merge_partials([row_partial, fallback])
    # the plan id recorded for fulfilment is the one the client asked for
    resolved_plan_id = merge_partials(
        [PartialItem(plan_id=plan_id), fallback]
    ).plan_id

    return ResolvedItem(
        product_id=product_id,
        credits=merged.credits or 0,
        bonus_credits=0,
        unit_amount_cents=merged.unit_amount_cents,
        currency=merged.currency or settings.checkout_currency,
        plan_id=resolved_plan_id or UNKNOWN_PLAN_ID,
        credits_known=merged.credits is not None,
    )


__all__ = [
    "PartialItem",
    "ResolvedItem",
    "UNKNOWN_PLAN_ID",
    "merge_partials",
    "price_to_cents",
    "resolve_credit_package",
    "resolve_subscription_plan",
]
