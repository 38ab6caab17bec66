from __future__ import annotations

import logging
from typing import Any

import psycopg

from ..db import get_conn

logger = logging.getLogger(__name__)

SubscriptionPlanRow = dict[str, Any]


async def _fetch_one(where: str, value: str) -> SubscriptionPlanRow | None:
    async with get_conn() as cur:
        await cur.execute(
            f"""
            SELECT id,
                   name,
                   credits,
                   price,
                   currency,
                   stripe_product_id
              FROM public.subscription_plans
             WHERE {where} = %s
             LIMIT 1
            """,
            (value,),
        )
        row = await cur.fetchone()
    return dict(row) if row else None


async def find_plan(
    *,
    stripe_product_id: str | None = None,
    plan_id: str | None = None,
) -> SubscriptionPlanRow | None:
    """Look up by Stripe product id first, then by plan id.

    Query errors are logged and treated as a missing row so the static plan
    table can still answer.
    """
    lookups = []
    if stripe_product_id:
        lookups.append(("stripe_product_id", stripe_product_id))
    if plan_id:
        lookups.append(("id::text", plan_id))

    for column, value in lookups:
        try:
            row = await _fetch_one(column, value)
        except psycopg.Error as exc:
            logger.warning(
                "subscription_plans lookup failed: %s",
                exc,
                extra={"column": column, "value": value},
            )
            continue
        if row is not None:
            return row
    return None
