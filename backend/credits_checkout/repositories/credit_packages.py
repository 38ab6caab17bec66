from __future__ import annotations

import logging
from typing import Any

import psycopg

from ..db import get_conn

logger = logging.getLogger(__name__)

CreditPackageRow = dict[str, Any]

_COLUMNS = """
        id,
        name,
        credits,
        bonus,
        price,
        stripe_product_id
    """


async def _fetch_one(where: str, value: str) -> CreditPackageRow | None:
    async with get_conn() as cur:
        await cur.execute(
            f"""
            SELECT {_COLUMNS}
              FROM public.credit_packages
             WHERE {where} = %s
             LIMIT 1
            """,
            (value,),
        )
        row = await cur.fetchone()
    return dict(row) if row else None


async def get_by_stripe_product_id(stripe_product_id: str) -> CreditPackageRow | None:
    try:
        return await _fetch_one("stripe_product_id", stripe_product_id)
    except psycopg.Error as exc:
        logger.warning(
            "credit_packages lookup by stripe_product_id failed: %s",
            exc,
            extra={"stripe_product_id": stripe_product_id},
        )
        return None


async def get_by_id(package_id: str) -> CreditPackageRow | None:
    # ids are uuids but clients may send short codes such as "pkg3"
    try:
        return await _fetch_one("id::text", package_id)
    except psycopg.Error as exc:
        logger.warning(
            "credit_packages lookup by id failed: %s",
            exc,
            extra={"package_id": package_id},
        )
        return None


async def find_package(
    *,
    stripe_product_id: str | None = None,
    package_id: str | None = None,
) -> CreditPackageRow | None:
    """Look up by Stripe product id first, then by package id."""
    row = None
    if stripe_product_id:
        row = await get_by_stripe_product_id(stripe_product_id)
    if row is None and package_id:
        row = await get_by_id(package_id)
    return row
