from __future__ import annotations

import itertools
from typing import Any

import stripe

TEST_USER_ID = "7d1b2c4e-0000-4000-8000-000000000001"
TEST_TOKEN = "valid-access-token"


class StripeStub:
    """Records calls made through the Stripe SDK and returns canned objects."""

    def __init__(self) -> None:
        self.prices: list[dict[str, Any]] = []
        self.list_calls: list[dict[str, Any]] = []
        self.created_prices: list[dict[str, Any]] = []
        self.sessions: list[dict[str, Any]] = []
        self._ids = itertools.count(1)

    @property
    def call_count(self) -> int:
        return len(self.list_calls) + len(self.created_prices) + len(self.sessions)

    def add_price(
        self,
        price_id: str,
        product: str,
        *,
        interval: str | None = None,
        active: bool = True,
    ) -> None:
        self.prices.append(
            {
                "id": price_id,
                "object": "price",
                "product": product,
                "active": active,
                "type": "recurring" if interval else "one_time",
                "recurring": {"interval": interval} if interval else None,
            }
        )

    def price_list(self, **kwargs):
        self.list_calls.append(kwargs)
        data = [
            price
            for price in self.prices
            if price["product"] == kwargs.get("product")
            and price["active"] == kwargs.get("active", price["active"])
            and price["type"] == kwargs.get("type", price["type"])
        ]
        return stripe.ListObject.construct_from({"object": "list", "data": data}, None)

    def price_create(self, **kwargs):
        self.created_prices.append(kwargs)
        return stripe.Price.construct_from({"id": f"price_new_{next(self._ids)}", **kwargs}, None)

    def session_create(self, **kwargs):
        self.sessions.append(kwargs)
        session_id = f"cs_test_{next(self._ids)}"
        return stripe.checkout.Session.construct_from(
            {"id": session_id, "url": f"https://checkout.stripe.com/c/pay/{session_id}"},
            None,
        )
