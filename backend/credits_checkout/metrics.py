from __future__ import annotations

from prometheus_client import Counter

checkout_sessions_created_total = Counter(
    "checkout_sessions_created_total",
    "Number of Stripe checkout sessions created.",
    ["purchase_type"],
)
checkout_failures_total = Counter(
    "checkout_failures_total",
    "Number of checkout requests rejected or failed, by error kind.",
    ["reason"],
)
stripe_prices_created_total = Counter(
    "stripe_prices_created_total",
    "Number of Stripe prices created because no reusable price existed.",
    ["purchase_type"],
)
