"""Static pricing used when the database has no row for a requested item."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping


@dataclass(frozen=True)
class CreditPackageEntry:
    credits: int
    price: float
    bonus: int | None = None
    stripe_product_id: str | None = None


@dataclass(frozen=True)
class PlanEntry:
    plan_id: str
    credits: int
    price: float
    currency: str


CREDIT_PACKAGE_MAP: Mapping[str, CreditPackageEntry] = {
    "prod_SyYasByos1peGR": CreditPackageEntry(credits=200, price=2.0),
    "prod_SyYeStqRDuWGFF": CreditPackageEntry(credits=500, price=5.0),
    "prod_SyYfzJ1fjz9zb9": CreditPackageEntry(credits=1000, price=10.0),
    "prod_SyYmVrUetdiIBY": CreditPackageEntry(credits=2500, price=25.0),
    "prod_SyYg54VfiOr7LQ": CreditPackageEntry(credits=5000, price=50.0),
    "prod_SyYhva8A2beAw6": CreditPackageEntry(credits=10000, price=100.0),
    "prod_SyYehlUkfzq9Qn": CreditPackageEntry(credits=100, price=1.0),
}

# Frontends that only know the short package code (pkg1, pkg2, ...).
PACKAGE_ID_MAP: Mapping[str, CreditPackageEntry] = {
    "pkg1": CreditPackageEntry(stripe_product_id="prod_SyYasByos1peGR", credits=200, price=2.0),
    "pkg2": CreditPackageEntry(stripe_product_id="prod_SyYeStqRDuWGFF", credits=500, price=5.0),
    "pkg3": CreditPackageEntry(stripe_product_id="prod_SyYfzJ1fjz9zb9", credits=1000, price=10.0),
    "pkg4": CreditPackageEntry(stripe_product_id="prod_SyYmVrUetdiIBY", credits=2500, price=25.0),
    "pkg5": CreditPackageEntry(stripe_product_id="prod_SyYg54VfiOr7LQ", credits=5000, price=50.0),
    "pkg6": CreditPackageEntry(stripe_product_id="prod_SyYhva8A2beAw6", credits=10000, price=100.0),
}

PLAN_MAP: Mapping[str, PlanEntry] = {
    "prod_SyYChoQJbIb1ye": PlanEntry(plan_id="plan_free", credits=0, price=0, currency="usd"),
    "prod_SyYK31lYwaraZW": PlanEntry(plan_id="plan_basic", credits=1000, price=9, currency="usd"),
    "prod_SyYMs3lMIhORSP": PlanEntry(plan_id="plan_pro", credits=2000, price=15, currency="usd"),
    "prod_SyYVIP": PlanEntry(plan_id="plan_vip", credits=4000, price=25, currency="usd"),
}


def credit_package_by_product(product_id: str | None) -> CreditPackageEntry | None:
    return CREDIT_PACKAGE_MAP.get(product_id) if product_id else None


def credit_package_by_code(package_id: str | None) -> CreditPackageEntry | None:
    return PACKAGE_ID_MAP.get(package_id) if package_id else None


def plan_by_product(product_id: str | None) -> PlanEntry | None:
    return PLAN_MAP.get(product_id) if product_id else None
