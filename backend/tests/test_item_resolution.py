import pytest

from credits_checkout.errors import ItemNotFoundError
from credits_checkout.services import item_resolution
from credits_checkout.services.item_resolution import PartialItem, merge_partials


def test_merge_prefers_first_defined_field():
    merged = merge_partials(
        [
            PartialItem(credits=1200, unit_amount_cents=None),
            None,
            PartialItem(product_id="prod_b", credits=500, unit_amount_cents=500),
            PartialItem(product_id="prod_c", bonus_credits=25),
        ]
    )
    assert merged == PartialItem(
        product_id="prod_b",
        credits=1200,
        bonus_credits=25,
        unit_amount_cents=500,
    )


def test_merge_treats_empty_string_as_missing_but_keeps_zero():
    merged = merge_partials(
        [
            PartialItem(product_id="", credits=0),
            PartialItem(product_id="prod_x", credits=100),
        ]
    )
    assert merged.product_id == "prod_x"
    assert merged.credits == 0


def test_merge_of_nothing_is_empty():
    assert merge_partials([]) == PartialItem()


@pytest.mark.parametrize(
    ("price", "cents"),
    [(10.0, 1000), (9.99, 999), ("4.5", 450), (0, 0), (None, None), ("n/a", None), (True, None)],
)
def test_price_to_cents(price, cents):
    assert item_resolution.price_to_cents(price) == cents


@pytest.mark.anyio("asyncio")
async def test_credit_package_row_beats_fallback_tables(package_rows):
    package_rows.return_value = {
        "stripe_product_id": "prod_SyYfzJ1fjz9zb9",
        "credits": 1100,
        "bonus": 100,
        "price": 11,
    }
    item = await item_resolution.resolve_credit_package(
        package_id="pkg1", stripe_product_id="prod_SyYfzJ1fjz9zb9"
    )
    assert item.product_id == "prod_SyYfzJ1fjz9zb9"
    assert item.credits == 1100
    assert item.bonus_credits == 100
    assert item.unit_amount_cents == 1100
    assert item.total_credits == 1200


@pytest.mark.anyio("asyncio")
async def test_credit_package_partial_row_is_completed_by_fallback(package_rows):
    package_rows.return_value = {
        "stripe_product_id": "prod_SyYg54VfiOr7LQ",
        "credits": None,
        "bonus": 250,
        "price": None,
    }
    item = await item_resolution.resolve_credit_package(
        package_id=None, stripe_product_id="prod_SyYg54VfiOr7LQ"
    )
    assert item.credits == 5000
    assert item.bonus_credits == 250
    assert item.unit_amount_cents == 5000


@pytest.mark.anyio("asyncio")
async def test_credit_package_product_fallback(package_rows):
    item = await item_resolution.resolve_credit_package(
        package_id=None, stripe_product_id="prod_SyYehlUkfzq9Qn"
    )
    assert item.product_id == "prod_SyYehlUkfzq9Qn"
    assert item.credits == 100
    assert item.bonus_credits == 0
    assert item.unit_amount_cents == 100
    assert item.currency == "usd"


@pytest.mark.anyio("asyncio")
async def test_credit_package_short_code_fallback(package_rows):
    item = await item_resolution.resolve_credit_package(
        package_id="pkg6", stripe_product_id=None
    )
    assert item.product_id == "prod_SyYhva8A2beAw6"
    assert item.credits == 10000
    assert item.unit_amount_cents == 10000


@pytest.mark.anyio("asyncio")
async def test_product_fallback_outranks_short_code(package_rows):
    item = await item_resolution.resolve_credit_package(
        package_id="pkg1", stripe_product_id="prod_SyYmVrUetdiIBY"
    )
    assert item.product_id == "prod_SyYmVrUetdiIBY"
    assert item.credits == 2500


@pytest.mark.anyio("asyncio")
async def test_unresolvable_credit_package(package_rows):
    with pytest.raises(ItemNotFoundError) as exc_info:
        await item_resolution.resolve_credit_package(package_id="pkg0", stripe_product_id=None)
    assert exc_info.value.detail == "Credit package not found"


@pytest.mark.anyio("asyncio")
async def test_subscription_row_overrides_plan_table(plan_rows):
    plan_rows.return_value = {
        "id": "b7a1",
        "stripe_product_id": "prod_SyYVIP",
        "credits": 5000,
        "price": 29.5,
        "currency": "EUR",
    }
    item = await item_resolution.resolve_subscription_plan(plan_id=None, stripe_product_id=None)
    assert item.product_id == "prod_SyYVIP"
    assert item.credits == 5000
    assert item.unit_amount_cents == 2950
    assert item.currency == "eur"
    assert item.plan_id == "plan_vip"


@pytest.mark.anyio("asyncio")
async def test_subscription_unknown_product_keeps_defaults(plan_rows):
    item = await item_resolution.resolve_subscription_plan(
        plan_id=None, stripe_product_id="prod_custom"
    )
    assert item.plan_id == item_resolution.UNKNOWN_PLAN_ID
    assert item.credits == 0
    assert item.unit_amount_cents is None
    assert item.currency == "usd"


@pytest.mark.anyio("asyncio")
async def test_free_plan_has_zero_amount(plan_rows):
    item = await item_resolution.resolve_subscription_plan(
        plan_id=None, stripe_product_id="prod_SyYChoQJbIb1ye"
    )
    assert item.plan_id == "plan_free"
    assert item.unit_amount_cents == 0


@pytest.mark.anyio("asyncio")
async def test_subscription_requires_product_id(plan_rows):
    plan_rows.return_value = {"id": "b7a1", "stripe_product_id": None, "credits": 10, "price": 1}
    with pytest.raises(ItemNotFoundError) as exc_info:
        await item_resolution.resolve_subscription_plan(plan_id="b7a1", stripe_product_id=None)
    assert exc_info.value.detail == "Subscription plan not found"
