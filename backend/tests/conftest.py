import asyncio
import os
import sys
from pathlib import Path
from unittest.mock import AsyncMock

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

os.environ.setdefault("DATABASE_URL", "postgresql://localhost:5432/credits_checkout_test")
os.environ.setdefault("SUPABASE_URL", "https://project-ref.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "anon-test-key")

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from credits_checkout import repositories  # noqa: E402
from credits_checkout.main import app  # noqa: E402
from credits_checkout.utils.supabase_auth import SupabaseUser  # noqa: E402

from .utils import TEST_TOKEN, TEST_USER_ID, StripeStub  # noqa: E402


def _ensure_event_loop():
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)


_ensure_event_loop()


@pytest.fixture(scope="module")
def anyio_backend():
    # Limit tests to asyncio backend so local runs do not require the Trio extra.
    return "asyncio"


@pytest.fixture
async def async_client(anyio_backend) -> AsyncClient:
    if anyio_backend != "asyncio":
        pytest.skip("Backend tests require asyncio")

    # ASGITransport does not run the lifespan, so no database pool is opened.
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {TEST_TOKEN}"}


@pytest.fixture
def identity(monkeypatch) -> AsyncMock:
    """Accept ``TEST_TOKEN`` as the test user without calling Supabase."""
    from credits_checkout.utils.supabase_auth import SupabaseAuthError

    async def _resolve(token: str) -> SupabaseUser:
        if token != TEST_TOKEN:
            raise SupabaseAuthError("invalid token")
        return SupabaseUser(id=TEST_USER_ID, email="buyer@example.com")

    mock = AsyncMock(side_effect=_resolve)
    monkeypatch.setattr("credits_checkout.auth.resolve_user", mock)
    return mock


@pytest.fixture
def stripe_env(monkeypatch) -> None:
    for key in (
        "STRIPE_SECRET_KEY",
        "STRIPE_TEST_SECRET_KEY",
        "STRIPE_LIVE_SECRET_KEY",
    ):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("STRIPE_SECRET_KEY", "sk_test_value")


@pytest.fixture
def stripe_stub(monkeypatch, stripe_env) -> StripeStub:
    stub = StripeStub()
    monkeypatch.setattr("stripe.Price.list", stub.price_list)
    monkeypatch.setattr("stripe.Price.create", stub.price_create)
    monkeypatch.setattr("stripe.checkout.Session.create", stub.session_create)
    return stub


@pytest.fixture
def package_rows(monkeypatch) -> AsyncMock:
    mock = AsyncMock(return_value=None)
    monkeypatch.setattr(repositories, "find_package", mock)
    return mock


@pytest.fixture
def plan_rows(monkeypatch) -> AsyncMock:
    mock = AsyncMock(return_value=None)
    monkeypatch.setattr(repositories, "find_plan", mock)
    return mock
