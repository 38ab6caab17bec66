import pytest
import stripe

from credits_checkout import stripe_mode
from credits_checkout.config import settings


@pytest.fixture
def clean_stripe_env(monkeypatch):
    for key in ("STRIPE_SECRET_KEY", "STRIPE_TEST_SECRET_KEY", "STRIPE_LIVE_SECRET_KEY"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setattr(settings, "stripe_secret_key", None)
    monkeypatch.setattr(settings, "stripe_test_secret_key", None)
    monkeypatch.setattr(settings, "stripe_live_secret_key", None)
    monkeypatch.setattr(stripe, "api_key", None)


def test_test_mode_detected(monkeypatch, clean_stripe_env):
    monkeypatch.setenv("STRIPE_TEST_SECRET_KEY", "sk_test_abc")
    context = stripe_mode.resolve_stripe_context()
    assert context.mode is stripe_mode.StripeMode.test
    assert context.secret_source == "STRIPE_TEST_SECRET_KEY"


def test_conflicting_secrets_rejected(monkeypatch, clean_stripe_env):
    monkeypatch.setenv("STRIPE_SECRET_KEY", "sk_test_abc")
    monkeypatch.setenv("STRIPE_LIVE_SECRET_KEY", "sk_live_xyz")
    with pytest.raises(stripe_mode.StripeConfigurationError, match="Conflicting"):
        stripe_mode.resolve_stripe_context()


def test_unknown_key_prefix_rejected(monkeypatch, clean_stripe_env):
    monkeypatch.setenv("STRIPE_SECRET_KEY", "pk_test_public")
    with pytest.raises(stripe_mode.StripeConfigurationError) as exc_info:
        stripe_mode.resolve_stripe_context()
    message = str(exc_info.value)
    for prefix in ("sk_test_", "sk_live_", "rk_test_", "rk_live_"):
        assert prefix in message


def test_restricted_keys_accepted(monkeypatch, clean_stripe_env):
    monkeypatch.setenv("STRIPE_SECRET_KEY", "rk_test_restricted")
    assert stripe_mode.resolve_stripe_context().mode is stripe_mode.StripeMode.test
    monkeypatch.setenv("STRIPE_SECRET_KEY", "rk_live_restricted")
    assert stripe_mode.resolve_stripe_context().mode is stripe_mode.StripeMode.live


def test_settings_used_when_env_empty(clean_stripe_env, monkeypatch):
    monkeypatch.setattr(settings, "stripe_secret_key", "sk_live_from_settings")
    context = stripe_mode.configure_stripe()
    assert context.mode is stripe_mode.StripeMode.live
    assert stripe.api_key == "sk_live_from_settings"
    assert stripe.api_version == settings.stripe_api_version


def test_missing_secret(clean_stripe_env):
    with pytest.raises(stripe_mode.StripeConfigurationError, match="missing"):
        stripe_mode.resolve_stripe_context()
