from typing import Annotated

from pydantic import AliasChoices, AnyUrl, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=(".env", "../.env"), extra="ignore")

    supabase_url: AnyUrl | None = None
    supabase_anon_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "SUPABASE_ANON_KEY",
            "SUPABASE_PUBLISHABLE_API_KEY",
            "SUPABASE_PUBLIC_API_KEY",
        ),
    )
    supabase_jwks_url: AnyUrl | None = Field(
        default=None, validation_alias=AliasChoices("SUPABASE_JWKS_URL")
    )
    supabase_jwt_issuer: str | None = Field(
        default=None, validation_alias=AliasChoices("SUPABASE_JWT_ISSUER")
    )
    supabase_auth_mode: str = Field(
        default="remote", validation_alias=AliasChoices("SUPABASE_AUTH_MODE")
    )
    supabase_auth_timeout_seconds: float = 10.0
    supabase_db_url: AnyUrl | None = None
    database_url: AnyUrl | None = None
    database_pool_max_size: int = 5
    stripe_secret_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "STRIPE_SECRET_KEY",
            "STRIPE_TEST_SECRET_KEY",
            "STRIPE_LIVE_SECRET_KEY",
        ),
    )
    stripe_test_secret_key: str | None = Field(
        default=None, validation_alias="STRIPE_TEST_SECRET_KEY"
    )
    stripe_live_secret_key: str | None = Field(
        default=None, validation_alias="STRIPE_LIVE_SECRET_KEY"
    )
    stripe_api_version: str = "2023-10-16"
    checkout_default_origin: str = "http://localhost:8080"
    checkout_currency: str = "usd"
    cors_allow_origins: Annotated[list[str], NoDecode] = ["*"]
    cors_allow_headers: Annotated[list[str], NoDecode] = [
        "authorization",
        "x-client-info",
        "apikey",
        "content-type",
    ]
    sentry_dsn: str | None = Field(
        default=None, validation_alias=AliasChoices("SENTRY_DSN", "BACKEND_SENTRY_DSN")
    )
    sentry_traces_sample_rate: float = Field(
        default=0.0,
        validation_alias=AliasChoices(
            "SENTRY_TRACES_SAMPLE_RATE",
            "BACKEND_SENTRY_TRACES_SAMPLE_RATE",
        ),
    )

    @model_validator(mode="after")
    def _populate_database_url(self):
        if self.database_url is None:
            if self.supabase_db_url is None:
                raise ValueError("DATABASE_URL or SUPABASE_DB_URL is required")
            self.database_url = self.supabase_db_url
        self.checkout_currency = self.checkout_currency.strip().lower() or "usd"
        return self

    @field_validator("cors_allow_origins", "cors_allow_headers", mode="before")
    @classmethod
    def _split_csv(cls, value):
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @field_validator("supabase_auth_mode", mode="before")
    @classmethod
    def _normalize_auth_mode(cls, value):
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered not in {"remote", "jwks"}:
                raise ValueError("SUPABASE_AUTH_MODE must be 'remote' or 'jwks'")
            return lowered
        return value


settings = Settings()
