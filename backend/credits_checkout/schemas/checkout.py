from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class PurchaseType(str, Enum):
    credit_package = "credit_package"
    subscription = "subscription"


class PurchaseRequest(BaseModel):
    """Body of ``POST /create-stripe-checkout``.

    ``type`` stays a plain string here so an unknown purchase type is reported
    as ``Invalid type`` by the service instead of a schema error.
    """

    model_config = ConfigDict(populate_by_name=True)

    type: Optional[str] = None
    package_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("packageId", "package_id")
    )
    plan_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("planId", "plan_id")
    )
    stripe_product_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("stripeProductId", "stripe_product_id"),
    )

    @field_validator("type", "package_id", "plan_id", "stripe_product_id", mode="before")
    @classmethod
    def _blank_to_none(cls, value):
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            value = str(value)
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value

    def log_fields(self) -> dict[str, Optional[str]]:
        return {
            "type": self.type,
            "packageId": self.package_id,
            "planId": self.plan_id,
            "stripeProductId": self.stripe_product_id,
        }


class CheckoutSessionResponse(BaseModel):
    session_id: str = Field(serialization_alias="sessionId")
    url: Optional[str] = None


class CheckoutErrorResponse(BaseModel):
    error: str
