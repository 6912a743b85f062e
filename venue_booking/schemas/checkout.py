from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class CheckoutCreatePayload(BaseModel):
    billing_city: Optional[str] = Field(None, description="Billing city sent to the gateway")
    billing_country: str = Field("SA", min_length=2, max_length=2)


class CheckoutOut(BaseModel):
    checkout_id: str
    url: str
    amount: Decimal
    currency: str


class CheckoutVerifyPayload(BaseModel):
    resource_path: str = Field(..., description="resourcePath from the gateway redirect")
