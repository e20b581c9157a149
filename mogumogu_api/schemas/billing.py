"""
Pydantic schemas for billing endpoints.
"""
from typing import Literal, Optional
from pydantic import BaseModel, Field


class CheckoutRequest(BaseModel):
    plan: Literal["monthly", "yearly"] = Field("monthly", description="Billing interval")


class VerifyCheckoutRequest(BaseModel):
    sessionId: Optional[str] = Field(None, description="Stripe checkout session id")
