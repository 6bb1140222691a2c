"""Typed views of the Stripe event fields the notifier reads.

Fields outside these schemas are dropped on validation. The extractor
recovers anything it still needs from the raw JSON.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class CustomerDetails(BaseModel):
    model_config = ConfigDict(extra="ignore")

    email: str | None = None
    name: str | None = None
    phone: str | None = None


class CheckoutSession(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    amount_total: int | None = None
    currency: str | None = None
    customer_details: CustomerDetails | None = None


class EventData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    object: dict[str, Any] = Field(default_factory=dict)


class StripeEvent(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    type: str
    created: int | None = None
    livemode: bool = False
    data: EventData = Field(default_factory=EventData)
