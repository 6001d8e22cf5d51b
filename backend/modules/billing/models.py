"""
Billing module data models.

Request and response shapes for hosted checkout and the Stripe webhook.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class WebhookEventType(str, Enum):
    """Stripe events that change a profile's subscription status."""

    CHECKOUT_COMPLETED = "checkout.session.completed"
    SUBSCRIPTION_DELETED = "customer.subscription.deleted"


class CheckoutRequest(BaseModel):
    """
    Request to start a subscription checkout.

    Accepts the camelCase keys the web client sends.
    """

    price_id: Optional[str] = Field(
        None,
        alias="priceId",
        description="Stripe price ID; defaults to the configured plan",
    )
    return_url: Optional[str] = Field(
        None,
        alias="returnUrl",
        description="Where Stripe sends the user back; defaults to the frontend URL",
    )
    user_id: str = Field(default="", alias="userId", description="Profile ID to activate on success")
    email: str = Field(default="", description="Prefilled customer email")

    model_config = {"populate_by_name": True}


class CheckoutSession(BaseModel):
    """
    Stripe checkout session info.

    Returned when initiating a subscription purchase.
    """

    session_id: str = Field(..., description="Stripe checkout session ID")
    url: str = Field(..., description="Checkout URL to redirect user to")


class WebhookResult(BaseModel):
    """Outcome of processing one webhook delivery."""

    received: bool = True
    event_type: str = Field(..., description="Stripe event type")
    handled: bool = Field(default=False, description="Whether a profile was updated")
    user_id: Optional[str] = None
    customer_id: Optional[str] = None
